"""Configuration management for the TDCR simulation.

This module loads and parses the tdcr.yaml configuration file,
providing strongly-typed configuration objects. Missing or invalid values
fall back to the defaults below and are reported as warnings.
"""

import logging
import math
import os
from dataclasses import dataclass, field
from typing import List, Tuple

import yaml

from tdcr_sim.core.geometry import BasePose, RobotGeometry, SegmentGeometry

logger = logging.getLogger(__name__)


def timer_period_ms(timestep: float) -> int:
    """Timer period in milliseconds for a timestep in seconds."""
    return max(1, int(round(timestep * 1000.0)))


@dataclass
class SimConfig:
    """Simulation configuration."""
    timestep: float = 0.01  # Timer period (seconds)
    scenario: str = "a0"  # Scenario selector
    actuation_step: float = 0.0005  # Tendon displacement per key press (m)


@dataclass
class SegmentConfig:
    """Configuration for a single continuum segment."""
    length: float  # Backbone length (m)
    disk_count: int  # Disks including both end disks
    pitch_radius: float  # Tendon hole radius (m)


DEFAULT_SEGMENTS = (
    SegmentConfig(length=0.1, disk_count=8, pitch_radius=0.006),
    SegmentConfig(length=0.1, disk_count=8, pitch_radius=0.005),
)


@dataclass
class RobotConfig:
    """Robot configuration."""
    segments: List[SegmentConfig] = field(default_factory=lambda: list(DEFAULT_SEGMENTS))
    tendons_per_segment: int = 1  # 1: planar pair, 2: two orthogonal pairs
    min_bend_radius: float = 0.02  # Smallest realizable bending radius (m)
    coupled_routing: bool = True
    base_position: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    base_rpy: Tuple[float, float, float] = (0.0, 0.0, 0.0)  # Roll, pitch, yaw (rad)


@dataclass
class RenderConfig:
    """Disk drawing dimensions."""
    disk_radius: float = 0.007  # m
    disk_height: float = 0.003  # m
    outer_radius: float = 0.001  # Backbone rod radius (m)


@dataclass
class ChatterConfig:
    """Messaging demo configuration."""
    enabled: bool = True
    endpoint: str = "tcp://*:5556"
    topic: str = "chatter"
    rate_hz: float = 10.0


def _positive(value) -> bool:
    return (isinstance(value, (int, float)) and not isinstance(value, bool)
            and math.isfinite(value) and value > 0)


def _positive_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def _vector3(value) -> bool:
    return (isinstance(value, (list, tuple)) and len(value) == 3
            and all(isinstance(v, (int, float)) and not isinstance(v, bool) and math.isfinite(v)
                    for v in value))


def _pick(section: dict, key: str, default, valid, where: str):
    """Read ``section[key]``, falling back to ``default`` if missing or invalid."""
    if key not in section:
        return default
    value = section[key]
    if valid(value):
        return value
    logger.warning("Invalid %s.%s = %r, using default %r", where, key, value, default)
    return default


def _section(cfg: dict, name: str) -> dict:
    value = cfg.get(name, {})
    if value is None:
        return {}
    if not isinstance(value, dict):
        logger.warning("Section '%s' must be a mapping, using defaults", name)
        return {}
    return value


class TDCRConfig:
    """Main configuration loader for the TDCR simulation."""

    def __init__(self, path=None):
        """Load configuration from a YAML file.

        Args:
            path: Path to tdcr.yaml; None or a missing file gives the defaults
        """
        cfg = {}
        if path is not None and os.path.exists(path):
            with open(path, "r", encoding="utf-8") as f:
                loaded = yaml.safe_load(f)
            if isinstance(loaded, dict):
                cfg = loaded
            elif loaded is not None:
                logger.warning("Configuration %s is not a mapping, using defaults", path)
        elif path is not None:
            logger.warning("Configuration file %s not found, using defaults", path)
        self.path = path

        # Load simulation config
        sim = _section(cfg, "sim")
        d = SimConfig()
        self.sim = SimConfig(
            timestep=_pick(sim, "timestep", d.timestep, _positive, "sim"),
            scenario=str(_pick(sim, "scenario", d.scenario, lambda v: isinstance(v, str), "sim")),
            actuation_step=_pick(sim, "actuation_step", d.actuation_step, _positive, "sim"),
        )

        # Load robot config
        self.robot = self._load_robot(_section(cfg, "robot"))

        render = _section(cfg, "render")
        d = RenderConfig()
        self.render = RenderConfig(
            disk_radius=_pick(render, "disk_radius", d.disk_radius, _positive, "render"),
            disk_height=_pick(render, "disk_height", d.disk_height, _positive, "render"),
            outer_radius=_pick(render, "outer_radius", d.outer_radius, _positive, "render"),
        )

        chatter = _section(cfg, "chatter")
        d = ChatterConfig()
        self.chatter = ChatterConfig(
            enabled=_pick(chatter, "enabled", d.enabled, lambda v: isinstance(v, bool), "chatter"),
            endpoint=_pick(chatter, "endpoint", d.endpoint, lambda v: isinstance(v, str) and "://" in v,
                           "chatter"),
            topic=_pick(chatter, "topic", d.topic, lambda v: isinstance(v, str) and bool(v), "chatter"),
            rate_hz=_pick(chatter, "rate_hz", d.rate_hz, _positive, "chatter"),
        )

    @staticmethod
    def _load_robot(robot: dict) -> RobotConfig:
        d = RobotConfig()
        raw_segments = robot.get("segments")
        if raw_segments is None:
            segments = d.segments
        elif not isinstance(raw_segments, list) or len(raw_segments) not in (1, 2):
            logger.warning("robot.segments must list 1 or 2 segments, using defaults")
            segments = d.segments
        else:
            segments = []
            for index, data in enumerate(raw_segments):
                data = data if isinstance(data, dict) else {}
                fallback = DEFAULT_SEGMENTS[min(index, len(DEFAULT_SEGMENTS) - 1)]
                where = f"robot.segments[{index}]"
                segments.append(SegmentConfig(
                    length=_pick(data, "length", fallback.length, _positive, where),
                    disk_count=_pick(data, "disk_count", fallback.disk_count,
                                     lambda v: _positive_int(v) and v >= 2, where),
                    pitch_radius=_pick(data, "pitch_radius", fallback.pitch_radius, _positive, where),
                ))

        base = robot.get("base") or {}
        if not isinstance(base, dict):
            logger.warning("robot.base must be a mapping, using defaults")
            base = {}
        return RobotConfig(
            segments=segments,
            tendons_per_segment=_pick(robot, "tendons_per_segment", d.tendons_per_segment,
                                      lambda v: v in (1, 2) and not isinstance(v, bool), "robot"),
            min_bend_radius=_pick(robot, "min_bend_radius", d.min_bend_radius, _positive, "robot"),
            coupled_routing=_pick(robot, "coupled_routing", d.coupled_routing,
                                  lambda v: isinstance(v, bool), "robot"),
            base_position=tuple(_pick(base, "position", d.base_position, _vector3, "robot.base")),
            base_rpy=tuple(_pick(base, "rpy", d.base_rpy, _vector3, "robot.base")),
        )

    @property
    def timer_period_ms(self) -> int:
        """Timer period in the event source's unit (milliseconds)."""
        return timer_period_ms(self.sim.timestep)

    def build_geometry(self) -> RobotGeometry:
        """Immutable robot geometry for the kinematic model."""
        return RobotGeometry(
            segments=tuple(
                SegmentGeometry(seg.length, seg.disk_count, seg.pitch_radius)
                for seg in self.robot.segments
            ),
            base_pose=BasePose.from_rpy(self.robot.base_position, self.robot.base_rpy),
            tendons_per_segment=self.robot.tendons_per_segment,
            min_bend_radius=self.robot.min_bend_radius,
            coupled_routing=self.robot.coupled_routing,
        )
