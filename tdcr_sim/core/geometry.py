"""Robot geometry for tendon-driven continuum robots.

This module holds the immutable description of a TDCR: its segments,
tendon layout, bending limit and the base pose anchoring the proximal end.
"""

import math
from dataclasses import dataclass, field
from typing import Sequence, Tuple

import numpy as np


class ContractViolation(ValueError):
    """Raised when a caller hands the model malformed geometry or input."""


@dataclass(frozen=True)
class SegmentGeometry:
    """Geometry of a single continuum segment."""
    length: float  # Backbone arc length (m)
    disk_count: int  # Disks including both end disks
    pitch_radius: float  # Radial distance of the tendon holes (m)

    def __post_init__(self):
        if not (isinstance(self.length, (int, float)) and math.isfinite(self.length) and self.length > 0):
            raise ContractViolation(f"segment length must be positive, got {self.length!r}")
        if isinstance(self.disk_count, bool) or not isinstance(self.disk_count, int) or self.disk_count < 2:
            raise ContractViolation(f"disk_count must be an integer >= 2, got {self.disk_count!r}")
        if not (isinstance(self.pitch_radius, (int, float)) and math.isfinite(self.pitch_radius)
                and self.pitch_radius > 0):
            raise ContractViolation(f"pitch_radius must be positive, got {self.pitch_radius!r}")

    @property
    def disk_spacing(self) -> float:
        """Arc length between two neighbouring disks."""
        return self.length / (self.disk_count - 1)


def rotation_from_rpy(roll: float, pitch: float, yaw: float) -> np.ndarray:
    """Rotation matrix for fixed-axis roll/pitch/yaw (R = Rz(yaw) Ry(pitch) Rx(roll))."""
    cr, sr = math.cos(roll), math.sin(roll)
    cp, sp = math.cos(pitch), math.sin(pitch)
    cy, sy = math.cos(yaw), math.sin(yaw)
    return np.array([
        [cy * cp, cy * sp * sr - sy * cr, cy * sp * cr + sy * sr],
        [sy * cp, sy * sp * sr + cy * cr, sy * sp * cr - cy * sr],
        [-sp, cp * sr, cp * cr],
    ])


@dataclass(frozen=True)
class BasePose:
    """Rigid transform of the robot base in world space.

    Stored as plain tuples so the pose stays immutable; ``matrix()`` hands
    out a fresh homogeneous matrix on every call.
    """
    position: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    rotation: Tuple[Tuple[float, float, float], ...] = (
        (1.0, 0.0, 0.0),
        (0.0, 1.0, 0.0),
        (0.0, 0.0, 1.0),
    )

    def __post_init__(self):
        pos = np.asarray(self.position, dtype=float)
        rot = np.asarray(self.rotation, dtype=float)
        if pos.shape != (3,) or rot.shape != (3, 3):
            raise ContractViolation("base pose needs a 3-vector position and a 3x3 rotation")
        if not (np.all(np.isfinite(pos)) and np.all(np.isfinite(rot))):
            raise ContractViolation("base pose must be finite")
        if not np.allclose(rot @ rot.T, np.eye(3), atol=1e-9) or np.linalg.det(rot) <= 0:
            raise ContractViolation("base rotation must be a proper rotation matrix")
        object.__setattr__(self, "position", tuple(float(v) for v in pos))
        object.__setattr__(self, "rotation", tuple(tuple(float(v) for v in row) for row in rot))

    @classmethod
    def from_rpy(cls, position=(0.0, 0.0, 0.0), rpy=(0.0, 0.0, 0.0)) -> "BasePose":
        """Build a base pose from a position and roll/pitch/yaw in radians."""
        return cls(position=tuple(position), rotation=rotation_from_rpy(*rpy))

    @classmethod
    def from_matrix(cls, matrix) -> "BasePose":
        m = np.asarray(matrix, dtype=float)
        if m.shape != (4, 4):
            raise ContractViolation("base frame must be a 4x4 homogeneous matrix")
        return cls(position=m[:3, 3], rotation=m[:3, :3])

    def matrix(self) -> np.ndarray:
        T = np.eye(4)
        T[:3, :3] = self.rotation
        T[:3, 3] = self.position
        return T


@dataclass(frozen=True)
class RobotGeometry:
    """Complete, immutable description of a tendon-driven continuum robot."""
    segments: Tuple[SegmentGeometry, ...]
    base_pose: BasePose = field(default_factory=BasePose)
    tendons_per_segment: int = 1  # 1: planar antagonistic pair, 2: two orthogonal pairs
    min_bend_radius: float = 0.02  # Smallest realizable bending radius (m)
    coupled_routing: bool = True  # Tendons of distal segments pass through proximal ones

    def __post_init__(self):
        segments = tuple(self.segments)
        if len(segments) not in (1, 2):
            raise ContractViolation(f"a robot has 1 or 2 segments, got {len(segments)}")
        if not all(isinstance(seg, SegmentGeometry) for seg in segments):
            raise ContractViolation("segments must be SegmentGeometry instances")
        if self.tendons_per_segment not in (1, 2):
            raise ContractViolation(
                f"tendons_per_segment must be 1 or 2, got {self.tendons_per_segment!r}"
            )
        if not (isinstance(self.min_bend_radius, (int, float)) and self.min_bend_radius > 0):
            raise ContractViolation(f"min_bend_radius must be positive, got {self.min_bend_radius!r}")
        object.__setattr__(self, "segments", segments)

    @property
    def dof(self) -> int:
        """Number of actuation components the robot accepts."""
        return len(self.segments) * self.tendons_per_segment

    @property
    def disk_count(self) -> int:
        """Distinct disks along the robot; neighbouring segments share a disk."""
        return sum(seg.disk_count for seg in self.segments) - (len(self.segments) - 1)

    @property
    def pitch_radii(self) -> Tuple[float, ...]:
        return tuple(seg.pitch_radius for seg in self.segments)

    @property
    def max_curvature(self) -> float:
        return 1.0 / self.min_bend_radius

    def routed_length(self, segment_index: int) -> float:
        """Backbone length a tendon of ``segment_index`` runs through."""
        return sum(seg.length for seg in self.segments[:segment_index + 1])

    def split_actuation(self, q: Sequence[float]) -> Tuple[Tuple[float, ...], ...]:
        """Split a flat actuation vector into per-segment components."""
        n = self.tendons_per_segment
        return tuple(tuple(q[i * n:(i + 1) * n]) for i in range(len(self.segments)))
