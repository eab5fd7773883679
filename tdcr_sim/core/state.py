"""Simulation state owned by the main loop.

The state is mutated only by the main loop on its own thread. Read-only
consumers (console, tests) get immutable snapshots instead of the live
record.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from tdcr_sim.core.scenario import ScenarioMode


class LoopStatus(Enum):
    RUNNING = "running"
    PAUSED = "paused"
    STOPPED = "stopped"


@dataclass
class SimulationState:
    """Mutable simulation record."""
    actuation: Tuple[float, ...]  # Tendon displacements (m), replaced wholesale
    timestep: float  # Timer period (s)
    scenario: ScenarioMode

    def __post_init__(self):
        if not self.timestep > 0:
            raise ValueError(f"timestep must be positive, got {self.timestep!r}")
        self.actuation = tuple(float(v) for v in self.actuation)

    def with_component(self, index: int, delta: float) -> Tuple[float, ...]:
        """Actuation vector with ``delta`` added to one component."""
        values = list(self.actuation)
        values[index] += delta
        return tuple(values)


@dataclass(frozen=True)
class StateSnapshot:
    """Immutable view of the loop for read-only consumers."""
    status: LoopStatus
    scenario: ScenarioMode
    actuation: Tuple[float, ...]
    ticks: int
    renders: int
    failures: int
    end_effector: Optional[Tuple[float, float, float]]  # Position of the last rendered pose
    last_failure: Optional[str]
