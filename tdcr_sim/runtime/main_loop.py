"""Main loop stepping the TDCR simulation.

This module implements the event handler that owns the simulation state:
key presses adjust the actuation, timer ticks evaluate the kinematic model
and push the resulting disk frames to the visualizer.
"""

import logging
from collections import deque
from typing import Deque, Optional, Tuple

from tdcr_sim.core.kinematics import KinematicFailure
from tdcr_sim.core.scenario import (
    MODE_KEY,
    PAUSE_KEY,
    RESET_KEY,
    ScenarioMode,
    initial_actuation,
    key_bindings,
)
from tdcr_sim.core.state import LoopStatus, SimulationState, StateSnapshot
from tdcr_sim.runtime.events import Event, dispatch

logger = logging.getLogger(__name__)

DEFAULT_ACTUATION_STEP = 0.0005  # m per key press
DIAGNOSTIC_HISTORY = 100


class MainLoop:
    """Event handler driving the simulation.

    All handlers run on the event source's thread and return after at most
    one kinematic model evaluation. The loop does not own the visualizer or
    the model; both must stay valid for the loop's entire run.
    """

    def __init__(self, visualizer, model, timestep: float, scenario=ScenarioMode.DEFAULT,
                 actuation_step: float = DEFAULT_ACTUATION_STEP):
        """Initialize the main loop.

        Args:
            visualizer: Rendering collaborator providing update_pose()
            model: TDCRModel instance
            timestep: Timer period in seconds
            scenario: ScenarioMode or selector string ("a0", "a4")
            actuation_step: Tendon displacement per key press (m)
        """
        if not actuation_step > 0:
            raise ValueError(f"actuation_step must be positive, got {actuation_step!r}")
        self.visualizer = visualizer
        self.model = model
        self.actuation_step = actuation_step

        mode = ScenarioMode.from_selector(scenario)
        self.state = SimulationState(
            actuation=initial_actuation(mode, model.dof),
            timestep=timestep,
            scenario=mode,
        )
        self.status = LoopStatus.RUNNING
        self._bindings = key_bindings(mode, model.dof)

        self.ticks = 0
        self.renders = 0
        self.failures = 0
        self.last_result = None
        self.diagnostics: Deque[str] = deque(maxlen=DIAGNOSTIC_HISTORY)
        self._last_failed_actuation: Optional[Tuple[float, ...]] = None

    @property
    def stopped(self) -> bool:
        return self.status is LoopStatus.STOPPED

    def handle(self, event: Event) -> None:
        dispatch(self, event)

    def on_timer_tick(self) -> None:
        """Recompute the pose for the current actuation and render it."""
        if self.status is not LoopStatus.RUNNING:
            return
        self.ticks += 1

        q = self.state.actuation
        result = self.model.forward_kinematics(q)
        if isinstance(result, KinematicFailure):
            self._record_failure(q, result)
            return

        self._last_failed_actuation = None
        self.last_result = result
        self.visualizer.update_pose(result.disks)
        self.renders += 1

    def on_key_press(self, key: str) -> None:
        """Apply the command bound to ``key``; unknown keys are ignored."""
        if self.stopped:
            return

        if key == PAUSE_KEY:
            self._toggle_pause()
        elif key == MODE_KEY:
            self._switch_scenario(self.state.scenario.next())
        elif key == RESET_KEY:
            self.state.actuation = initial_actuation(self.state.scenario, self.model.dof)
            logger.info("Actuation reset to %s", _fmt(self.state.actuation))
        else:
            action = self._bindings.get(key)
            if action is None:
                return
            self.state.actuation = self.state.with_component(
                action.index, action.sign * self.actuation_step
            )
            logger.debug("q%d -> %s", action.index, _fmt(self.state.actuation))

    def on_shutdown(self) -> None:
        """Stop the loop; repeated calls are no-ops."""
        if self.stopped:
            return
        self.status = LoopStatus.STOPPED
        logger.info(
            "Main loop stopped after %d ticks (%d renders, %d failures)",
            self.ticks, self.renders, self.failures,
        )

    def snapshot(self) -> StateSnapshot:
        end_effector = None
        if self.last_result is not None:
            end_effector = tuple(float(v) for v in self.last_result.end_effector[:3, 3])
        return StateSnapshot(
            status=self.status,
            scenario=self.state.scenario,
            actuation=self.state.actuation,
            ticks=self.ticks,
            renders=self.renders,
            failures=self.failures,
            end_effector=end_effector,
            last_failure=self.diagnostics[-1] if self.diagnostics else None,
        )

    def _record_failure(self, q, failure: KinematicFailure) -> None:
        self.failures += 1
        message = f"no valid pose for q={_fmt(q)}: {failure}"
        self.diagnostics.append(message)
        # Ticks repeat at the timer rate, warn once per failing actuation
        if q != self._last_failed_actuation:
            logger.warning(message)
            self._last_failed_actuation = q

    def _toggle_pause(self) -> None:
        if self.status is LoopStatus.RUNNING:
            self.status = LoopStatus.PAUSED
        else:
            self.status = LoopStatus.RUNNING
        logger.info("Simulation %s", self.status.value)

    def _switch_scenario(self, mode: ScenarioMode) -> None:
        self.state.scenario = mode
        self.state.actuation = initial_actuation(mode, self.model.dof)
        self._bindings = key_bindings(mode, self.model.dof)
        logger.info("Scenario switched to %s (%s)", mode.value, ", ".join(sorted(self._bindings)))


def _fmt(q) -> str:
    return "(" + ", ".join(f"{v:.4f}" for v in q) + ")"
