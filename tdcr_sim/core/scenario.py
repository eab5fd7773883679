"""Scenario modes and their key bindings.

A scenario only decides the initial actuation and which keys drive which
actuation component; the kinematic model is the same for every scenario.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Tuple

logger = logging.getLogger(__name__)


class ScenarioMode(Enum):
    DEFAULT = "a0"
    ASSIGNMENT_4 = "a4"

    @classmethod
    def from_selector(cls, selector) -> "ScenarioMode":
        """Parse a scenario selector such as ``"a4"``.

        Unknown selectors fall back to DEFAULT.
        """
        if isinstance(selector, cls):
            return selector
        text = str(selector).strip().lower() if selector is not None else ""
        for mode in cls:
            if text in (mode.value, mode.name.lower()):
                return mode
        logger.warning("Unknown scenario %r, falling back to %s", selector, cls.DEFAULT.value)
        return cls.DEFAULT

    def next(self) -> "ScenarioMode":
        members = list(type(self))
        return members[(members.index(self) + 1) % len(members)]


@dataclass(frozen=True)
class Adjust:
    """Key action: move one actuation component by ``sign`` steps."""
    index: int
    sign: int


# Key actions shared by every scenario. The MuJoCo viewer keeps letters,
# digits, arrows and function keys for its own shortcuts, so keyboard
# bindings live on the numeric keypad and the editing block.
PAUSE_KEY = "KP_Enter"
MODE_KEY = "KP_Decimal"
RESET_KEY = "KP_0"

# Gamepad d-pad directions, bound to components 0 and 1 in every scenario
DPAD_UP = "DPad_Up"
DPAD_DOWN = "DPad_Down"
DPAD_RIGHT = "DPad_Right"
DPAD_LEFT = "DPad_Left"
_DPAD_PAIRS = ((DPAD_UP, DPAD_DOWN), (DPAD_RIGHT, DPAD_LEFT))

# (increase, decrease) key per actuation component
_KEY_PAIRS = {
    # Keypad arrow layout: 8/2, 6/4, 9/3 (PgUp/PgDn), 7/1 (Home/End)
    ScenarioMode.DEFAULT: (("KP_8", "KP_2"), ("KP_6", "KP_4"), ("KP_9", "KP_3"), ("KP_7", "KP_1")),
    ScenarioMode.ASSIGNMENT_4: (("KP_Add", "KP_Subtract"), ("KP_Multiply", "KP_Divide"),
                                ("Insert", "Delete"), ("Home", "End")),
}

_INITIAL_ACTUATION = {
    ScenarioMode.DEFAULT: (),
    ScenarioMode.ASSIGNMENT_4: (-0.005, 0.0025),
}


def key_bindings(mode: ScenarioMode, dof: int) -> Dict[str, Adjust]:
    """Key name to actuation adjustment for ``mode`` on a robot with ``dof`` components."""
    bindings = {}
    for pairs in (_KEY_PAIRS[mode], _DPAD_PAIRS):
        for index, (up, down) in enumerate(pairs[:dof]):
            bindings[up] = Adjust(index, +1)
            bindings[down] = Adjust(index, -1)
    return bindings


def initial_actuation(mode: ScenarioMode, dof: int) -> Tuple[float, ...]:
    """Scenario preset padded with zeros (or truncated) to ``dof`` components."""
    preset = _INITIAL_ACTUATION[mode][:dof]
    return tuple(preset) + (0.0,) * (dof - len(preset))
