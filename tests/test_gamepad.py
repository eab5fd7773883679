import pytest

from tdcr_sim.controllers import GamepadInput
from tdcr_sim.core.scenario import (
    DPAD_DOWN,
    DPAD_LEFT,
    DPAD_RIGHT,
    DPAD_UP,
    MODE_KEY,
    PAUSE_KEY,
    RESET_KEY,
    ScenarioMode,
)
from tdcr_sim.runtime.main_loop import DEFAULT_ACTUATION_STEP, MainLoop


class FakeJoystick:
    def __init__(self):
        self.hat = (0, 0)
        self.buttons = [False] * 4

    def get_numhats(self):
        return 1

    def get_hat(self, index):
        return self.hat

    def get_numbuttons(self):
        return len(self.buttons)

    def get_button(self, index):
        return self.buttons[index]


def make_gamepad():
    joystick = FakeJoystick()
    return joystick, GamepadInput(joystick, pump=lambda: None)


def test_dpad_reports_press_edges_only():
    joystick, gamepad = make_gamepad()
    assert gamepad.poll() == []

    joystick.hat = (0, 1)
    assert gamepad.poll() == [DPAD_UP]
    assert gamepad.poll() == []

    joystick.hat = (-1, -1)
    assert gamepad.poll() == [DPAD_DOWN, DPAD_LEFT]

    joystick.hat = (0, 0)
    assert gamepad.poll() == []


def test_rolling_onto_diagonal_adds_only_new_direction():
    joystick, gamepad = make_gamepad()
    joystick.hat = (0, 1)
    assert gamepad.poll() == [DPAD_UP]

    joystick.hat = (1, 1)
    assert gamepad.poll() == [DPAD_RIGHT]

    # Releasing up while right stays held is not a press
    joystick.hat = (1, 0)
    assert gamepad.poll() == []

    joystick.hat = (1, -1)
    assert gamepad.poll() == [DPAD_DOWN]


def test_buttons_map_to_command_keys():
    joystick, gamepad = make_gamepad()
    joystick.buttons[0] = True
    joystick.buttons[3] = True
    assert gamepad.poll() == [PAUSE_KEY, MODE_KEY]
    assert gamepad.poll() == []

    joystick.buttons[0] = False
    joystick.buttons[3] = False
    assert gamepad.poll() == []
    joystick.buttons[1] = True
    assert gamepad.poll() == [RESET_KEY]


@pytest.mark.parametrize("scenario", list(ScenarioMode))
def test_dpad_drives_actuation_in_every_scenario(visualizer, model, scenario):
    loop = MainLoop(visualizer, model, timestep=0.01, scenario=scenario)
    start = loop.state.actuation
    joystick, gamepad = make_gamepad()

    for hat in [(0, 1), (0, 0), (0, 1), (1, 1), (0, 0), (-1, 0)]:
        joystick.hat = hat
        for key in gamepad.poll():
            loop.on_key_press(key)

    # Two presses up on component 0, one right and one left on component 1
    assert loop.state.actuation == pytest.approx(
        (start[0] + 2 * DEFAULT_ACTUATION_STEP, start[1])
    )


def test_gamepad_switches_into_assignment_and_keeps_driving(visualizer, model):
    loop = MainLoop(visualizer, model, timestep=0.01)
    joystick, gamepad = make_gamepad()

    joystick.buttons[3] = True
    for key in gamepad.poll():
        loop.on_key_press(key)
    assert loop.state.scenario is ScenarioMode.ASSIGNMENT_4

    joystick.hat = (1, 0)
    for key in gamepad.poll():
        loop.on_key_press(key)
    assert loop.state.actuation == pytest.approx((-0.005, 0.0025 + DEFAULT_ACTUATION_STEP))
