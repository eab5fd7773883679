"""Gamepad input for the TDCR simulation.

This module maps an Xbox-style gamepad to key names:
- D-pad up/down: actuation component 0 (every scenario)
- D-pad right/left: actuation component 1 (every scenario)
- A button: pause / resume
- B button: reset actuation
- Y button: next scenario

The gamepad is polled by the event source on the loop thread (pygame
requirement), so it needs no thread of its own.
"""

import logging

import pygame

from tdcr_sim.core.scenario import (
    DPAD_DOWN,
    DPAD_LEFT,
    DPAD_RIGHT,
    DPAD_UP,
    MODE_KEY,
    PAUSE_KEY,
    RESET_KEY,
)

logger = logging.getLogger(__name__)

BUTTON_KEYS = {
    0: PAUSE_KEY,  # A
    1: RESET_KEY,  # B
    3: MODE_KEY,  # Y
}


class GamepadInput:
    """Translates gamepad press edges into key names."""

    def __init__(self, joystick, pump=None):
        """Initialize gamepad input.

        Args:
            joystick: Initialised pygame joystick (or any object with the same
                get_hat/get_button/get_numhats/get_numbuttons methods)
            pump: Callable processing pending device events; defaults to
                pygame.event.pump
        """
        self.joystick = joystick
        self._pump = pump if pump is not None else pygame.event.pump
        self._last_hat = (0, 0)
        self._last_buttons = {}

    @classmethod
    def detect(cls):
        """Return a GamepadInput for the first connected joystick, or None."""
        pygame.init()
        pygame.joystick.init()
        if pygame.joystick.get_count() == 0:
            logger.info("No gamepad detected")
            return None
        joystick = pygame.joystick.Joystick(0)
        joystick.init()
        logger.info("Gamepad connected: %s", joystick.get_name())
        return cls(joystick)

    def poll(self):
        """Key names for controls pressed since the previous poll."""
        self._pump()
        keys = []

        if self.joystick.get_numhats() > 0:
            x, y = self.joystick.get_hat(0)
            last_x, last_y = self._last_hat
            # Each axis has its own edge; rolling onto a diagonal only adds the new direction
            if y != last_y and y != 0:
                keys.append(DPAD_UP if y > 0 else DPAD_DOWN)
            if x != last_x and x != 0:
                keys.append(DPAD_RIGHT if x > 0 else DPAD_LEFT)
            self._last_hat = (x, y)

        for button, key in BUTTON_KEYS.items():
            if button >= self.joystick.get_numbuttons():
                continue
            pressed = bool(self.joystick.get_button(button))
            if pressed and not self._last_buttons.get(button, False):
                keys.append(key)
            self._last_buttons[button] = pressed

        return keys

    def close(self):
        pygame.joystick.quit()
