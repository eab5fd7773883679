"""Input devices for the TDCR simulation.

This package provides input sources besides the viewer keyboard:
- Gamepad: pygame joystick polled on the loop thread
"""

from tdcr_sim.controllers.gamepad import GamepadInput

__all__ = ['GamepadInput']
