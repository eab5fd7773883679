"""Events delivered to the main loop and the handler interface.

Event sources call the handler directly; there is no observer base class to
inherit from. Anything that implements ``on_timer_tick``, ``on_key_press``
and ``on_shutdown`` can be driven by an event source.
"""

from dataclasses import dataclass
from typing import Iterable, Protocol, Union


@dataclass(frozen=True)
class TimerTick:
    pass


@dataclass(frozen=True)
class KeyPress:
    key: str  # Key name, e.g. "KP_8", "KP_Enter", "DPad_Up"


@dataclass(frozen=True)
class Shutdown:
    pass


Event = Union[TimerTick, KeyPress, Shutdown]


class EventHandler(Protocol):
    def on_timer_tick(self) -> None:
        ...

    def on_key_press(self, key: str) -> None:
        ...

    def on_shutdown(self) -> None:
        ...


def dispatch(handler: EventHandler, event: Event) -> None:
    """Invoke the handler method matching ``event``."""
    if isinstance(event, TimerTick):
        handler.on_timer_tick()
    elif isinstance(event, KeyPress):
        handler.on_key_press(event.key)
    elif isinstance(event, Shutdown):
        handler.on_shutdown()
    else:
        raise TypeError(f"unsupported event: {event!r}")


def replay(handler: EventHandler, events: Iterable[Event]) -> None:
    """Deliver a fixed sequence of events in order."""
    for event in events:
        dispatch(handler, event)
