"""Event source driving the main loop.

This module implements the timer loop that feeds the main loop: input
polling, posted key events, timer ticks, visualization sync and real-time
pacing all happen here, on one thread.
"""

import logging
import queue
import time

from tdcr_sim.runtime.events import KeyPress, Shutdown, dispatch

logger = logging.getLogger(__name__)


class HeadlessSurface:
    """Window-less surface; optionally closes itself after ``max_ticks`` syncs."""

    def __init__(self, max_ticks=None):
        self.max_ticks = max_ticks
        self.synced = 0
        self.closed = False

    def is_running(self) -> bool:
        if self.closed:
            return False
        return self.max_ticks is None or self.synced < self.max_ticks

    def sync(self):
        self.synced += 1

    def subscribe_keys(self, callback):
        pass

    def close(self):
        self.closed = True


class EventSource:
    """Timer loop delivering events to an EventHandler.

    Other threads (viewer key callback, console) must only call ``post()``;
    posted events are drained in FIFO order on the loop thread right before
    the next timer tick.
    """

    def __init__(self, surface, period_ms: int, inputs=()):
        """Initialize the event source.

        Args:
            surface: Surface handle (is_running, sync, subscribe_keys, close)
            period_ms: Timer period in milliseconds
            inputs: Devices polled on the loop thread once per tick
        """
        if period_ms <= 0:
            raise ValueError(f"period_ms must be positive, got {period_ms!r}")
        self.surface = surface
        self.period_ms = period_ms
        self.inputs = list(inputs)
        self._events = queue.Queue()
        self._stop_requested = False
        surface.subscribe_keys(self.post_key)

    def post(self, event):
        """Queue an event for the loop thread (thread-safe)."""
        self._events.put(event)

    def post_key(self, key: str):
        self.post(KeyPress(key))

    def stop(self):
        """Ask the loop to end after the current iteration."""
        self.post(Shutdown())

    def run(self, handler):
        """Run until shutdown, then deliver a final Shutdown and close the surface.

        Args:
            handler: EventHandler receiving the events (e.g. MainLoop)
        """
        dt = self.period_ms / 1000.0
        next_time = time.perf_counter()
        logger.info("Event loop started (period %d ms)", self.period_ms)

        try:
            while self._running(handler):
                self._input_step()
                self._drain_step(handler)
                if not self._running(handler):
                    break
                handler.on_timer_tick()
                self._visualization_step()
                next_time += dt
                self._timing_step(next_time)
        finally:
            handler.on_shutdown()
            self.surface.close()
            logger.info("Event loop ended.")

    def _running(self, handler) -> bool:
        if self._stop_requested or getattr(handler, "stopped", False):
            return False
        return self.surface.is_running()

    def _input_step(self):
        """Let input devices post their events."""
        for device in self.inputs:
            for key in device.poll():
                self.post_key(key)

    def _drain_step(self, handler):
        """Deliver all posted events in order."""
        while True:
            try:
                event = self._events.get_nowait()
            except queue.Empty:
                return
            if isinstance(event, Shutdown):
                self._stop_requested = True
            dispatch(handler, event)

    def _visualization_step(self):
        self.surface.sync()

    def _timing_step(self, next_time):
        """Maintain real-time pacing.

        Args:
            next_time: Target time for the next tick
        """
        sleep = next_time - time.perf_counter()
        if sleep > 0:
            time.sleep(sleep)


__all__ = ["EventSource", "HeadlessSurface"]
