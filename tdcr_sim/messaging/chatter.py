"""Chatter publisher.

This module provides the messaging demo that shares the process with the
simulation: a ZMQ publisher emitting counter-stamped text messages on a
named topic. It runs on its own thread and never talks to the main loop.
"""

import logging
import threading

import zmq

logger = logging.getLogger(__name__)


def make_message(count: int) -> str:
    return f"hello world {count}"


class ChatterPublisher:
    """Publishes ``hello world <n>`` on a topic at a fixed rate."""

    def __init__(self, endpoint="tcp://*:5556", topic="chatter", rate_hz=10.0, context=None):
        """Initialize the publisher and bind its socket.

        Args:
            endpoint: ZMQ endpoint to bind
            topic: Topic frame sent before every message
            rate_hz: Publishing rate
            context: ZMQ context (defaults to the process-wide instance)
        """
        if rate_hz <= 0:
            raise ValueError(f"rate_hz must be positive, got {rate_hz!r}")
        self.topic = topic
        self.interval = 1.0 / rate_hz
        self.count = 0
        self._stop_event = threading.Event()
        self._thread = None

        context = context or zmq.Context.instance()
        self.socket = context.socket(zmq.PUB)
        self.socket.setsockopt(zmq.LINGER, 0)
        self.socket.bind(endpoint)

    def publish_once(self) -> str:
        """Send the next message and advance the counter."""
        msg = make_message(self.count)
        logger.debug("%s", msg)
        self.socket.send_multipart([self.topic.encode("utf-8"), msg.encode("utf-8")])
        self.count += 1
        return msg

    def start(self):
        """Start the background publishing thread."""
        def loop():
            while not self._stop_event.is_set():
                self.publish_once()
                self._stop_event.wait(self.interval)

        self._thread = threading.Thread(target=loop, daemon=True)
        self._thread.start()

    def stop(self):
        """Stop the publishing thread and close the socket."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=1.0)
            self._thread = None
        self.socket.close()
