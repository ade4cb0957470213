"""HostLoop — the periodic tick that drains the dispatch queue.

An embedding host calls :meth:`HostLoop.run` on its own main thread (or
simply calls ``dispatcher.drain()`` from its existing update callback).
:meth:`HostLoop.start` runs the same loop on a background thread, which is
what tests and the standalone ``hostmcp serve`` fallback use.
"""

from __future__ import annotations

import logging
import threading

from hostmcp.server.dispatch import MainThreadDispatcher

logger = logging.getLogger(__name__)

DEFAULT_TICK_INTERVAL = 0.01


class HostLoop:
    def __init__(self, dispatcher: MainThreadDispatcher, *, tick_interval: float = DEFAULT_TICK_INTERVAL) -> None:
        self._dispatcher = dispatcher
        self._tick_interval = tick_interval
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def run(self, stop_event: threading.Event | None = None) -> None:
        """Drain the queue every tick on the calling thread until stopped."""
        stop = stop_event or self._stop_event
        logger.debug("Host loop running on %s", threading.current_thread().name)
        while not stop.is_set():
            self._dispatcher.drain()
            stop.wait(self._tick_interval)
        # Work queued just before shutdown still gets answered.
        self._dispatcher.drain()

    def start(self) -> None:
        if self.is_running:
            logger.warning("Host loop already running")
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self.run, name="hostmcp-host", daemon=True)
        self._thread.start()

    def stop(self, timeout: float = 1.0) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
