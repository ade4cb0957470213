"""MainThreadDispatcher — hands work from network threads to the host thread.

Network worker threads never touch host state directly.  They enqueue a
closure and block until the host's periodic tick runs it via
:meth:`MainThreadDispatcher.drain`::

    dispatcher = MainThreadDispatcher(timeout=30.0)

    # worker thread
    body = dispatcher.call(lambda: router.handle(text))

    # host thread, once per tick
    dispatcher.drain()

Closures run strictly in enqueue order, one at a time, on whichever
thread calls :meth:`drain`.

When :meth:`call` times out the caller stops waiting.  What happens to the
queued closure depends on the :class:`TimeoutPolicy`:

* ``ABANDON``: the closure still runs on a later drain and its result is
  discarded.  A timed-out ``tools/call`` may therefore mutate host state
  after its caller has already been told it failed.
* ``CANCEL``: the closure is skipped if the drain has not started it yet.
  A closure that is already running is never interrupted.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from collections.abc import Callable
from enum import Enum
from typing import Any, TypeVar

from hostmcp.protocol.errors import DispatchTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_TIMEOUT = 30.0


class TimeoutPolicy(str, Enum):
    """What to do with a queued call whose caller timed out."""

    ABANDON = "abandon"
    CANCEL = "cancel"


class PendingDispatch:
    """One blocking handoff: a closure, its completion event, and its outcome."""

    def __init__(self, fn: Callable[[], Any]) -> None:
        self._fn = fn
        self._done = threading.Event()
        self._state_lock = threading.Lock()
        self._started = False
        self._cancelled = False
        self.result: Any = None
        self.error: Exception | None = None

    @property
    def done(self) -> bool:
        return self._done.is_set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def run(self) -> None:
        with self._state_lock:
            if self._cancelled:
                return
            self._started = True
        try:
            self.result = self._fn()
        except Exception as exc:
            self.error = exc
        finally:
            self._done.set()

    def wait(self, timeout: float | None) -> bool:
        return self._done.wait(timeout)

    def cancel(self) -> bool:
        """Prevent the closure from running.  Fails once it has started."""
        with self._state_lock:
            if self._started:
                return False
            self._cancelled = True
            return True


class MainThreadDispatcher:
    """Ordered, single-consumer work queue drained by the host thread."""

    def __init__(
        self,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        timeout_policy: TimeoutPolicy = TimeoutPolicy.ABANDON,
    ) -> None:
        self._queue: deque[Callable[[], Any]] = deque()
        self._lock = threading.Lock()
        self._drain_lock = threading.Lock()
        self._drain_thread: int | None = None
        self._timeout = timeout
        self._timeout_policy = TimeoutPolicy(timeout_policy)

    @property
    def timeout(self) -> float:
        return self._timeout

    @property
    def timeout_policy(self) -> TimeoutPolicy:
        return self._timeout_policy

    @property
    def pending(self) -> int:
        with self._lock:
            return len(self._queue)

    def enqueue(self, closure: Callable[[], Any]) -> None:
        """Append *closure* to the queue.  Never blocks on the host."""
        with self._lock:
            self._queue.append(closure)

    def drain(self) -> int:
        """Run every queued closure on the calling thread; return how many ran.

        A failing closure is logged and skipped.  A drain already in
        progress (on any thread) makes this call a no-op.
        """
        if not self._drain_lock.acquire(blocking=False):
            return 0
        self._drain_thread = threading.get_ident()
        ran = 0
        try:
            while True:
                with self._lock:
                    if not self._queue:
                        break
                    closure = self._queue.popleft()
                try:
                    closure()
                except Exception:
                    logger.exception("Main thread action error")
                ran += 1
        finally:
            self._drain_thread = None
            self._drain_lock.release()
        return ran

    def call(self, fn: Callable[[], T], timeout: float | None = None) -> T:
        """Run *fn* on the host thread and return its result.

        Called from inside a drain, *fn* runs inline instead of deadlocking
        on its own queue.

        Raises:
            DispatchTimeoutError: If no drain ran *fn* within *timeout*.
            Exception: Whatever *fn* raised.
        """
        if self._drain_thread == threading.get_ident():
            return fn()

        wait_for = self._timeout if timeout is None else timeout
        pending = PendingDispatch(fn)
        self.enqueue(pending.run)

        if not pending.wait(wait_for):
            if self._timeout_policy is TimeoutPolicy.CANCEL and pending.cancel():
                logger.warning("Dispatched call timed out after %.1fs; cancelled.", wait_for)
            else:
                logger.warning(
                    "Dispatched call timed out after %.1fs; it will still run and its result is discarded.",
                    wait_for,
                )
            raise DispatchTimeoutError(wait_for)

        if pending.error is not None:
            raise pending.error
        return pending.result  # type: ignore[no-any-return]
