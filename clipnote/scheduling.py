"""
Timers and request dispatch for the single logical UI thread.

The grading view runs cooperatively: timer ticks, user actions and network
completions all run one at a time. Schedulers own the timers (the player
poll loop, the scope-prompt expiry) and dispatchers own outstanding remote
calls. Both come in a deterministic flavour for tests and a threaded
flavour that funnels every callback through one lock.
"""

import queue
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Optional, TypeVar

from .errors import RemoteError, TransportError
from .logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class TaskHandle:
    """Handle for a scheduled callback."""

    def __init__(self):
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


# =============================================================================
# Schedulers
# =============================================================================


class ManualScheduler:
    """Scheduler driven by :meth:`advance`, for deterministic tests."""

    def __init__(self):
        self.now_ms = 0
        self._tasks: list[dict] = []

    def _add(self, delay_ms: int, callback: Callable[[], None], repeat: bool) -> TaskHandle:
        handle = TaskHandle()
        self._tasks.append(
            {
                "due": self.now_ms + delay_ms,
                "interval": delay_ms,
                "callback": callback,
                "handle": handle,
                "repeat": repeat,
            }
        )
        return handle

    def call_every(self, interval_ms: int, callback: Callable[[], None]) -> TaskHandle:
        if interval_ms <= 0:
            raise ValueError("interval_ms must be positive")
        return self._add(interval_ms, callback, repeat=True)

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> TaskHandle:
        return self._add(max(delay_ms, 0), callback, repeat=False)

    @property
    def active_tasks(self) -> int:
        return sum(1 for task in self._tasks if not task["handle"].cancelled)

    def advance(self, ms: int) -> None:
        """Move the clock forward, firing due callbacks in time order."""
        target = self.now_ms + ms
        while True:
            due = [t for t in self._tasks if not t["handle"].cancelled and t["due"] <= target]
            if not due:
                break
            task = min(due, key=lambda t: t["due"])
            self.now_ms = task["due"]
            if task["repeat"]:
                task["due"] += task["interval"]
            else:
                self._tasks.remove(task)
            task["callback"]()
        self.now_ms = target
        self._tasks = [t for t in self._tasks if not t["handle"].cancelled]


class ThreadScheduler:
    """
    Scheduler backed by :class:`threading.Timer`.

    Callbacks are serialized through ``lock`` so they never interleave with
    each other or with code that holds the same lock.
    """

    def __init__(self, lock: Optional[threading.RLock] = None):
        self.lock = lock or threading.RLock()

    def _arm(self, delay_ms: int, callback: Callable[[], None], handle: TaskHandle,
             repeat: bool) -> None:
        def fire():
            if handle.cancelled:
                return
            try:
                with self.lock:
                    callback()
            except Exception:
                logger.exception("Scheduled callback failed")
            finally:
                if repeat and not handle.cancelled:
                    self._arm(delay_ms, callback, handle, repeat)

        timer = threading.Timer(delay_ms / 1000.0, fire)
        timer.daemon = True
        timer.start()

    def call_every(self, interval_ms: int, callback: Callable[[], None]) -> TaskHandle:
        if interval_ms <= 0:
            raise ValueError("interval_ms must be positive")
        handle = TaskHandle()
        self._arm(interval_ms, callback, handle, repeat=True)
        return handle

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> TaskHandle:
        handle = TaskHandle()
        self._arm(max(delay_ms, 0), callback, handle, repeat=False)
        return handle


# =============================================================================
# Outstanding requests
# =============================================================================


class RequestHandle:
    """
    One outstanding remote call.

    The transport cannot be cancelled, but a cancelled handle (or one whose
    relevance check fails when the response arrives) drops the response
    instead of applying it. Done callbacks always run on settlement.
    """

    def __init__(self, operation: str, is_relevant: Optional[Callable[[], bool]] = None):
        self.operation = operation
        self._is_relevant = is_relevant or (lambda: True)
        self.cancelled = False
        self.done = False
        self.applied = False
        self._done_callbacks: list[Callable[[], None]] = []

    def cancel(self) -> None:
        self.cancelled = True

    def add_done_callback(self, callback: Callable[[], None]) -> None:
        if self.done:
            callback()
        else:
            self._done_callbacks.append(callback)

    def is_relevant(self) -> bool:
        return not self.cancelled and self._is_relevant()

    def settle(self, callback: Callable[..., None], *args) -> bool:
        """Apply ``callback(*args)`` if the response still matters."""
        self.done = True
        try:
            if not self.is_relevant():
                logger.debug("Dropping stale response for %s", self.operation)
                return False
            callback(*args)
            self.applied = True
            return True
        finally:
            callbacks, self._done_callbacks = self._done_callbacks, []
            for done_callback in callbacks:
                done_callback()


class InFlight:
    """Per-action flags that block re-triggering until a request resolves."""

    def __init__(self):
        self._active: set[str] = set()

    def acquire(self, key: str) -> bool:
        if key in self._active:
            return False
        self._active.add(key)
        return True

    def release(self, key: str) -> None:
        self._active.discard(key)

    def is_active(self, key: str) -> bool:
        return key in self._active


# =============================================================================
# Dispatchers
# =============================================================================


def _run_call(operation: str, call: Callable[[], T]) -> tuple[bool, object]:
    """
    Invoke a remote call and classify its outcome.

    Returns ``(True, result)`` on success and ``(False, error)`` on failure.
    Anything that is not a :class:`RemoteError` is logged with its traceback
    and reported as a :class:`TransportError` for the same operation.
    """
    try:
        return True, call()
    except RemoteError as e:
        return False, e
    except Exception as e:
        logger.exception("Unexpected error during %s", operation)
        return False, TransportError(f"Unexpected error: {e}", operation)


class InlineDispatcher:
    """Run remote calls synchronously and settle them immediately."""

    def submit(
        self,
        operation: str,
        call: Callable[[], T],
        on_success: Callable[[T], None],
        on_failure: Callable[[RemoteError], None],
        is_relevant: Optional[Callable[[], bool]] = None,
    ) -> RequestHandle:
        handle = RequestHandle(operation, is_relevant)
        ok, value = _run_call(operation, call)
        handle.settle(on_success if ok else on_failure, value)
        return handle


class DeferredDispatcher:
    """Queue remote calls until :meth:`flush`, to model slow responses in tests."""

    def __init__(self):
        self._pending: list[tuple] = []

    @property
    def pending(self) -> int:
        return len(self._pending)

    def submit(
        self,
        operation: str,
        call: Callable[[], T],
        on_success: Callable[[T], None],
        on_failure: Callable[[RemoteError], None],
        is_relevant: Optional[Callable[[], bool]] = None,
    ) -> RequestHandle:
        handle = RequestHandle(operation, is_relevant)
        self._pending.append((handle, call, on_success, on_failure))
        return handle

    def complete_next(self) -> Optional[RequestHandle]:
        if not self._pending:
            return None
        handle, call, on_success, on_failure = self._pending.pop(0)
        ok, value = _run_call(handle.operation, call)
        handle.settle(on_success if ok else on_failure, value)
        return handle

    def flush(self) -> int:
        count = 0
        while self._pending:
            self.complete_next()
            count += 1
        return count


class ThreadedDispatcher:
    """
    Run remote calls on a worker pool; apply completions on :meth:`drain`.

    ``drain`` is meant to be called from the UI thread (the grading session
    calls it on every poll tick), so response callbacks still run one at a
    time on that thread.
    """

    def __init__(self, max_workers: int = 2):
        self._executor = ThreadPoolExecutor(max_workers=max_workers,
                                            thread_name_prefix="clipnote-remote")
        self._completed: queue.Queue = queue.Queue()

    def submit(
        self,
        operation: str,
        call: Callable[[], T],
        on_success: Callable[[T], None],
        on_failure: Callable[[RemoteError], None],
        is_relevant: Optional[Callable[[], bool]] = None,
    ) -> RequestHandle:
        handle = RequestHandle(operation, is_relevant)

        def run():
            ok, value = _run_call(operation, call)
            self._completed.put((handle, on_success if ok else on_failure, value))

        self._executor.submit(run)
        return handle

    def drain(self) -> int:
        count = 0
        while True:
            try:
                handle, callback, value = self._completed.get_nowait()
            except queue.Empty:
                return count
            count += 1
            handle.settle(callback, value)

    def shutdown(self, wait: bool = False) -> None:
        self._executor.shutdown(wait=wait)
