from __future__ import annotations

import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Callable

from phototouch.util.errors import CancellationError

class Context:
    """Cancellation signal shared by all tasks of one batch.

    Cancelling is one-way and idempotent. Callbacks registered with
    add_done_callback run once, on the thread that cancels.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._done = threading.Event()
        self._callbacks: list[Callable[[], None]] = []

    def cancel(self) -> None:
        with self._lock:
            if self._done.is_set():
                return
            self._done.set()
            callbacks, self._callbacks = self._callbacks, []
        for cb in callbacks:
            cb()

    def cancelled(self) -> bool:
        return self._done.is_set()

    def err(self) -> CancellationError | None:
        if not self._done.is_set():
            return None
        return CancellationError("batch cancelled after a sibling task failed")

    def add_done_callback(self, fn: Callable[[], None]) -> None:
        with self._lock:
            if not self._done.is_set():
                self._callbacks.append(fn)
                return
        fn()

    def remove_done_callback(self, fn: Callable[[], None]) -> None:
        with self._lock:
            if fn in self._callbacks:
                self._callbacks.remove(fn)


class ErrorGroup:
    """Runs tasks on a thread pool and keeps the first error any of them raises.

    The first error cancels `context`; later errors (typically the
    CancellationError of abandoned siblings) are dropped. wait() may be called
    any number of times, from any thread.
    """

    def __init__(self, context: Context | None = None, max_workers: int = 1) -> None:
        self.context = context or Context()
        self._executor = ThreadPoolExecutor(max_workers=max(1, max_workers), thread_name_prefix="phototouch")
        self._lock = threading.Lock()
        self._futures: list[Future] = []
        self._error: Exception | None = None

    def go(self, fn: Callable[[], None]) -> None:
        future = self._executor.submit(self._run, fn)
        with self._lock:
            self._futures.append(future)

    def _run(self, fn: Callable[[], None]) -> None:
        try:
            fn()
        except Exception as e:
            with self._lock:
                first = self._error is None
                if first:
                    self._error = e
            if first:
                self.context.cancel()

    def wait(self) -> Exception | None:
        """Block until every task has returned; return the first error, if any."""
        with self._lock:
            futures = list(self._futures)
        wait(futures)
        self._executor.shutdown(wait=True)
        with self._lock:
            return self._error
