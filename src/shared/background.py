"""Fire-and-forget execution of side effects outside the request path.

Tasks run on a thread pool. A task's failure is logged and swallowed: the
caller that submitted it has already returned its result and must not be
affected.
"""

import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait

import structlog

logger = structlog.get_logger(__name__)


class BackgroundDispatcher:
    def __init__(self, max_workers: int = 4, name: str = "background"):
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix=name)
        self._pending: set[Future] = set()
        self._lock = threading.Lock()

    def submit(self, fn, *args, **kwargs) -> Future:
        """Schedule `fn` and return its future. Errors inside `fn` are logged, never raised."""
        future = self._executor.submit(self._run, fn, *args, **kwargs)
        with self._lock:
            self._pending.add(future)
        future.add_done_callback(self._forget)
        return future

    def drain(self, timeout: float | None = None) -> None:
        """Block until every task submitted so far has finished."""
        with self._lock:
            pending = list(self._pending)
        if pending:
            wait(pending, timeout=timeout)

    @property
    def pending(self) -> int:
        with self._lock:
            return len(self._pending)

    def shutdown(self, wait_for_tasks: bool = True) -> None:
        self._executor.shutdown(wait=wait_for_tasks)

    def _forget(self, future: Future) -> None:
        with self._lock:
            self._pending.discard(future)

    @staticmethod
    def _run(fn, *args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except Exception as exc:
            logger.exception(
                "Background task failed",
                task=getattr(fn, "__qualname__", repr(fn)),
                error=str(exc),
            )
            return None
