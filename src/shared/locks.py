"""Keyed mutual exclusion for tenant- and customer-scoped critical sections."""

import threading
from contextlib import ExitStack, contextmanager


class KeyedLocks:
    """A registry of re-entrant locks, one per key, created on first use."""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: dict[str, threading.RLock] = {}

    def lock_for(self, key: str) -> threading.RLock:
        with self._guard:
            if key not in self._locks:
                self._locks[key] = threading.RLock()
            return self._locks[key]

    @contextmanager
    def hold(self, *keys):
        """Acquire the locks for every non-empty key, in sorted order."""
        unique = sorted({str(k) for k in keys if k})
        with ExitStack() as stack:
            for key in unique:
                stack.enter_context(self.lock_for(key))
            yield
