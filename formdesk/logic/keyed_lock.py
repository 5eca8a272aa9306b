"""Process-local advisory locks keyed by an identifier (one per form)."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Dict, Iterator


class KeyedLock:
    """Hands out one re-entrant lock per key and drops it when no holder remains.

    Only serialises threads within this process; the storage unique index
    still covers multi-process deployments.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._locks: Dict[str, threading.RLock] = {}
        self._holders: Dict[str, int] = {}

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        key = str(key)
        with self._lock:
            lock = self._locks.setdefault(key, threading.RLock())
            self._holders[key] = self._holders.get(key, 0) + 1
        lock.acquire()
        try:
            yield
        finally:
            lock.release()
            with self._lock:
                self._holders[key] -= 1
                if self._holders[key] == 0:
                    del self._holders[key]
                    del self._locks[key]

    def active_keys(self) -> list[str]:
        with self._lock:
            return list(self._locks)


# Shared by the lifecycle manager and the submission engine
FORM_LOCKS = KeyedLock()


__all__ = ["KeyedLock", "FORM_LOCKS"]
