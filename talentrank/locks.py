"""
Per-key mutual exclusion.

Ranking runs for the same job (and match writes for the same job/candidate
pair) are serialized in-process; different keys proceed concurrently.
Cross-process races are caught by the database unique constraints.
"""

import threading
from contextlib import contextmanager
from typing import Dict, Hashable, Iterator, List


class KeyedLock:
    """
    Registry of one threading.Lock per key.

    An entry lives only while some thread holds or waits on it, so the
    registry does not grow with the number of keys ever used.
    """

    def __init__(self):
        self._registry_lock = threading.Lock()
        # key -> [lock, holders_and_waiters]
        self._locks: Dict[Hashable, List] = {}

    def _checkout(self, key: Hashable) -> threading.Lock:
        with self._registry_lock:
            entry = self._locks.get(key)
            if entry is None:
                entry = [threading.Lock(), 0]
                self._locks[key] = entry
            entry[1] += 1
            return entry[0]

    def _checkin(self, key: Hashable) -> None:
        with self._registry_lock:
            entry = self._locks[key]
            entry[1] -= 1
            if entry[1] == 0:
                del self._locks[key]

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        lock = self._checkout(key)
        try:
            with lock:
                yield
        finally:
            self._checkin(key)

    def __len__(self) -> int:
        with self._registry_lock:
            return len(self._locks)


job_locks = KeyedLock()
match_locks = KeyedLock()
