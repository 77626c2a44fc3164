"""
Keyed locking.

Serializes work per key (e.g. per identity) while letting different keys
proceed in parallel.
"""

import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterator


class KeyedLock:
    """Registry of one lock per key, created on first use.
    
    Locks are never evicted; the registry grows with the number of distinct
    keys, which for identity ids is bounded by the enrolled users.
    """
    
    def __init__(self):
        self._locks: Dict[Any, threading.Lock] = {}
        self._registry_lock = threading.Lock()
    
    def _get_lock(self, key: Any) -> threading.Lock:
        lock = self._locks.get(key)
        if lock is None:
            with self._registry_lock:
                lock = self._locks.get(key)
                if lock is None:
                    lock = threading.Lock()
                    self._locks[key] = lock
        return lock
    
    @contextmanager
    def hold(self, key: Any) -> Iterator[None]:
        """Hold the lock for key for the duration of the block."""
        lock = self._get_lock(key)
        with lock:
            yield
    
    def __len__(self) -> int:
        return len(self._locks)
