"""In-process implementation of CacheBackend.

A process-wide dictionary of CacheEntryEntity guarded by a lock. Useful for
single-worker deployments, for running without Redis, and in tests.
"""

import threading
import time
from collections.abc import Callable

from storefront_query.entities import CacheEntryEntity


class InMemoryCacheRepository:
    """Dictionary-backed cache with lazy expiry.

    Satisfies the CacheBackend protocol. Expired entries are removed when
    they are next read or scanned.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._entries: dict[str, CacheEntryEntity] = {}
        self._lock = threading.Lock()
        self._clock = clock

    def get(self, key: str) -> bytes | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.is_expired(self._clock()):
                del self._entries[key]
                return None
            return entry.value

    def set(self, key: str, value: bytes, ttl: float) -> None:
        with self._lock:
            self._entries[key] = CacheEntryEntity(value=value, created_at=self._clock(), ttl=ttl)

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def scan_prefix(self, prefix: str) -> list[str]:
        with self._lock:
            now = self._clock()
            for key in [k for k, e in self._entries.items() if e.is_expired(now)]:
                del self._entries[key]
            return [key for key in self._entries if key.startswith(prefix)]

    def health_check(self) -> bool:
        return True

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
