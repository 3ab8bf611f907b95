"""Read-through cache in front of an arbitrary producer.

CacheFront looks a key up in a CacheBackend, and on a miss calls the
producer, stores its result with a TTL and returns it. The backend is an
optimization only: whenever it raises CacheUnavailable the call proceeds as
a miss and the request still succeeds. Producer errors are never cached.
"""

import json
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, TypeVar

from storefront_query.errors import CacheUnavailable
from storefront_query.protocols import CacheBackend
from storefront_query.utils.logger import get_logger

logger = get_logger("cache")

T = TypeVar("T")

_MISS = object()


def json_encode(payload: Any) -> bytes:
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def json_decode(data: bytes) -> Any:
    return json.loads(data.decode("utf-8"))


@dataclass
class CacheMetrics:
    """Counters for cache behaviour."""

    hits: int = 0
    misses: int = 0
    errors: int = 0
    coalesced: int = 0

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        if total == 0:
            return 0.0
        return self.hits / total

    def to_dict(self) -> dict[str, float | int]:
        return {
            "hits": self.hits,
            "misses": self.misses,
            "errors": self.errors,
            "coalesced": self.coalesced,
            "hit_rate": self.hit_rate,
        }


@dataclass
class _Flight:
    done: threading.Event = field(default_factory=threading.Event)
    result: Any = None
    error: BaseException | None = None


class CacheFront:
    """Get-or-compute cache with TTL, invalidation and degradation.

    With ``single_flight`` enabled, concurrent misses for one key within this
    process share a single producer call. Invalidation detaches in-flight
    computations and prevents results computed before it from being stored,
    so any read that starts after ``invalidate`` returns sees fresh data.

    Example:
        ```python
        front = CacheFront(RedisCacheRepository.create(), default_ttl=300)
        page = front.get_or_compute("products:...", lambda: store.find_page(d).to_dict())
        front.invalidate_prefix("products:")
        ```
    """

    def __init__(
        self,
        backend: CacheBackend,
        default_ttl: float,
        single_flight: bool = True,
        encode: Callable[[Any], bytes] = json_encode,
        decode: Callable[[bytes], Any] = json_decode,
    ) -> None:
        """Initialize the cache front.

        Args:
            backend: Cache backing service (required).
            default_ttl: Time-to-live in seconds used when a call gives none.
            single_flight: Coalesce concurrent misses for the same key.
            encode: Payload to bytes.
            decode: Bytes to payload.
        """
        self._backend = backend
        self._default_ttl = self._check_ttl(default_ttl)
        self._single_flight = single_flight
        self._encode = encode
        self._decode = decode
        self._lock = threading.Lock()
        self._write_lock = threading.Lock()
        self._flights: dict[str, _Flight] = {}
        self._epoch = 0
        self._metrics = CacheMetrics()

    @staticmethod
    def _check_ttl(ttl: float) -> float:
        if ttl <= 0:
            raise ValueError(f"ttl must be positive, got {ttl}")
        return ttl

    def get_or_compute(
        self,
        key: str,
        producer: Callable[[], T],
        ttl: float | None = None,
    ) -> T:
        """Return the cached payload for key, computing it on a miss.

        Args:
            key: Cache key
            producer: Zero-argument callable producing the payload
            ttl: Time-to-live in seconds. Defaults to the configured TTL.

        Returns:
            The cached or freshly produced payload

        Raises:
            Exception: Whatever the producer raises; nothing is cached then
        """
        ttl = self._default_ttl if ttl is None else self._check_ttl(ttl)

        cached = self._lookup(key)
        if cached is not _MISS:
            with self._lock:
                self._metrics.hits += 1
            logger.debug(f"Cache hit: {key}")
            return cached

        flight: _Flight | None = None
        leader = False
        with self._lock:
            self._metrics.misses += 1
            epoch = self._epoch
            if self._single_flight:
                flight = self._flights.get(key)
                if flight is not None:
                    self._metrics.coalesced += 1
                else:
                    flight = self._flights[key] = _Flight()
                    leader = True

        logger.debug(f"Cache miss: {key}")

        if flight is None:
            return self._compute(key, producer, ttl, epoch)

        if not leader:
            flight.done.wait()
            if flight.error is not None:
                raise flight.error
            return flight.result

        try:
            flight.result = self._compute(key, producer, ttl, epoch)
            return flight.result
        except BaseException as e:
            flight.error = e
            raise
        finally:
            with self._lock:
                if self._flights.get(key) is flight:
                    del self._flights[key]
            flight.done.set()

    def _lookup(self, key: str) -> Any:
        try:
            data = self._backend.get(key)
        except CacheUnavailable as e:
            self._record_error("get", key, e)
            return _MISS
        if data is None:
            return _MISS
        try:
            return self._decode(data)
        except (TypeError, ValueError) as e:
            logger.warning(f"Discarding undecodable cache entry {key}: {e}")
            return _MISS

    def _compute(self, key: str, producer: Callable[[], T], ttl: float, epoch: int) -> T:
        payload = producer()

        try:
            data = self._encode(payload)
        except (TypeError, ValueError) as e:
            logger.warning(f"Payload for {key} is not cacheable: {e}")
            return payload

        # Writes and invalidations are serialized so a result computed before
        # an invalidation can never land after it.
        with self._write_lock:
            with self._lock:
                stale = epoch != self._epoch
            if stale:
                logger.debug(f"Not caching {key}: invalidated while computing")
                return payload
            try:
                self._backend.set(key, data, ttl)
            except CacheUnavailable as e:
                self._record_error("set", key, e)
        return payload

    def _record_error(self, operation: str, key: str, error: CacheUnavailable) -> None:
        with self._lock:
            self._metrics.errors += 1
        logger.warning(f"Cache {operation} failed for {key}, falling back: {error}")

    def _bump_epoch(self, match: Callable[[str], bool]) -> None:
        with self._lock:
            self._epoch += 1
            for key in [k for k in self._flights if match(k)]:
                del self._flights[key]

    def invalidate(self, key: str) -> bool:
        """Remove one entry regardless of its TTL.

        Args:
            key: Cache key

        Returns:
            True if an entry was removed, False if absent or the cache is unreachable
        """
        with self._write_lock:
            self._bump_epoch(lambda k: k == key)
            try:
                removed = self._backend.delete(key)
            except CacheUnavailable as e:
                self._record_error("delete", key, e)
                return False
        logger.debug(f"Invalidated {key}: {removed}")
        return removed

    def invalidate_prefix(self, prefix: str) -> int:
        """Remove every entry whose key starts with prefix.

        Args:
            prefix: Literal key prefix (e.g. ``"products:"``)

        Returns:
            Number of entries removed
        """
        count = 0
        with self._write_lock:
            self._bump_epoch(lambda k: k.startswith(prefix))
            try:
                for key in self._backend.scan_prefix(prefix):
                    if self._backend.delete(key):
                        count += 1
            except CacheUnavailable as e:
                self._record_error("invalidate", f"{prefix}*", e)
        logger.info(f"Invalidated {count} cache entries with prefix {prefix!r}")
        return count

    def is_healthy(self) -> bool:
        """Check if the cache backend is reachable."""
        return self._backend.health_check()

    def stats(self) -> dict[str, Any]:
        """Get cache statistics.

        Returns:
            Dictionary with counters, in-flight count and the default TTL
        """
        with self._lock:
            stats: dict[str, Any] = self._metrics.to_dict()
            stats["in_flight"] = len(self._flights)
        stats["ttl"] = self._default_ttl
        stats["single_flight"] = self._single_flight
        return stats

    @property
    def backend(self) -> CacheBackend:
        """Get the underlying backend (for testing)."""
        return self._backend
