"""Redis implementation of CacheBackend.

Entries are plain string keys holding encoded payloads; expiry is delegated
to Redis (``SET ... PX``). Connection problems never escape as redis-py
exceptions: they become ``CacheUnavailable`` so CacheFront can degrade.
"""

import re
import threading
import time
from collections.abc import Callable

import redis

from storefront_query.config import get_redis_client, settings
from storefront_query.errors import CacheUnavailable
from storefront_query.utils.logger import get_logger

logger = get_logger("redis")

_GLOB_SPECIAL = re.compile(r"([*?\[\]\\])")


def escape_glob(text: str) -> str:
    """Escape Redis MATCH metacharacters so text matches literally."""
    return _GLOB_SPECIAL.sub(r"\\\1", text)


class RedisCacheRepository:
    """Redis implementation of the CacheBackend protocol.

    This class satisfies the CacheBackend protocol through structural
    typing - no explicit inheritance needed.

    After a failed call the repository refuses to touch Redis for
    ``retry_interval`` seconds and raises ``CacheUnavailable`` straight
    away, so an outage costs one connect timeout rather than one per request.
    Deletes and prefix scans ignore the back-off: an invalidation must always
    reach Redis, otherwise stale entries would outlive it.
    """

    def __init__(
        self,
        redis_client: redis.Redis | None = None,
        retry_interval: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the Redis cache repository.

        Args:
            redis_client: Redis client instance. If None, creates default.
            retry_interval: Seconds to skip Redis after a failure. Defaults to settings.
            clock: Monotonic clock, replaceable in tests.
        """
        self._client = redis_client or get_redis_client()
        self._retry_interval = settings.cache_retry_interval if retry_interval is None else retry_interval
        self._clock = clock
        self._lock = threading.Lock()
        self._connected = False
        self._unavailable_until = 0.0

    @classmethod
    def create(cls, retry_interval: float | None = None) -> "RedisCacheRepository":
        """Factory method to create RedisCacheRepository with defaults.

        Args:
            retry_interval: Back-off after a failure. If None, uses settings.

        Returns:
            Configured RedisCacheRepository
        """
        return cls(retry_interval=retry_interval)

    def _guard(self) -> None:
        with self._lock:
            if self._clock() < self._unavailable_until:
                raise CacheUnavailable("Redis marked unavailable, retry pending")

    def _mark_connected(self) -> None:
        with self._lock:
            if self._connected:
                return
            self._connected = True
            self._unavailable_until = 0.0
        logger.info("Connected to Redis successfully")

    def _mark_failed(self, error: redis.RedisError) -> CacheUnavailable:
        with self._lock:
            was_connected = self._connected
            self._connected = False
            self._unavailable_until = self._clock() + self._retry_interval
        if was_connected:
            logger.warning(f"Redis connection lost: {error}")
        else:
            logger.warning(f"Redis connection error: {error}")
        return CacheUnavailable(str(error))

    def get(self, key: str) -> bytes | None:
        """Fetch the payload stored under key.

        Args:
            key: Cache key

        Returns:
            The stored bytes, or None on a miss
        """
        self._guard()
        try:
            value = self._client.get(key)
        except redis.RedisError as e:
            raise self._mark_failed(e) from e
        self._mark_connected()
        return value  # type: ignore[return-value]

    def set(self, key: str, value: bytes, ttl: float) -> None:
        """Store a payload with a time-to-live.

        Args:
            key: Cache key
            value: Encoded payload
            ttl: Time-to-live in seconds (millisecond precision)
        """
        self._guard()
        try:
            self._client.set(key, value, px=max(1, int(ttl * 1000)))
        except redis.RedisError as e:
            raise self._mark_failed(e) from e
        self._mark_connected()

    def delete(self, key: str) -> bool:
        """Delete a specific entry by key.

        Args:
            key: The storage key to delete

        Returns:
            True if deleted, False otherwise
        """
        try:
            result: int = self._client.delete(key)  # type: ignore[assignment]
        except redis.RedisError as e:
            raise self._mark_failed(e) from e
        self._mark_connected()
        return result > 0

    def scan_prefix(self, prefix: str) -> list[str]:
        """List keys starting with prefix using incremental SCAN.

        Args:
            prefix: Literal key prefix

        Returns:
            Matching keys as strings
        """
        try:
            keys = [
                key.decode() if isinstance(key, bytes) else key
                for key in self._client.scan_iter(match=f"{escape_glob(prefix)}*", count=500)
            ]
        except redis.RedisError as e:
            raise self._mark_failed(e) from e
        self._mark_connected()
        return keys

    def health_check(self) -> bool:
        """Check if Redis is accessible.

        Returns:
            True if healthy, False otherwise
        """
        try:
            result = self._client.ping()
        except redis.RedisError as e:
            self._mark_failed(e)
            return False
        self._mark_connected()
        return bool(result)

    @property
    def client(self) -> redis.Redis:
        """Get the Redis client."""
        return self._client
