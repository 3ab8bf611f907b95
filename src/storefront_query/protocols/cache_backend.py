"""Cache backend protocol.

Defines the interface for any key/value service that CacheFront can put in
front of the store.

Implementations can include:
- Redis (default)
- An in-process dictionary (tests, single-worker deployments)
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class CacheBackend(Protocol):
    """Protocol for cache backing services.

    Any type that implements these methods satisfies the protocol, no
    explicit inheritance needed. Implementations raise
    ``CacheUnavailable`` when the service cannot be reached; they never
    raise client-library exceptions.
    """

    def get(self, key: str) -> bytes | None:
        """Return the stored bytes, or None if the key is absent or expired."""
        ...

    def set(self, key: str, value: bytes, ttl: float) -> None:
        """Store bytes under key with a time-to-live in seconds."""
        ...

    def delete(self, key: str) -> bool:
        """Delete a key.

        Returns:
            True if an entry was removed, False otherwise
        """
        ...

    def scan_prefix(self, prefix: str) -> list[str]:
        """List live keys that start with prefix."""
        ...

    def health_check(self) -> bool:
        """Check if the backend is reachable.

        Returns:
            True if healthy, False otherwise
        """
        ...
