"""Cache entry domain entity."""

from dataclasses import dataclass


@dataclass(frozen=True)
class CacheEntryEntity:
    """Domain entity for a cached payload.

    Used by backends that do not expire keys natively.

    Attributes:
        value: Encoded payload
        created_at: Unix timestamp when the entry was stored
        ttl: Time-to-live in seconds
    """

    value: bytes
    created_at: float
    ttl: float

    @property
    def expires_at(self) -> float:
        return self.created_at + self.ttl

    def is_expired(self, now: float) -> bool:
        """An entry is live up to and including ``created_at + ttl``."""
        return now > self.expires_at
