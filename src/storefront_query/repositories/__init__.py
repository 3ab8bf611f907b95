"""Repository layer for data access.

This layer abstracts external dependencies (Redis, MongoDB) behind
protocol-based interfaces. This enables:
- Easy swapping of implementations (Redis -> in-memory)
- Unit testing with test doubles
- Clear separation of concerns

The repositories are protocol-based (structural typing), not inheritance-based.
Any class implementing the required methods will satisfy the protocol.
"""

from storefront_query.protocols import CacheBackend, ProductStore

from .memory_repository import InMemoryCacheRepository
from .mongo_repository import MongoProductRepository
from .redis_repository import RedisCacheRepository

__all__ = [
    "CacheBackend",
    "ProductStore",
    "InMemoryCacheRepository",
    "MongoProductRepository",
    "RedisCacheRepository",
]
