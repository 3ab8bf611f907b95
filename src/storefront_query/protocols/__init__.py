"""Protocol interfaces for swappable implementations.

This package contains protocol definitions using structural typing.
Protocols enable:
- Easy swapping of implementations (Redis -> in-memory, MongoDB -> fakes)
- Unit testing with test doubles
- Clear separation of concerns
"""

from .cache_backend import CacheBackend
from .product_store import ProductStore

__all__ = [
    "CacheBackend",
    "ProductStore",
]
