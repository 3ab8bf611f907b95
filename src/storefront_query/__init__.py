"""Storefront Query - allow-listed query compilation with read-through caching.

This package provides a layered architecture for product listing:

Layers:
    - protocols: Interface contracts (CacheBackend, ProductStore)
    - repositories: Data access implementations (Redis, in-memory, MongoDB)
    - services: Business logic (QueryCompiler, CacheFront, CatalogService)
    - handlers: HTTP endpoint handlers
    - dto: Data transfer objects (API contracts)
    - entities: Domain models (internal)

Usage:
    ```python
    from storefront_query.services import compile_filter_request

    descriptor = compile_filter_request({"price": {"gte": "20"}}, default_page_size=8)
    ```

For HTTP API:
    ```python
    from storefront_query.api.app import app
    ```
"""

from storefront_query.config import get_redis_client, settings
from storefront_query.entities import PageResult, Predicate, QueryDescriptor, SortKey, cache_key
from storefront_query.errors import CacheUnavailable, QueryError, StoreError, ValidationError
from storefront_query.handlers import CatalogHandler
from storefront_query.protocols import CacheBackend, ProductStore
from storefront_query.repositories import InMemoryCacheRepository, MongoProductRepository, RedisCacheRepository
from storefront_query.services import CacheFront, CatalogService, QueryCompiler, compile_filter_request

__all__ = [
    # Configuration
    "settings",
    "get_redis_client",
    # Errors
    "QueryError",
    "ValidationError",
    "StoreError",
    "CacheUnavailable",
    # Protocols (interfaces)
    "CacheBackend",
    "ProductStore",
    # Services (business logic)
    "QueryCompiler",
    "compile_filter_request",
    "CacheFront",
    "CatalogService",
    # Handlers (HTTP)
    "CatalogHandler",
    # Repositories (data access)
    "RedisCacheRepository",
    "InMemoryCacheRepository",
    "MongoProductRepository",
    # Entities (domain models)
    "QueryDescriptor",
    "Predicate",
    "SortKey",
    "PageResult",
    "cache_key",
]
