"""Catalog service for product listing.

This service composes the query compiler, the cache front and the product
store: parameters -> QueryDescriptor -> cache key -> cached or fresh page.
"""

from collections.abc import Mapping
from typing import Any

from storefront_query.config import settings
from storefront_query.entities import PageResult, QueryDescriptor, cache_key
from storefront_query.protocols import ProductStore

from .cache_front import CacheFront
from .query_compiler import PRODUCT_FIELDS, QueryCompiler


class CatalogService:
    """Product listing orchestration service.

    This service depends on PROTOCOLS and injected collaborators, not on
    concrete clients, so tests can pass an in-memory cache and a fake store.

    Example:
        ```python
        from storefront_query.repositories import InMemoryCacheRepository, MongoProductRepository
        from storefront_query.services import CacheFront, CatalogService

        catalog = CatalogService.create(
            repository=MongoProductRepository.create(),
            cache=CacheFront(InMemoryCacheRepository(), default_ttl=300),
        )
        page = catalog.list_products({"category": "shoes", "page": "2"})
        ```
    """

    def __init__(
        self,
        repository: ProductStore,
        cache: CacheFront | None,
        compiler: QueryCompiler,
        namespace: str | None = None,
        ttl: float | None = None,
    ) -> None:
        """Initialize the catalog service.

        Args:
            repository: Product store (required).
            cache: Cache front, or None to always query the store.
            compiler: Query compiler (required).
            namespace: Cache key namespace. Defaults to settings.
            ttl: Time-to-live for cached pages in seconds. Defaults to settings.
        """
        self._repository = repository
        self._cache = cache
        self._compiler = compiler
        self._namespace = namespace or settings.cache_namespace
        self._ttl = ttl or settings.cache_ttl

    @classmethod
    def create(
        cls,
        repository: ProductStore,
        cache: CacheFront | None = None,
        default_page_size: int | None = None,
        namespace: str | None = None,
        ttl: float | None = None,
    ) -> "CatalogService":
        """Factory method to create CatalogService with the product field schema.

        Args:
            repository: Product store (required).
            cache: Cache front, or None to disable caching.
            default_page_size: Page size. If None, uses settings.
            namespace: Cache key namespace. If None, uses settings.
            ttl: Time-to-live in seconds. If None, uses settings.

        Returns:
            Configured CatalogService instance
        """
        compiler = QueryCompiler(
            fields=PRODUCT_FIELDS,
            default_page_size=default_page_size or settings.default_page_size,
        )
        return cls(
            repository=repository,
            cache=cache,
            compiler=compiler,
            namespace=namespace,
            ttl=ttl,
        )

    def compile_filter_request(
        self,
        raw_params: Mapping[str, Any],
        default_page_size: int | None = None,
    ) -> QueryDescriptor:
        """Compile raw request parameters.

        Raises:
            ValidationError: If any parameter is malformed or disallowed
        """
        return self._compiler.compile(raw_params, default_page_size)

    def cache_key(self, descriptor: QueryDescriptor) -> str:
        return cache_key(self._namespace, descriptor)

    def fetch_page(self, descriptor: QueryDescriptor) -> PageResult:
        """Fetch one page, served from cache when a live entry exists.

        Args:
            descriptor: The compiled query

        Returns:
            PageResult for the descriptor's page

        Raises:
            StoreError: If the store fails on a cache miss
        """
        if self._cache is None:
            return self._repository.find_page(descriptor)

        payload = self._cache.get_or_compute(
            self.cache_key(descriptor),
            lambda: self._repository.find_page(descriptor).to_dict(),
            ttl=self._ttl,
        )
        return PageResult.from_dict(payload)

    def list_products(self, raw_params: Mapping[str, Any]) -> tuple[QueryDescriptor, PageResult]:
        """Compile parameters and fetch the matching page.

        Returns:
            The descriptor (for page metadata) and the page
        """
        descriptor = self.compile_filter_request(raw_params)
        return descriptor, self.fetch_page(descriptor)

    def invalidate(self, descriptor: QueryDescriptor) -> bool:
        """Drop the cached page for one descriptor."""
        if self._cache is None:
            return False
        return self._cache.invalidate(self.cache_key(descriptor))

    def invalidate_all(self) -> int:
        """Drop every cached page in this namespace.

        Called by the write path after products are created, updated or deleted.

        Returns:
            Number of entries removed
        """
        if self._cache is None:
            return 0
        return self._cache.invalidate_prefix(f"{self._namespace}:")

    def is_healthy(self) -> bool:
        """Check if the product store is reachable."""
        return self._repository.health_check()

    def cache_healthy(self) -> bool | None:
        """Check the cache backend; None when caching is disabled."""
        if self._cache is None:
            return None
        return self._cache.is_healthy()

    def get_stats(self) -> dict[str, Any]:
        """Get catalog statistics.

        Returns:
            Dictionary with namespace, page size and cache counters
        """
        stats: dict[str, Any] = {
            "namespace": self._namespace,
            "ttl": self._ttl,
            "cache_enabled": self._cache is not None,
        }
        if self._cache is not None:
            stats["cache"] = self._cache.stats()
        return stats

    @property
    def namespace(self) -> str:
        return self._namespace

    @property
    def repository(self) -> ProductStore:
        """Get the underlying repository (for testing)."""
        return self._repository

    @property
    def cache(self) -> CacheFront | None:
        """Get the cache front (for testing)."""
        return self._cache
