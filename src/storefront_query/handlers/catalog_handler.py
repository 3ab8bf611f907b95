"""HTTP handlers for catalog operations.

Handlers convert between query strings, DTOs and service calls. They own
the mapping from domain errors to status codes: bad filters are a client
fault (400), store failures a server fault (503). An empty page is a 200.
"""

from collections.abc import Iterable

from fastapi import HTTPException, status

from storefront_query.dto import CacheInvalidateResponse, HealthCheckResponse, ProductPageResponse
from storefront_query.errors import StoreError, ValidationError
from storefront_query.services import CatalogService
from storefront_query.utils import get_logger, parse_query_params

logger = get_logger("handlers")


class CatalogHandler:
    """HTTP handlers for product listing and cache maintenance.

    The handler methods are synchronous; FastAPI runs them in its worker
    thread pool, which is where CacheFront's locking matters.
    """

    def __init__(self, catalog_service: CatalogService) -> None:
        """Initialize the catalog handler.

        Args:
            catalog_service: The catalog service for business logic (required).
        """
        self._catalog = catalog_service

    def list_products(self, query_items: Iterable[tuple[str, str]]) -> ProductPageResponse:
        """Handle GET /api/v1/products requests.

        Args:
            query_items: Raw query string pairs in arrival order

        Returns:
            ProductPageResponse for the requested page

        Raises:
            HTTPException: 400 on invalid filters, 503 when the store fails
        """
        try:
            params = parse_query_params(query_items)
            descriptor, page = self._catalog.list_products(params)
        except ValidationError as e:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=str(e),
            ) from e
        except StoreError as e:
            logger.error(f"Product listing failed: {e}")
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Product store unavailable",
            ) from e

        return ProductPageResponse(
            items=page.items,
            total_count=page.total_count,
            page=descriptor.page,
            page_size=descriptor.page_size,
            keyword=descriptor.text_search,
        )

    def invalidate_cache(self) -> CacheInvalidateResponse:
        """Handle DELETE /api/v1/products/cache requests."""
        count = self._catalog.invalidate_all()
        return CacheInvalidateResponse(
            success=True,
            deleted_count=count,
            message=f"Invalidated {count} cached product pages",
        )

    def health_check(self) -> HealthCheckResponse:
        """Handle GET /health requests.

        The service counts as healthy when the store is reachable; an
        unreachable cache is reported but does not make it unhealthy.
        """
        store_healthy = self._catalog.is_healthy()
        return HealthCheckResponse(
            status="healthy" if store_healthy else "unhealthy",
            store_healthy=store_healthy,
            cache_healthy=self._catalog.cache_healthy(),
        )
