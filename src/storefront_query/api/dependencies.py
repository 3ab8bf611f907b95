"""Dependency injection configuration for FastAPI app.

Uses FastAPI's app.state pattern for storing service instances.

Pattern:
    - Services stored in app.state during lifespan (or by create_app in tests)
    - Dependency functions retrieve from request.app.state
    - Clean separation, no global mutable state
"""

from contextlib import asynccontextmanager
from typing import Annotated

from fastapi import Depends, FastAPI, Request

from storefront_query.config import settings
from storefront_query.handlers import CatalogHandler
from storefront_query.repositories import MongoProductRepository, RedisCacheRepository
from storefront_query.services import CacheFront, CatalogService
from storefront_query.utils import get_logger

logger = get_logger("api")


def get_catalog_service(request: Request) -> CatalogService:
    """Dependency injection for CatalogService from app.state.

    Raises:
        RuntimeError: If service is not initialized
    """
    service = getattr(request.app.state, "catalog_service", None)
    if service is None:
        raise RuntimeError("CatalogService not initialized. Check lifespan setup.")
    return service


def get_handler(request: Request) -> CatalogHandler:
    """Dependency injection for CatalogHandler from app.state.

    Raises:
        RuntimeError: If handler is not initialized
    """
    handler = getattr(request.app.state, "catalog_handler", None)
    if handler is None:
        raise RuntimeError("CatalogHandler not initialized. Check lifespan setup.")
    return handler


def build_catalog_service() -> CatalogService:
    """Wire the default Mongo store and, if enabled, the Redis cache."""
    repository = MongoProductRepository.create()

    cache = None
    if settings.cache_enabled:
        cache = CacheFront(
            backend=RedisCacheRepository.create(),
            default_ttl=settings.cache_ttl,
            single_flight=settings.cache_single_flight,
        )

    return CatalogService.create(repository=repository, cache=cache)


def install_services(app: FastAPI, catalog_service: CatalogService) -> None:
    """Store the service and its handler in app.state."""
    app.state.catalog_service = catalog_service
    app.state.catalog_handler = CatalogHandler(catalog_service=catalog_service)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for FastAPI app.

    Builds the service graph once at startup unless one was injected, and
    removes it from app.state on shutdown.
    """
    injected = getattr(app.state, "catalog_service", None) is not None
    if not injected:
        install_services(app, build_catalog_service())

    catalog_service: CatalogService = app.state.catalog_service
    logger.info(f"Catalog service initialized (namespace={catalog_service.namespace})")
    cache_healthy = catalog_service.cache_healthy()
    if cache_healthy is False:
        logger.warning("Cache backend unreachable at startup; serving from the store")

    yield

    if not injected:
        del app.state.catalog_handler
        del app.state.catalog_service
    logger.info("Catalog service shut down")


# Type aliases for cleaner dependency injection
HandlerDep = Annotated[CatalogHandler, Depends(get_handler)]
ServiceDep = Annotated[CatalogService, Depends(get_catalog_service)]
