from typing import Any

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from storefront_query.api.dependencies import HandlerDep, ServiceDep, install_services, lifespan
from storefront_query.config import settings
from storefront_query.dto import CacheInvalidateResponse, HealthCheckResponse, ProductPageResponse
from storefront_query.services import CatalogService


def create_app(catalog_service: CatalogService | None = None) -> FastAPI:
    """Build the FastAPI application.

    Args:
        catalog_service: Pre-built service (tests). If None, the lifespan
            builds the default Mongo/Redis graph at startup.

    Returns:
        Configured FastAPI app
    """
    app = FastAPI(
        title="Storefront Query API",
        description="Product listing with allow-listed filters and read-through caching",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if catalog_service is not None:
        install_services(app, catalog_service)

    @app.get("/")
    def root() -> dict[str, Any]:
        """Root endpoint with API information."""
        return {
            "name": "Storefront Query API",
            "version": "0.1.0",
            "endpoints": {
                "products": "/api/v1/products",
                "cache": "/api/v1/products/cache",
                "stats": "/stats",
                "health": "/health",
                "docs": "/docs",
            },
        }

    @app.get("/health", response_model=HealthCheckResponse)
    def health(handler: HandlerDep) -> HealthCheckResponse:
        """Health check endpoint."""
        return handler.health_check()

    @app.get("/api/v1/products", response_model=ProductPageResponse)
    def list_products(request: Request, handler: HandlerDep) -> ProductPageResponse:
        """
        List products matching the query string filters.

        Supports ``keyword``, ``page`` and bracketed comparisons such as
        ``price[gte]=20&price[lte]=100``.
        """
        return handler.list_products(request.query_params.multi_items())

    @app.delete("/api/v1/products/cache", response_model=CacheInvalidateResponse)
    def invalidate_cache(handler: HandlerDep) -> CacheInvalidateResponse:
        """Drop every cached product page."""
        return handler.invalidate_cache()

    @app.get("/stats", response_model=dict[str, Any])
    def get_stats(service: ServiceDep) -> dict[str, Any]:
        """Get catalog and cache statistics."""
        return service.get_stats()

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "storefront_query.api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
    )
