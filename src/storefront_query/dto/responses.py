"""Response DTOs for API endpoints."""

from typing import Any

from pydantic import BaseModel, Field


class ProductPageResponse(BaseModel):
    """Response DTO for a product listing page."""

    items: list[dict[str, Any]] = Field(default_factory=list, description="Products on this page")
    total_count: int = Field(..., description="Number of products matching the filters", ge=0)
    page: int = Field(..., description="Current page (1-based)", ge=1)
    page_size: int = Field(..., description="Maximum products per page", ge=1)
    keyword: str | None = Field(None, description="Applied text search, if any")


class CacheInvalidateResponse(BaseModel):
    """Response DTO for cache invalidation."""

    success: bool = Field(..., description="Whether the operation completed")
    deleted_count: int = Field(..., description="Number of cache entries removed", ge=0)
    message: str = Field(..., description="Human-readable status message")


class HealthCheckResponse(BaseModel):
    """Response DTO for health check."""

    status: str = Field(..., description="Health status: 'healthy' or 'unhealthy'")
    store_healthy: bool = Field(..., description="Whether the product store is reachable")
    cache_healthy: bool | None = Field(
        None,
        description="Whether the cache backend is reachable (null when caching is disabled)",
    )
