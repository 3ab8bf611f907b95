"""Service layer for business logic.

This layer contains the query compiler, the cache front and the catalog
orchestration. Services depend on protocols (interfaces), not concrete
implementations, making them testable and flexible.

Architecture:
    Handler -> Service -> Repository
    (HTTP)  -> (Business) -> (Data Access)
"""

from .cache_front import CacheFront, CacheMetrics
from .catalog_service import CatalogService
from .query_compiler import PRODUCT_FIELDS, FieldKind, QueryCompiler, compile_filter_request

__all__ = [
    "CacheFront",
    "CacheMetrics",
    "CatalogService",
    "FieldKind",
    "PRODUCT_FIELDS",
    "QueryCompiler",
    "compile_filter_request",
]
