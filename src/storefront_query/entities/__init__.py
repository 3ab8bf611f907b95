"""Domain entities for internal representation.

These are pure dataclasses (frozen) used internally by services
and repositories. They are NOT used for API contracts - use DTOs
from the dto package for that.
"""

from .cache_entry import CacheEntryEntity
from .page_result import PageResult
from .query_descriptor import (
    INT64_MAX,
    INT64_MIN,
    RANGE_OPERATORS,
    RELEVANCE,
    FilterValue,
    Operator,
    Predicate,
    QueryDescriptor,
    SortDirection,
    SortKey,
    cache_key,
    normalize_number,
    parse_cache_key,
)

__all__ = [
    "INT64_MAX",
    "INT64_MIN",
    "CacheEntryEntity",
    "PageResult",
    "FilterValue",
    "Operator",
    "Predicate",
    "QueryDescriptor",
    "RANGE_OPERATORS",
    "RELEVANCE",
    "SortDirection",
    "SortKey",
    "cache_key",
    "normalize_number",
    "parse_cache_key",
]
