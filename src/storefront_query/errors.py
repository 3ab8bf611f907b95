"""Exception hierarchy for query compilation, store access and caching.

ValidationError and StoreError reach the caller; CacheUnavailable is raised
by cache backends and absorbed by CacheFront.
"""


class QueryError(Exception):
    """Base class for all storefront query errors."""


class ValidationError(QueryError):
    """Malformed or disallowed filter input (client fault).

    Attributes:
        field: The parameter that failed validation, if known
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class StoreError(QueryError):
    """The document store is unavailable or failed to execute a query."""


class CacheUnavailable(QueryError):
    """The cache backing service could not be reached."""
