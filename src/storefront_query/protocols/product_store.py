"""Product store protocol.

Defines the interface for a document store that can execute a compiled
QueryDescriptor. The store owns whatever indexes it needs for text search
and range filtering.
"""

from typing import Protocol, runtime_checkable

from storefront_query.entities import PageResult, QueryDescriptor


@runtime_checkable
class ProductStore(Protocol):
    """Protocol for product document stores."""

    def find_page(self, descriptor: QueryDescriptor) -> PageResult:
        """Run the query and return one page plus the total match count.

        Args:
            descriptor: The compiled query

        Returns:
            PageResult (empty items and zero count when nothing matches)

        Raises:
            StoreError: If the store is unavailable or the query fails
        """
        ...

    def health_check(self) -> bool:
        """Check if the store is reachable.

        Returns:
            True if healthy, False otherwise
        """
        ...
