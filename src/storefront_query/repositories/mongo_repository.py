"""MongoDB implementation of ProductStore.

Translates a QueryDescriptor into a Mongo filter, projection and sort. Only
operators from the descriptor's closed Operator enum are ever emitted, so no
client-supplied text can become a query operator.
"""

from datetime import datetime
from typing import Any

from bson import Decimal128, ObjectId
from pymongo import ASCENDING, DESCENDING
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from storefront_query.config import get_mongo_collection
from storefront_query.entities import Operator, PageResult, QueryDescriptor, SortDirection
from storefront_query.errors import StoreError
from storefront_query.utils.logger import get_logger

logger = get_logger("mongo")

SCORE_FIELD = "score"
TEXT_SCORE = {"$meta": "textScore"}

_MONGO_OPERATORS = {
    Operator.EQ: "$eq",
    Operator.GT: "$gt",
    Operator.GTE: "$gte",
    Operator.LT: "$lt",
    Operator.LTE: "$lte",
}


def build_filter(descriptor: QueryDescriptor) -> dict[str, Any]:
    """Build the Mongo filter document for a descriptor."""
    query: dict[str, Any] = {}
    if descriptor.text_search:
        query["$text"] = {"$search": descriptor.text_search}
    for predicate in descriptor.predicates:
        query.setdefault(predicate.field, {})[_MONGO_OPERATORS[predicate.operator]] = predicate.value
    return query


def build_projection(descriptor: QueryDescriptor) -> dict[str, Any] | None:
    """Project the text score when searching, otherwise return whole documents."""
    if descriptor.text_search:
        return {SCORE_FIELD: TEXT_SCORE}
    return None


def build_sort(descriptor: QueryDescriptor) -> list[tuple[str, Any]]:
    """Build the Mongo sort specification for a descriptor."""
    spec: list[tuple[str, Any]] = []
    for key in descriptor.sort:
        if key.is_relevance:
            spec.append((SCORE_FIELD, TEXT_SCORE))
        else:
            spec.append((key.field, ASCENDING if key.direction is SortDirection.ASC else DESCENDING))
    return spec


def to_payload(value: Any) -> Any:
    """Convert BSON-specific values into JSON-serializable ones."""
    if isinstance(value, dict):
        return {k: to_payload(v) for k, v in value.items()}
    if isinstance(value, list):
        return [to_payload(v) for v in value]
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Decimal128):
        return str(value.to_decimal())
    return value


class MongoProductRepository:
    """MongoDB implementation of the ProductStore protocol.

    Expects a text index over the searchable fields (name, description,
    category) when keyword search is used.
    """

    def __init__(self, collection: Collection | None = None) -> None:
        """Initialize the repository.

        Args:
            collection: pymongo collection. If None, creates default from settings.
        """
        self._collection = collection if collection is not None else get_mongo_collection()

    @classmethod
    def create(cls) -> "MongoProductRepository":
        """Factory method to create MongoProductRepository with defaults."""
        return cls()

    def find_page(self, descriptor: QueryDescriptor) -> PageResult:
        """Run the query and return one page plus the total match count.

        Args:
            descriptor: The compiled query

        Returns:
            PageResult with JSON-safe documents

        Raises:
            StoreError: If the query fails or the server is unreachable
        """
        query = build_filter(descriptor)
        sort = build_sort(descriptor)

        try:
            cursor = self._collection.find(query, build_projection(descriptor))
            if sort:
                cursor = cursor.sort(sort)
            cursor = cursor.skip(descriptor.skip).limit(descriptor.page_size)
            items = [to_payload(doc) for doc in cursor]
            total_count = self._collection.count_documents(query)
        except PyMongoError as e:
            logger.error(f"Product query failed: {e}")
            raise StoreError(f"Product query failed: {e}") from e

        return PageResult(items=items, total_count=total_count)

    def health_check(self) -> bool:
        """Check if MongoDB is accessible.

        Returns:
            True if healthy, False otherwise
        """
        try:
            self._collection.database.client.admin.command("ping")
        except PyMongoError as e:
            logger.warning(f"MongoDB health check failed: {e}")
            return False
        return True

    @property
    def collection(self) -> Collection:
        """Get the pymongo collection."""
        return self._collection
