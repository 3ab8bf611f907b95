"""
Tests for descriptor-to-MongoDB translation and the product repository.
"""

from datetime import datetime, timezone
from types import SimpleNamespace

import pytest
from bson import ObjectId
from pymongo.errors import OperationFailure, ServerSelectionTimeoutError

from storefront_query.errors import StoreError
from storefront_query.repositories import MongoProductRepository
from storefront_query.repositories.mongo_repository import build_filter, build_projection, build_sort
from storefront_query.services import PRODUCT_FIELDS, QueryCompiler


class FakeCursor:
    def __init__(self, docs, log):
        self._docs = docs
        self._log = log

    def sort(self, spec):
        self._log["sort"] = spec
        return self

    def skip(self, n):
        self._log["skip"] = n
        return self

    def limit(self, n):
        self._log["limit"] = n
        return self

    def __iter__(self):
        start = self._log.get("skip", 0)
        return iter(self._docs[start : start + self._log.get("limit", len(self._docs))])


class FakeCollection:
    """Records the arguments pymongo would receive."""

    def __init__(self, docs=None, error=None):
        self.docs = docs or []
        self.error = error
        self.log: dict = {}
        self.database = SimpleNamespace(
            client=SimpleNamespace(admin=SimpleNamespace(command=self._command))
        )

    def _command(self, name):
        if self.error is not None:
            raise self.error
        return {"ok": 1.0}

    def find(self, query, projection=None):
        if self.error is not None:
            raise self.error
        self.log["filter"] = query
        self.log["projection"] = projection
        return FakeCursor(self.docs, self.log)

    def count_documents(self, query):
        self.log["count_filter"] = query
        return len(self.docs)


@pytest.fixture
def compiler():
    return QueryCompiler(fields=PRODUCT_FIELDS, default_page_size=8)


def test_filter_for_range_and_equality(compiler):
    descriptor = compiler.compile({"category": "shoes", "price": {"gte": "20", "lte": "100"}})

    assert build_filter(descriptor) == {
        "price": {"$gte": 20, "$lte": 100},
        "category": {"$eq": "shoes"},
    }
    assert build_projection(descriptor) is None
    assert build_sort(descriptor) == []


def test_text_search_translation(compiler):
    descriptor = compiler.compile({"keyword": "running shoe"})

    assert build_filter(descriptor) == {"$text": {"$search": "running shoe"}}
    assert build_projection(descriptor) == {"score": {"$meta": "textScore"}}
    assert build_sort(descriptor) == [("score", {"$meta": "textScore"})]


def test_find_page_applies_window_and_counts(compiler):
    docs = [{"_id": ObjectId(), "name": f"Shoe {i}"} for i in range(20)]
    collection = FakeCollection(docs)
    repository = MongoProductRepository(collection=collection)

    page = repository.find_page(compiler.compile({"category": "shoes", "page": "2"}))

    assert collection.log["skip"] == 8
    assert collection.log["limit"] == 8
    assert "sort" not in collection.log
    assert collection.log["count_filter"] == collection.log["filter"]
    assert page.total_count == 20
    assert [item["name"] for item in page.items] == [f"Shoe {i}" for i in range(8, 16)]


def test_documents_are_made_json_safe(compiler):
    oid = ObjectId()
    created = datetime(2024, 5, 1, tzinfo=timezone.utc)
    collection = FakeCollection([{"_id": oid, "createdAt": created, "images": [{"_id": oid}]}])

    page = MongoProductRepository(collection=collection).find_page(compiler.compile({}))

    assert page.items == [
        {"_id": str(oid), "createdAt": created.isoformat(), "images": [{"_id": str(oid)}]}
    ]


def test_no_matches_is_an_empty_page(compiler):
    page = MongoProductRepository(collection=FakeCollection([])).find_page(compiler.compile({"category": "hats"}))

    assert page.items == []
    assert page.total_count == 0


@pytest.mark.parametrize(
    "error",
    [ServerSelectionTimeoutError("no servers"), OperationFailure("text index required for $text query")],
)
def test_store_failures_raise_store_error(compiler, error):
    repository = MongoProductRepository(collection=FakeCollection(error=error))

    with pytest.raises(StoreError):
        repository.find_page(compiler.compile({"keyword": "shoe"}))


def test_health_check():
    assert MongoProductRepository(collection=FakeCollection()).health_check() is True
    assert (
        MongoProductRepository(collection=FakeCollection(error=ServerSelectionTimeoutError("down"))).health_check()
        is False
    )
