"""
Shared fixtures and test doubles.
"""

import pytest

from storefront_query.entities import PageResult, QueryDescriptor
from storefront_query.errors import CacheUnavailable
from storefront_query.repositories import InMemoryCacheRepository


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, now: float = 1_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeProductStore:
    """ProductStore double that pages over an in-memory list."""

    def __init__(self, items=None, error=None):
        self.items = list(items or [])
        self.error = error
        self.healthy = True
        self.calls: list[QueryDescriptor] = []

    def find_page(self, descriptor: QueryDescriptor) -> PageResult:
        self.calls.append(descriptor)
        if self.error is not None:
            raise self.error
        page = self.items[descriptor.skip : descriptor.skip + descriptor.page_size]
        return PageResult(items=list(page), total_count=len(self.items))

    def health_check(self) -> bool:
        return self.healthy


class UnreachableBackend:
    """CacheBackend double whose service is always down."""

    def __init__(self):
        self.attempts = 0

    def _fail(self):
        self.attempts += 1
        raise CacheUnavailable("connection refused")

    def get(self, key):
        self._fail()

    def set(self, key, value, ttl):
        self._fail()

    def delete(self, key):
        self._fail()

    def scan_prefix(self, prefix):
        self._fail()

    def health_check(self):
        return False


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def memory_backend(clock):
    return InMemoryCacheRepository(clock=clock)


@pytest.fixture
def products():
    return [{"_id": str(i), "name": f"Shoe {i}", "category": "shoes", "price": 10 * i} for i in range(1, 21)]


@pytest.fixture
def store(products):
    return FakeProductStore(items=products)
