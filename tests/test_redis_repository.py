"""
Tests for the Redis cache backend, using in-process client doubles.
"""

import re

import pytest
import redis
from conftest import FakeClock

from storefront_query.errors import CacheUnavailable
from storefront_query.repositories import RedisCacheRepository
from storefront_query.repositories.redis_repository import escape_glob
from storefront_query.services import CacheFront


class FakeRedis:
    """Minimal redis.Redis stand-in for string keys with prefix SCAN."""

    def __init__(self):
        self.data: dict[str, bytes] = {}
        self.expiry_ms: dict[str, int] = {}
        self.patterns: list[str] = []

    def get(self, key):
        return self.data.get(key)

    def set(self, key, value, px=None):
        self.data[key] = value
        self.expiry_ms[key] = px
        return True

    def delete(self, key):
        return 1 if self.data.pop(key, None) is not None else 0

    def scan_iter(self, match=None, count=None):
        self.patterns.append(match)
        assert match.endswith("*")
        prefix = re.sub(r"\\(.)", r"\1", match[:-1])
        for key in list(self.data):
            if key.startswith(prefix):
                yield key.encode()

    def ping(self):
        return True


class BrokenRedis:
    """Client whose every call fails like an unreachable server."""

    def __init__(self, error=None):
        self.calls = 0
        self.error = error or redis.ConnectionError("Connection refused")

    def _fail(self, *args, **kwargs):
        self.calls += 1
        raise self.error

    get = set = delete = scan_iter = ping = _fail


@pytest.fixture
def fake_client():
    return FakeRedis()


@pytest.fixture
def repository(fake_client):
    return RedisCacheRepository(redis_client=fake_client, retry_interval=30)


def test_set_uses_millisecond_expiry(repository, fake_client):
    repository.set("products:a", b"payload", ttl=2.5)

    assert fake_client.data["products:a"] == b"payload"
    assert fake_client.expiry_ms["products:a"] == 2500
    assert repository.get("products:a") == b"payload"
    assert repository.get("products:missing") is None


def test_delete(repository):
    repository.set("products:a", b"1", ttl=60)

    assert repository.delete("products:a") is True
    assert repository.delete("products:a") is False


def test_scan_prefix_escapes_glob_characters(repository, fake_client):
    key = 'products:{"p":[["price","gte",20]]}'
    repository.set(key, b"1", ttl=60)
    repository.set("orders:x", b"1", ttl=60)

    assert repository.scan_prefix('products:{"p":[[') == [key]
    assert fake_client.patterns[-1] == 'products:{"p":\\[\\[*'


def test_escape_glob():
    assert escape_glob("a*b?c[d]e\\") == "a\\*b\\?c\\[d\\]e\\\\"


@pytest.mark.parametrize("error", [redis.ConnectionError("refused"), redis.TimeoutError("timed out")])
def test_connection_errors_become_cache_unavailable(error):
    repository = RedisCacheRepository(redis_client=BrokenRedis(error), retry_interval=30)

    with pytest.raises(CacheUnavailable):
        repository.get("products:a")
    with pytest.raises(CacheUnavailable):
        repository.set("products:a", b"1", ttl=60)


def test_backs_off_after_failure():
    """Within the retry interval the client is not called again."""
    client = BrokenRedis()
    clock = FakeClock()
    repository = RedisCacheRepository(redis_client=client, retry_interval=30, clock=clock)

    with pytest.raises(CacheUnavailable):
        repository.get("products:a")
    with pytest.raises(CacheUnavailable):
        repository.get("products:a")
    assert client.calls == 1

    clock.advance(31)
    with pytest.raises(CacheUnavailable):
        repository.get("products:a")
    assert client.calls == 2


def test_health_check(repository):
    assert repository.health_check() is True
    assert RedisCacheRepository(redis_client=BrokenRedis(), retry_interval=30).health_check() is False


def test_cache_front_survives_unreachable_redis():
    """With Redis down, get_or_compute still returns the computed payload."""
    front = CacheFront(RedisCacheRepository(redis_client=BrokenRedis(), retry_interval=30), default_ttl=60)
    calls = []

    def producer():
        calls.append(1)
        return {"items": [{"name": "Runner"}], "total_count": 1}

    assert front.get_or_compute("products:a", producer) == {"items": [{"name": "Runner"}], "total_count": 1}
    assert front.get_or_compute("products:a", producer) == {"items": [{"name": "Runner"}], "total_count": 1}
    assert len(calls) == 2


def test_cache_front_round_trip_through_redis(repository):
    front = CacheFront(repository, default_ttl=60)
    calls = []

    def producer():
        calls.append(1)
        return {"items": [{"name": "Runner"}], "total_count": 1}

    front.get_or_compute("products:a", producer)
    assert front.get_or_compute("products:a", producer) == {"items": [{"name": "Runner"}], "total_count": 1}
    assert len(calls) == 1
    assert front.invalidate_prefix("products:") == 1


class FlakyRedis(FakeRedis):
    """FakeRedis whose next ``failures`` reads time out."""

    def __init__(self, failures=1):
        super().__init__()
        self.failures = failures
        self.deletes = 0

    def get(self, key):
        if self.failures:
            self.failures -= 1
            raise redis.TimeoutError("timed out")
        return super().get(key)

    def delete(self, key):
        self.deletes += 1
        return super().delete(key)


def test_delete_reaches_redis_during_back_off():
    client = FlakyRedis()
    client.data["products:a"] = b"1"
    repository = RedisCacheRepository(redis_client=client, retry_interval=30, clock=FakeClock())

    with pytest.raises(CacheUnavailable):
        repository.get("products:a")
    with pytest.raises(CacheUnavailable):
        repository.get("products:a")

    assert repository.scan_prefix("products:") == ["products:a"]
    assert repository.delete("products:a") is True
    assert client.deletes == 1
    # a successful call ends the back-off
    assert repository.get("products:a") is None


def test_invalidation_during_back_off_is_not_lost():
    """An invalidation issued while reads are backing off still clears Redis."""
    client = FlakyRedis()
    clock = FakeClock()
    front = CacheFront(RedisCacheRepository(redis_client=client, retry_interval=30, clock=clock), default_ttl=600)
    client.data["products:a"] = b'{"items":[{"price":10}],"total_count":1}'

    # Read timeout trips the back-off; the producer serves the request.
    assert front.get_or_compute("products:b", lambda: {"items": [], "total_count": 0}) == {
        "items": [],
        "total_count": 0,
    }

    assert front.invalidate_prefix("products:") == 1

    clock.advance(31)
    fresh = {"items": [{"price": 12}], "total_count": 1}
    assert front.get_or_compute("products:a", lambda: fresh) == fresh
