"""Tests for the transaction amount caches (in-memory and Redis-backed)."""

from src.database.amount_cache import AmountCache
from src.database.amount_cache_real import RedisAmountCache


class DummyRedis:
    """Just enough of redis.Redis for RedisAmountCache."""

    def __init__(self):
        self.store = {}
        self.ttls = {}

    def setex(self, key, ttl, value):
        self.store[key] = str(value)
        self.ttls[key] = ttl

    def get(self, key):
        return self.store.get(key)

    def getdel(self, key):
        return self.store.pop(key, None)

    def scan_iter(self, match=None):
        prefix = (match or "*").rstrip("*")
        return iter([k for k in self.store if k.startswith(prefix)])

    def ping(self):
        return True

    def close(self):
        pass


def test_take_and_remove_consumes_once():
    cache = AmountCache()
    cache.put("A1", 100_000)

    assert cache.take_and_remove("A1") == 100_000
    assert cache.take_and_remove("A1") is None
    assert len(cache) == 0


def test_put_overwrites_silently():
    cache = AmountCache()
    cache.put("A1", 100)
    cache.put("A1", 200)
    assert cache.peek("A1") == 200
    assert len(cache) == 1


def test_missing_authority_returns_none():
    assert AmountCache().take_and_remove("unknown") is None


def test_redis_cache_uses_getdel_and_ttl():
    client = DummyRedis()
    cache = RedisAmountCache(client=client, ttl=600)

    cache.put("A1", 100_000)
    assert client.ttls["escrow:amount:A1"] == 600
    assert cache.peek("A1") == 100_000
    assert len(cache) == 1

    assert cache.take_and_remove("A1") == 100_000
    assert cache.take_and_remove("A1") is None
    assert cache.ping() is True


def test_redis_cache_treats_corrupt_value_as_missing():
    client = DummyRedis()
    client.store["escrow:amount:A1"] = "not-a-number"
    cache = RedisAmountCache(client=client)

    assert cache.take_and_remove("A1") is None
    assert "escrow:amount:A1" not in client.store
