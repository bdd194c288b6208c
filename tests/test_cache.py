"""Tests for the key/value cache backends."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
import redis

from titlecache.cache import (
    MemoryCache,
    RedisCache,
    SQLiteCache,
    create_cache,
    memory_cache,
    stats_key,
    title_key,
)
from titlecache.config import merge_config
from titlecache.errors import CacheError, UnknownCacheBackend


def test_keys_are_namespaced():
    graph = "http://example.org/"
    assert title_key(graph, "http://example.org/s") != stats_key(graph)
    assert stats_key(graph) == "stats:http://example.org/"
    assert title_key(graph, "http://example.org/s") == "title:http://example.org/ http://example.org/s"


class TestMemoryCache:

    def test_get_put(self):
        cache = MemoryCache()
        assert cache.get("k") is None
        cache.put("k", {"titles": [{"uri": "u", "value": "v"}]})
        assert cache.get("k") == {"titles": [{"uri": "u", "value": "v"}]}

    def test_returned_values_are_copies(self):
        cache = MemoryCache()
        cache.put("k", {"counts": 1})
        cache.get("k")["counts"] = 2
        assert cache.get("k") == {"counts": 1}

    def test_ttl_expiry(self, monkeypatch):
        cache = MemoryCache(ttl=10)
        monkeypatch.setattr("titlecache.cache.time.time", lambda: 100.0)
        cache.put("k", 1)
        monkeypatch.setattr("titlecache.cache.time.time", lambda: 105.0)
        assert cache.get("k") == 1
        monkeypatch.setattr("titlecache.cache.time.time", lambda: 111.0)
        assert cache.get("k") is None
        assert len(cache) == 0

    def test_corrupt_value(self):
        cache = MemoryCache()
        cache._store["stats:g"] = (None, "not json")
        with pytest.raises(CacheError, match="Corrupt cache value for stats:g"):
            cache.get("stats:g")


class TestSQLiteCache:

    def test_memory_database(self):
        cache = SQLiteCache(":memory:")
        assert cache.get("k") is None
        cache.put("k", {"counts": 3})
        cache.put("k", {"counts": 4})
        assert cache.get("k") == {"counts": 4}
        cache.close()

    def test_file_database_persists(self, tmp_path):
        path = tmp_path / "titles.db"
        first = SQLiteCache(path)
        first.put("stats:g", {"counts": 1})
        first.close()

        second = SQLiteCache(path)
        assert second.get("stats:g") == {"counts": 1}
        second.close()

    def test_ttl_expiry(self, monkeypatch):
        cache = SQLiteCache(":memory:", ttl=5)
        monkeypatch.setattr("titlecache.cache.time.time", lambda: 100.0)
        cache.put("k", "v")
        monkeypatch.setattr("titlecache.cache.time.time", lambda: 106.0)
        assert cache.get("k") is None

    def test_unopenable_path(self, tmp_path):
        with pytest.raises(CacheError):
            SQLiteCache(tmp_path / "missing-dir" / "titles.db")

    def test_corrupt_value(self, tmp_path):
        path = tmp_path / "titles.db"
        cache = SQLiteCache(path)
        cache._conn.execute(
            "INSERT INTO entries (key, value, expires_at) VALUES (?, ?, NULL)",
            ("stats:http://g/", "not json"),
        )
        cache._conn.commit()
        with pytest.raises(CacheError, match="Corrupt cache value"):
            cache.get("stats:http://g/")
        cache.close()


class TestRedisCache:

    def test_get_put_json(self):
        client = MagicMock()
        client.get.return_value = '{"counts": 2}'
        cache = RedisCache(client, ttl=60)

        cache.put("stats:g", {"counts": 2})
        client.set.assert_called_once_with("stats:g", '{"counts": 2}', ex=60)
        assert cache.get("stats:g") == {"counts": 2}

    def test_missing_key(self):
        client = MagicMock()
        client.get.return_value = None
        assert RedisCache(client).get("k") is None

    def test_errors_become_cache_errors(self):
        client = MagicMock()
        client.get.side_effect = redis.exceptions.TimeoutError("timed out")
        client.set.side_effect = redis.exceptions.ConnectionError("refused")
        cache = RedisCache(client)
        with pytest.raises(CacheError):
            cache.get("k")
        with pytest.raises(CacheError):
            cache.put("k", 1)

    def test_corrupt_value(self):
        client = MagicMock()
        client.get.return_value = "not json"
        with pytest.raises(CacheError, match="Corrupt cache value"):
            RedisCache(client).get("k")

    @patch("titlecache.cache.redis.Redis")
    def test_from_settings_passes_timeouts(self, mock_redis):
        config = merge_config({"cache": {"backend": "redis", "redis": {"host": "cache", "timeout": 2}}})
        cache = create_cache(config.cache)
        assert isinstance(cache, RedisCache)
        kwargs = mock_redis.call_args.kwargs
        assert kwargs["host"] == "cache"
        assert kwargs["socket_timeout"] == 2
        assert kwargs["decode_responses"] is True


def test_create_cache_memory_is_shared():
    config = merge_config({"cache": {"backend": "memory"}})
    assert create_cache(config.cache) is memory_cache
    assert create_cache(config.cache) is memory_cache


def test_create_cache_memory_per_ttl():
    short = create_cache(merge_config({"cache": {"backend": "memory", "ttl": 10}}).cache)
    long = create_cache(merge_config({"cache": {"backend": "memory", "ttl": 600}}).cache)
    assert short is not long
    assert short is not memory_cache
    assert (short.ttl, long.ttl) == (10, 600)
    assert memory_cache.ttl is None
    assert create_cache(merge_config({"cache": {"backend": "memory", "ttl": 10}}).cache) is short


def test_create_cache_sqlite(tmp_path):
    config = merge_config({"cache": {"sqlite": {"path": str(tmp_path / "c.db")}}})
    assert isinstance(create_cache(config.cache), SQLiteCache)


def test_create_cache_unknown():
    config = merge_config({"cache": {"backend": "apc"}})
    with pytest.raises(UnknownCacheBackend):
        create_cache(config.cache)
