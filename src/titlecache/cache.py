"""Key/value cache backends holding title entries and graph stats.

Values are JSON-compatible structures. Backends only need per-key
``get`` and ``put``; no scans, deletes or multi-key transactions.
"""

from __future__ import annotations

import json
import sqlite3
import threading
import time
from pathlib import Path
from typing import Any, Optional, Protocol, runtime_checkable

import redis

from titlecache.config import CacheConfig, RedisSettings, SQLiteSettings
from titlecache.errors import CacheError, UnknownCacheBackend

__all__ = [
    "KVStore",
    "MemoryCache",
    "RedisCache",
    "SQLiteCache",
    "clear_memory_caches",
    "create_cache",
    "memory_cache",
    "stats_key",
    "title_key",
]


def title_key(graph: str, subject: str) -> str:
    """Key of the title entry for *subject* within *graph*."""
    # A space cannot occur in an IRI, so the split is unambiguous.
    return f"title:{graph} {subject}"


def stats_key(graph: str) -> str:
    """Key of the bookkeeping record for *graph*."""
    return f"stats:{graph}"


def _decode(key: str, raw: str) -> Any:
    try:
        return json.loads(raw)
    except ValueError as exc:
        raise CacheError(f"Corrupt cache value for {key}: {exc}") from exc


@runtime_checkable
class KVStore(Protocol):
    """Capability consumed by the populator and the resolver."""

    name: str

    def get(self, key: str) -> Any | None:
        ...

    def put(self, key: str, value: Any) -> None:
        ...


class MemoryCache:
    """Process-local cache with optional per-cache TTL."""

    name = "memory"

    def __init__(self, ttl: Optional[int] = None) -> None:
        self.ttl = ttl
        self._store: dict[str, tuple[float | None, str]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Any | None:
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return None
            expires, raw = entry
            if expires is not None and time.time() > expires:
                del self._store[key]
                return None
        # Stored serialized so callers never share mutable state.
        return _decode(key, raw)

    def put(self, key: str, value: Any) -> None:
        expires = time.time() + self.ttl if self.ttl else None
        raw = json.dumps(value)
        with self._lock:
            self._store[key] = (expires, raw)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    def __len__(self) -> int:
        return len(self._store)


# One process-wide instance per TTL value; the no-TTL one is the default.
memory_cache = MemoryCache()
_memory_caches: dict[Optional[int], MemoryCache] = {None: memory_cache}
_memory_caches_lock = threading.Lock()


def _memory_cache_for(ttl: Optional[int]) -> MemoryCache:
    with _memory_caches_lock:
        cache = _memory_caches.get(ttl)
        if cache is None:
            cache = _memory_caches[ttl] = MemoryCache(ttl=ttl)
        return cache


def clear_memory_caches() -> None:
    """Empty every process-wide memory cache."""
    with _memory_caches_lock:
        caches = list(_memory_caches.values())
    for cache in caches:
        cache.clear()


_SQLITE_INIT_SQL = """
CREATE TABLE IF NOT EXISTS entries (
    key         TEXT PRIMARY KEY,
    value       TEXT NOT NULL,           -- json string
    expires_at  REAL                     -- unix time, NULL = never
);
"""


class SQLiteCache:
    """File-backed cache in a single SQLite table.

    Thread-safe via per-thread connections (a shared, locked connection
    for ``:memory:``).
    """

    name = "sqlite"

    def __init__(
        self,
        db_path: str | Path = "titlecache.db",
        *,
        timeout: float = 5.0,
        ttl: Optional[int] = None,
    ) -> None:
        self._db_path = str(db_path)
        self._timeout = timeout
        self.ttl = ttl
        self._is_memory = self._db_path in (":memory:", "")
        self._lock = threading.Lock()
        self._local = threading.local()

        try:
            if self._is_memory:
                self._shared_conn: sqlite3.Connection | None = sqlite3.connect(
                    ":memory:", check_same_thread=False, timeout=timeout,
                )
            else:
                self._shared_conn = None
            self._conn.executescript(_SQLITE_INIT_SQL)
            self._conn.commit()
        except sqlite3.Error as exc:
            raise CacheError(f"Cannot open SQLite cache {self._db_path}: {exc}") from exc

    @classmethod
    def from_settings(cls, settings: SQLiteSettings, ttl: Optional[int] = None) -> "SQLiteCache":
        return cls(settings.path, timeout=settings.timeout, ttl=ttl)

    @property
    def _conn(self) -> sqlite3.Connection:
        """Shared connection for :memory:, one per thread otherwise."""
        if self._shared_conn is not None:
            return self._shared_conn

        conn = getattr(self._local, "conn", None)
        if conn is None:
            conn = sqlite3.connect(
                self._db_path, check_same_thread=False, timeout=self._timeout,
            )
            conn.execute("PRAGMA journal_mode=WAL")
            self._local.conn = conn
        return conn

    def get(self, key: str) -> Any | None:
        try:
            with self._lock:
                row = self._conn.execute(
                    "SELECT value, expires_at FROM entries WHERE key = ?", (key,),
                ).fetchone()
        except sqlite3.Error as exc:
            raise CacheError(f"SQLite cache read failed: {exc}") from exc
        if row is None:
            return None
        value, expires_at = row
        if expires_at is not None and time.time() > expires_at:
            return None
        return _decode(key, value)

    def put(self, key: str, value: Any) -> None:
        expires_at = time.time() + self.ttl if self.ttl else None
        try:
            with self._lock:
                self._conn.execute(
                    """
                    INSERT INTO entries (key, value, expires_at) VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET
                        value=excluded.value,
                        expires_at=excluded.expires_at
                    """,
                    (key, json.dumps(value), expires_at),
                )
                self._conn.commit()
        except sqlite3.Error as exc:
            raise CacheError(f"SQLite cache write failed: {exc}") from exc

    def close(self) -> None:
        if self._shared_conn is not None:
            # Closing the shared in-memory connection would drop all data.
            return
        conn = getattr(self._local, "conn", None)
        if conn is not None:
            conn.close()
            self._local.conn = None


class RedisCache:
    """Cache stored in Redis as JSON strings."""

    name = "redis"

    def __init__(self, client: redis.Redis, ttl: Optional[int] = None) -> None:
        self._client = client
        self.ttl = ttl

    @classmethod
    def from_settings(cls, settings: RedisSettings, ttl: Optional[int] = None) -> "RedisCache":
        client = redis.Redis(
            host=settings.host,
            port=settings.port,
            db=settings.db,
            password=settings.password,
            socket_timeout=settings.timeout,
            socket_connect_timeout=settings.timeout,
            decode_responses=True,
        )
        return cls(client, ttl=ttl)

    def get(self, key: str) -> Any | None:
        try:
            raw = self._client.get(key)
        except redis.RedisError as exc:
            raise CacheError(f"Redis cache read failed: {exc}") from exc
        if raw is None:
            return None
        return _decode(key, raw)

    def put(self, key: str, value: Any) -> None:
        try:
            self._client.set(key, json.dumps(value), ex=self.ttl)
        except redis.RedisError as exc:
            raise CacheError(f"Redis cache write failed: {exc}") from exc


def create_cache(config: CacheConfig) -> KVStore:
    """Instantiate the cache backend named by ``config.backend``."""
    backend = config.backend
    if backend == "memory":
        return _memory_cache_for(config.ttl)
    if backend == "sqlite":
        return SQLiteCache.from_settings(config.sqlite, ttl=config.ttl)
    if backend == "redis":
        return RedisCache.from_settings(config.redis, ttl=config.ttl)
    raise UnknownCacheBackend(f'Unknown cache backend type "{backend}"')
