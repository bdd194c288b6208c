"""Shared fixtures: an in-memory triple store stand-in and caches."""

from __future__ import annotations

import pytest

from titlecache.cache import MemoryCache, clear_memory_caches
from titlecache.config import TitleCacheConfig
from titlecache.errors import StoreError
from titlecache.store import TitleRow

DC_TITLE = "http://purl.org/dc/elements/1.1/title"
RDFS_LABEL = "http://www.w3.org/2000/01/rdf-schema#label"
SKOS_PREF = "http://www.w3.org/2004/02/skos/core#prefLabel"
GRAPH = "http://example.org/"


class FakeStore:
    """Triple store returning canned rows; ``fail`` makes queries raise."""

    name = "fake"

    def __init__(self, rows=None, exists=True):
        self.rows = list(rows or [])
        self.exists = exists
        self.fail = False
        self.queries: list[str] = []

    def ask(self, graph):
        if self.fail:
            raise StoreError("Store unreachable")
        return self.exists

    def query(self, sparql):
        if self.fail:
            raise StoreError("Store unreachable")
        self.queries.append(sparql)
        return list(self.rows)


@pytest.fixture(autouse=True)
def _clear_shared_memory_cache():
    clear_memory_caches()
    yield
    clear_memory_caches()


@pytest.fixture()
def cache():
    """Private in-memory cache."""
    return MemoryCache()


@pytest.fixture()
def config():
    return TitleCacheConfig(title_predicates=(DC_TITLE, RDFS_LABEL))


@pytest.fixture()
def store():
    """Store holding the titles of two subjects plus one resource-valued row."""
    return FakeStore([
        TitleRow("http://example.org/s", RDFS_LABEL, "Hallo", "de"),
        TitleRow("http://example.org/s", DC_TITLE, "Hello", "en"),
        TitleRow("http://example.org/t", RDFS_LABEL, "Bonjour", "fr"),
        TitleRow("http://example.org/u", RDFS_LABEL, "http://example.org/other", None, False),
    ])


@pytest.fixture()
def make_store():
    """Factory for stores with custom rows."""
    return FakeStore
