"""Tests for title selection and batch resolution."""

from __future__ import annotations

import pytest

from titlecache.cache import stats_key, title_key
from titlecache.errors import CacheError, GraphNotCached, NoURIsGiven
from titlecache.models import GraphStats, SubjectTitleEntry, TitleCandidate
from titlecache.resolver import choose_title, resolve

DC_TITLE = "http://purl.org/dc/elements/1.1/title"
RDFS_LABEL = "http://www.w3.org/2000/01/rdf-schema#label"
GRAPH = "http://example.org/"
S = "http://example.org/s"


def _entry(*titles):
    return SubjectTitleEntry(
        titles=[TitleCandidate(uri=u, value=v, lang=l) for u, v, l in titles]
    )


@pytest.fixture
def hello_entry():
    """dc:title "Hello"@en ranked above rdfs:label "Hallo"@de."""
    return _entry((DC_TITLE, "Hello", "en"), (RDFS_LABEL, "Hallo", "de"))


@pytest.fixture
def seeded(cache, hello_entry):
    cache.put(stats_key(GRAPH), GraphStats(uri=GRAPH, store="fake", counts=1, created_time=1).to_cache())
    cache.put(title_key(GRAPH, S), hello_entry.to_cache())
    return cache


class TestChooseTitle:
    """Language selection over a ranked entry."""

    def test_exact_language(self, hello_entry):
        assert choose_title(hello_entry, "en", "en") == "Hello"

    def test_default_language_fallback(self, hello_entry):
        assert choose_title(hello_entry, "fr", "en") == "Hello"

    def test_exact_match_beats_higher_priority(self, hello_entry):
        assert choose_title(hello_entry, "de", "en") == "Hallo"

    def test_default_language_other_than_first(self, hello_entry):
        assert choose_title(hello_entry, "it", "de") == "Hallo"

    def test_first_candidate_is_last_resort(self):
        entry = _entry((RDFS_LABEL, "Bonjour", "fr"))
        assert choose_title(entry, "en", "en") == "Bonjour"

    def test_untagged_only_selected_as_last_resort(self):
        entry = _entry((DC_TITLE, "Plain", None), (RDFS_LABEL, "Label", "de"))
        assert choose_title(entry, "de", "en") == "Label"
        assert choose_title(entry, "fr", "en") == "Plain"

    def test_first_default_language_candidate_wins(self):
        entry = _entry(
            (DC_TITLE, "Titre", "fr"),
            (RDFS_LABEL, "First", "en"),
            (RDFS_LABEL, "Second", "en"),
        )
        assert choose_title(entry, "de", "en") == "First"

    def test_same_lang_and_default_uses_first_match(self):
        entry = _entry(
            (DC_TITLE, "Titel", "de"),
            (RDFS_LABEL, "Label", "en"),
        )
        assert choose_title(entry, "en", "en") == "Label"


class TestResolve:
    """Batch lookups against the cache."""

    def test_resolves_batch(self, seeded):
        titles = resolve(GRAPH, [S], "de", "en", seeded)
        assert titles == {S: "Hallo"}

    def test_missing_subject_is_none(self, seeded):
        titles = resolve(GRAPH, [S, "http://example.org/missing"], "en", "en", seeded)
        assert titles == {S: "Hello", "http://example.org/missing": None}

    def test_duplicates_collapse(self, seeded):
        assert list(resolve(GRAPH, [S, S], "en", "en", seeded)) == [S]

    def test_no_uris(self, seeded):
        with pytest.raises(NoURIsGiven):
            resolve(GRAPH, [], "en", "en", seeded)

    def test_uncached_graph(self, cache):
        with pytest.raises(GraphNotCached):
            resolve("http://example.org/never", [S, "http://x/1", "http://x/2"], "en", "en", cache)

    def test_invalid_graph_is_not_cached(self, cache):
        crafted = "http://a/> { ?x ?y ?z } GRAPH <http://b/"
        cache.put(stats_key(crafted), {"uri": crafted, "store": "fake", "counts": 1, "created_time": 1})
        with pytest.raises(GraphNotCached):
            resolve(crafted, [S], "en", "en", cache)

    def test_uncached_graph_creates_no_stats(self, cache):
        with pytest.raises(GraphNotCached):
            resolve(GRAPH, [S], "en", "en", cache)
        assert cache.get(stats_key(GRAPH)) is None

    def test_touches_asked_time(self, seeded, monkeypatch):
        monkeypatch.setattr("titlecache.stats.now", lambda: 1234)
        resolve(GRAPH, [S], "en", "en", seeded)
        stats = seeded.get(stats_key(GRAPH))
        assert stats["asked_time"] == 1234
        assert stats["created_time"] == 1

    def test_failed_touch_still_returns_titles(self, seeded, monkeypatch):
        def broken_put(key, value):
            raise CacheError("read-only")

        monkeypatch.setattr(seeded, "put", broken_put)
        assert resolve(GRAPH, [S], "en", "en", seeded) == {S: "Hello"}

    def test_corrupt_entry_raises_cache_error(self, seeded):
        seeded.put(title_key(GRAPH, S), {"titles": []})
        with pytest.raises(CacheError):
            resolve(GRAPH, [S], "en", "en", seeded)
