"""Rebuild the title cache for one named graph."""

from __future__ import annotations

import logging
import time

from titlecache.cache import KVStore, title_key
from titlecache.config import TitleCacheConfig
from titlecache.errors import GraphNotFound
from titlecache.models import PopulateSummary, SubjectTitleEntry
from titlecache.ranking import group_rows, priority_map, rank_candidates
from titlecache.stats import record_populate
from titlecache.store import TripleStoreClient, build_title_query, check_iri

logger = logging.getLogger(__name__)

__all__ = ["PopulateResult", "populate"]


class PopulateResult(PopulateSummary):
    """Summary plus whether an earlier cache for the graph was replaced."""

    updated: bool = False


def populate(
    graph: str,
    store: TripleStoreClient,
    cache: KVStore,
    config: TitleCacheConfig,
) -> PopulateResult:
    """Query *store* for the titles of *graph* and rewrite its cache entries.

    Every row is fetched, grouped and ranked before the first cache
    write, so a store failure leaves the previous entries untouched.
    Subject entries are written first and the graph stats last.

    Raises:
        GraphNotFound: If the store holds no triples in *graph*
        StoreError: If *graph* or a title predicate is not a valid IRI,
            or a store query fails
        CacheError: If a cache write fails
    """
    start = time.monotonic()
    predicates = config.title_predicates
    check_iri(graph)

    if not store.ask(graph):
        raise GraphNotFound(
            f'Cannot create the cache: graph "{graph}" does not exists in your store. '
            "Choose another graph or create it in your store."
        )

    rows = store.query(build_title_query(graph, predicates))
    logger.info("Fetched %d title rows from graph %s", len(rows), graph)

    priorities = priority_map(predicates)
    entries: dict[str, SubjectTitleEntry] = {}
    for subject, candidates in group_rows(rows).items():
        ranked = rank_candidates(candidates, priorities)
        if ranked:
            entries[subject] = SubjectTitleEntry(titles=ranked)

    for subject, entry in entries.items():
        cache.put(title_key(graph, subject), entry.to_cache())

    _, updated = record_populate(cache, graph, len(entries), store.name)

    duration = time.monotonic() - start
    logger.info(
        "%s title cache for %s: %d subjects in %.2fs",
        "Updated" if updated else "Created", graph, len(entries), duration,
    )
    return PopulateResult(
        backend=store.name,
        cache=cache.name,
        graph=graph,
        default_lang=config.default_lang,
        default_title_uri=predicates[0] if predicates else "",
        duration=duration,
        counts=len(entries),
        updated=updated,
    )
