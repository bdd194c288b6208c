"""Per-graph bookkeeping records stored next to the title entries."""

from __future__ import annotations

import logging
import time
from typing import Optional

from pydantic import ValidationError

from titlecache.cache import KVStore, stats_key
from titlecache.errors import CacheError
from titlecache.models import GraphStats

logger = logging.getLogger(__name__)


def now() -> int:
    """Current unix time in whole seconds."""
    return int(time.time())


def load_stats(cache: KVStore, graph: str) -> Optional[GraphStats]:
    """Return the stats for *graph*, or None if it was never populated."""
    raw = cache.get(stats_key(graph))
    if raw is None:
        return None
    try:
        return GraphStats.model_validate(raw)
    except ValidationError as exc:
        raise CacheError(f'Corrupt cache statistics for graph "{graph}": {exc}') from exc


def record_populate(
    cache: KVStore,
    graph: str,
    counts: int,
    store_name: str,
) -> tuple[GraphStats, bool]:
    """Create or refresh the stats after a populate pass.

    Returns the written stats and whether a previous record existed.
    This is the last write of a populate, so ``counts`` always belongs
    to a completed pass.
    """
    previous = load_stats(cache, graph)
    if previous is None:
        stats = GraphStats(
            uri=graph,
            store=store_name,
            counts=counts,
            created_time=now(),
            updated_time=0,
        )
    else:
        stats = previous.model_copy(
            update={
                "uri": graph,
                "store": store_name,
                "counts": counts,
                "updated_time": now(),
            }
        )
    cache.put(stats_key(graph), stats.to_cache())
    return stats, previous is not None


def touch_asked_time(cache: KVStore, stats: GraphStats) -> bool:
    """Best-effort update of ``asked_time``; failures are only logged."""
    touched = stats.model_copy(update={"asked_time": now()})
    try:
        cache.put(stats_key(stats.uri), touched.to_cache())
    except CacheError as exc:
        logger.warning("Could not update asked_time for %s: %s", stats.uri, exc)
        return False
    return True
