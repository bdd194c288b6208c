"""Look up cached titles with language fallback."""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from pydantic import ValidationError

from titlecache.cache import KVStore, title_key
from titlecache.errors import CacheError, GraphNotCached, NoURIsGiven
from titlecache.models import SubjectTitleEntry
from titlecache.stats import load_stats, touch_asked_time
from titlecache.store import is_valid_iri

logger = logging.getLogger(__name__)

__all__ = ["choose_title", "resolve"]


def choose_title(entry: SubjectTitleEntry, lang: str, default_lang: str) -> str:
    """Pick one title from a priority-ordered entry.

    1. the first candidate tagged *lang*, wherever it sits in the list;
    2. else the first candidate tagged *default_lang*;
    3. else the first candidate, untagged ones included.
    """
    fallback: Optional[str] = None
    for candidate in entry.titles:
        if candidate.lang is None:
            continue
        if candidate.lang == lang:
            return candidate.value
        if fallback is None and lang != default_lang and candidate.lang == default_lang:
            fallback = candidate.value
    if fallback is not None:
        return fallback
    return entry.titles[0].value


def resolve(
    graph: str,
    subjects: Iterable[str],
    lang: str,
    default_lang: str,
    cache: KVStore,
) -> dict[str, Optional[str]]:
    """Return ``{subject: title or None}`` for every requested subject.

    Raises:
        NoURIsGiven: If *subjects* is empty
        GraphNotCached: If *graph* was never populated or is not a valid IRI
        CacheError: If the cache cannot be read
    """
    # dict keeps the request order and drops duplicates
    wanted = list(dict.fromkeys(subjects))
    if not wanted:
        raise NoURIsGiven(
            "No uris given. Add some uri comma-seperated like: "
            '"?action=get&uris=http://your-uri-1.org,http://your-uri-2.org"'
        )

    stats = load_stats(cache, graph) if is_valid_iri(graph) else None
    if stats is None:
        raise GraphNotCached(
            f'Cannot get the cache for graph "{graph}". It does not exists. '
            "Choose another graph or create the cache first with: "
            f"?action=create&graph={graph}"
        )
    touch_asked_time(cache, stats)

    titles: dict[str, Optional[str]] = {}
    for subject in wanted:
        raw = cache.get(title_key(graph, subject))
        if raw is None:
            titles[subject] = None
            continue
        try:
            entry = SubjectTitleEntry.model_validate(raw)
        except ValidationError as exc:
            raise CacheError(f"Corrupt title entry for {subject}: {exc}") from exc
        titles[subject] = choose_title(entry, lang, default_lang)
    return titles
