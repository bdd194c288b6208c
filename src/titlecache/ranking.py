"""Grouping and priority ranking of title candidates."""

from __future__ import annotations

import logging
from typing import Iterable, Sequence

from titlecache.models import TitleCandidate
from titlecache.store import TitleRow

logger = logging.getLogger(__name__)

__all__ = [
    "group_rows",
    "priority_map",
    "rank_candidates",
]


def priority_map(predicates: Sequence[str]) -> dict[str, int]:
    """Map each title predicate to its rank (0 is preferred).

    A predicate listed twice keeps its first, highest rank.
    """
    ranks: dict[str, int] = {}
    for index, predicate in enumerate(predicates):
        ranks.setdefault(predicate, index)
    return ranks


def rank_candidates(
    candidates: Iterable[TitleCandidate],
    priorities: dict[str, int],
) -> list[TitleCandidate]:
    """Order candidates by predicate rank, dropping unranked predicates.

    :func:`sorted` is stable, so candidates sharing a predicate keep
    their discovery order.
    """
    known = [c for c in candidates if c.uri in priorities]
    return sorted(known, key=lambda c: priorities[c.uri])


def group_rows(rows: Iterable[TitleRow]) -> dict[str, list[TitleCandidate]]:
    """Group literal rows by subject, in discovery order."""
    grouped: dict[str, list[TitleCandidate]] = {}
    skipped = 0
    for row in rows:
        if not row.is_literal:
            skipped += 1
            continue
        grouped.setdefault(row.subject, []).append(
            TitleCandidate(uri=row.predicate, value=row.object, lang=row.language)
        )
    if skipped:
        logger.debug("Skipped %d non-literal title rows", skipped)
    return grouped
