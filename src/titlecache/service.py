"""Service facade: dispatches requests and wraps every outcome in an Envelope.

Nothing raised by the populate/resolve core crosses this boundary; each
:class:`~titlecache.errors.TitleCacheError` becomes an error envelope.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from titlecache.cache import KVStore, create_cache
from titlecache.config import TitleCacheConfig
from titlecache.errors import NoActionGiven, TitleCacheError, UnknownAction
from titlecache.models import Envelope, TitleRequest
from titlecache.populator import populate
from titlecache.resolver import resolve
from titlecache.store import TripleStoreClient, create_store

logger = logging.getLogger(__name__)

__all__ = ["ACTIONS", "TitleCache", "clean_uris"]

ACTIONS = ("create", "get")


def clean_uris(uris: Iterable[str]) -> list[str]:
    """Strip whitespace, drop blanks and duplicates, keep request order."""
    stripped = (u.strip() for u in uris if u is not None)
    return list(dict.fromkeys(u for u in stripped if u))


class TitleCache:
    """Populate and query the title cache for one configuration.

    The store and the cache are built lazily from *config* unless given.
    """

    def __init__(
        self,
        config: Optional[TitleCacheConfig] = None,
        *,
        store: Optional[TripleStoreClient] = None,
        cache: Optional[KVStore] = None,
    ) -> None:
        self.config = config or TitleCacheConfig()
        self._store = store
        self._cache = cache

    # ── collaborators ─────────────────────────────────────────────────

    @property
    def cache(self) -> KVStore:
        if self._cache is None:
            self._cache = create_cache(self.config.cache)
        return self._cache

    @property
    def store(self) -> TripleStoreClient:
        if self._store is None:
            self._store = create_store(self.config.store)
        return self._store

    # ── public API ────────────────────────────────────────────────────

    def run(self, request: TitleRequest) -> Envelope:
        """Dispatch one request by its ``action``."""
        try:
            if not request.action:
                raise NoActionGiven("No or empty action parameter given")
            # The cache is needed by both actions; a bad backend is
            # reported before the action is checked.
            _ = self.cache
            if request.action not in ACTIONS:
                raise UnknownAction(
                    f'Unknown action parameter "{request.action}" given. '
                    'Try "get" or "create".'
                )
        except TitleCacheError as exc:
            return self._error(exc)

        if request.action == "create":
            return self.populate(graph=request.graph)
        return self.resolve(request.uris, graph=request.graph, lang=request.lang)

    def populate(self, graph: Optional[str] = None) -> Envelope:
        """Rebuild the cache for *graph* (the configured graph by default)."""
        graph = graph or self.config.graph
        try:
            result = populate(graph, self.store, self.cache, self.config)
        except TitleCacheError as exc:
            return self._error(exc)

        verb = "updated" if result.updated else "created"
        return Envelope.success(
            data=result.model_dump(exclude={"updated"}),
            message=(
                f"Successfully {verb} the cache. You can send requests now "
                "using: ?action=get&uris=uri1,uri2,..."
            ),
        )

    def resolve(
        self,
        uris: Iterable[str],
        graph: Optional[str] = None,
        lang: Optional[str] = None,
    ) -> Envelope:
        """Return the best title per URI for *lang* (default language if unset)."""
        graph = graph or self.config.graph
        try:
            titles = resolve(
                graph,
                clean_uris(uris),
                lang or self.config.default_lang,
                self.config.default_lang,
                self.cache,
            )
        except TitleCacheError as exc:
            return self._error(exc)
        return Envelope.success(data=titles)

    @staticmethod
    def _error(exc: TitleCacheError) -> Envelope:
        logger.warning("%s: %s", exc.code, exc.message)
        return Envelope.error(exc.message)
