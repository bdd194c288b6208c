"""Error taxonomy for the title cache.

Every error carries a stable ``code`` so that outer layers (CLI, HTTP)
can report it without inspecting the class hierarchy.
"""

from __future__ import annotations


class TitleCacheError(Exception):
    """Base exception for title cache errors."""

    code = "TitleCacheError"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NoActionGiven(TitleCacheError):
    code = "NoActionGiven"


class UnknownAction(TitleCacheError):
    code = "UnknownAction"


class UnknownCacheBackend(TitleCacheError):
    code = "UnknownCacheBackend"


class UnknownStoreBackend(TitleCacheError):
    code = "UnknownStoreBackend"


class StoreInitError(TitleCacheError):
    """Raised when a triple store client cannot be constructed."""

    code = "StoreInitError"


class GraphNotFound(TitleCacheError):
    """Raised when the store holds no triples for the requested graph."""

    code = "GraphNotFound"


class GraphNotCached(TitleCacheError):
    """Raised when titles are requested before the graph was populated."""

    code = "GraphNotCached"


class NoURIsGiven(TitleCacheError):
    code = "NoURIsGiven"


class StoreError(TitleCacheError):
    """Raised when a store query fails or times out."""

    code = "StoreError"


class CacheError(TitleCacheError):
    """Raised when the cache backend fails or times out."""

    code = "CacheError"


class BatchFileError(TitleCacheError):
    """Raised for unreadable batch files and URI lists."""

    code = "BatchFileError"


class ConfigError(TitleCacheError):
    """Raised when configuration overrides do not validate."""

    code = "ConfigError"
