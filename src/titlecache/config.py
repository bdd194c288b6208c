"""Immutable configuration for populate and resolve runs.

A :class:`TitleCacheConfig` is built once per invocation by merging
override mappings (from a YAML file, a batch job or the request) over
the defaults, and is then passed explicitly to the store and cache
factories and to the populate/resolve functions.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from titlecache.errors import BatchFileError, ConfigError

logger = logging.getLogger(__name__)

__all__ = [
    "DEFAULT_TITLE_PREDICATES",
    "CacheConfig",
    "StoreConfig",
    "TitleCacheConfig",
    "deep_merge",
    "load_config_file",
    "merge_config",
]

# Order defines priority: index 0 is the preferred title predicate.
# Changing it invalidates every populated graph; re-create their caches.
DEFAULT_TITLE_PREDICATES: tuple[str, ...] = (
    "http://purl.org/dc/elements/1.1/title",
    "http://www.w3.org/2000/01/rdf-schema#label",
    "http://purl.org/dc/terms/title",
    "http://purl.org/dc/terms/alternative",
    "http://udfr.org/onto#documentTitle",
    "http://www.w3.org/2004/02/skos/core#prefLabel",
    "http://www.w3.org/2004/02/skos/core#altLabel",
    "http://www.w3.org/2004/02/skos/core#hiddenLabel",
)


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")


# ── Store ─────────────────────────────────────────────────────────


class SparqlEndpointSettings(_Frozen):
    """Connection settings for a SPARQL protocol endpoint."""

    endpoint: str = ""
    username: Optional[str] = None
    password: Optional[str] = None
    method: str = "GET"
    timeout: float = Field(60.0, gt=0)
    max_retries: int = Field(1, ge=1)


class RdflibSettings(_Frozen):
    """Local RDF files loaded into an in-process dataset."""

    paths: tuple[str, ...] = ()
    format: Optional[str] = None


class StoreConfig(_Frozen):
    backend: str = "virtuoso"
    virtuoso: SparqlEndpointSettings = SparqlEndpointSettings(
        endpoint="http://localhost:8890/sparql",
    )
    sparql: SparqlEndpointSettings = SparqlEndpointSettings()
    rdflib: RdflibSettings = RdflibSettings()


# ── Cache ─────────────────────────────────────────────────────────


class SQLiteSettings(_Frozen):
    # ":memory:" works, but is not shared between processes.
    path: str = "titlecache.db"
    timeout: float = Field(5.0, gt=0)


class RedisSettings(_Frozen):
    host: str = "localhost"
    port: int = 6379
    db: int = 0
    password: Optional[str] = None
    timeout: float = Field(5.0, gt=0)


class CacheConfig(_Frozen):
    backend: str = "sqlite"
    sqlite: SQLiteSettings = SQLiteSettings()
    redis: RedisSettings = RedisSettings()
    # Seconds; None keeps entries until the next populate overwrites them.
    ttl: Optional[int] = Field(None, gt=0)


# ── Top level ─────────────────────────────────────────────────────


class TitleCacheConfig(_Frozen):
    """Complete configuration for one populate or resolve invocation."""

    graph: str = "http://example.org/"
    default_lang: str = "en"
    title_predicates: tuple[str, ...] = DEFAULT_TITLE_PREDICATES
    store: StoreConfig = StoreConfig()
    cache: CacheConfig = CacheConfig()


def deep_merge(base: Mapping[str, Any], overrides: Mapping[str, Any]) -> dict[str, Any]:
    """Recursively merge *overrides* into a copy of *base*.

    Nested mappings are merged key by key; any other value (including
    lists) replaces the base value.
    """
    merged = dict(base)
    for key, value in overrides.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def merge_config(
    *overrides: Optional[Mapping[str, Any]],
    base: Optional[TitleCacheConfig] = None,
) -> TitleCacheConfig:
    """Return a new config with each override mapping applied in order."""
    data = (base or TitleCacheConfig()).model_dump()
    for layer in overrides:
        if not layer:
            continue
        if not isinstance(layer, Mapping):
            raise ConfigError(
                f"Configuration overrides must be a mapping, got {type(layer).__name__}"
            )
        data = deep_merge(data, layer)
    try:
        return TitleCacheConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc


def load_config_file(path: str | Path) -> dict[str, Any]:
    """Load a YAML override mapping from *path*."""
    path = Path(path)
    if not path.is_file():
        raise BatchFileError(f"Unable to open file: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise BatchFileError(f"Unable to parse the YAML string: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise BatchFileError(f"Configuration file must hold a mapping: {path}")
    logger.debug("Loaded configuration overrides from %s", path)
    return data
