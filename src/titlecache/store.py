"""Triple store clients used to populate the cache.

Core code only depends on :class:`TripleStoreClient`. Concrete clients
are chosen by name in :func:`create_store`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, Protocol, runtime_checkable

from rdflib import Dataset, Literal, URIRef
from rdflib.term import _is_valid_uri
from rdflib.util import guess_format

from titlecache.config import RdflibSettings, SparqlEndpointSettings, StoreConfig
from titlecache.errors import StoreError, StoreInitError, UnknownStoreBackend
from titlecache.sparql_helper import EndpointError, SparqlHelper

logger = logging.getLogger(__name__)

__all__ = [
    "RdflibStore",
    "SparqlEndpointStore",
    "TitleRow",
    "TripleStoreClient",
    "build_ask_query",
    "build_title_query",
    "check_iri",
    "create_store",
    "is_valid_iri",
]


@dataclass(frozen=True)
class TitleRow:
    """One ``?s ?p ?o`` solution of a title query."""

    subject: str
    predicate: str
    object: str
    language: Optional[str] = None
    is_literal: bool = True


@runtime_checkable
class TripleStoreClient(Protocol):
    """Capability consumed by the populator."""

    name: str

    def ask(self, graph: str) -> bool:
        """Return True if *graph* holds at least one triple."""
        ...

    def query(self, sparql: str) -> list[TitleRow]:
        """Run a SELECT with ``?s ?p ?o`` projections."""
        ...


def is_valid_iri(value: str) -> bool:
    """True when *value* can be written as an IRI reference in SPARQL."""
    if not value or any(c.isspace() for c in value):
        return False
    return _is_valid_uri(value)


def check_iri(value: str) -> str:
    """Return *value*, or raise :class:`StoreError` if it is not a usable IRI."""
    if not is_valid_iri(value):
        raise StoreError(f'Invalid IRI "{value}"')
    return value


def build_ask_query(graph: str) -> str:
    """ASK whether a named graph holds any triple."""
    check_iri(graph)
    return f"ASK WHERE {{ GRAPH <{graph}> {{ ?s ?p ?o }} }}"


def build_title_query(graph: str, predicates: Iterable[str]) -> str:
    """SELECT every triple of *graph* whose predicate is a title predicate."""
    check_iri(graph)
    members = ", ".join(f"<{check_iri(p)}>" for p in predicates)
    return (
        "SELECT ?s ?p ?o WHERE { "
        f"GRAPH <{graph}> {{ ?s ?p ?o . FILTER (?p IN ({members})) }} "
        "}"
    )


# ── SPARQL protocol endpoint ──────────────────────────────────────


class SparqlEndpointStore:
    """Remote store reached over the SPARQL HTTP protocol (e.g. Virtuoso)."""

    def __init__(self, settings: SparqlEndpointSettings, name: str = "sparql") -> None:
        if not settings.endpoint:
            raise StoreInitError(
                f'Store "{name}" initiating failed: no endpoint configured.'
            )
        self.name = name
        auth = None
        if settings.username:
            auth = (settings.username, settings.password or "")
        self._helper = SparqlHelper(
            settings.endpoint,
            use_post=settings.method.upper() == "POST",
            max_retries=settings.max_retries,
            timeout=settings.timeout,
            auth=auth,
        )

    def ask(self, graph: str) -> bool:
        try:
            return self._helper.ask(build_ask_query(graph))
        except EndpointError as exc:
            raise StoreError(f'Store "{self.name}" query failed: {exc}') from exc

    def query(self, sparql: str) -> list[TitleRow]:
        try:
            result = self._helper.select(sparql)
        except EndpointError as exc:
            raise StoreError(f'Store "{self.name}" query failed: {exc}') from exc

        rows: list[TitleRow] = []
        for binding in result.get("results", {}).get("bindings", []):
            s, p, o = binding.get("s"), binding.get("p"), binding.get("o")
            if not (s and p and o):
                continue
            rows.append(
                TitleRow(
                    subject=s["value"],
                    predicate=p["value"],
                    object=o["value"],
                    language=o.get("xml:lang") or None,
                    # Virtuoso still emits the SPARQL 1.0 "typed-literal"
                    is_literal=o.get("type") in ("literal", "typed-literal"),
                )
            )
        return rows


# ── Local rdflib dataset ──────────────────────────────────────────


class RdflibStore:
    """In-process store over an rdflib :class:`~rdflib.Dataset`."""

    def __init__(self, dataset: Dataset, name: str = "rdflib") -> None:
        self.name = name
        self.dataset = dataset

    @classmethod
    def from_settings(cls, settings: RdflibSettings, name: str = "rdflib") -> "RdflibStore":
        """Load every configured file into a fresh dataset."""
        dataset = Dataset()
        for path in settings.paths:
            fmt = settings.format or guess_format(path) or "trig"
            if not Path(path).is_file():
                raise StoreInitError(f'Store "{name}" initiating failed: no such file {path}')
            try:
                dataset.parse(path, format=fmt)
            except Exception as exc:
                raise StoreInitError(
                    f'Store "{name}" initiating failed: cannot parse {path}: {exc}'
                ) from exc
            logger.debug("Loaded %s into rdflib dataset", path)
        return cls(dataset, name=name)

    def ask(self, graph: str) -> bool:
        return bool(self._run(build_ask_query(graph)).askAnswer)

    def query(self, sparql: str) -> list[TitleRow]:
        rows: list[TitleRow] = []
        for row in self._run(sparql):
            s, p, o = row[0], row[1], row[2]
            is_literal = isinstance(o, Literal)
            rows.append(
                TitleRow(
                    subject=str(s),
                    predicate=str(p),
                    object=str(o),
                    language=o.language if is_literal else None,
                    is_literal=is_literal,
                )
            )
        return rows

    def _run(self, sparql: str):
        try:
            return self.dataset.query(sparql)
        except Exception as exc:
            raise StoreError(f'Store "{self.name}" query failed: {exc}') from exc

    def add_title(self, graph: str, subject: str, predicate: str, value: Literal) -> None:
        """Add one triple to *graph*; convenience for fixtures and scripts."""
        self.dataset.graph(URIRef(graph)).add((URIRef(subject), URIRef(predicate), value))


def create_store(config: StoreConfig) -> TripleStoreClient:
    """Instantiate the store client named by ``config.backend``."""
    backend = config.backend
    if backend in ("virtuoso", "sparql"):
        return SparqlEndpointStore(getattr(config, backend), name=backend)
    if backend == "rdflib":
        return RdflibStore.from_settings(config.rdflib)
    raise UnknownStoreBackend(f'Unknown store backend type "{backend}"')
