"""
Pydantic models for cached titles and graph bookkeeping.

The serialized shape of :class:`SubjectTitleEntry` and :class:`GraphStats`
is what the cache backends store, so field names are part of the
on-cache format.
"""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TitleCandidate(BaseModel):
    """One literal title found for a subject."""

    uri: str = Field(..., description="Predicate URI the title was found with")
    value: str = Field(..., description="Literal value")
    lang: Optional[str] = Field(None, description="Language tag of the literal")

    @field_validator("lang")
    @classmethod
    def empty_lang_is_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None


class SubjectTitleEntry(BaseModel):
    """Cached, priority-ordered title candidates for one subject in one graph."""

    titles: List[TitleCandidate] = Field(..., description="Ranked candidates")

    @field_validator("titles")
    @classmethod
    def validate_titles(cls, v: List[TitleCandidate]) -> List[TitleCandidate]:
        """An entry is only written for subjects that have a title."""
        if not v:
            raise ValueError("Title entry must contain at least one candidate")
        return v

    def to_cache(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class GraphStats(BaseModel):
    """Bookkeeping record for one populated graph.

    Times are unix seconds. ``updated_time`` stays ``0`` until the graph
    is refreshed a second time and ``asked_time`` is unset until the
    first lookup.
    """

    uri: str
    store: str
    counts: int = Field(0, ge=0)
    created_time: int
    updated_time: int = 0
    asked_time: Optional[int] = None

    def to_cache(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class PopulateSummary(BaseModel):
    """Outcome of a successful populate run."""

    backend: str
    cache: str
    graph: str
    default_lang: str
    default_title_uri: str
    duration: float = Field(..., ge=0, description="Wall time in seconds")
    counts: int = Field(..., ge=0)


class Envelope(BaseModel):
    """Result envelope returned by every outward call."""

    status: Literal["success", "error"]
    data: Any = None
    message: Optional[str] = None

    @classmethod
    def success(cls, data: Any = None, message: Optional[str] = None) -> "Envelope":
        return cls(status="success", data=data, message=message)

    @classmethod
    def error(cls, message: str) -> "Envelope":
        return cls(status="error", data=None, message=message)

    @property
    def ok(self) -> bool:
        return self.status == "success"


class TitleRequest(BaseModel):
    """One parsed request, from the HTTP query, the CLI or a batch file."""

    model_config = ConfigDict(frozen=True)

    action: Optional[str] = None
    graph: Optional[str] = None
    uris: List[str] = Field(default_factory=list)
    lang: Optional[str] = None
