"""Typed models for the search aggregation pipeline."""

from __future__ import annotations

import hashlib
from datetime import datetime
from typing import Dict, List, Literal, Optional, Sequence

from pydantic import BaseModel, Field, field_validator, model_validator

from aggregator.utils.url import canonicalize_url

EngineStatus = Literal["ok", "error", "timeout", "cancelled"]
ExtractionMethod = Literal["api", "json_extraction", "html"]
Feature = Literal["pagination", "sorting", "filtering", "thumbnail_preview"]

TAG_MIN_LENGTH = 2
TAG_MAX_LENGTH = 49


def generate_result_id(url: str, source: str) -> str:
    """Deterministic result ID: first 8 bytes of sha256(canonical url + source), hex."""
    digest = hashlib.sha256(f"{canonicalize_url(url)}{source}".encode("utf-8")).digest()
    return digest[:8].hex()


def normalize_tags(values: Sequence[str] | str | None) -> List[str]:
    """Lowercase, trim, length-bound and de-duplicate tags in first-seen order."""
    if not values:
        return []
    if isinstance(values, str):
        values = values.split(",")

    seen: Dict[str, None] = {}
    for value in values:
        tag = " ".join(str(value).split()).lower()
        if TAG_MIN_LENGTH <= len(tag) <= TAG_MAX_LENGTH and tag not in seen:
            seen[tag] = None
    return list(seen)


class VideoResult(BaseModel):
    """One normalized search hit.

    Construction fails (pydantic ``ValidationError``) when title or url is
    blank, which is how item parsers discard malformed items.
    """

    id: str = ""
    title: str
    url: str
    thumbnail: str = ""
    preview_url: Optional[str] = None
    download_url: Optional[str] = None
    duration: Optional[str] = None
    duration_seconds: Optional[int] = Field(None, ge=0)
    views: Optional[str] = None
    views_count: Optional[int] = Field(None, ge=0)
    rating: Optional[float] = Field(None, ge=0)
    quality: Optional[str] = None
    published: Optional[datetime] = None
    tags: List[str] = Field(default_factory=list)
    performer: Optional[str] = None
    is_premium: bool = False
    source: str
    source_display: str = ""

    @field_validator("title", "url", mode="before")
    @classmethod
    def _require_text(cls, value: Optional[str]) -> str:
        text = " ".join(str(value or "").split())
        if not text:
            raise ValueError("must not be blank")
        return text

    @field_validator("tags", mode="before")
    @classmethod
    def _normalize_tags(cls, value: Sequence[str] | str | None) -> List[str]:
        return normalize_tags(value)

    @model_validator(mode="after")
    def _assign_id(self) -> "VideoResult":
        if not self.id:
            self.id = generate_result_id(self.url, self.source)
        if not self.source_display:
            self.source_display = self.source
        return self


class EngineCapabilities(BaseModel):
    """Fields an engine can reliably populate."""

    has_preview: bool = False
    has_download: bool = False
    has_duration: bool = False
    has_views: bool = False
    has_rating: bool = False
    has_quality: bool = False
    has_upload_date: bool = False
    preview_source: Optional[str] = None
    api_type: ExtractionMethod = "html"


class EngineDescriptor(BaseModel):
    name: str
    display_name: str
    base_url: str
    tier: int = Field(..., ge=1)
    method: ExtractionMethod
    capabilities: EngineCapabilities
    features: List[Feature] = Field(default_factory=list)
    enabled: bool = True
    short_code: Optional[str] = None


class ParsedQuery(BaseModel):
    """Structured form of a raw query after bang parsing."""

    original: str = ""
    query: str = ""
    engines: List[str] = Field(default_factory=list)
    exact_phrases: List[str] = Field(default_factory=list)
    exclusions: List[str] = Field(default_factory=list)
    performers: List[str] = Field(default_factory=list)
    has_bang: bool = False
    invalid_bang: Optional[str] = None

    def has_operators(self) -> bool:
        return bool(self.exact_phrases or self.exclusions or self.performers)

    def upstream_query(self) -> str:
        """Text sent to engines: cleaned words plus any exact phrases."""
        parts = [self.query] + self.exact_phrases
        return " ".join(part for part in parts if part).strip()


class EngineStatusSnapshot(BaseModel):
    engine: str
    status: EngineStatus
    result_count: int = 0
    latency_ms: Optional[int] = None
    message: Optional[str] = None


class Pagination(BaseModel):
    page: int = 1
    limit: int = 50
    total: int = 0
    pages: int = 1


class SearchResponse(BaseModel):
    """Buffered search envelope."""

    query: str
    search_query: str
    results: List[VideoResult] = Field(default_factory=list)
    engines_used: List[str] = Field(default_factory=list)
    engines_failed: List[str] = Field(default_factory=list)
    engine_statuses: List[EngineStatusSnapshot] = Field(default_factory=list)
    search_time_ms: int = 0
    has_bang: bool = False
    bang_engines: List[str] = Field(default_factory=list)
    invalid_bang: Optional[str] = None
    related_searches: List[str] = Field(default_factory=list)
    pagination: Pagination = Field(default_factory=Pagination)


class EngineBatch(BaseModel):
    """One ``result`` event of a streamed search: a single engine's outcome."""

    engine: str
    status: EngineStatus
    results: List[VideoResult] = Field(default_factory=list)
    remaining: int = 0
    message: Optional[str] = None


class StreamSummary(BaseModel):
    """Terminal ``done`` event of a streamed search."""

    query: str
    search_query: str
    engines_used: List[str] = Field(default_factory=list)
    engines_failed: List[str] = Field(default_factory=list)
    total: int = 0
    search_time_ms: int = 0
    has_bang: bool = False
    bang_engines: List[str] = Field(default_factory=list)
    invalid_bang: Optional[str] = None


class BangInfo(BaseModel):
    bang: str
    engine_name: str
    display_name: str
    short_code: str
    aliases: List[str] = Field(default_factory=list)


class Suggestion(BaseModel):
    """Term or performer autocomplete candidate. ``score`` only orders candidates and is never serialized."""

    term: str
    type: Literal["search", "performer"] = "search"
    score: float = Field(0.0, exclude=True)
