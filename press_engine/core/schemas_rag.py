"""Pydantic schemas for documents, chunks and retrieval results."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class RetrievalStrategy(str, Enum):
    AUTO = "auto"
    SEMANTIC_ONLY = "semantic-only"
    KEYWORD_ONLY = "keyword-only"


class DocumentIn(BaseModel):
    """Raw document submitted for ingestion."""

    source: str = Field(..., min_length=1, description="e.g. company_profile, past_release")
    title: str | None = None
    content: str = Field(..., min_length=1)
    parent_id: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class RawDocument(BaseModel):
    id: str
    source: str
    title: str | None = None
    content: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    metadata: dict[str, Any] = Field(default_factory=dict)


class Chunk(BaseModel):
    """Fixed-length slice of a document. Immutable once created."""

    model_config = ConfigDict(frozen=True)

    id: str
    parent_id: str
    content: str
    index: int


class ScoredDocument(BaseModel):
    """A stored document row ranked by a search strategy."""

    id: str
    content: str
    source: str = ""
    title: str | None = None
    score: float | None = None


class RetrievedFragment(BaseModel):
    """Context fragment handed to a prompt, with provenance."""

    content: str
    source_id: str
    score: float | None = None
    source: str = ""
    title: str | None = None
    stage: str = Field(default="", description="Retrieval stage that produced the fragment")


class IngestResult(BaseModel):
    parent_id: str
    inserted: int
    chunk_ids: list[str] = Field(default_factory=list)
    latency_ms: int | None = None


class SearchResponse(BaseModel):
    mode: str
    results: list[ScoredDocument] = Field(default_factory=list)
    latency_ms: int
