"""Schemas for usage accounting, quota checks and rate limiting."""

from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

UsageEventType = Literal["ai_generate", "rag_search", "doc_ingest", "ad_generate", "image_generate"]


class UsageEvent(BaseModel):
    """Append-only ledger entry for one AI-invoking operation."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    event_type: UsageEventType
    prompt_chars: int | None = None
    completion_chars: int | None = None
    model: str | None = None
    latency_ms: int | None = None
    cost_usd: float | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    occurred_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class QuotaResult(BaseModel):
    allowed: bool
    used: int
    limit: int
    bypass: bool = False
    soft: bool = False
    soft_exceeded: bool = False
    error: str | None = None


class RateLimitDecision(BaseModel):
    allowed: bool
    limit: int
    remaining: int
    reset_at: int | None = Field(default=None, description="Epoch ms when the window resets")
    reset_in_ms: int | None = None
    mode: str = "off"
    soft_exceeded: bool = False


class UsageWindow(BaseModel):
    prompt: int = 0
    completion: int = 0
    events: int = 0


class UsageSummary(BaseModel):
    day: UsageWindow
    month: UsageWindow
    plan_limit: int
