"""Usage ledger: token estimates, cost estimates and fire-and-forget event logging.

Token counts are estimated from character counts (about 4 characters per
token) until a real tokenizer is wired in. Stored usage numbers depend on
this formula, so changing it changes how historical and new usage compare.
"""

import asyncio
import math
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Any

from press_engine.core.config import LimitsMode, Settings, get_settings
from press_engine.core.logging import get_logger
from press_engine.core.schemas_usage import UsageEvent, UsageSummary, UsageWindow
from press_engine.core.stores import UsageLedgerStore

logger = get_logger(__name__)

CHARS_PER_TOKEN = 4

# Pricing per 1M tokens: (input, output)
MODEL_PRICING: dict[str, tuple[float, float]] = {
    "gpt-4o": (2.50, 10.0),
    "gpt-4o-mini": (0.15, 0.60),
    "gpt-4.1": (2.0, 8.0),
    "gpt-4.1-mini": (0.40, 1.60),
    "text-embedding-3-small": (0.02, 0.0),
    "text-embedding-3-large": (0.13, 0.0),
}


def estimate_tokens(char_count: int | None) -> int:
    """Approximate token count: ceil(chars / 4); 0 for empty input."""
    if not char_count or char_count <= 0:
        return 0
    return math.ceil(char_count / CHARS_PER_TOKEN)


def estimate_cost(model: str | None, tokens_input: int, tokens_output: int) -> float | None:
    """Estimate cost in USD; None without a model, 0.0 for unpriced models."""
    if not model:
        return None
    pricing = MODEL_PRICING.get(model)
    if not pricing:
        # Dated variants, e.g. gpt-4o-2024-08-06
        for key in sorted(MODEL_PRICING, key=len, reverse=True):
            if model.startswith(key):
                pricing = MODEL_PRICING[key]
                break
    if not pricing:
        logger.warning(f"No pricing found for model '{model}', recording cost as 0")
        return 0.0

    input_rate, output_rate = pricing
    cost = (tokens_input * input_rate / 1_000_000) + (tokens_output * output_rate / 1_000_000)
    return round(cost, 6)


def build_usage_row(event: UsageEvent) -> dict[str, Any]:
    """Ledger row for a usage event (token fields derived from char counts)."""
    tokens_prompt = estimate_tokens(event.prompt_chars) if event.prompt_chars is not None else None
    tokens_completion = (
        estimate_tokens(event.completion_chars) if event.completion_chars is not None else None
    )
    cost = event.cost_usd
    if cost is None:
        cost = estimate_cost(event.model, tokens_prompt or 0, tokens_completion or 0)

    return {
        "event_type": event.event_type,
        "tokens_prompt": tokens_prompt,
        "tokens_completion": tokens_completion,
        "cost_usd": cost,
        "latency_ms": event.latency_ms,
        "model": event.model,
        "meta": event.metadata,
        "created_at": event.occurred_at.isoformat(),
    }


class UsageLedger:
    """Appends usage events and bumps the per-user token counter.

    Store failures are logged and swallowed: recording usage must never fail
    the operation being recorded. Nothing is written in full-bypass mode.
    """

    def __init__(self, store: UsageLedgerStore, mode: LimitsMode = LimitsMode.OFF):
        self.store = store
        self.mode = mode

    @classmethod
    def from_settings(
        cls, settings: Settings | None = None, store: UsageLedgerStore | None = None
    ) -> "UsageLedger":
        settings = settings or get_settings()
        if store is None:
            from press_engine.db import usage as store
        return cls(store=store, mode=settings.DISABLE_LIMITS)

    async def record(self, event: UsageEvent) -> None:
        if self.mode == LimitsMode.FULL_BYPASS:
            return
        try:
            row = build_usage_row(event)
            await asyncio.to_thread(self.store.record_usage_event, event.user_id, row)
            logger.debug(
                f"Usage logged: {event.event_type} model={event.model} "
                f"tokens={row['tokens_prompt']}+{row['tokens_completion']}"
            )
        except Exception as e:
            logger.error(f"Failed to log usage event for user {event.user_id}: {e}")

    async def increment_tokens(self, user_id: str, delta: int) -> None:
        if self.mode == LimitsMode.FULL_BYPASS or delta <= 0:
            return
        try:
            await asyncio.to_thread(self.store.increment_user_tokens, user_id, delta)
        except Exception as e:
            logger.error(f"Failed to increment tokens for user {user_id}: {e}")


def _created_at(row: dict[str, Any]) -> datetime | None:
    value = row.get("created_at")
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    if not isinstance(value, datetime):
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def summarize_usage(
    rows: list[dict[str, Any]],
    plan_limit: int,
    now: datetime | None = None,
) -> UsageSummary:
    """
    Aggregate ledger rows over rolling 24-hour and 30-day windows.

    Args:
        rows: Usage rows with tokens_prompt, tokens_completion, created_at
        plan_limit: Monthly token ceiling to report alongside
        now: Reference time (defaults to current UTC time)

    Returns:
        UsageSummary with day and month windows
    """
    now = now or datetime.now(timezone.utc)
    since_day = now - timedelta(days=1)
    since_month = now - timedelta(days=30)

    day = UsageWindow()
    month = UsageWindow()
    for row in rows:
        created = _created_at(row)
        if created is None:
            continue
        prompt = row.get("tokens_prompt") or 0
        completion = row.get("tokens_completion") or 0
        if created >= since_month:
            month.prompt += prompt
            month.completion += completion
            month.events += 1
        if created >= since_day:
            day.prompt += prompt
            day.completion += completion
            day.events += 1

    return UsageSummary(day=day, month=month, plan_limit=plan_limit)


@lru_cache(maxsize=1)
def get_usage_ledger() -> UsageLedger:
    """Default ledger built from settings (cached singleton)."""
    return UsageLedger.from_settings()
