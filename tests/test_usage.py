"""Tests for usage estimation, ledger writes and summaries."""

from datetime import datetime, timedelta, timezone

import pytest

from press_engine.core.config import LimitsMode
from press_engine.core.schemas_usage import UsageEvent
from press_engine.core.usage import (
    UsageLedger,
    build_usage_row,
    estimate_cost,
    estimate_tokens,
    summarize_usage,
)
from tests.fakes.fake_stores import FakeUsageStore


@pytest.mark.parametrize(
    "chars,tokens",
    [(None, 0), (0, 0), (1, 1), (4, 1), (5, 2), (400, 100), (401, 101)],
)
def test_estimate_tokens(chars, tokens):
    assert estimate_tokens(chars) == tokens


def test_estimate_cost():
    assert estimate_cost("gpt-4o", 1_000_000, 0) == pytest.approx(2.5)
    assert estimate_cost("gpt-4o-2024-08-06", 0, 1_000_000) == pytest.approx(10.0)
    assert estimate_cost("gpt-4o-mini", 1_000_000, 1_000_000) == pytest.approx(0.75)
    assert estimate_cost("mystery-model", 1000, 1000) == 0.0
    assert estimate_cost(None, 1000, 1000) is None


def test_build_usage_row():
    event = UsageEvent(
        user_id="u1",
        event_type="ai_generate",
        prompt_chars=4000,
        completion_chars=2000,
        model="gpt-4o",
        latency_ms=1200,
        metadata={"rag": True},
    )

    row = build_usage_row(event)

    assert row["tokens_prompt"] == 1000
    assert row["tokens_completion"] == 500
    assert row["cost_usd"] == pytest.approx(0.0075)
    assert row["meta"] == {"rag": True}
    assert row["event_type"] == "ai_generate"


def test_build_usage_row_keeps_caller_cost():
    event = UsageEvent(user_id="u1", event_type="rag_search", prompt_chars=10, cost_usd=0.5)
    assert build_usage_row(event)["cost_usd"] == 0.5


@pytest.mark.asyncio
async def test_ledger_records_and_increments():
    store = FakeUsageStore()
    ledger = UsageLedger(store)

    await ledger.record(UsageEvent(user_id="u1", event_type="doc_ingest", prompt_chars=100))
    await ledger.increment_tokens("u1", 25)

    assert len(store.events) == 1
    assert store.events[0]["user_id"] == "u1"
    assert store.tokens["u1"] == 25


@pytest.mark.asyncio
async def test_ledger_swallows_store_failures():
    store = FakeUsageStore()
    store.record_error = RuntimeError("insert failed")
    store.increment_error = RuntimeError("rpc failed")
    ledger = UsageLedger(store)

    await ledger.record(UsageEvent(user_id="u1", event_type="ai_generate"))
    await ledger.increment_tokens("u1", 10)

    assert store.events == []


@pytest.mark.asyncio
async def test_ledger_skips_writes_in_bypass_mode():
    store = FakeUsageStore()
    ledger = UsageLedger(store, mode=LimitsMode.FULL_BYPASS)

    await ledger.record(UsageEvent(user_id="u1", event_type="ai_generate"))
    await ledger.increment_tokens("u1", 10)

    assert store.events == []
    assert store.tokens == {}


@pytest.mark.asyncio
async def test_ledger_writes_in_soft_mode():
    store = FakeUsageStore()
    await UsageLedger(store, mode=LimitsMode.SOFT).record(UsageEvent(user_id="u1", event_type="ai_generate"))
    assert len(store.events) == 1


def test_usage_event_is_immutable():
    event = UsageEvent(user_id="u1", event_type="ai_generate")
    with pytest.raises(Exception):
        event.user_id = "u2"


def test_summarize_usage_rolling_windows():
    now = datetime(2026, 3, 31, 12, 0, tzinfo=timezone.utc)
    rows = [
        {"tokens_prompt": 10, "tokens_completion": 5, "created_at": (now - timedelta(hours=1)).isoformat()},
        {"tokens_prompt": 100, "tokens_completion": 50, "created_at": (now - timedelta(days=3)).isoformat()},
        {"tokens_prompt": 1000, "tokens_completion": 500, "created_at": (now - timedelta(days=45)).isoformat()},
        {"tokens_prompt": None, "tokens_completion": None, "created_at": "2026-03-31T11:00:00Z"},
        {"tokens_prompt": 7, "tokens_completion": 7, "created_at": "garbage"},
    ]

    summary = summarize_usage(rows, plan_limit=200_000, now=now)

    assert (summary.day.prompt, summary.day.completion, summary.day.events) == (10, 5, 2)
    assert (summary.month.prompt, summary.month.completion, summary.month.events) == (110, 55, 3)
    assert summary.plan_limit == 200_000
