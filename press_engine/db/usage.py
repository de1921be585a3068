"""Usage ledger and per-user token counter (usage_events, user_profiles tables)."""

from datetime import datetime
from typing import Any

from press_engine.core.logging import get_logger
from press_engine.db.supabase_client import get_supabase

logger = get_logger(__name__)


def record_usage_event(user_id: str, row: dict[str, Any]) -> None:
    """Append one usage event. Rows are never updated or deleted."""
    supabase = get_supabase()
    supabase.table("usage_events").insert({**row, "user_id": str(user_id)}).execute()


def list_usage_events(user_id: str, since: datetime) -> list[dict[str, Any]]:
    """
    List a user's usage events created at or after `since`.

    Returns:
        Rows with event_type, tokens_prompt, tokens_completion, created_at
    """
    supabase = get_supabase()

    try:
        response = (
            supabase.table("usage_events")
            .select("event_type, tokens_prompt, tokens_completion, model, created_at")
            .eq("user_id", str(user_id))
            .gte("created_at", since.isoformat())
            .execute()
        )
        return response.data or []

    except Exception as e:
        logger.error(f"Failed to list usage events for user {user_id}: {e}")
        raise


def get_user_profile(user_id: str) -> dict[str, Any]:
    """
    Fetch a user's profile, creating it with a zero token counter if missing.

    Returns:
        Profile dict with monthly_tokens_used
    """
    supabase = get_supabase()

    response = (
        supabase.table("user_profiles")
        .select("user_id, monthly_tokens_used")
        .eq("user_id", str(user_id))
        .execute()
    )
    if response.data:
        return response.data[0]

    created = (
        supabase.table("user_profiles")
        .insert({"user_id": str(user_id), "monthly_tokens_used": 0})
        .execute()
    )
    logger.info(f"Created profile for user {user_id}")
    return created.data[0] if created.data else {"user_id": str(user_id), "monthly_tokens_used": 0}


def increment_user_tokens(user_id: str, delta: int) -> None:
    """Atomically add `delta` tokens to the user's monthly counter."""
    if delta <= 0:
        return
    supabase = get_supabase()
    supabase.rpc(
        "increment_user_tokens",
        {"p_user_id": str(user_id), "p_delta": int(delta)},
    ).execute()
