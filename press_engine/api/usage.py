"""API endpoints for usage summaries and internal AI metrics."""

from fastapi import APIRouter, Depends, HTTPException

from press_engine.api.deps import get_user_id
from press_engine.core.config import Settings, get_settings
from press_engine.core.rate_limiter import RateLimiter, get_rate_limiter
from press_engine.core.schemas_usage import UsageSummary
from press_engine.core.tracing import MetricsBuffer, get_metrics_buffer
from press_engine.services.operations import PressOperations, get_operations

router = APIRouter()


@router.get("/usage/summary", response_model=UsageSummary)
async def usage_summary(
    user_id: str = Depends(get_user_id),
    ops: PressOperations = Depends(get_operations),
) -> UsageSummary:
    """Token usage over the last 24 hours and 30 days, with the plan limit."""
    return await ops.usage_summary(user_id)


@router.get("/_internal/ai-metrics")
async def ai_metrics(
    user_id: str = Depends(get_user_id),
    settings: Settings = Depends(get_settings),
    buffer: MetricsBuffer = Depends(get_metrics_buffer),
    limiter: RateLimiter = Depends(get_rate_limiter),
) -> dict:
    """
    Drain chain run metrics and report rate-limiter counters.

    Raises:
        HTTPException 403: In production
    """
    if settings.PRESS_ENGINE_ENV == "prod":
        raise HTTPException(status_code=403, detail="Disabled in production")

    return {
        "metrics": [record.as_dict() for record in buffer.drain()],
        "rate_limit": limiter.get_metrics(),
        "rate_limit_config": limiter.get_config(),
    }
