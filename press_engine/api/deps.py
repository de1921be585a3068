"""Shared FastAPI dependencies: caller identity and rate limiting."""

from fastapi import Depends, Header, HTTPException, Response

from press_engine.core.errors import RateLimitExceededError
from press_engine.core.rate_limiter import RateLimiter, get_rate_limiter
from press_engine.core.schemas_usage import RateLimitDecision


def get_user_id(x_user_id: str | None = Header(None, alias="X-User-Id")) -> str:
    """
    Resolve the caller from the header set by the upstream auth layer.

    Raises:
        HTTPException 401: If the header is missing
    """
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    return x_user_id.strip()


def enforce_rate_limit(
    response: Response,
    x_user_id: str | None = Header(None, alias="X-User-Id"),
    limiter: RateLimiter = Depends(get_rate_limiter),
) -> RateLimitDecision:
    """
    Count the call against the caller's window and set X-RateLimit-* headers.

    Callers without an identity are not limited here; auth rejects them later.

    Raises:
        RateLimitExceededError: Enforced mode and the window is exhausted
    """
    identity = f"user:{x_user_id.strip()}" if x_user_id and x_user_id.strip() else None
    decision = limiter.check_and_increment(identity)

    response.headers["X-Limits-Mode"] = decision.mode
    if decision.mode == "bypass":
        response.headers["X-Limits-Bypass"] = "1"
        return decision

    if not decision.allowed:
        raise RateLimitExceededError(identity=identity or "", reset_in_ms=decision.reset_in_ms or 0)

    if identity is not None:
        response.headers["X-RateLimit-Limit"] = str(decision.limit)
        response.headers["X-RateLimit-Remaining"] = str(decision.remaining)
        response.headers["X-RateLimit-Reset"] = str(decision.reset_at)
        if decision.soft_exceeded:
            response.headers["X-RateLimit-SoftExceeded"] = "1"
    return decision
