"""Simple in-memory fixed-window rate limiter for AI-invoking endpoints."""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from functools import lru_cache

from press_engine.core.config import LimitsMode, Settings, get_settings
from press_engine.core.errors import RateLimitExceededError
from press_engine.core.logging import get_logger, log_with_context
from press_engine.core.schemas_usage import RateLimitDecision

logger = get_logger(__name__)

MODE_LABELS = {
    LimitsMode.OFF: "enforced",
    LimitsMode.SOFT: "soft",
    LimitsMode.FULL_BYPASS: "bypass",
}


@dataclass
class RateLimitBucket:
    count: int
    reset_at: int  # epoch ms


def _now_ms() -> int:
    return int(time.time() * 1000)


class RateLimiter:
    """
    Fixed-window request counter keyed by identity (e.g. "user:<id>").

    A bucket whose window has passed is replaced on next access rather than
    incremented. State lives in process memory only, so it is lost on restart
    and not shared between processes.
    """

    def __init__(
        self,
        window_ms: int = 60_000,
        max_calls: int = 60,
        mode: LimitsMode = LimitsMode.OFF,
        clock: Callable[[], int] = _now_ms,
    ):
        """
        Initialize rate limiter.

        Args:
            window_ms: Window length in milliseconds
            max_calls: Calls allowed per identity per window
            mode: Limits switch (off = enforced, soft, full-bypass)
            clock: Returns current epoch ms
        """
        self.window_ms = window_ms
        self.max_calls = max_calls
        self.mode = mode
        self._clock = clock

        self._buckets: dict[str, RateLimitBucket] = {}
        self._metrics = {
            "bypass_requests": 0,
            "soft_mode_requests": 0,
            "enforced_requests": 0,
            "soft_exceeded": 0,
            "hard_blocked": 0,
        }

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "RateLimiter":
        settings = settings or get_settings()
        return cls(
            window_ms=settings.RATE_LIMIT_WINDOW_MS,
            max_calls=settings.RATE_LIMIT_MAX_CALLS,
            mode=settings.DISABLE_LIMITS,
        )

    @property
    def mode_label(self) -> str:
        return MODE_LABELS[self.mode]

    def check_and_increment(self, identity: str | None) -> RateLimitDecision:
        """
        Count one call for `identity` and decide whether it may proceed.

        Args:
            identity: Caller identity; None means unauthenticated and is not limited

        Returns:
            RateLimitDecision with remaining calls and window reset time
        """
        label = self.mode_label

        if self.mode == LimitsMode.FULL_BYPASS:
            self._metrics["bypass_requests"] += 1
            return RateLimitDecision(allowed=True, limit=self.max_calls, remaining=self.max_calls, mode=label)

        if self.mode == LimitsMode.SOFT:
            self._metrics["soft_mode_requests"] += 1
        else:
            self._metrics["enforced_requests"] += 1

        if not identity:
            return RateLimitDecision(allowed=True, limit=self.max_calls, remaining=self.max_calls, mode=label)

        now = self._clock()
        bucket = self._buckets.get(identity)
        if bucket is None or bucket.reset_at < now:
            bucket = RateLimitBucket(count=0, reset_at=now + self.window_ms)
            self._buckets[identity] = bucket

        bucket.count += 1
        remaining = max(0, self.max_calls - bucket.count)
        reset_in_ms = max(0, bucket.reset_at - now)

        decision = RateLimitDecision(
            allowed=True,
            limit=self.max_calls,
            remaining=remaining,
            reset_at=bucket.reset_at,
            reset_in_ms=reset_in_ms,
            mode=label,
        )

        if bucket.count > self.max_calls:
            if self.mode == LimitsMode.SOFT:
                self._metrics["soft_exceeded"] += 1
                log_with_context(
                    logger, logging.INFO, "Soft rate limit exceeded",
                    identity=identity, mode=label, calls=bucket.count, limit=self.max_calls,
                )
                decision.soft_exceeded = True
            else:
                self._metrics["hard_blocked"] += 1
                logger.warning(
                    f"Rate limit exceeded for {identity}, "
                    f"calls: {bucket.count}/{self.max_calls}, "
                    f"resets in {reset_in_ms}ms"
                )
                decision.allowed = False

        return decision

    def enforce(self, identity: str | None) -> RateLimitDecision:
        """
        Like check_and_increment, but raise when the call is denied.

        Raises:
            RateLimitExceededError: Enforced mode and the window is exhausted
        """
        decision = self.check_and_increment(identity)
        if not decision.allowed:
            raise RateLimitExceededError(identity=identity or "", reset_in_ms=decision.reset_in_ms or 0)
        return decision

    def get_metrics(self) -> dict[str, int]:
        return dict(self._metrics)

    def get_config(self) -> dict[str, int | str]:
        return {"window_ms": self.window_ms, "max_calls": self.max_calls, "mode": self.mode_label}

    def reset(self, identity: str | None = None) -> None:
        """
        Reset one identity's bucket, or all buckets and counters.

        Args:
            identity: Bucket key; None clears everything
        """
        if identity is None:
            self._buckets.clear()
            for key in self._metrics:
                self._metrics[key] = 0
            return
        self._buckets.pop(identity, None)
        logger.info(f"Rate limit reset for key: {identity}")


@lru_cache(maxsize=1)
def get_rate_limiter() -> RateLimiter:
    """Process-wide limiter built from settings (cached singleton)."""
    return RateLimiter.from_settings()
