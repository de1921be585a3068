"""Per-user monthly token quota checks."""

import asyncio
import logging
from functools import lru_cache

from press_engine.core.config import LimitsMode, Settings, get_settings
from press_engine.core.errors import QuotaExceededError
from press_engine.core.logging import get_logger, log_with_context
from press_engine.core.schemas_usage import QuotaResult
from press_engine.core.stores import UsageLedgerStore

logger = get_logger(__name__)


class QuotaChecker:
    """
    Compares a user's monthly token counter plus an operation's estimate
    against the plan ceiling.

    Modes:
        off:          deny when used + estimate > limit
        soft:         always allow, flag soft_exceeded instead
        full-bypass:  always allow, profile is not read
    """

    def __init__(
        self,
        store: UsageLedgerStore,
        monthly_limit: int = 200_000,
        mode: LimitsMode = LimitsMode.OFF,
    ):
        self.store = store
        self.monthly_limit = monthly_limit
        self.mode = mode

    @classmethod
    def from_settings(
        cls, settings: Settings | None = None, store: UsageLedgerStore | None = None
    ) -> "QuotaChecker":
        settings = settings or get_settings()
        if store is None:
            from press_engine.db import usage as store
        return cls(
            store=store,
            monthly_limit=settings.FREE_PLAN_MONTHLY_TOKENS,
            mode=settings.DISABLE_LIMITS,
        )

    async def check_quota(self, user_id: str, estimated_tokens: int) -> QuotaResult:
        """
        Check whether an operation of `estimated_tokens` fits the monthly budget.

        A failed profile read fails open (allowed, error="profile_fetch_failed").
        """
        limit = self.monthly_limit
        if self.mode == LimitsMode.FULL_BYPASS:
            return QuotaResult(allowed=True, used=0, limit=limit, bypass=True)

        try:
            profile = await asyncio.to_thread(self.store.get_user_profile, user_id)
        except Exception as e:
            logger.error(f"Quota profile fetch failed for user {user_id}: {e}")
            return QuotaResult(allowed=True, used=0, limit=limit, error="profile_fetch_failed")

        used = int(profile.get("monthly_tokens_used") or 0)
        will_exceed = used + estimated_tokens > limit

        if self.mode == LimitsMode.SOFT:
            if will_exceed:
                log_with_context(
                    logger, logging.INFO, "Soft quota exceeded",
                    user_id=user_id, used=used, requested=estimated_tokens, limit=limit,
                )
            return QuotaResult(allowed=True, used=used, limit=limit, soft=True, soft_exceeded=will_exceed)

        return QuotaResult(allowed=not will_exceed, used=used, limit=limit)

    async def ensure_quota(self, user_id: str, estimated_tokens: int) -> QuotaResult:
        """
        Check quota and raise when the operation is denied.

        Raises:
            QuotaExceededError: In enforced mode when the budget would be exceeded
        """
        result = await self.check_quota(user_id, estimated_tokens)
        if not result.allowed:
            log_with_context(
                logger, logging.WARNING, "Quota exceeded",
                user_id=user_id, used=result.used, requested=estimated_tokens, limit=result.limit,
            )
            raise QuotaExceededError(used=result.used, limit=result.limit, requested=estimated_tokens)
        return result


@lru_cache(maxsize=1)
def get_quota_checker() -> QuotaChecker:
    """Default checker built from settings (cached singleton)."""
    return QuotaChecker.from_settings()
