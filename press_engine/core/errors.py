"""Error taxonomy for the AI orchestration layer.

Every error carries an HTTP status and optional metadata so the API layer can
render it without knowing which component raised it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Violation:
    """A single schema or input violation: dotted field path plus reason."""

    path: str
    reason: str

    def as_dict(self) -> dict[str, str]:
        return {"path": self.path, "reason": self.reason}


class PressEngineError(Exception):
    """Base class for errors surfaced to callers."""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        meta: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.meta = meta or {}

    @property
    def error_type(self) -> str:
        return type(self).__name__

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"type": self.error_type, "message": self.message}
        if self.meta:
            body["meta"] = self.meta
        return body


class AIValidationError(PressEngineError):
    """Malformed caller input (never retried)."""

    status_code = 400

    def __init__(
        self,
        message: str,
        violations: list[Violation] | None = None,
        meta: dict[str, Any] | None = None,
    ):
        super().__init__(message, meta=meta)
        self.violations = violations or []

    def to_dict(self) -> dict[str, Any]:
        body = super().to_dict()
        if self.violations:
            body["details"] = [v.as_dict() for v in self.violations]
        return body


class SchemaValidationError(AIValidationError):
    """Model output did not match the declared schema."""

    status_code = 422

    def __init__(self, schema_name: str, violations: list[Violation]):
        summary = "; ".join(f"{v.path}: {v.reason}" for v in violations[:5])
        super().__init__(
            f"Model output failed {schema_name} validation: {summary}",
            violations=violations,
            meta={"schema": schema_name},
        )
        self.schema_name = schema_name


class ProviderError(PressEngineError):
    """The completion or embedding provider failed."""

    status_code = 502

    def __init__(
        self,
        message: str,
        provider: str = "openai",
        upstream_status: int | None = None,
        detail: Any = None,
    ):
        meta: dict[str, Any] = {"provider": provider}
        if upstream_status is not None:
            meta["upstream_status"] = upstream_status
        if detail is not None:
            meta["detail"] = detail
        super().__init__(message, meta=meta)
        self.provider = provider
        self.upstream_status = upstream_status
        self.detail = detail


class QuotaExceededError(PressEngineError):
    """Enforced-mode quota check denied the operation."""

    status_code = 429

    def __init__(self, used: int, limit: int, requested: int):
        super().__init__(
            "Monthly token quota exceeded",
            meta={"used": used, "limit": limit, "requested": requested},
        )
        self.used = used
        self.limit = limit
        self.requested = requested


class RateLimitExceededError(PressEngineError):
    """Enforced-mode rate-limit bucket overflow."""

    status_code = 429

    def __init__(self, identity: str, reset_in_ms: int):
        retry_after_s = max(1, -(-reset_in_ms // 1000))
        super().__init__(
            f"Rate limit exceeded. Try again in {retry_after_s} seconds.",
            meta={"resetInMs": reset_in_ms, "retryAfter": retry_after_s},
        )
        self.identity = identity
        self.reset_in_ms = reset_in_ms
        self.retry_after_s = retry_after_s
