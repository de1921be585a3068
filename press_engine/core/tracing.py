"""Timing and fingerprinting of chain runs.

`with_tracing` wraps anything exposing `async invoke(inputs)` and records a
`MetricsRecord` per call into a `MetricsBuffer`. The wrapped object keeps the
exact `invoke` contract: same input, same output, same exceptions.

The buffer is unbounded; callers are expected to `drain()` it periodically
(the internal metrics endpoint does).
"""

from __future__ import annotations

import hashlib
import json
import time
from dataclasses import asdict, dataclass
from functools import lru_cache
from typing import TYPE_CHECKING, Any, Generic, TypeVar
from uuid import uuid4

from pydantic import BaseModel

from press_engine.core.logging import get_logger

if TYPE_CHECKING:
    from press_engine.chains.base import Chain

logger = get_logger(__name__)

InT = TypeVar("InT")
OutT = TypeVar("OutT")

HASH_INPUT_CHARS = 1000


@dataclass
class MetricsRecord:
    run_id: str
    name: str
    start_ms: int
    end_ms: int | None = None
    latency_ms: int | None = None
    hash: str | None = None
    error: str | None = None

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


class MetricsBuffer:
    """In-memory list of finished run records."""

    def __init__(self) -> None:
        self._records: list[MetricsRecord] = []

    def append(self, record: MetricsRecord) -> None:
        self._records.append(record)

    def drain(self) -> list[MetricsRecord]:
        """Empty the buffer and return everything it held, oldest first."""
        records, self._records = self._records, []
        return records

    def __len__(self) -> int:
        return len(self._records)


def _now_ms() -> int:
    return int(time.time() * 1000)


def _serialize(output: Any) -> str:
    if isinstance(output, BaseModel):
        return output.model_dump_json()
    try:
        return json.dumps(output, sort_keys=True, default=str)
    except (TypeError, ValueError):
        return repr(output)


def content_hash(output: Any) -> str:
    """Short fingerprint of a chain output (first 1000 serialized chars)."""
    serialized = _serialize(output)[:HASH_INPUT_CHARS]
    return hashlib.sha256(serialized.encode("utf-8")).hexdigest()[:16]


class TracedChain(Generic[InT, OutT]):
    """Chain wrapper that records timing and an output hash for every run."""

    def __init__(self, chain: Chain[InT, OutT], name: str | None = None, buffer: MetricsBuffer | None = None):
        self.chain = chain
        self.name = name or getattr(chain, "name", None) or type(chain).__name__
        self.buffer = buffer if buffer is not None else get_metrics_buffer()

    async def invoke(self, inputs: InT) -> OutT:
        record = MetricsRecord(run_id=uuid4().hex, name=self.name, start_ms=_now_ms())
        try:
            output = await self.chain.invoke(inputs)
        except BaseException as e:
            # Includes CancelledError from a caller-side timeout
            record.error = str(e) or type(e).__name__
            self._close(record)
            raise
        record.hash = content_hash(output)
        self._close(record)
        return output

    def _close(self, record: MetricsRecord) -> None:
        record.end_ms = _now_ms()
        record.latency_ms = record.end_ms - record.start_ms
        self.buffer.append(record)
        logger.debug(
            f"Chain run {self.name} finished in {record.latency_ms}ms",
            extra={"run_id": record.run_id},
        )


def with_tracing(
    chain: Chain[InT, OutT],
    name: str | None = None,
    buffer: MetricsBuffer | None = None,
) -> TracedChain[InT, OutT]:
    """Wrap a chain so each invoke is recorded in the metrics buffer."""
    return TracedChain(chain, name=name, buffer=buffer)


@lru_cache(maxsize=1)
def get_metrics_buffer() -> MetricsBuffer:
    """Process-wide default buffer (cached singleton)."""
    return MetricsBuffer()
