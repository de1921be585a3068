"""Completion provider adapter.

The orchestration layer only needs two remote capabilities: turn a prompt into
text, and turn texts into vectors. `CompletionProvider` is that contract;
`OpenAIProvider` is the production implementation and tests pass in fakes.
"""

from functools import lru_cache
from typing import Protocol, runtime_checkable

from langchain_core.messages import HumanMessage
from openai import APIStatusError, OpenAIError

from press_engine.core.embeddings import embed_texts_async
from press_engine.core.errors import ProviderError
from press_engine.core.llm import get_llm
from press_engine.core.logging import get_logger

logger = get_logger(__name__)


@runtime_checkable
class CompletionProvider(Protocol):
    """Remote text completion + embedding capability."""

    async def complete(self, prompt: str, model: str | None = None) -> str: ...

    async def embed(self, texts: list[str]) -> list[list[float]]: ...


def _to_provider_error(e: Exception, operation: str) -> ProviderError:
    """Map an SDK exception to ProviderError, keeping upstream detail when present."""
    upstream_status = None
    detail = None
    if isinstance(e, APIStatusError):
        upstream_status = e.status_code
        body = e.body
        if isinstance(body, dict):
            detail = body.get("error", body)
    message = f"Upstream AI provider error during {operation}: {e}"
    return ProviderError(message, provider="openai", upstream_status=upstream_status, detail=detail)


class OpenAIProvider:
    """OpenAI chat (via LangChain) and embeddings (via the OpenAI SDK)."""

    def __init__(self, model: str | None = None, temperature: float | None = None):
        self.model = model
        self.temperature = temperature

    async def complete(self, prompt: str, model: str | None = None) -> str:
        llm = get_llm(model=model or self.model, temperature=self.temperature)
        try:
            response = await llm.ainvoke([HumanMessage(content=prompt)])
        except OpenAIError as e:
            logger.error(f"Completion failed: {e}")
            raise _to_provider_error(e, "completion") from e

        content = response.content
        if isinstance(content, list):
            # Content blocks: keep text parts only
            content = "".join(
                block.get("text", "") if isinstance(block, dict) else str(block)
                for block in content
            )
        return content

    async def embed(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []
        try:
            return await embed_texts_async(texts)
        except OpenAIError as e:
            raise _to_provider_error(e, "embedding") from e
        except ValueError as e:
            # Dimension mismatch from embed_texts
            raise ProviderError(str(e), provider="openai") from e


@lru_cache(maxsize=1)
def get_provider() -> CompletionProvider:
    """Get the default provider instance (cached singleton)."""
    return OpenAIProvider()
