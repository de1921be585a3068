"""Tests for the OpenAI provider adapter and its error mapping."""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from langchain_core.messages import AIMessage
from openai import APIStatusError

from press_engine.core.errors import ProviderError
from press_engine.core.provider import CompletionProvider, OpenAIProvider
from tests.fakes.fake_provider import FakeProvider


def _llm(**kwargs) -> MagicMock:
    llm = MagicMock()
    llm.ainvoke = AsyncMock(**kwargs)
    return llm


def test_fake_provider_satisfies_protocol():
    assert isinstance(FakeProvider(), CompletionProvider)
    assert isinstance(OpenAIProvider(), CompletionProvider)


@pytest.mark.asyncio
async def test_complete_returns_message_text():
    llm = _llm(return_value=AIMessage(content="Generated text"))

    with patch("press_engine.core.provider.get_llm", return_value=llm) as mock_get_llm:
        result = await OpenAIProvider(model="gpt-4o-mini").complete("prompt")

    assert result == "Generated text"
    mock_get_llm.assert_called_once_with(model="gpt-4o-mini", temperature=None)
    [messages] = llm.ainvoke.call_args.args
    assert messages[0].content == "prompt"


@pytest.mark.asyncio
async def test_complete_joins_content_blocks():
    blocks = [{"type": "text", "text": "Hello "}, {"type": "text", "text": "world"}]
    llm = _llm(return_value=AIMessage(content=blocks))

    with patch("press_engine.core.provider.get_llm", return_value=llm):
        assert await OpenAIProvider().complete("prompt") == "Hello world"


@pytest.mark.asyncio
async def test_complete_maps_upstream_status_errors():
    response = httpx.Response(429, request=httpx.Request("POST", "https://api.openai.com/v1/chat/completions"))
    error = APIStatusError("Rate limited", response=response, body={"error": {"message": "slow down"}})
    llm = _llm(side_effect=error)

    with patch("press_engine.core.provider.get_llm", return_value=llm):
        with pytest.raises(ProviderError) as exc_info:
            await OpenAIProvider().complete("prompt")

    assert exc_info.value.status_code == 502
    assert exc_info.value.upstream_status == 429
    assert exc_info.value.detail == {"message": "slow down"}


@pytest.mark.asyncio
async def test_embed_empty_list_skips_api():
    with patch("press_engine.core.provider.embed_texts_async", new=AsyncMock()) as mock_embed:
        assert await OpenAIProvider().embed([]) == []
    mock_embed.assert_not_called()


@pytest.mark.asyncio
async def test_embed_dimension_mismatch_becomes_provider_error():
    with patch(
        "press_engine.core.provider.embed_texts_async",
        new=AsyncMock(side_effect=ValueError("Embedding dimension mismatch: got 3, expected 1536")),
    ):
        with pytest.raises(ProviderError, match="dimension mismatch"):
            await OpenAIProvider().embed(["text"])
