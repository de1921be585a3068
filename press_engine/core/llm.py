"""LLM client utilities for LangChain integration."""

import json
import re

from langchain_openai import ChatOpenAI

from press_engine.core.config import get_settings


def get_llm(model: str | None = None, temperature: float | None = None) -> ChatOpenAI:
    """
    Get configured LLM instance for LangChain chains.

    Args:
        model: Model name override (defaults to config setting)
        temperature: Temperature override (defaults to CHAT_TEMPERATURE)

    Returns:
        ChatOpenAI instance configured with API key and model
    """
    settings = get_settings()

    return ChatOpenAI(
        api_key=settings.OPENAI_API_KEY,
        model=model or settings.OPENAI_MODEL,
        temperature=settings.CHAT_TEMPERATURE if temperature is None else temperature,
    )


def strip_llm_fences(raw_output: str) -> str:
    """Strip markdown code fences from LLM output.

    Handles: ```json ... ```, ``` ... ```, leading/trailing whitespace.
    """
    cleaned = raw_output.strip()

    fence_match = re.search(r"```(?:json)?\s*\n?(.*?)```", cleaned, re.DOTALL)
    if fence_match:
        return fence_match.group(1).strip()

    # Unterminated fences
    if cleaned.startswith("```json"):
        cleaned = cleaned[7:]
    elif cleaned.startswith("```"):
        cleaned = cleaned[3:]
    if cleaned.endswith("```"):
        cleaned = cleaned[:-3]
    return cleaned.strip()


def extract_json_text(raw_output: str) -> str:
    """
    Locate the first JSON object or array in LLM output and return it verbatim.

    Models sometimes wrap the value in prose ("Here is the JSON: {...} Hope
    this helps!"), before it, after it or both. The value text itself is
    returned untouched; if nothing decodes, the cleaned output is returned so
    the caller's validator reports the error.

    Args:
        raw_output: Raw string from LLM response

    Returns:
        JSON text (possibly still invalid)
    """
    cleaned = strip_llm_fences(raw_output)
    decoder = json.JSONDecoder()
    for start, char in enumerate(cleaned):
        if char not in "{[":
            continue
        try:
            _, end = decoder.raw_decode(cleaned, start)
        except json.JSONDecodeError:
            continue
        return cleaned[start:end]
    return cleaned
