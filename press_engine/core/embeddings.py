"""OpenAI embeddings generation with validation."""

import asyncio
import json
from typing import Any

import numpy as np
from openai import OpenAI

from press_engine.core.config import get_settings
from press_engine.core.logging import get_logger

logger = get_logger(__name__)


def _get_client() -> OpenAI:
    """Get OpenAI client instance."""
    settings = get_settings()
    return OpenAI(api_key=settings.OPENAI_API_KEY)


def embed_texts(texts: list[str]) -> list[list[float]]:
    """
    Generate embeddings for a list of texts using OpenAI.

    Args:
        texts: List of text strings to embed

    Returns:
        List of embedding vectors (each vector is list of floats)

    Raises:
        ValueError: If embedding dimension doesn't match expected EMBEDDING_DIM
        Exception: If OpenAI API call fails
    """
    if not texts:
        return []

    settings = get_settings()
    client = _get_client()

    try:
        # OpenAI supports up to 2048 texts per request
        response = client.embeddings.create(
            model=settings.OPENAI_EMBEDDINGS_MODEL,
            input=texts,
        )

        embeddings = []
        for i, embedding_obj in enumerate(response.data):
            embedding = embedding_obj.embedding

            if len(embedding) != settings.EMBEDDING_DIM:
                raise ValueError(
                    f"Embedding dimension mismatch for text {i}: "
                    f"expected {settings.EMBEDDING_DIM}, got {len(embedding)}"
                )

            embeddings.append(embedding)

        logger.info(
            f"Generated {len(embeddings)} embeddings using {settings.OPENAI_EMBEDDINGS_MODEL}",
            extra={"model": settings.OPENAI_EMBEDDINGS_MODEL, "count": len(embeddings)},
        )

        return embeddings

    except Exception as e:
        logger.error(f"Failed to generate embeddings: {e}")
        raise


async def embed_texts_async(texts: list[str]) -> list[list[float]]:
    """Async wrapper around embed_texts using thread pool."""
    return await asyncio.to_thread(embed_texts, texts)


def cosine_similarity(a: list[float], b: list[float]) -> float:
    """
    Cosine similarity over the common prefix of two vectors.

    Zero-norm vectors are treated as norm 1, so they score 0 instead of NaN.
    """
    length = min(len(a), len(b))
    if length == 0:
        return 0.0
    va = np.asarray(a[:length], dtype=float)
    vb = np.asarray(b[:length], dtype=float)
    norm_a = float(np.linalg.norm(va)) or 1.0
    norm_b = float(np.linalg.norm(vb)) or 1.0
    return float(np.dot(va, vb) / (norm_a * norm_b))


def parse_stored_embedding(raw: Any) -> list[float] | None:
    """
    Decode an embedding stored as a JSON string (or already-decoded list).

    Returns:
        The vector, or None if missing or unparseable
    """
    if raw is None or raw == "":
        return None
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError:
            return None
    if not isinstance(raw, list) or not raw:
        return None
    try:
        return [float(x) for x in raw]
    except (TypeError, ValueError):
        return None
