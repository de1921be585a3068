"""Embedding-backed semantic search over a user's stored documents.

Two interchangeable strategies sit behind the `SemanticSearch` protocol:

- `JsonVectorSearch` pulls a bounded slice of documents with their
  JSON-encoded embeddings and ranks them in-process by cosine similarity.
- `NativeVectorSearch` asks the database to order by vector distance
  (pgvector via an RPC) and converts distance into a score.

`FallbackSemanticSearch` chains them so a failing native store degrades to
the in-process ranking instead of failing the request.
"""

from __future__ import annotations

import asyncio
from typing import Any, Protocol

from press_engine.core.config import Settings, VectorStrategy, get_settings
from press_engine.core.embeddings import cosine_similarity, parse_stored_embedding
from press_engine.core.logging import get_logger
from press_engine.core.provider import CompletionProvider, get_provider
from press_engine.core.schemas_rag import ScoredDocument
from press_engine.core.stores import DocumentStore

logger = get_logger(__name__)


class SemanticSearch(Protocol):
    name: str

    async def search(
        self,
        user_id: str,
        query: str,
        limit: int = 8,
        min_score: float | None = None,
    ) -> list[ScoredDocument]: ...


def distance_to_score(distance: float, metric: str = "cosine") -> float:
    """Normalize a raw vector distance so that higher means more similar."""
    if metric == "l2":
        return 1.0 / (1.0 + distance)
    return 1.0 - distance


def _to_scored(row: dict[str, Any], score: float | None) -> ScoredDocument:
    return ScoredDocument(
        id=str(row.get("id")),
        content=row.get("content") or "",
        source=row.get("source") or "",
        title=row.get("title"),
        score=score,
    )


def _apply_min_score(results: list[ScoredDocument], min_score: float | None) -> list[ScoredDocument]:
    if min_score is None:
        return results
    return [r for r in results if r.score is not None and r.score >= min_score]


class JsonVectorSearch:
    """In-process cosine ranking over JSON-encoded stored embeddings."""

    name = "json-vector"

    def __init__(self, provider: CompletionProvider, store: DocumentStore, fetch_limit: int = 200):
        self.provider = provider
        self.store = store
        self.fetch_limit = fetch_limit

    async def search(
        self,
        user_id: str,
        query: str,
        limit: int = 8,
        min_score: float | None = None,
    ) -> list[ScoredDocument]:
        docs = await asyncio.to_thread(self.store.list_documents, user_id, self.fetch_limit)
        docs = docs[: self.fetch_limit]
        if not docs:
            return []

        query_vec = (await self.provider.embed([query]))[0]

        scored = []
        skipped = 0
        for doc in docs:
            vector = parse_stored_embedding(doc.get("embedding"))
            if vector is None:
                skipped += 1
                continue
            scored.append(_to_scored(doc, cosine_similarity(query_vec, vector)))

        if skipped:
            logger.debug(f"Skipped {skipped} documents without usable embeddings")

        scored.sort(key=lambda d: d.score, reverse=True)
        return _apply_min_score(scored[:limit], min_score)


class NativeVectorSearch:
    """Similarity query executed by the database's vector index."""

    name = "native-vector"

    def __init__(self, provider: CompletionProvider, store: DocumentStore, metric: str = "cosine"):
        if metric not in ("cosine", "l2"):
            raise ValueError(f"Unsupported distance metric: {metric}")
        self.provider = provider
        self.store = store
        self.metric = metric

    async def search(
        self,
        user_id: str,
        query: str,
        limit: int = 8,
        min_score: float | None = None,
    ) -> list[ScoredDocument]:
        query_vec = (await self.provider.embed([query]))[0]
        rows = await asyncio.to_thread(
            self.store.match_documents, user_id, query_vec, limit, self.metric
        )

        results = [
            _to_scored(row, distance_to_score(float(row["distance"]), self.metric))
            for row in rows[:limit]
        ]
        return _apply_min_score(results, min_score)


class FallbackSemanticSearch:
    """Try the primary strategy; on any error use the fallback instead."""

    def __init__(self, primary: SemanticSearch, fallback: SemanticSearch):
        self.primary = primary
        self.fallback = fallback
        self.name = f"{primary.name}>{fallback.name}"

    async def search(
        self,
        user_id: str,
        query: str,
        limit: int = 8,
        min_score: float | None = None,
    ) -> list[ScoredDocument]:
        try:
            return await self.primary.search(user_id, query, limit=limit, min_score=min_score)
        except Exception as e:
            logger.warning(f"{self.primary.name} search failed, falling back to {self.fallback.name}: {e}")
            return await self.fallback.search(user_id, query, limit=limit, min_score=min_score)


def get_semantic_search(
    settings: Settings | None = None,
    provider: CompletionProvider | None = None,
    store: DocumentStore | None = None,
) -> SemanticSearch:
    """
    Build the semantic search configured by RAG_VECTOR_STRATEGY.

    Returns:
        JsonVectorSearch, or native search with JSON fallback
    """
    settings = settings or get_settings()
    provider = provider or get_provider()
    if store is None:
        from press_engine.db import ai_documents as store

    json_search = JsonVectorSearch(provider, store, fetch_limit=settings.RAG_FETCH_LIMIT)
    if settings.RAG_VECTOR_STRATEGY == VectorStrategy.NATIVE_VECTOR:
        native = NativeVectorSearch(provider, store, metric=settings.RAG_VECTOR_METRIC)
        return FallbackSemanticSearch(native, json_search)
    return json_search
