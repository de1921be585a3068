"""Retrieval orchestrator: context fragments for retrieval-augmented prompts.

Stages are tried in order until one returns results:

    native-vector  -> database vector index (only when RAG_VECTOR_STRATEGY=native-vector)
    json-vector    -> in-process cosine ranking of JSON embeddings
    keyword        -> store keyword search, or the naive in-memory index
                      when no persistent store is configured

Each stage runs inside its own timeout and error boundary, so a failing stage
falls through to the next one instead of failing the request. When every
attempted stage raises on several consecutive calls, an ERROR is logged so a
provider or store outage is not mistaken for "no results" indefinitely.

The combined result is cut to a character budget: fragments are added in rank
order and accumulation stops at the first fragment that would overflow it.
Fragments are never truncated.

Usage:
    from press_engine.core.retrieval import get_retrieval_orchestrator

    fragments = await get_retrieval_orchestrator().retrieve_context(
        user_id, "quarterly results", limit=6, max_chars=6000
    )
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from functools import lru_cache

from press_engine.core.config import Settings, VectorStrategy, get_settings
from press_engine.core.logging import get_logger, log_with_context
from press_engine.core.provider import CompletionProvider, get_provider
from press_engine.core.schemas_rag import RetrievalStrategy, RetrievedFragment, ScoredDocument
from press_engine.core.semantic_search import JsonVectorSearch, NativeVectorSearch, SemanticSearch
from press_engine.core.stores import DocumentStore
from press_engine.core.vector_index import NaiveVectorIndex

logger = get_logger(__name__)

StageRunner = Callable[[str, str, int, float], Awaitable[list[RetrievedFragment]]]


@dataclass
class RetrievalStage:
    name: str
    run: StageRunner


def apply_char_budget(fragments: list[RetrievedFragment], max_chars: int) -> list[RetrievedFragment]:
    """Keep fragments in order until the next one would exceed max_chars."""
    total = 0
    kept = []
    for fragment in fragments:
        size = len(fragment.content)
        if total + size > max_chars:
            break
        total += size
        kept.append(fragment)
    return kept


def _fragments(docs: list[ScoredDocument], stage: str) -> list[RetrievedFragment]:
    return [
        RetrievedFragment(
            content=doc.content,
            source_id=doc.id,
            score=doc.score,
            source=doc.source,
            title=doc.title,
            stage=stage,
        )
        for doc in docs
    ]


class RetrievalOrchestrator:
    """Ordered, fault-isolated retrieval across semantic and keyword stages."""

    def __init__(
        self,
        provider: CompletionProvider,
        store: DocumentStore | None,
        vector_strategy: VectorStrategy = VectorStrategy.JSON,
        metric: str = "cosine",
        fetch_limit: int = 200,
        stage_timeout_s: float = 15.0,
        failure_alert_threshold: int = 3,
        naive_index: NaiveVectorIndex | None = None,
    ):
        self.store = store
        self.naive_index = naive_index
        self.stage_timeout_s = stage_timeout_s
        self.failure_alert_threshold = failure_alert_threshold
        self.consecutive_failures = 0

        self.native_search: SemanticSearch | None = None
        self.json_search: SemanticSearch | None = None
        if store is not None:
            self.json_search = JsonVectorSearch(provider, store, fetch_limit=fetch_limit)
            if vector_strategy == VectorStrategy.NATIVE_VECTOR:
                self.native_search = NativeVectorSearch(provider, store, metric=metric)

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        provider: CompletionProvider | None = None,
        store: DocumentStore | None = None,
        naive_index: NaiveVectorIndex | None = None,
    ) -> RetrievalOrchestrator:
        settings = settings or get_settings()
        if store is None:
            from press_engine.db import ai_documents as store
        return cls(
            provider=provider or get_provider(),
            store=store,
            vector_strategy=settings.RAG_VECTOR_STRATEGY,
            metric=settings.RAG_VECTOR_METRIC,
            fetch_limit=settings.RAG_FETCH_LIMIT,
            stage_timeout_s=settings.RAG_STAGE_TIMEOUT_S,
            failure_alert_threshold=settings.RAG_FAILURE_ALERT_THRESHOLD,
            naive_index=naive_index,
        )

    # -------------------------------------------------------------------------
    # Stages
    # -------------------------------------------------------------------------

    def _semantic_stage(self, search: SemanticSearch) -> RetrievalStage:
        async def run(user_id: str, query: str, limit: int, min_score: float) -> list[RetrievedFragment]:
            docs = await search.search(user_id, query, limit=limit, min_score=min_score)
            return _fragments(docs, search.name)

        return RetrievalStage(name=search.name, run=run)

    def _keyword_stage(self) -> RetrievalStage | None:
        if self.store is not None:
            store = self.store

            async def run(user_id: str, query: str, limit: int, min_score: float) -> list[RetrievedFragment]:
                rows = await asyncio.to_thread(store.search_documents_by_keyword, user_id, query, limit)
                docs = [
                    ScoredDocument(
                        id=str(row.get("id")),
                        content=row.get("content") or "",
                        source=row.get("source") or "",
                        title=row.get("title"),
                        score=None,
                    )
                    for row in rows
                ]
                return _fragments(docs, "keyword")

            return RetrievalStage(name="keyword", run=run)

        if self.naive_index is not None:
            index = self.naive_index

            async def run_naive(user_id: str, query: str, limit: int, min_score: float) -> list[RetrievedFragment]:
                return index.retrieve(query, limit)

            return RetrievalStage(name="naive-index", run=run_naive)

        return None

    def stages_for(self, strategy: RetrievalStrategy) -> list[RetrievalStage]:
        """Ordered stages allowed by the retrieval strategy and configuration."""
        stages: list[RetrievalStage] = []
        if strategy != RetrievalStrategy.KEYWORD_ONLY:
            if self.native_search is not None:
                stages.append(self._semantic_stage(self.native_search))
            if self.json_search is not None:
                stages.append(self._semantic_stage(self.json_search))
        if strategy != RetrievalStrategy.SEMANTIC_ONLY:
            keyword = self._keyword_stage()
            if keyword is not None:
                stages.append(keyword)
        return stages

    # -------------------------------------------------------------------------
    # Orchestration
    # -------------------------------------------------------------------------

    async def retrieve_context(
        self,
        user_id: str,
        query: str,
        limit: int = 6,
        strategy: RetrievalStrategy | str = RetrievalStrategy.AUTO,
        min_score: float = 0.0,
        max_chars: int = 8000,
    ) -> list[RetrievedFragment]:
        """
        Retrieve ranked context fragments for a query.

        Args:
            user_id: Owner of the documents searched
            query: Free-text query
            limit: Maximum fragments per stage
            strategy: auto, semantic-only or keyword-only
            min_score: Minimum similarity for semantic stages
            max_chars: Character budget for the summed fragment content

        Returns:
            Fragments with provenance (source id, score, source tag, stage)
        """
        strategy = RetrievalStrategy(strategy)
        stages = self.stages_for(strategy)

        results: list[RetrievedFragment] = []
        failed = 0
        for stage in stages:
            try:
                results = await asyncio.wait_for(
                    stage.run(user_id, query, limit, min_score), timeout=self.stage_timeout_s
                )
            except Exception as e:
                failed += 1
                log_with_context(
                    logger,
                    logging.WARNING,
                    f"Retrieval stage {stage.name} failed: {e!r}",
                    user_id=user_id,
                    stage=stage.name,
                )
                results = []
                continue

            if results:
                logger.debug(f"Retrieval stage {stage.name} returned {len(results)} fragments")
                break

        self._track_failures(user_id, attempted=len(stages), failed=failed)
        return apply_char_budget(results, max_chars)

    def _track_failures(self, user_id: str, attempted: int, failed: int) -> None:
        if attempted and failed == attempted:
            self.consecutive_failures += 1
            if self.consecutive_failures >= self.failure_alert_threshold:
                log_with_context(
                    logger,
                    logging.ERROR,
                    f"All retrieval stages failed on {self.consecutive_failures} consecutive calls",
                    user_id=user_id,
                    consecutive_failures=self.consecutive_failures,
                )
        else:
            self.consecutive_failures = 0


@lru_cache(maxsize=1)
def get_retrieval_orchestrator() -> RetrievalOrchestrator:
    """Default orchestrator built from settings (cached singleton)."""
    return RetrievalOrchestrator.from_settings()
