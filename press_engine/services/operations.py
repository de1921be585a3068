"""
AI operations as seen by the HTTP layer.

Every operation follows the same flow:

    estimate tokens -> ensure quota -> (retrieval) -> chain -> usage event + token increment

Usage is recorded only after the operation succeeded; ledger failures are
logged by the ledger and never fail the operation.
"""

import asyncio
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from press_engine.chains.base import Chain
from press_engine.chains.edit_press_release import edit_press_release
from press_engine.chains.generate_ad import generate_ad
from press_engine.chains.generate_press_release import (
    assemble_release_text,
    build_rag_story,
    generate_structured_press_release,
)
from press_engine.chains.generate_social_posts import generate_social_posts
from press_engine.chains.translate_press_release import translate_press_release
from press_engine.core.config import Settings, get_settings
from press_engine.core.logging import get_logger
from press_engine.core.provider import CompletionProvider, get_provider
from press_engine.core.quota import QuotaChecker
from press_engine.core.retrieval import RetrievalOrchestrator
from press_engine.core.schemas_press import (
    AdInput,
    AdStructured,
    EditInput,
    GeneratedRelease,
    GenerateRequest,
    RagContextInfo,
    SocialPosts,
    SocialPostsInput,
    TextResult,
    TranslationInput,
)
from press_engine.core.schemas_rag import DocumentIn, IngestResult, ScoredDocument, SearchResponse
from press_engine.core.schemas_usage import UsageEvent, UsageEventType, UsageSummary
from press_engine.core.semantic_search import get_semantic_search
from press_engine.core.stores import DocumentStore
from press_engine.core.usage import UsageLedger, estimate_tokens, summarize_usage
from press_engine.services.ingest import ingest_document

logger = get_logger(__name__)

RAG_LIMIT = 6
RAG_MAX_CHARS = 6000
SEARCH_LIMIT = 10


@dataclass
class ChainOverrides:
    """Optional chain doubles, one per operation."""

    structured_release: Chain | None = None
    edit: Chain | None = None
    translate: Chain | None = None
    ad: Chain | None = None
    social: Chain | None = None


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)


class PressOperations:
    def __init__(
        self,
        quota: QuotaChecker,
        ledger: UsageLedger,
        retrieval: RetrievalOrchestrator,
        document_store: DocumentStore,
        provider: CompletionProvider | None = None,
        settings: Settings | None = None,
        chains: ChainOverrides | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.quota = quota
        self.ledger = ledger
        self.retrieval = retrieval
        self.document_store = document_store
        self.provider = provider or get_provider()
        self.settings = settings or get_settings()
        self.chains = chains or ChainOverrides()
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "PressOperations":
        from press_engine.core.quota import get_quota_checker
        from press_engine.core.retrieval import get_retrieval_orchestrator
        from press_engine.core.usage import get_usage_ledger
        from press_engine.db import ai_documents

        return cls(
            quota=get_quota_checker(),
            ledger=get_usage_ledger(),
            retrieval=get_retrieval_orchestrator(),
            document_store=ai_documents,
            settings=settings,
        )

    async def _account(
        self,
        user_id: str,
        event_type: UsageEventType,
        prompt_chars: int,
        completion_chars: int,
        latency_ms: int,
        model: str | None,
        meta: dict[str, Any] | None = None,
        count_tokens: bool = True,
    ) -> None:
        await self.ledger.record(
            UsageEvent(
                user_id=user_id,
                event_type=event_type,
                prompt_chars=prompt_chars,
                completion_chars=completion_chars,
                model=model,
                latency_ms=latency_ms,
                metadata=meta or {},
            )
        )
        if count_tokens:
            await self.ledger.increment_tokens(
                user_id, estimate_tokens(prompt_chars) + estimate_tokens(completion_chars)
            )

    # =========================================================================
    # Generation
    # =========================================================================

    async def generate_release(self, user_id: str, request: GenerateRequest) -> GeneratedRelease:
        """
        Generate a structured press release, optionally grounded in stored documents.

        In rag mode the user's documents are retrieved for "company + story" and
        spliced into the main story. Retrieval problems never fail generation;
        they are reported in the rag info instead.
        """
        started = time.perf_counter()
        await self.quota.ensure_quota(user_id, estimate_tokens(len(request.main_story)))

        story = request.main_story
        rag: RagContextInfo | None = None
        if request.mode == "rag":
            query = " ".join(part for part in (request.company_name, request.main_story) if part)
            try:
                fragments = await self.retrieval.retrieve_context(
                    user_id, query, limit=RAG_LIMIT, max_chars=RAG_MAX_CHARS
                )
            except Exception as e:
                logger.warning(f"Context retrieval failed for user {user_id}: {e}")
                rag = RagContextInfo(used=False, error=str(e) or "retrieve_failed")
            else:
                if fragments:
                    story = build_rag_story(fragments, request.main_story)
                    rag = RagContextInfo(
                        used=True,
                        chunks=[
                            {"id": f.source_id, "source": f.source, "score": f.score, "stage": f.stage}
                            for f in fragments
                        ],
                    )
                else:
                    rag = RagContextInfo(used=False, reason="no_chunks")

        context = request.model_copy(update={"main_story": story})
        structured = await generate_structured_press_release(context, chain=self.chains.structured_release)
        release = assemble_release_text(structured)
        latency_ms = _elapsed_ms(started)

        await self._account(
            user_id,
            "ai_generate",
            prompt_chars=len(story),
            completion_chars=len(release),
            latency_ms=latency_ms,
            model=self.settings.OPENAI_MODEL,
            meta={
                "chain": "structured_press_release_chain",
                "rag": request.mode == "rag",
                "chunks": len(rag.chunks) if rag else 0,
            },
        )

        return GeneratedRelease(
            headline=structured.headline,
            release=release,
            structured=structured,
            mode=request.mode,
            rag=rag,
            latency_ms=latency_ms,
        )

    async def edit_release(self, user_id: str, args: EditInput) -> TextResult:
        started = time.perf_counter()
        prompt_chars = len(args.instruction) + len(args.original)
        await self.quota.ensure_quota(user_id, estimate_tokens(prompt_chars))

        text = await edit_press_release(args, chain=self.chains.edit)
        latency_ms = _elapsed_ms(started)
        await self._account(
            user_id, "ai_generate", prompt_chars, len(text), latency_ms,
            model=self.settings.OPENAI_MODEL, meta={"chain": "edit_chain"},
        )
        return TextResult(text=text, latency_ms=latency_ms)

    async def translate_release(self, user_id: str, args: TranslationInput) -> TextResult:
        started = time.perf_counter()
        await self.quota.ensure_quota(user_id, estimate_tokens(len(args.source)))

        text = await translate_press_release(args, chain=self.chains.translate)
        latency_ms = _elapsed_ms(started)
        await self._account(
            user_id, "ai_generate", len(args.source), len(text), latency_ms,
            model=self.settings.OPENAI_MODEL,
            meta={"chain": "translation_chain", "target_language": args.target_language},
        )
        return TextResult(text=text, latency_ms=latency_ms)

    async def create_ad(self, user_id: str, args: AdInput) -> AdStructured:
        started = time.perf_counter()
        await self.quota.ensure_quota(user_id, estimate_tokens(len(args.press_release)))

        ad = await generate_ad(args, chain=self.chains.ad)
        await self._account(
            user_id, "ad_generate", len(args.press_release), len(ad.model_dump_json()),
            _elapsed_ms(started), model=self.settings.OPENAI_MODEL,
            meta={"chain": "ad_generator_chain", "platform": args.platform},
        )
        return ad

    async def create_social_posts(self, user_id: str, args: SocialPostsInput) -> SocialPosts:
        started = time.perf_counter()
        await self.quota.ensure_quota(user_id, estimate_tokens(len(args.press_release)))

        posts = await generate_social_posts(args, chain=self.chains.social)
        completion_chars = len(posts.linkedin) + len(posts.twitter) + len(posts.facebook)
        await self._account(
            user_id, "ai_generate", len(args.press_release), completion_chars,
            _elapsed_ms(started), model=self.settings.OPENAI_MODEL,
            meta={"chain": "social_posts_chain"},
        )
        return posts

    # =========================================================================
    # Documents
    # =========================================================================

    async def ingest(self, user_id: str, doc: DocumentIn) -> IngestResult:
        started = time.perf_counter()
        await self.quota.ensure_quota(user_id, estimate_tokens(len(doc.content)))

        result = await ingest_document(
            user_id, doc, provider=self.provider, store=self.document_store, settings=self.settings
        )
        latency_ms = _elapsed_ms(started)
        await self._account(
            user_id, "doc_ingest", len(doc.content), 0, latency_ms,
            model=self.settings.OPENAI_EMBEDDINGS_MODEL,
            meta={"source": doc.source, "chunks": result.inserted},
        )
        return result.model_copy(update={"latency_ms": latency_ms})

    async def search_documents(
        self, user_id: str, query: str, mode: str = "keyword", limit: int = SEARCH_LIMIT
    ) -> SearchResponse:
        """Keyword search, or semantic search when mode == "semantic"."""
        started = time.perf_counter()

        if mode == "semantic":
            search = get_semantic_search(self.settings, provider=self.provider, store=self.document_store)
            results = await search.search(user_id, query, limit=limit)
            model = self.settings.OPENAI_EMBEDDINGS_MODEL
        else:
            mode = "keyword"
            rows = await asyncio.to_thread(
                self.document_store.search_documents_by_keyword, user_id, query, limit
            )
            results = [
                ScoredDocument(
                    id=str(row.get("id")),
                    content=row.get("content") or "",
                    source=row.get("source") or "",
                    title=row.get("title"),
                )
                for row in rows
            ]
            model = None

        latency_ms = _elapsed_ms(started)
        await self._account(
            user_id, "rag_search", len(query), 0, latency_ms,
            model=model, meta={"mode": mode, "results": len(results)}, count_tokens=False,
        )
        return SearchResponse(mode=mode, results=results, latency_ms=latency_ms)

    # =========================================================================
    # Usage
    # =========================================================================

    async def usage_summary(self, user_id: str) -> UsageSummary:
        now = self._clock()
        rows = await asyncio.to_thread(
            self.ledger.store.list_usage_events, user_id, now - timedelta(days=30)
        )
        return summarize_usage(rows, plan_limit=self.quota.monthly_limit, now=now)


def get_operations() -> PressOperations:
    """FastAPI dependency: operations wired to the default singletons."""
    return PressOperations.from_settings()
