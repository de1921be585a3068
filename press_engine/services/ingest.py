"""Document ingestion: split -> embed -> store one ai_documents row per chunk."""

import asyncio
import json
from typing import Any
from uuid import uuid4

from press_engine.core.chunking import split_text
from press_engine.core.config import Settings, VectorStrategy, get_settings
from press_engine.core.logging import get_logger
from press_engine.core.provider import CompletionProvider, get_provider
from press_engine.core.schemas_rag import DocumentIn, IngestResult
from press_engine.core.stores import DocumentStore

logger = get_logger(__name__)


async def ingest_document(
    user_id: str,
    doc: DocumentIn,
    provider: CompletionProvider | None = None,
    store: DocumentStore | None = None,
    settings: Settings | None = None,
) -> IngestResult:
    """
    Ingest a raw document for retrieval.

    All chunks are embedded in a single provider call. Embeddings are stored
    JSON-encoded; under the native-vector strategy the vector column is filled
    as well so in-process ranking keeps working as a fallback. Re-ingesting
    the same content creates new rows.

    Args:
        user_id: Owner of the document
        doc: Document to ingest
        provider: Embedding provider (default: OpenAI)
        store: Document store (default: Supabase ai_documents)
        settings: Settings override

    Returns:
        IngestResult with inserted row count and chunk ids

    Raises:
        ProviderError: If embedding fails (nothing is stored)
    """
    settings = settings or get_settings()
    provider = provider or get_provider()
    if store is None:
        from press_engine.db import ai_documents as store

    parent_id = doc.parent_id or uuid4().hex
    chunks = split_text(parent_id, doc.content, settings.RAG_CHUNK_SIZE)
    vectors = await provider.embed([chunk.content for chunk in chunks])

    native = settings.RAG_VECTOR_STRATEGY == VectorStrategy.NATIVE_VECTOR
    rows: list[dict[str, Any]] = []
    for chunk, vector in zip(chunks, vectors, strict=True):
        row: dict[str, Any] = {
            "parent_id": parent_id,
            "source": doc.source,
            "title": f"{doc.title} (part {chunk.index + 1})" if doc.title else None,
            "content": chunk.content,
            "metadata": {**doc.metadata, "chunk_id": chunk.id, "chunk_index": chunk.index},
            "embedding": json.dumps(vector),
        }
        if native:
            row["embedding_vector"] = vector
        rows.append(row)

    inserted = await asyncio.to_thread(store.create_documents, user_id, rows)
    logger.info(
        f"Ingested document {parent_id} for user {user_id}: "
        f"{len(chunks)} chunks, {len(inserted)} rows"
    )

    return IngestResult(
        parent_id=parent_id,
        inserted=len(inserted),
        chunk_ids=[chunk.id for chunk in chunks],
    )
