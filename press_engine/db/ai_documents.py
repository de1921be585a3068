"""Document chunk storage and search operations (ai_documents table).

Each row is one chunk of an ingested document:
    id, user_id, parent_id, source, title, content, metadata (jsonb),
    embedding (text, JSON-encoded vector), embedding_vector (pgvector),
    created_at

Native vector search goes through the `match_ai_documents` Postgres function:

    create or replace function match_ai_documents(
        query_embedding vector(1536), match_count int,
        filter_user_id text, distance_metric text default 'cosine'
    ) returns table (id bigint, source text, title text, content text, distance float)
    language sql stable as $$
        select id, source, title, content,
               case when distance_metric = 'l2'
                    then embedding_vector <-> query_embedding
                    else embedding_vector <=> query_embedding end as distance
        from ai_documents
        where user_id = filter_user_id and embedding_vector is not null
        order by distance
        limit match_count;
    $$;
"""

import re
from typing import Any

from press_engine.core.logging import get_logger
from press_engine.db.supabase_client import get_supabase

logger = get_logger(__name__)

TABLE = "ai_documents"
LIST_COLUMNS = "id, parent_id, source, title, content, metadata, embedding, created_at"
SEARCH_COLUMNS = "id, parent_id, source, title, content, metadata, created_at"

# Characters with meaning in PostgREST filter syntax
_FILTER_UNSAFE = re.compile(r"[,()%*\"\\:]")


def list_documents(user_id: str, limit: int = 200) -> list[dict[str, Any]]:
    """
    List a user's most recent document chunks, including stored embeddings.

    Args:
        user_id: Owner id
        limit: Maximum rows to return

    Returns:
        List of row dicts, newest first
    """
    supabase = get_supabase()

    try:
        response = (
            supabase.table(TABLE)
            .select(LIST_COLUMNS)
            .eq("user_id", str(user_id))
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )
        return response.data or []

    except Exception as e:
        logger.error(f"Failed to list documents for user {user_id}: {e}")
        raise


def create_documents(user_id: str, rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """
    Insert chunk rows for a user.

    Args:
        user_id: Owner id
        rows: Row dicts without user_id

    Returns:
        Inserted rows
    """
    if not rows:
        return []

    supabase = get_supabase()
    payload = [{**row, "user_id": str(user_id)} for row in rows]

    try:
        response = supabase.table(TABLE).insert(payload).execute()
        inserted = response.data or []
        logger.info(f"Inserted {len(inserted)} document chunks for user {user_id}")
        return inserted

    except Exception as e:
        logger.error(f"Failed to insert documents for user {user_id}: {e}")
        raise


def _search_terms(query: str) -> list[str]:
    terms = [_FILTER_UNSAFE.sub("", t) for t in query.lower().split()]
    return [t for t in terms if t]


def search_documents_by_keyword(user_id: str, query: str, limit: int = 10) -> list[dict[str, Any]]:
    """
    Keyword search over chunk content.

    Rows matching any query term (case-insensitive) are fetched, then ranked by
    how many distinct terms they contain.

    Args:
        user_id: Owner id
        query: Free-text query
        limit: Maximum rows to return

    Returns:
        Ranked row dicts
    """
    terms = _search_terms(query)
    if not terms:
        return []

    supabase = get_supabase()
    term_filter = ",".join(f"content.ilike.*{term}*" for term in terms)

    try:
        response = (
            supabase.table(TABLE)
            .select(SEARCH_COLUMNS)
            .eq("user_id", str(user_id))
            .or_(term_filter)
            .order("created_at", desc=True)
            .limit(limit * 5)
            .execute()
        )
        rows = response.data or []

    except Exception as e:
        logger.error(f"Keyword search failed for user {user_id}: {e}")
        raise

    def _hits(row: dict[str, Any]) -> int:
        text = (row.get("content") or "").lower()
        return sum(1 for term in terms if term in text)

    ranked = sorted(rows, key=_hits, reverse=True)
    return ranked[:limit]


def match_documents(
    user_id: str,
    query_embedding: list[float],
    limit: int = 8,
    metric: str = "cosine",
) -> list[dict[str, Any]]:
    """
    Server-side vector similarity search via the match_ai_documents RPC.

    Returns:
        Rows ordered by ascending distance, each with a raw `distance`
    """
    supabase = get_supabase()

    try:
        response = supabase.rpc(
            "match_ai_documents",
            {
                "query_embedding": query_embedding,
                "match_count": limit,
                "filter_user_id": str(user_id),
                "distance_metric": metric,
            },
        ).execute()
        return response.data or []

    except Exception as e:
        logger.warning(f"match_ai_documents failed for user {user_id}: {e}")
        raise


def list_rows_missing_vector(batch_size: int = 5000) -> list[dict[str, Any]]:
    """Rows that have a JSON embedding but no embedding_vector yet."""
    supabase = get_supabase()
    response = (
        supabase.table(TABLE)
        .select("id, embedding")
        .not_.is_("embedding", "null")
        .is_("embedding_vector", "null")
        .limit(batch_size)
        .execute()
    )
    return response.data or []


def set_embedding_vector(row_id: Any, vector: list[float]) -> None:
    """Fill the pgvector column of one row."""
    supabase = get_supabase()
    supabase.table(TABLE).update({"embedding_vector": vector}).eq("id", row_id).execute()
