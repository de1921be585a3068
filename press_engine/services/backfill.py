"""Copy JSON-encoded embeddings into the native vector column."""

from typing import Any, Protocol

from press_engine.core.embeddings import parse_stored_embedding
from press_engine.core.logging import get_logger

logger = get_logger(__name__)


class VectorBackfillStore(Protocol):
    def list_rows_missing_vector(self, batch_size: int = 5000) -> list[dict[str, Any]]: ...

    def set_embedding_vector(self, row_id: Any, vector: list[float]) -> None: ...


def backfill_vector_column(
    store: VectorBackfillStore | None = None,
    batch_size: int = 5000,
    expected_dim: int | None = None,
) -> dict[str, int]:
    """
    Fill embedding_vector for one batch of rows that only have a JSON embedding.

    Rows with unparseable or wrong-sized embeddings are skipped and counted.

    Returns:
        Dict with found, converted and skipped counts
    """
    if store is None:
        from press_engine.db import ai_documents as store

    rows = store.list_rows_missing_vector(batch_size)
    stats = {"found": len(rows), "converted": 0, "skipped": 0}
    if not rows:
        logger.info("No rows without embedding_vector")
        return stats

    for row in rows:
        vector = parse_stored_embedding(row.get("embedding"))
        if not vector or (expected_dim is not None and len(vector) != expected_dim):
            logger.warning(f"Skipping row {row.get('id')}: unusable embedding")
            stats["skipped"] += 1
            continue
        store.set_embedding_vector(row["id"], vector)
        stats["converted"] += 1

    logger.info(f"Backfill converted {stats['converted']} of {stats['found']} rows")
    return stats
