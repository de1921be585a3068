"""Naive in-memory keyword index.

Fallback only: used when no persistent document store is available. Scores a
chunk by how many lowercased query terms occur in it as substrings. State
lives in the process and is lost on restart.
"""

from collections.abc import Iterable

from press_engine.core.chunking import DEFAULT_MAX_LEN, split_text
from press_engine.core.logging import get_logger
from press_engine.core.schemas_rag import Chunk, RawDocument, RetrievedFragment

logger = get_logger(__name__)

SNIPPET_CHARS = 400


def tokenize_query(query: str) -> list[str]:
    return query.lower().split()


class NaiveVectorIndex:
    """Append-only list of chunks with keyword-overlap search."""

    def __init__(self) -> None:
        self._chunks: list[Chunk] = []
        self._indexed_parents: set[str] = set()

    def add_chunks(self, chunks: Iterable[Chunk]) -> None:
        for chunk in chunks:
            self._chunks.append(chunk)
            self._indexed_parents.add(chunk.parent_id)

    def clear(self) -> None:
        self._chunks.clear()
        self._indexed_parents.clear()

    def __len__(self) -> int:
        return len(self._chunks)

    def search(self, query: str, k: int = 5) -> list[Chunk]:
        """
        Return up to k chunks containing at least one query term.

        Sorted by descending match count; ties keep insertion order.
        """
        if k <= 0:
            return []
        terms = tokenize_query(query)
        if not terms:
            return []

        scored = []
        for chunk in self._chunks:
            text = chunk.content.lower()
            score = sum(1 for term in terms if term in text)
            if score > 0:
                scored.append((score, chunk))

        # sorted() is stable, so equal scores stay in insertion order
        scored = sorted(scored, key=lambda pair: pair[0], reverse=True)
        return [chunk for _, chunk in scored[:k]]

    def build_from_documents(
        self, documents: Iterable[RawDocument], max_len: int = DEFAULT_MAX_LEN
    ) -> int:
        """
        Split and index documents that are not indexed yet.

        Returns:
            Number of chunks added
        """
        added = 0
        for doc in documents:
            if doc.id in self._indexed_parents:
                continue
            chunks = split_text(doc.id, doc.content, max_len)
            self.add_chunks(chunks)
            self._indexed_parents.add(doc.id)
            added += len(chunks)
        if added:
            logger.debug(f"Naive index: added {added} chunks, total {len(self._chunks)}")
        return added

    def retrieve(self, query: str, k: int = 5) -> list[RetrievedFragment]:
        """Search and shape hits as fragments with a short snippet."""
        return [
            RetrievedFragment(
                content=chunk.content[:SNIPPET_CHARS],
                source_id=chunk.id,
                score=None,
                source="naive_index",
                title=f"{chunk.parent_id} (part {chunk.index + 1})",
                stage="naive-index",
            )
            for chunk in self.search(query, k)
        ]
