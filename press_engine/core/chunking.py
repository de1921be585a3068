"""Text chunking for retrieval."""

from press_engine.core.schemas_rag import Chunk

DEFAULT_MAX_LEN = 800


def split_text(parent_id: str, text: str, max_len: int = DEFAULT_MAX_LEN) -> list[Chunk]:
    """
    Split text into fixed-length, non-overlapping chunks.

    Works on raw characters, not tokens, and ignores sentence boundaries, so a
    chunk may end mid-word. Concatenating the chunk contents in order gives
    back the original text. The last chunk may be shorter than max_len.

    Args:
        parent_id: Id of the document the chunks belong to
        text: Text to chunk
        max_len: Maximum characters per chunk

    Returns:
        List of chunks with ids "{parent_id}::{index}" and 0-based indices

    Raises:
        ValueError: If max_len <= 0
    """
    if max_len <= 0:
        raise ValueError(f"max_len must be positive (got {max_len})")

    chunks = []
    for index, offset in enumerate(range(0, len(text), max_len)):
        chunks.append(
            Chunk(
                id=f"{parent_id}::{index}",
                parent_id=parent_id,
                content=text[offset : offset + max_len],
                index=index,
            )
        )
    return chunks
