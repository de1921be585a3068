"""Tests for the naive in-memory keyword index."""

from press_engine.core.chunking import split_text
from press_engine.core.schemas_rag import Chunk, RawDocument
from press_engine.core.vector_index import NaiveVectorIndex


def _chunk(i: int, content: str) -> Chunk:
    return Chunk(id=f"p::{i}", parent_id="p", content=content, index=i)


def _index(*contents: str) -> NaiveVectorIndex:
    index = NaiveVectorIndex()
    index.add_chunks(_chunk(i, c) for i, c in enumerate(contents))
    return index


def test_search_ranks_by_term_matches():
    index = _index(
        "Acme launches a product",
        "Acme platform upgrade cuts latency",
        "Unrelated weather report",
        "Platform news",
    )

    results = index.search("acme platform latency", k=5)

    assert [c.content for c in results] == [
        "Acme platform upgrade cuts latency",
        "Acme launches a product",
        "Platform news",
    ]


def test_search_returns_at_most_k_matching_chunks():
    index = _index(*[f"release number {i}" for i in range(10)], "nothing here")
    terms = ["release", "number"]

    results = index.search("release number", k=3)

    assert len(results) == 3
    for chunk in results:
        assert any(t in chunk.content.lower() for t in terms)


def test_search_ties_keep_insertion_order():
    index = _index("alpha one", "alpha two", "alpha three")

    results = index.search("alpha", k=3)

    assert [c.index for c in results] == [0, 1, 2]


def test_search_is_case_insensitive_substring():
    index = _index("ACME Corporation")
    assert len(index.search("acme")) == 1


def test_search_edge_cases():
    index = _index("some content")

    assert index.search("content", k=0) == []
    assert index.search("   ") == []
    assert NaiveVectorIndex().search("content") == []


def test_build_from_documents_indexes_once():
    index = NaiveVectorIndex()
    docs = [
        RawDocument(id="d1", source="past_release", content="x" * 1000),
        RawDocument(id="d2", source="company_profile", content="y" * 10),
    ]

    assert index.build_from_documents(docs, max_len=400) == 4
    assert index.build_from_documents(docs, max_len=400) == 0
    assert len(index) == 4


def test_retrieve_returns_snippets():
    index = NaiveVectorIndex()
    index.add_chunks(split_text("doc", "keyword " * 100, max_len=800))

    fragments = index.retrieve("keyword", k=1)

    assert len(fragments) == 1
    assert len(fragments[0].content) == 400
    assert fragments[0].source_id == "doc::0"
    assert fragments[0].score is None
    assert fragments[0].stage == "naive-index"


def test_clear():
    index = _index("a", "b")
    index.clear()
    assert len(index) == 0
