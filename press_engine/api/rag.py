"""API endpoints for document ingestion and search."""

from typing import Literal

from fastapi import APIRouter, Depends, Query

from press_engine.api.deps import enforce_rate_limit, get_user_id
from press_engine.core.schemas_rag import DocumentIn, IngestResult, SearchResponse
from press_engine.services.operations import PressOperations, get_operations

router = APIRouter(dependencies=[Depends(enforce_rate_limit)])


@router.post("/documents", response_model=IngestResult)
async def ingest_document(
    doc: DocumentIn,
    user_id: str = Depends(get_user_id),
    ops: PressOperations = Depends(get_operations),
) -> IngestResult:
    """
    Split, embed and store a raw document.

    Returns:
        Parent id, inserted row count and chunk ids
    """
    return await ops.ingest(user_id, doc)


@router.get("/search", response_model=SearchResponse)
async def search_documents(
    q: str = Query(..., min_length=1, description="Search query"),
    mode: Literal["keyword", "semantic"] = Query("keyword", description="keyword or semantic"),
    user_id: str = Depends(get_user_id),
    ops: PressOperations = Depends(get_operations),
) -> SearchResponse:
    return await ops.search_documents(user_id, q, mode=mode)
