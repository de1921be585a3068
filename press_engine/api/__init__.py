"""API router for v1 endpoints."""

from fastapi import APIRouter

from press_engine.api import ai, rag, usage

router = APIRouter()

# AI generation routes (rate limited)
router.include_router(ai.router, prefix="/ai", tags=["ai"])

# Document ingestion and search routes (rate limited)
router.include_router(rag.router, prefix="/rag", tags=["rag"])

# Usage summary and internal metrics
router.include_router(usage.router, tags=["usage"])
