"""API endpoints for AI generation: releases, edits, translations, ads, social posts."""

from fastapi import APIRouter, Depends

from press_engine.api.deps import enforce_rate_limit, get_user_id
from press_engine.core.logging import get_logger
from press_engine.core.schemas_press import (
    AdInput,
    AdStructured,
    EditInput,
    GeneratedRelease,
    GenerateRequest,
    SocialPosts,
    SocialPostsInput,
    TextResult,
    TranslationInput,
)
from press_engine.services.operations import PressOperations, get_operations

logger = get_logger(__name__)

router = APIRouter(dependencies=[Depends(enforce_rate_limit)])


@router.post("/generate", response_model=GeneratedRelease)
async def generate(
    request: GenerateRequest,
    user_id: str = Depends(get_user_id),
    ops: PressOperations = Depends(get_operations),
) -> GeneratedRelease:
    """
    Generate a structured press release.

    Args:
        request: Generation context plus mode ("normal" or "rag")

    Returns:
        Headline, assembled release text, structured fields and rag info

    Raises:
        QuotaExceededError 429: Monthly token quota exceeded
        SchemaValidationError 422: Model output failed validation
        ProviderError 502: Upstream model failure
    """
    logger.info(f"Generating press release for user {user_id} (mode={request.mode})")
    return await ops.generate_release(user_id, request)


@router.post("/edit", response_model=TextResult)
async def edit(
    request: EditInput,
    user_id: str = Depends(get_user_id),
    ops: PressOperations = Depends(get_operations),
) -> TextResult:
    """Apply an editing instruction to a release."""
    return await ops.edit_release(user_id, request)


@router.post("/translate", response_model=TextResult)
async def translate(
    request: TranslationInput,
    user_id: str = Depends(get_user_id),
    ops: PressOperations = Depends(get_operations),
) -> TextResult:
    return await ops.translate_release(user_id, request)


@router.post("/social-posts", response_model=SocialPosts)
async def social_posts(
    request: SocialPostsInput,
    user_id: str = Depends(get_user_id),
    ops: PressOperations = Depends(get_operations),
) -> SocialPosts:
    return await ops.create_social_posts(user_id, request)


@router.post("/ads", response_model=AdStructured)
async def ads(
    request: AdInput,
    user_id: str = Depends(get_user_id),
    ops: PressOperations = Depends(get_operations),
) -> AdStructured:
    """Generate ad copy (google_ads or facebook) from release text."""
    return await ops.create_ad(user_id, request)
