"""Pydantic schemas for press-release generation inputs and model outputs."""

from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

AdPlatform = Literal["google_ads", "facebook"]


def _empty_or_bounded(value: str, min_len: int, max_len: int) -> str:
    """Optional strings are either empty (not supplied) or within their bounds."""
    if value and not (min_len <= len(value) <= max_len):
        raise ValueError(
            f"must be empty or between {min_len} and {max_len} characters (got {len(value)})"
        )
    return value


# =============================================================================
# Inputs
# =============================================================================


class GenerationContext(BaseModel):
    """Per-request context for press-release generation. Never persisted."""

    brand_tone: str = Field(default="Neutral, professional", description="Tone of voice")
    company_name: str = Field(..., min_length=1, description="Issuing company")
    company_boilerplate: str = Field(default="", description="About-the-company text, if any")
    main_story: str = Field(..., min_length=1, description="The news being announced")
    quote: str = Field(default="", description="Spokesperson quote, if any")


class HeadlineInput(BaseModel):
    context: str = Field(..., min_length=1)


class EditInput(BaseModel):
    instruction: str = Field(..., min_length=1, description="What to change")
    original: str = Field(..., min_length=1, description="Current full release text")


class TranslationInput(BaseModel):
    source: str = Field(..., min_length=1)
    target_language: str = Field(..., min_length=2)


class AdInput(BaseModel):
    platform: AdPlatform
    press_release: str = Field(..., min_length=1)


class SocialPostsInput(BaseModel):
    press_release: str = Field(..., min_length=1)


# =============================================================================
# Model outputs
# =============================================================================


class HeadlineQuality(BaseModel):
    length_ok: bool = Field(..., description="Headline is within 120 characters")
    style_ok: bool = Field(..., description="Neutral news style, no exclamation points")
    avoids_hype: bool = Field(..., description="No unsubstantiated superlatives")


class HeadlineResult(BaseModel):
    """Single media-style headline with self-assessed quality flags."""

    headline: str = Field(..., min_length=10, max_length=120)
    reasoning: str = Field(default="", description="Short explanation of the choice")
    quality: HeadlineQuality


class ContactInfo(BaseModel):
    """Press contact. Left empty unless supplied by the caller."""

    name: str = ""
    email: str = ""
    phone: str = ""


class StructuredPressRelease(BaseModel):
    """Deterministic JSON shape of a generated press release."""

    headline: str = Field(..., min_length=10, max_length=160, description="No quotes")
    subheadline: str = Field(
        default="", description="Expands the headline (10-220 chars) or empty string"
    )
    body: str = Field(..., min_length=200, description="Plain paragraphs, no markdown")
    quote: str = Field(default="", description="Only the supplied quote, else empty")
    boilerplate: str = Field(default="", description="Only the supplied boilerplate, else empty")
    contact: ContactInfo = Field(default_factory=ContactInfo)

    @field_validator("subheadline")
    @classmethod
    def _subheadline_bounds(cls, value: str) -> str:
        return _empty_or_bounded(value, 10, 220)


class AdVariant(BaseModel):
    headline: str = Field(..., min_length=5, max_length=60)
    primary_text: str = Field(..., min_length=20, max_length=300)


class AdStructured(BaseModel):
    """Advertisement copy for one platform with 1-3 test variants."""

    platform: AdPlatform
    headline: str = Field(..., min_length=5, max_length=60, description="Primary ad headline")
    primary_text: str = Field(
        ..., min_length=20, max_length=300, description="Main ad copy / primary text"
    )
    description: str = Field(default="", description="10-160 chars or empty string")
    cta: str = Field(..., min_length=2, max_length=25, description='e.g. "Learn More"')
    variants: list[AdVariant] = Field(
        ..., min_length=1, max_length=3, description="Alternative variants for testing"
    )

    @field_validator("description")
    @classmethod
    def _description_bounds(cls, value: str) -> str:
        return _empty_or_bounded(value, 10, 160)


class SocialPosts(BaseModel):
    linkedin: str = Field(..., description="Professional post (authoritative, value-driven)")
    twitter: str = Field(..., max_length=280, description="Short post, at most 280 characters")
    facebook: str = Field(..., description="Friendlier post for a broad audience")


# =============================================================================
# Operation results
# =============================================================================


class GenerateRequest(GenerationContext):
    mode: Literal["normal", "rag"] = Field(default="normal", description="rag splices stored context")


class RagContextInfo(BaseModel):
    """What retrieval contributed to a generation."""

    used: bool = False
    chunks: list[dict[str, Any]] = Field(default_factory=list)
    reason: str | None = None
    error: str | None = None


class GeneratedRelease(BaseModel):
    headline: str
    release: str = Field(..., description="Assembled release text")
    structured: StructuredPressRelease
    mode: str = "normal"
    rag: RagContextInfo | None = None
    latency_ms: int


class TextResult(BaseModel):
    """Free-text chain output (edits, translations)."""

    text: str
    latency_ms: int
