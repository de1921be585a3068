"""
Press release generators.

Two chains share the same GenerationContext input:

- structured: JSON matching StructuredPressRelease, used by the app to render
  and store releases (`assemble_release_text` turns it into the final copy)
- free text: a complete AP-style release as plain text

`build_rag_story` splices retrieved context fragments into the main_story
slot before generation, so the model only draws on supplied facts.
"""

from collections.abc import Mapping, Sequence
from functools import lru_cache
from typing import Any

from press_engine.chains.base import Chain, PromptChain
from press_engine.core.logging import get_logger
from press_engine.core.output_parser import validate_input, validate_output
from press_engine.core.provider import CompletionProvider
from press_engine.core.schemas_press import ContactInfo, GenerationContext, StructuredPressRelease
from press_engine.core.schemas_rag import RetrievedFragment
from press_engine.core.tracing import MetricsBuffer, TracedChain, with_tracing

logger = get_logger(__name__)

CONTEXT_VARIABLES = ["company_name", "main_story", "brand_tone", "company_boilerplate", "quote"]

STRUCTURED_TEMPLATE = """You are a professional PR editor. Using the input below, produce the structure of a press release as JSON.

Input:
Company: {company_name}
Main story: {main_story}
Brand tone: {brand_tone}
Boilerplate (if empty, do not make one up): {company_boilerplate}
Spokesperson quote (if empty, do not make one up): {quote}

Requirements:
- Do NOT invent facts
- headline up to 160 characters, no quotation marks
- subheadline expands on the headline (return an empty string if that is not possible)
- body: structured paragraphs, no markdown
- quote: empty string if no quote was supplied
- boilerplate: only if one was supplied
- leave all contact fields empty (do not invent people or emails)

{format_instructions}"""

TEXT_TEMPLATE = """You are a professional PR manager.
Write a press release in Associated Press style.

Company: {company_name}
Main story: {main_story}
Brand tone: {brand_tone}
Company boilerplate: {company_boilerplate}
Spokesperson quote: {quote}

Requirements:
- Do NOT invent facts
- Keep neutral, professional wording
- Structure: Headline, Subheadline, Body, Quote, Boilerplate, Contact (leave a placeholder for contacts if none given)

Return only the press release text without any extra commentary."""

RAG_STORY_TEMPLATE = """Context (do not invent anything outside of it; if a fact is missing, leave it out):
---
{context}
---

Main task:
{main_story}"""


# =============================================================================
# Chains
# =============================================================================


def build_structured_press_release_chain(
    provider: CompletionProvider | None = None,
    buffer: MetricsBuffer | None = None,
) -> TracedChain[GenerationContext, StructuredPressRelease]:
    chain = PromptChain(
        name="structured_press_release_chain",
        template=STRUCTURED_TEMPLATE,
        input_variables=CONTEXT_VARIABLES,
        provider=provider,
        output_schema=StructuredPressRelease,
    )
    return with_tracing(chain, buffer=buffer)


def build_press_release_text_chain(
    provider: CompletionProvider | None = None,
    buffer: MetricsBuffer | None = None,
) -> TracedChain[GenerationContext, str]:
    chain = PromptChain(
        name="press_release_text_chain",
        template=TEXT_TEMPLATE,
        input_variables=CONTEXT_VARIABLES,
        provider=provider,
    )
    return with_tracing(chain, buffer=buffer)


@lru_cache(maxsize=1)
def get_structured_press_release_chain() -> TracedChain[GenerationContext, StructuredPressRelease]:
    return build_structured_press_release_chain()


@lru_cache(maxsize=1)
def get_press_release_text_chain() -> TracedChain[GenerationContext, str]:
    return build_press_release_text_chain()


# =============================================================================
# Entry points
# =============================================================================


def _drop_unsupplied(context: GenerationContext, release: StructuredPressRelease) -> StructuredPressRelease:
    """Blank out quote, boilerplate and contact the caller never supplied."""
    updates: dict[str, Any] = {}
    if not context.quote.strip() and release.quote:
        updates["quote"] = ""
    if not context.company_boilerplate.strip() and release.boilerplate:
        updates["boilerplate"] = ""
    if release.contact != ContactInfo():
        updates["contact"] = ContactInfo()

    if updates:
        logger.warning(f"Dropped unsupplied fields from generated release: {sorted(updates)}")
        return release.model_copy(update=updates)
    return release


async def generate_structured_press_release(
    context: GenerationContext | Mapping[str, Any],
    chain: Chain[GenerationContext, StructuredPressRelease] | None = None,
) -> StructuredPressRelease:
    """
    Generate a structured press release.

    Empty optional inputs map to empty outputs: a quote, boilerplate or contact
    the caller did not supply is never returned.

    Args:
        context: GenerationContext or equivalent mapping
        chain: Optional chain override (tests)

    Returns:
        Validated StructuredPressRelease

    Raises:
        AIValidationError: Invalid context
        SchemaValidationError: Model output violates the schema
        ProviderError: Completion failed
    """
    data = validate_input(GenerationContext, context)
    result = await (chain or get_structured_press_release_chain()).invoke(data)
    # Doubles may hand back plain dicts
    release = validate_output(StructuredPressRelease, result)
    return _drop_unsupplied(data, release)


async def generate_press_release_text(
    context: GenerationContext | Mapping[str, Any],
    chain: Chain[GenerationContext, str] | None = None,
) -> str:
    """Generate a complete press release as plain AP-style text."""
    data = validate_input(GenerationContext, context)
    return await (chain or get_press_release_text_chain()).invoke(data)


# =============================================================================
# Helpers
# =============================================================================


def assemble_release_text(release: StructuredPressRelease) -> str:
    """Render a structured release as final copy, skipping empty parts."""
    parts = [
        release.headline,
        f"{release.subheadline}\n" if release.subheadline else "",
        release.body,
        f"\nQuote:\n{release.quote}" if release.quote else "",
        f"\nBoilerplate:\n{release.boilerplate}" if release.boilerplate else "",
    ]
    return "\n\n".join(part for part in parts if part)


def format_context_block(fragments: Sequence[RetrievedFragment]) -> str:
    blocks = []
    for i, fragment in enumerate(fragments, start=1):
        score = "n/a" if fragment.score is None else f"{fragment.score:.3f}"
        blocks.append(f"[[CHUNK {i} source={fragment.source} score={score}]]\n{fragment.content}")
    return "\n\n".join(blocks)


def build_rag_story(fragments: Sequence[RetrievedFragment], main_story: str) -> str:
    """Prefix the main story with labelled context fragments; unchanged when there are none."""
    if not fragments:
        return main_story
    return RAG_STORY_TEMPLATE.format(context=format_context_block(fragments), main_story=main_story)
