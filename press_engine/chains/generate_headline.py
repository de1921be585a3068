"""Headline generator: short, neutral, news-desk style headlines."""

from functools import lru_cache

from press_engine.chains.base import Chain, PromptChain
from press_engine.core.output_parser import validate_input, validate_output
from press_engine.core.provider import CompletionProvider
from press_engine.core.schemas_press import HeadlineInput, HeadlineResult
from press_engine.core.tracing import MetricsBuffer, TracedChain, with_tracing

TEMPLATE = """You are an experienced business news editor.
Based on the context below, write one concise headline (at most 120 characters) without marketing hype.

Context:
{context}

Requirements:
- No exclamation marks.
- Avoid subjective epithets ("innovative", "revolutionary") unless the context substantiates them.
- Style: neutral, newsroom.
- Rate your own headline in the quality flags honestly.

{format_instructions}"""


def build_headline_chain(
    provider: CompletionProvider | None = None,
    buffer: MetricsBuffer | None = None,
) -> TracedChain[HeadlineInput, HeadlineResult]:
    chain = PromptChain(
        name="headline_chain",
        template=TEMPLATE,
        input_variables=["context"],
        provider=provider,
        output_schema=HeadlineResult,
    )
    return with_tracing(chain, buffer=buffer)


@lru_cache(maxsize=1)
def get_headline_chain() -> TracedChain[HeadlineInput, HeadlineResult]:
    return build_headline_chain()


async def generate_headline(
    context: str | HeadlineInput,
    chain: Chain[HeadlineInput, HeadlineResult] | None = None,
) -> HeadlineResult:
    """Generate a headline for free-text context (company, story, tone...)."""
    data = validate_input(HeadlineInput, {"context": context} if isinstance(context, str) else context)
    result = await (chain or get_headline_chain()).invoke(data)
    return validate_output(HeadlineResult, result)
