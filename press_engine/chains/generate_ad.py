"""Ad generator: google_ads and facebook copy with 1-3 test variants."""

from collections.abc import Mapping
from functools import lru_cache
from typing import Any

from press_engine.chains.base import Chain, PromptChain
from press_engine.core.output_parser import validate_input, validate_output
from press_engine.core.provider import CompletionProvider
from press_engine.core.schemas_press import AdInput, AdStructured
from press_engine.core.tracing import MetricsBuffer, TracedChain, with_tracing

TEMPLATE = """You are a performance marketing copywriter.
Create an advertisement JSON for platform: {platform} based on the press release content.
Rules:
- Do NOT invent facts.
- Keep tone persuasive but professional.
- Provide 1-3 alternative variants (variants array) targeting slightly different angles.
- CTA must be a short action phrase (e.g., "Learn More", "Get Started", "Request Demo").
- For google_ads keep headline <= 60 chars; for facebook remain concise.

Press Release:
{press_release}

{format_instructions}"""


def build_ad_chain(
    provider: CompletionProvider | None = None,
    buffer: MetricsBuffer | None = None,
) -> TracedChain[AdInput, AdStructured]:
    chain = PromptChain(
        name="ad_generator_chain",
        template=TEMPLATE,
        input_variables=["platform", "press_release"],
        provider=provider,
        output_schema=AdStructured,
    )
    return with_tracing(chain, buffer=buffer)


@lru_cache(maxsize=1)
def get_ad_chain() -> TracedChain[AdInput, AdStructured]:
    return build_ad_chain()


async def generate_ad(
    args: AdInput | Mapping[str, Any],
    chain: Chain[AdInput, AdStructured] | None = None,
) -> AdStructured:
    """Generate ad copy for one platform from press release text."""
    data = validate_input(AdInput, args)
    result = await (chain or get_ad_chain()).invoke(data)
    return validate_output(AdStructured, result)
