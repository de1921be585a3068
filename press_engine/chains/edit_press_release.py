"""Edit chain: applies a user instruction to a release while preserving its structure."""

from collections.abc import Mapping
from functools import lru_cache
from typing import Any

from press_engine.chains.base import Chain, PromptChain
from press_engine.core.output_parser import validate_input
from press_engine.core.provider import CompletionProvider
from press_engine.core.schemas_press import EditInput
from press_engine.core.tracing import MetricsBuffer, TracedChain, with_tracing

TEMPLATE = """You are an expert press release editor.
Apply the user's instruction to improve the press release below.
Rules:
- Maintain professional press release style.
- Do not invent new facts.
- Preserve existing structure, unless instruction explicitly requests restructuring.
- Return ONLY the updated full press release content.

User instruction:
{instruction}

=== ORIGINAL START ===
{original}
=== ORIGINAL END ==="""


def build_edit_chain(
    provider: CompletionProvider | None = None,
    buffer: MetricsBuffer | None = None,
) -> TracedChain[EditInput, str]:
    chain = PromptChain(
        name="edit_chain",
        template=TEMPLATE,
        input_variables=["instruction", "original"],
        provider=provider,
    )
    return with_tracing(chain, buffer=buffer)


@lru_cache(maxsize=1)
def get_edit_chain() -> TracedChain[EditInput, str]:
    return build_edit_chain()


async def edit_press_release(
    args: EditInput | Mapping[str, Any],
    chain: Chain[EditInput, str] | None = None,
) -> str:
    """Return the full edited release text."""
    data = validate_input(EditInput, args)
    return await (chain or get_edit_chain()).invoke(data)
