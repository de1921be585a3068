"""Social posts (LinkedIn, Twitter/X, Facebook) from press release text."""

from functools import lru_cache

from press_engine.chains.base import Chain, PromptChain
from press_engine.core.output_parser import validate_input, validate_output
from press_engine.core.provider import CompletionProvider
from press_engine.core.schemas_press import SocialPosts, SocialPostsInput
from press_engine.core.tracing import MetricsBuffer, TracedChain, with_tracing

TEMPLATE = """Create social media posts based on the following press release.

=== PRESS RELEASE ===
{press_release}
=== END ===

Requirements:
- Do NOT add extra explanations
- Respect each platform's limits (twitter at most 280 characters)
- Vary the wording, do not repeat the headline verbatim

{format_instructions}
"""


def build_social_posts_chain(
    provider: CompletionProvider | None = None,
    buffer: MetricsBuffer | None = None,
) -> TracedChain[SocialPostsInput, SocialPosts]:
    chain = PromptChain(
        name="social_posts_chain",
        template=TEMPLATE,
        input_variables=["press_release"],
        provider=provider,
        output_schema=SocialPosts,
    )
    return with_tracing(chain, buffer=buffer)


@lru_cache(maxsize=1)
def get_social_posts_chain() -> TracedChain[SocialPostsInput, SocialPosts]:
    return build_social_posts_chain()


async def generate_social_posts(
    press_release: str | SocialPostsInput,
    chain: Chain[SocialPostsInput, SocialPosts] | None = None,
) -> SocialPosts:
    data = validate_input(
        SocialPostsInput,
        {"press_release": press_release} if isinstance(press_release, str) else press_release,
    )
    result = await (chain or get_social_posts_chain()).invoke(data)
    return validate_output(SocialPosts, result)
