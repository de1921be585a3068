"""
Translation chain.

Company and product names, emails and phone numbers stay untranslated and
paragraph breaks are kept. Email addresses and the paragraph-break count are
checked on the result; a translation that loses either is rejected.
"""

import re
from collections.abc import Mapping
from functools import lru_cache
from typing import Any

from press_engine.chains.base import Chain, PromptChain
from press_engine.core.errors import SchemaValidationError, Violation
from press_engine.core.output_parser import validate_input
from press_engine.core.provider import CompletionProvider
from press_engine.core.schemas_press import TranslationInput
from press_engine.core.tracing import MetricsBuffer, TracedChain, with_tracing

TEMPLATE = """You are a professional translator specializing in business and press releases.
Translate the following press release into {target_language}.
Rules:
- Preserve meaning, tone and professional structure.
- Do NOT translate company names, product names, emails, phone numbers.
- Keep paragraph breaks.
- Do NOT add commentary.

=== SOURCE START ===
{source}
=== SOURCE END ===

Return only the translated press release content."""

EMAIL_RE = re.compile(r"[\w.+-]+@[\w-]+(?:\.[\w-]+)+")
PARAGRAPH_BREAK_RE = re.compile(r"\n[ \t]*\n")


def count_paragraph_breaks(text: str) -> int:
    return len(PARAGRAPH_BREAK_RE.findall(text.strip()))


def translation_violations(source: str, translated: str) -> list[Violation]:
    """Emails missing from the translation and paragraph-break drift."""
    violations = [
        Violation("emails", f"missing {email!r}")
        for email in dict.fromkeys(EMAIL_RE.findall(source))
        if email not in translated
    ]
    expected = count_paragraph_breaks(source)
    actual = count_paragraph_breaks(translated)
    if expected != actual:
        violations.append(Violation("paragraphs", f"expected {expected} paragraph breaks, got {actual}"))
    return violations


def build_translation_chain(
    provider: CompletionProvider | None = None,
    buffer: MetricsBuffer | None = None,
) -> TracedChain[TranslationInput, str]:
    chain = PromptChain(
        name="translation_chain",
        template=TEMPLATE,
        input_variables=["source", "target_language"],
        provider=provider,
    )
    return with_tracing(chain, buffer=buffer)


@lru_cache(maxsize=1)
def get_translation_chain() -> TracedChain[TranslationInput, str]:
    return build_translation_chain()


async def translate_press_release(
    args: TranslationInput | Mapping[str, Any],
    chain: Chain[TranslationInput, str] | None = None,
) -> str:
    """
    Translate a release into the target language.

    Raises:
        SchemaValidationError: Translation dropped an email or changed paragraph breaks
    """
    data = validate_input(TranslationInput, args)
    translated = await (chain or get_translation_chain()).invoke(data)

    violations = translation_violations(data.source, translated)
    if violations:
        raise SchemaValidationError("Translation", violations)
    return translated
