"""Tests for strict schema validation of model output."""

import json

import pytest

from press_engine.core.errors import AIValidationError, SchemaValidationError
from press_engine.core.output_parser import parse_structured, validate_input, validate_output
from press_engine.core.schemas_press import (
    AdStructured,
    GenerationContext,
    SocialPosts,
    StructuredPressRelease,
)


def _ad(**overrides):
    ad = {
        "platform": "google_ads",
        "headline": "Faster Platform for Teams",
        "primary_text": "Acme's upgrade cuts latency by 40 percent for every customer.",
        "description": "",
        "cta": "Learn More",
        "variants": [
            {"headline": "Cut Latency by 40%", "primary_text": "See how Acme's upgrade speeds up your services."}
        ],
    }
    ad.update(overrides)
    return ad


def test_parse_structured_valid(release_payload):
    result = parse_structured(StructuredPressRelease, json.dumps(release_payload))

    assert result.headline == "Acme Corp Launches Platform Upgrade"
    assert len(result.body) >= 200


def test_parse_structured_tolerates_fences_and_prose(release_payload):
    raw = "Here is the release:\n```json\n" + json.dumps(release_payload) + "\n```"
    result = parse_structured(StructuredPressRelease, raw)
    assert result.subheadline == release_payload["subheadline"]

    raw = "Sure! " + json.dumps(release_payload) + " Let me know if you need changes."
    assert parse_structured(StructuredPressRelease, raw).headline == release_payload["headline"]


def test_parse_structured_ignores_trailing_prose():
    posts = {"linkedin": "In", "twitter": "Tw", "facebook": "Fb"}

    result = parse_structured(SocialPosts, json.dumps(posts, indent=2) + "\n\nHope this helps!")
    assert result.twitter == "Tw"

    result = parse_structured(SocialPosts, "Draft [v2]: " + json.dumps(posts) + " Enjoy {and share}.")
    assert result.facebook == "Fb"


def test_parse_structured_applies_defaults(release_payload):
    del release_payload["quote"]
    del release_payload["contact"]

    result = parse_structured(StructuredPressRelease, json.dumps(release_payload))

    assert result.quote == ""
    assert result.contact.email == ""


def test_parse_structured_empty_output():
    with pytest.raises(SchemaValidationError) as exc_info:
        parse_structured(StructuredPressRelease, "   ")

    assert exc_info.value.violations[0].path == "$"
    assert exc_info.value.status_code == 422


def test_parse_structured_not_json():
    with pytest.raises(SchemaValidationError):
        parse_structured(StructuredPressRelease, "I cannot help with that.")


def test_parse_structured_lists_every_violation(release_payload):
    release_payload["headline"] = "Too short"
    release_payload["body"] = "Short body."

    with pytest.raises(SchemaValidationError) as exc_info:
        parse_structured(StructuredPressRelease, json.dumps(release_payload))

    paths = {v.path for v in exc_info.value.violations}
    assert paths == {"headline", "body"}
    assert exc_info.value.schema_name == "StructuredPressRelease"


def test_parse_structured_does_not_coerce_types(release_payload):
    release_payload["quote"] = 42

    with pytest.raises(SchemaValidationError) as exc_info:
        parse_structured(StructuredPressRelease, json.dumps(release_payload))

    assert exc_info.value.violations[0].path == "quote"


def test_subheadline_empty_or_within_bounds(release_payload):
    release_payload["subheadline"] = ""
    assert parse_structured(StructuredPressRelease, json.dumps(release_payload)).subheadline == ""

    release_payload["subheadline"] = "Short"
    with pytest.raises(SchemaValidationError) as exc_info:
        parse_structured(StructuredPressRelease, json.dumps(release_payload))
    assert exc_info.value.violations[0].path == "subheadline"


def test_ad_headline_over_60_chars_rejected_on_any_platform():
    for platform in ("google_ads", "facebook"):
        raw = json.dumps(_ad(platform=platform, headline="H" * 70))

        with pytest.raises(SchemaValidationError) as exc_info:
            parse_structured(AdStructured, raw)

        assert [v.path for v in exc_info.value.violations] == ["headline"]


def test_ad_variants_bounds():
    assert len(parse_structured(AdStructured, json.dumps(_ad())).variants) == 1

    with pytest.raises(SchemaValidationError):
        parse_structured(AdStructured, json.dumps(_ad(variants=[])))

    variant = _ad()["variants"][0]
    with pytest.raises(SchemaValidationError):
        parse_structured(AdStructured, json.dumps(_ad(variants=[variant] * 4)))


def test_ad_description_empty_or_bounded():
    assert parse_structured(AdStructured, json.dumps(_ad(description=""))).description == ""

    with pytest.raises(SchemaValidationError):
        parse_structured(AdStructured, json.dumps(_ad(description="Too short")))


def test_ad_unknown_platform_rejected():
    with pytest.raises(SchemaValidationError):
        parse_structured(AdStructured, json.dumps(_ad(platform="tiktok")))


def test_social_twitter_limit():
    posts = {"linkedin": "Long post", "twitter": "t" * 280, "facebook": "Friendly post"}
    assert len(parse_structured(SocialPosts, json.dumps(posts)).twitter) == 280

    posts["twitter"] = "t" * 281
    with pytest.raises(SchemaValidationError) as exc_info:
        parse_structured(SocialPosts, json.dumps(posts))
    assert exc_info.value.violations[0].path == "twitter"


def test_validate_output_accepts_dicts_and_instances(release_payload):
    release = validate_output(StructuredPressRelease, release_payload)
    assert validate_output(StructuredPressRelease, release) is release

    with pytest.raises(SchemaValidationError):
        validate_output(StructuredPressRelease, {"headline": "x"})


def test_validate_input_reports_violations():
    with pytest.raises(AIValidationError) as exc_info:
        validate_input(GenerationContext, {"main_story": "News"})

    error = exc_info.value
    assert error.status_code == 400
    assert not isinstance(error, SchemaValidationError)
    assert error.to_dict()["details"] == [{"path": "company_name", "reason": "Field required"}]


def test_generation_context_defaults():
    context = validate_input(GenerationContext, {"company_name": "Acme", "main_story": "News"})

    assert context.brand_tone == "Neutral, professional"
    assert context.company_boilerplate == ""
    assert context.quote == ""
