"""Pytest configuration and fixtures."""

import os

import pytest

from press_engine.core.quota import QuotaChecker
from press_engine.core.retrieval import RetrievalOrchestrator
from press_engine.core.schemas_press import GenerationContext
from press_engine.core.tracing import MetricsBuffer
from press_engine.core.usage import UsageLedger
from press_engine.services.operations import ChainOverrides, PressOperations
from tests.fakes.fake_provider import FakeChain, FakeProvider
from tests.fakes.fake_settings import make_settings
from tests.fakes.fake_stores import FakeDocumentStore, FakeUsageStore


@pytest.fixture(scope="session", autouse=True)
def setup_test_env():
    """Set up test environment variables."""
    os.environ["SUPABASE_URL"] = "https://test.supabase.co"
    os.environ["SUPABASE_SERVICE_ROLE_KEY"] = "test-key"
    os.environ["OPENAI_API_KEY"] = "test-openai-key"
    os.environ["PRESS_ENGINE_ENV"] = "test"


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def document_store():
    return FakeDocumentStore()


@pytest.fixture
def usage_store():
    return FakeUsageStore()


@pytest.fixture
def metrics_buffer():
    return MetricsBuffer()


@pytest.fixture
def generation_context():
    return GenerationContext(
        company_name="Acme Corp",
        main_story="Acme Corp upgrades its platform, cutting latency by 40 percent.",
        brand_tone="Professional, confident",
    )


@pytest.fixture
def release_payload():
    """A structurally valid StructuredPressRelease payload."""
    return {
        "headline": "Acme Corp Launches Platform Upgrade",
        "subheadline": "Enhancing performance and reliability for global users",
        "body": (
            "Acme Corp today announced a significant platform upgrade that improves latency "
            "and throughput across core services. The release follows months of optimization "
            "and user feedback integration.\n\nThe upgrade is available to all customers "
            "starting today at no additional cost."
        ),
        "quote": "",
        "boilerplate": "",
        "contact": {"name": "", "email": "", "phone": ""},
    }


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def ad_payload():
    return {
        "platform": "google_ads",
        "headline": "Acme Platform, 40% Faster",
        "primary_text": "Upgrade today and cut latency across your core services.",
        "description": "",
        "cta": "Learn More",
        "variants": [
            {"headline": "Faster Acme Platform", "primary_text": "Lower latency for every workload, at no extra cost."},
        ],
    }


@pytest.fixture
def chains(release_payload, ad_payload):
    """Chain doubles for every operation."""
    return ChainOverrides(
        structured_release=FakeChain(payload=release_payload),
        edit=FakeChain(payload="Edited release."),
        translate=FakeChain(payload="Hallo Welt."),
        ad=FakeChain(payload=ad_payload),
        social=FakeChain(payload={"linkedin": "In", "twitter": "Tw", "facebook": "Fb"}),
    )


@pytest.fixture
def operations(provider, document_store, usage_store, settings, chains):
    """PressOperations wired to in-memory stores and chain doubles."""
    return PressOperations(
        quota=QuotaChecker(usage_store, monthly_limit=settings.FREE_PLAN_MONTHLY_TOKENS),
        ledger=UsageLedger(usage_store),
        retrieval=RetrievalOrchestrator(provider=provider, store=document_store),
        document_store=document_store,
        provider=provider,
        settings=settings,
        chains=chains,
    )
