"""Settings factory for tests that need explicit configuration."""

from press_engine.core.config import Settings


def make_settings(**overrides) -> Settings:
    """Settings with required secrets filled in; overrides win."""
    values = {
        "SUPABASE_URL": "https://test.supabase.co",
        "SUPABASE_SERVICE_ROLE_KEY": "test-key",
        "OPENAI_API_KEY": "test-openai-key",
        "PRESS_ENGINE_ENV": "test",
        **overrides,
    }
    return Settings(**values)
