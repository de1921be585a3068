"""Shared Supabase client for the document and usage stores."""

from functools import lru_cache
from urllib.parse import urlparse

from supabase import Client, create_client

from press_engine.core.config import get_settings
from press_engine.core.logging import get_logger

logger = get_logger(__name__)


@lru_cache(maxsize=1)
def get_supabase() -> Client:
    """
    Service-role client used by ai_documents, usage_events and user_profiles.

    Raises:
        RuntimeError: If the client cannot be created (bad URL or key)
    """
    settings = get_settings()
    project = urlparse(settings.SUPABASE_URL).hostname or settings.SUPABASE_URL
    try:
        client = create_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY)
    except Exception as e:
        raise RuntimeError(f"Failed to initialize Supabase client for {project}: {e}") from e

    logger.info(f"Supabase client ready for {project}")
    return client
