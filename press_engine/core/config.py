"""Configuration management for Press Engine."""

from enum import Enum
from functools import lru_cache

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from .env file (only if accessible)
try:
    load_dotenv()
except (PermissionError, OSError):
    # In sandboxed environments, .env might not be accessible
    pass


class LimitsMode(str, Enum):
    """Global switch shared by quota accounting and rate limiting."""

    OFF = "off"  # limits enforced
    SOFT = "soft"  # always allowed, overruns flagged
    FULL_BYPASS = "full-bypass"  # always allowed, nothing tracked


class VectorStrategy(str, Enum):
    """Where document embeddings are compared against the query."""

    JSON = "json"
    NATIVE_VECTOR = "native-vector"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    # Supabase configuration (required)
    SUPABASE_URL: str = Field(..., description="Supabase project URL")
    SUPABASE_SERVICE_ROLE_KEY: str = Field(..., description="Supabase service role key")

    # OpenAI configuration (required)
    OPENAI_API_KEY: str = Field(..., description="OpenAI API key")

    # Environment
    PRESS_ENGINE_ENV: str = Field(default="dev", description="Environment: dev, staging, prod")

    # Chat model configuration
    OPENAI_MODEL: str = Field(default="gpt-4o", description="Chat model for all prompt chains")
    CHAT_TEMPERATURE: float = Field(default=0.4, description="Chat model temperature")

    # Embedding configuration
    OPENAI_EMBEDDINGS_MODEL: str = Field(
        default="text-embedding-3-small", description="OpenAI embedding model"
    )
    EMBEDDING_DIM: int = Field(default=1536, description="Embedding vector dimension")

    # Retrieval configuration
    RAG_VECTOR_STRATEGY: VectorStrategy = Field(
        default=VectorStrategy.JSON, description="json or native-vector"
    )
    RAG_VECTOR_METRIC: str = Field(default="cosine", description="cosine or l2 (native-vector only)")
    RAG_CHUNK_SIZE: int = Field(default=2000, description="Chunk size for document ingestion")
    RAG_FETCH_LIMIT: int = Field(
        default=200, description="Documents pulled for in-process similarity ranking"
    )
    RAG_STAGE_TIMEOUT_S: float = Field(default=15.0, description="Timeout per retrieval stage")
    RAG_FAILURE_ALERT_THRESHOLD: int = Field(
        default=3, description="Consecutive all-stage retrieval failures before escalation"
    )

    # Quota and rate limiting
    FREE_PLAN_MONTHLY_TOKENS: int = Field(default=200_000, description="Monthly token ceiling")
    RATE_LIMIT_WINDOW_MS: int = Field(default=60_000, description="Rate limit window in ms")
    RATE_LIMIT_MAX_CALLS: int = Field(default=60, description="Max calls per window")
    DISABLE_LIMITS: LimitsMode = Field(
        default=LimitsMode.OFF, description="off, soft or full-bypass"
    )

    @field_validator("DISABLE_LIMITS", mode="before")
    @classmethod
    def _parse_limits_mode(cls, value):
        if value is None:
            return LimitsMode.OFF
        if isinstance(value, str):
            normalized = value.strip().lower()
            legacy = {"": "off", "0": "off", "1": "full-bypass", "bypass": "full-bypass"}
            return legacy.get(normalized, normalized)
        return value

    @field_validator("RAG_VECTOR_STRATEGY", mode="before")
    @classmethod
    def _parse_vector_strategy(cls, value):
        if isinstance(value, str):
            normalized = value.strip().lower()
            return "native-vector" if normalized == "pgvector" else normalized
        return value

    @field_validator("RAG_VECTOR_METRIC")
    @classmethod
    def _check_metric(cls, value: str) -> str:
        if value not in ("cosine", "l2"):
            raise ValueError("RAG_VECTOR_METRIC must be 'cosine' or 'l2'")
        return value


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings instance

    Raises:
        ValidationError: If required environment variables are missing
    """
    return Settings()
