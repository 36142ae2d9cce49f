"""Library configuration using pydantic-settings."""

from functools import lru_cache

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables and an optional ``.env``."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Application
    app_name: str = "memory-retriever"
    app_version: str = "0.1.0"
    debug: bool = False

    # Embeddings
    embedding_provider: str = "fake"  # "fake" or "openai"
    embedding_api_key: SecretStr | None = None
    embedding_base_url: str | None = None  # None uses the OpenAI default
    embedding_model: str = "text-embedding-3-small"
    embedding_timeout_seconds: float = 30.0
    fake_embedding_vector: list[float] = Field(
        default_factory=lambda: [0.1, 0.2, 0.3, 0.4]
    )

    # Circuit breaker
    circuit_breaker_fail_max: int = 5
    circuit_breaker_timeout: float = 60.0

    # Retriever
    retriever_k: int = Field(default=4, gt=0)  # Number of documents to return
    retriever_score_threshold: float | None = None  # Min cosine score (-1 to 1)

    # Observability
    log_level: str = "INFO"
    json_logs: bool = False
    tracing_enabled: bool = True
    otlp_endpoint: str | None = None
    trace_console_export: bool = False
    trace_sample_rate: float = Field(default=1.0, ge=0.0, le=1.0)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
