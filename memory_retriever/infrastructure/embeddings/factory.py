"""Build an embedding provider from application settings."""

import structlog

from memory_retriever.config import Settings
from memory_retriever.infrastructure.embeddings.exceptions import (
    EmbeddingConfigurationError,
)
from memory_retriever.infrastructure.embeddings.fake import FakeEmbeddingProvider
from memory_retriever.infrastructure.embeddings.openai import (
    OpenAIEmbeddingProvider,
)
from memory_retriever.infrastructure.embeddings.protocol import EmbeddingProvider

logger = structlog.get_logger()


def create_embedding_provider(settings: Settings) -> EmbeddingProvider:
    """Create the embedding provider selected by ``settings.embedding_provider``.

    Args:
        settings: Application settings.

    Returns:
        A configured embedding provider.

    Raises:
        EmbeddingConfigurationError: If the provider name is unknown or the
            selected provider is missing required settings.
    """
    name = settings.embedding_provider.lower()

    if name == FakeEmbeddingProvider.PROVIDER_NAME:
        provider: EmbeddingProvider = FakeEmbeddingProvider(
            settings.fake_embedding_vector
        )
    elif name == OpenAIEmbeddingProvider.PROVIDER_NAME:
        api_key = (
            settings.embedding_api_key.get_secret_value()
            if settings.embedding_api_key
            else ""
        )
        provider = OpenAIEmbeddingProvider(
            api_key,
            model=settings.embedding_model,
            base_url=settings.embedding_base_url,
            timeout_seconds=settings.embedding_timeout_seconds,
            circuit_breaker_fail_max=settings.circuit_breaker_fail_max,
            circuit_breaker_timeout=settings.circuit_breaker_timeout,
        )
    else:
        raise EmbeddingConfigurationError(
            f"Unknown embedding provider: {settings.embedding_provider!r}",
            provider=name,
        )

    logger.info("embedding_provider_created", provider=name)
    return provider
