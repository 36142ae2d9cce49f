"""Embedding provider infrastructure.

This module provides a Protocol-based abstraction for embedding providers,
allowing the OpenAI-backed provider and the deterministic fake to be
swapped without changing the vector store or retriever.
"""

from memory_retriever.infrastructure.embeddings.exceptions import (
    EmbeddingConfigurationError,
    EmbeddingError,
    EmbeddingRateLimitError,
    EmbeddingTimeoutError,
)
from memory_retriever.infrastructure.embeddings.factory import (
    create_embedding_provider,
)
from memory_retriever.infrastructure.embeddings.fake import (
    DEFAULT_FAKE_VECTOR,
    FakeEmbeddingProvider,
)
from memory_retriever.infrastructure.embeddings.openai import (
    OpenAIEmbeddingProvider,
)
from memory_retriever.infrastructure.embeddings.protocol import EmbeddingProvider

__all__ = [
    "DEFAULT_FAKE_VECTOR",
    "EmbeddingConfigurationError",
    "EmbeddingError",
    "EmbeddingProvider",
    "EmbeddingRateLimitError",
    "EmbeddingTimeoutError",
    "FakeEmbeddingProvider",
    "OpenAIEmbeddingProvider",
    "create_embedding_provider",
]
