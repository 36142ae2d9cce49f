"""Protocol definition for embedding providers."""

from typing import Protocol


class EmbeddingProvider(Protocol):
    """Protocol for embedding provider implementations.

    Vector stores and retrievers receive a provider at construction, so
    the OpenAI-backed provider and the deterministic fake are
    interchangeable.
    """

    async def embed(self, text: str) -> list[float]:
        """Generate embedding vector for a single text.

        Args:
            text: Text to embed.

        Returns:
            Embedding vector as a list of floats.

        Raises:
            EmbeddingError: If embedding generation fails.
        """
        ...

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Generate embedding vectors for multiple texts.

        Args:
            texts: List of texts to embed.

        Returns:
            List of embedding vectors, in the same order as ``texts``.

        Raises:
            EmbeddingError: If embedding generation fails.
        """
        ...

    @property
    def dimensions(self) -> int:
        """Return the dimensionality of embeddings produced by this provider."""
        ...
