"""Exceptions for embedding providers."""


class EmbeddingError(Exception):
    """Base exception for embedding provider errors."""

    def __init__(self, message: str, *, provider: str = "unknown") -> None:
        self.provider = provider
        super().__init__(message)


class EmbeddingTimeoutError(EmbeddingError):
    """Raised when an embedding request times out."""


class EmbeddingRateLimitError(EmbeddingError):
    """Raised when rate limited by the embedding provider."""


class EmbeddingConfigurationError(EmbeddingError):
    """Raised when there's a configuration issue (e.g., missing API key)."""
