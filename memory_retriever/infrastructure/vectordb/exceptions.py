"""Exceptions for vector stores."""


class VectorStoreError(Exception):
    """Base exception for vector store errors."""

    def __init__(self, message: str, *, provider: str = "unknown") -> None:
        self.provider = provider
        super().__init__(message)


class DimensionMismatchError(VectorStoreError):
    """Raised when a vector's length disagrees with the store's dimensionality."""

    def __init__(
        self,
        expected: int,
        actual: int,
        *,
        provider: str = "unknown",
    ) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Expected vectors of dimension {expected}, got {actual}",
            provider=provider,
        )
