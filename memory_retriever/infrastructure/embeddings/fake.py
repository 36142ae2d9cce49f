"""Deterministic embedding provider for tests and offline use."""

from collections.abc import Sequence

import structlog

logger = structlog.get_logger()

DEFAULT_FAKE_VECTOR: tuple[float, ...] = (0.1, 0.2, 0.3, 0.4)


class FakeEmbeddingProvider:
    """Embedding provider that maps every text to the same fixed vector.

    Every document therefore ties on similarity, which makes ranking fall
    back to insertion order.
    """

    PROVIDER_NAME = "fake"

    def __init__(self, vector: Sequence[float] = DEFAULT_FAKE_VECTOR) -> None:
        if not vector:
            raise ValueError("Fake embedding vector must not be empty")
        self._vector = [float(v) for v in vector]

    @property
    def dimensions(self) -> int:
        """Return the length of the fixed vector."""
        return len(self._vector)

    async def embed(self, text: str) -> list[float]:
        """Return a copy of the fixed vector."""
        return list(self._vector)

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Return one copy of the fixed vector per text."""
        logger.debug(
            "fake_embedding_batch",
            provider=self.PROVIDER_NAME,
            batch_size=len(texts),
        )
        return [list(self._vector) for _ in texts]
