"""Types and protocols shared by vector store implementations."""

import copy
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Protocol


def _hashable(value: Any) -> Any:
    """Convert nested metadata values into a hashable equivalent."""
    if isinstance(value, Mapping):
        return frozenset((k, _hashable(v)) for k, v in value.items())
    if isinstance(value, list | tuple):
        return tuple(_hashable(v) for v in value)
    if isinstance(value, set | frozenset):
        return frozenset(_hashable(v) for v in value)
    return value


@dataclass(frozen=True)
class Document:
    """A unit of text and metadata returned by similarity search.

    Equality is structural: two documents are equal when both
    ``page_content`` and ``metadata`` are equal. Metadata is deep-copied on
    construction and exposed read-only, so a document cannot change after
    it is created.
    """

    page_content: str
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        frozen = MappingProxyType(copy.deepcopy(dict(self.metadata)))
        object.__setattr__(self, "metadata", frozen)

    def __hash__(self) -> int:
        return hash((self.page_content, _hashable(self.metadata)))


@dataclass(frozen=True)
class StoredEntry:
    """A document paired with its embedding inside a vector store."""

    document: Document
    embedding: list[float]
    index: int  # Insertion position, used as the ranking tie-break


@dataclass(frozen=True)
class RetrievalResult:
    """Result from a vector similarity search."""

    document: Document
    score: float  # Cosine similarity in [-1, 1]; higher is more similar
    index: int


DocumentFilter = Callable[[Document], bool]


class SimilaritySearcher(Protocol):
    """Anything that can rank stored documents against a query vector.

    This is the only capability a retriever needs from its backend.
    """

    async def similarity_search(
        self,
        query_vector: Sequence[float],
        k: int,
        *,
        filter: DocumentFilter | None = None,
    ) -> list[RetrievalResult]:
        """Return the top ``k`` results by descending similarity.

        Args:
            query_vector: Query embedding.
            k: Maximum number of results (positive).
            filter: Optional predicate restricting candidate documents.

        Returns:
            Results sorted by descending score, ties by insertion order.
        """
        ...


class VectorStore(SimilaritySearcher, Protocol):
    """Protocol for writable vector stores."""

    async def add_documents(self, documents: Sequence[Document]) -> None:
        """Embed and append documents in input order.

        Raises:
            DimensionMismatchError: If a vector's length is inconsistent.
            EmbeddingError: If the embedding provider fails.
        """
        ...

    async def add_vectors(
        self,
        vectors: Sequence[Sequence[float]],
        documents: Sequence[Document],
    ) -> None:
        """Append documents with precomputed embeddings.

        Raises:
            DimensionMismatchError: If a vector's length is inconsistent.
        """
        ...

    def count(self) -> int:
        """Return the number of stored entries."""
        ...
