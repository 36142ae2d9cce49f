"""Schemas for the retrieval module."""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from memory_retriever.infrastructure.vectordb import DocumentFilter, SimilaritySearcher

if TYPE_CHECKING:
    from memory_retriever.modules.retrieval.callbacks import RetrieverObserver


@dataclass
class RetrieverConfig:
    """How a retriever queries its backing store."""

    vector_store: SimilaritySearcher
    k: int = 4  # Number of documents to return
    observers: list["RetrieverObserver"] = field(default_factory=list)
    filter: DocumentFilter | None = None
    score_threshold: float | None = None  # Drop results scoring below this

    def __post_init__(self) -> None:
        """Reject a non-positive result size."""
        if isinstance(self.k, bool) or not isinstance(self.k, int) or self.k < 1:
            raise ValueError(f"k must be a positive integer, got {self.k!r}")
