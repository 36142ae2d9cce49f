"""Build a retriever from application settings."""

from collections.abc import Sequence

from memory_retriever.config import Settings
from memory_retriever.infrastructure.vectordb import InMemoryVectorStore
from memory_retriever.modules.retrieval.callbacks import RetrieverObserver
from memory_retriever.modules.retrieval.retriever import VectorStoreRetriever


def create_retriever(
    store: InMemoryVectorStore,
    settings: Settings,
    *,
    observers: Sequence[RetrieverObserver] = (),
) -> VectorStoreRetriever:
    """Create a retriever over ``store`` using the configured k and threshold."""
    return store.as_retriever(
        k=settings.retriever_k,
        observers=observers,
        score_threshold=settings.retriever_score_threshold,
    )
