"""Vector store infrastructure.

Provides the document and result types, the Protocol every similarity
backend satisfies, and the in-memory cosine-similarity store.
"""

from memory_retriever.infrastructure.vectordb.exceptions import (
    DimensionMismatchError,
    VectorStoreError,
)
from memory_retriever.infrastructure.vectordb.locks import ReadWriteLock
from memory_retriever.infrastructure.vectordb.memory import InMemoryVectorStore
from memory_retriever.infrastructure.vectordb.protocol import (
    Document,
    DocumentFilter,
    RetrievalResult,
    SimilaritySearcher,
    StoredEntry,
    VectorStore,
)
from memory_retriever.infrastructure.vectordb.similarity import cosine_scores

__all__ = [
    "DimensionMismatchError",
    "Document",
    "DocumentFilter",
    "InMemoryVectorStore",
    "ReadWriteLock",
    "RetrievalResult",
    "SimilaritySearcher",
    "StoredEntry",
    "VectorStore",
    "VectorStoreError",
    "cosine_scores",
]
