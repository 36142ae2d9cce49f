"""Retrieval module.

Wraps a similarity-search backend with a fixed result size and
start/end/error observer notifications around every call.
"""

from memory_retriever.modules.retrieval.callbacks import (
    ON_END,
    ON_ERROR,
    ON_START,
    RetrieverObserver,
    dispatch,
)
from memory_retriever.modules.retrieval.exceptions import ObserverError, RetrieverError
from memory_retriever.modules.retrieval.factory import create_retriever
from memory_retriever.modules.retrieval.retriever import VectorStoreRetriever
from memory_retriever.modules.retrieval.schemas import RetrieverConfig

__all__ = [
    "ON_END",
    "ON_ERROR",
    "ON_START",
    "ObserverError",
    "RetrieverConfig",
    "RetrieverError",
    "RetrieverObserver",
    "VectorStoreRetriever",
    "create_retriever",
    "dispatch",
]
