"""Retriever that turns a text query into ranked documents."""

from collections.abc import Sequence
from dataclasses import replace
from uuid import uuid4

import structlog

from memory_retriever.infrastructure.embeddings import EmbeddingProvider
from memory_retriever.infrastructure.observability import get_tracer, record_error
from memory_retriever.infrastructure.vectordb import Document
from memory_retriever.modules.retrieval.callbacks import (
    ON_END,
    ON_ERROR,
    ON_START,
    RetrieverObserver,
    dispatch,
)
from memory_retriever.modules.retrieval.exceptions import ObserverError
from memory_retriever.modules.retrieval.schemas import RetrieverConfig

logger = structlog.get_logger()
tracer = get_tracer(__name__)


class VectorStoreRetriever:
    """Retriever backed by any object exposing ``similarity_search``.

    Each call gets a fresh run id and notifies observers in registration
    order: ``on_start`` before any work, ``on_end`` with the results before
    returning, and ``on_error`` if embedding or search fails. Nothing is
    cached; every call re-embeds the query and re-scans the store.
    """

    def __init__(
        self,
        embedding_provider: EmbeddingProvider,
        config: RetrieverConfig,
    ) -> None:
        """Initialize the retriever.

        Args:
            embedding_provider: Provider for generating query embeddings.
            config: Result size, backing store, observers and filters.
        """
        self._embeddings = embedding_provider
        # Own copy so add_observer never touches a config shared elsewhere
        self._config = replace(config, observers=list(config.observers))

    @property
    def config(self) -> RetrieverConfig:
        return self._config

    def add_observer(self, observer: RetrieverObserver) -> None:
        """Register an observer to run after those already registered."""
        self._config.observers.append(observer)

    async def get_relevant_documents(
        self,
        query: str,
        *,
        observers: Sequence[RetrieverObserver] | None = None,
    ) -> list[Document]:
        """Retrieve the documents most similar to ``query``.

        Args:
            query: The search query.
            observers: Extra observers for this call only, notified after
                the configured ones.

        Returns:
            Up to ``k`` documents ordered by descending similarity.

        Raises:
            ObserverError: If an observer callback fails.
            EmbeddingError: If the query cannot be embedded.
            VectorStoreError: If the backing store fails.
        """
        run_id = uuid4()
        call_observers = [*self._config.observers, *(observers or ())]

        with tracer.start_as_current_span("retrieval.get_relevant_documents") as span:
            span.set_attribute("retrieval.run_id", str(run_id))
            span.set_attribute("retrieval.query_length", len(query))
            span.set_attribute("retrieval.top_k", self._config.k)
            span.set_attribute("retrieval.observer_count", len(call_observers))

            try:
                await dispatch(call_observers, ON_START, run_id, query)
            except ObserverError as e:
                record_error(span, e)
                raise

            try:
                query_vector = await self._embeddings.embed(query)
                results = await self._config.vector_store.similarity_search(
                    query_vector,
                    self._config.k,
                    filter=self._config.filter,
                )
            except Exception as e:
                record_error(span, e)
                logger.error(
                    "retrieval_failed",
                    run_id=str(run_id),
                    error=str(e),
                    error_type=type(e).__name__,
                )
                await dispatch(call_observers, ON_ERROR, run_id, e)
                raise

            threshold = self._config.score_threshold
            if threshold is not None:
                results = [r for r in results if r.score >= threshold]

            documents = [result.document for result in results]
            span.set_attribute("retrieval.results_count", len(documents))
            if results:
                span.set_attribute("retrieval.top_score", results[0].score)

            try:
                await dispatch(call_observers, ON_END, run_id, list(documents))
            except ObserverError as e:
                record_error(span, e)
                raise

            logger.info(
                "retrieval_complete",
                run_id=str(run_id),
                query_length=len(query),
                top_k=self._config.k,
                returned_count=len(documents),
            )
            return documents
