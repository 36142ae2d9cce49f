"""In-memory vector store with exact cosine similarity search."""

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

import numpy as np
import numpy.typing as npt
import structlog
from opentelemetry.trace import Span

from memory_retriever.infrastructure.embeddings import EmbeddingError, EmbeddingProvider
from memory_retriever.infrastructure.observability import (
    get_tracer,
    record_error,
    traced,
)
from memory_retriever.infrastructure.vectordb.exceptions import DimensionMismatchError
from memory_retriever.infrastructure.vectordb.locks import ReadWriteLock
from memory_retriever.infrastructure.vectordb.protocol import (
    Document,
    DocumentFilter,
    RetrievalResult,
    StoredEntry,
)
from memory_retriever.infrastructure.vectordb.similarity import cosine_scores, rank

if TYPE_CHECKING:
    from memory_retriever.modules.retrieval import (
        RetrieverObserver,
        VectorStoreRetriever,
    )

logger = structlog.get_logger()
tracer = get_tracer(__name__)


class InMemoryVectorStore:
    """Vector store keeping every entry in process memory.

    Search is an exact scan: each stored vector is scored against the
    query with cosine similarity and the best ``k`` are returned, ties
    going to the entry inserted first. The first insertion fixes the
    store's dimensionality.

    Reads share a lock and writes take it exclusively, so concurrent
    ``add_documents`` and ``similarity_search`` calls never observe a
    half-applied batch.
    """

    PROVIDER_NAME = "memory"

    def __init__(self, embedding_provider: EmbeddingProvider) -> None:
        """Initialize an empty store.

        Args:
            embedding_provider: Provider used to embed added documents and
                text queries.
        """
        self._embeddings = embedding_provider
        self._entries: list[StoredEntry] = []
        self._matrix: npt.NDArray[np.float64] = np.empty((0, 0), dtype=np.float64)
        self._dimensions: int | None = None
        self._lock = ReadWriteLock()

    @property
    def embedding_provider(self) -> EmbeddingProvider:
        """Return the provider used to embed documents and queries."""
        return self._embeddings

    @property
    def dimensions(self) -> int | None:
        """Return the store's vector length, or None before the first insert."""
        return self._dimensions

    def count(self) -> int:
        """Return the number of stored entries."""
        return len(self._entries)

    @classmethod
    @traced("vectordb.from_documents")
    async def from_documents(
        cls,
        documents: Sequence[Document],
        embedding_provider: EmbeddingProvider,
    ) -> "InMemoryVectorStore":
        """Create a store and add ``documents`` to it."""
        store = cls(embedding_provider)
        await store.add_documents(documents)
        return store

    @classmethod
    async def from_texts(
        cls,
        texts: Sequence[str],
        metadatas: Sequence[dict[str, Any]] | dict[str, Any] | None,
        embedding_provider: EmbeddingProvider,
    ) -> "InMemoryVectorStore":
        """Create a store from raw texts.

        ``metadatas`` may be one mapping per text, a single mapping shared
        by every text, or None.
        """
        if metadatas is None or isinstance(metadatas, dict):
            shared = metadatas or {}
            metadata_list = [dict(shared) for _ in texts]
        else:
            if len(metadatas) != len(texts):
                raise ValueError(
                    f"Got {len(metadatas)} metadatas for {len(texts)} texts"
                )
            metadata_list = [dict(m) for m in metadatas]

        documents = [
            Document(page_content=text, metadata=metadata)
            for text, metadata in zip(texts, metadata_list, strict=True)
        ]
        return await cls.from_documents(documents, embedding_provider)

    async def add_documents(self, documents: Sequence[Document]) -> None:
        """Embed documents with one batch call and append them in order.

        Args:
            documents: Documents to add.

        Raises:
            DimensionMismatchError: If any vector's length disagrees with the
                store or the rest of the batch. The store is left unchanged.
            EmbeddingError: If the provider fails or returns the wrong
                number of vectors.
        """
        if not documents:
            return

        with tracer.start_as_current_span("vectordb.add_documents") as span:
            span.set_attribute("vectordb.provider", self.PROVIDER_NAME)
            span.set_attribute("vectordb.document_count", len(documents))

            try:
                vectors = await self._embeddings.embed_batch(
                    [doc.page_content for doc in documents]
                )
                if len(vectors) != len(documents):
                    raise EmbeddingError(
                        f"Provider returned {len(vectors)} vectors "
                        f"for {len(documents)} documents"
                    )
            except EmbeddingError as e:
                record_error(span, e)
                logger.error(
                    "store_embedding_failed",
                    provider=self.PROVIDER_NAME,
                    document_count=len(documents),
                    error=str(e),
                )
                raise

            await self._append(vectors, documents, span)

    async def add_vectors(
        self,
        vectors: Sequence[Sequence[float]],
        documents: Sequence[Document],
    ) -> None:
        """Append documents with precomputed embeddings.

        Raises:
            ValueError: If ``vectors`` and ``documents`` differ in length.
            DimensionMismatchError: If any vector's length is inconsistent.
        """
        if len(vectors) != len(documents):
            raise ValueError(
                f"Got {len(vectors)} vectors for {len(documents)} documents"
            )
        if not documents:
            return

        with tracer.start_as_current_span("vectordb.add_vectors") as span:
            span.set_attribute("vectordb.provider", self.PROVIDER_NAME)
            span.set_attribute("vectordb.document_count", len(documents))
            await self._append(vectors, documents, span)

    async def _append(
        self,
        vectors: Sequence[Sequence[float]],
        documents: Sequence[Document],
        span: Span,
    ) -> None:
        async with self._lock.write():
            try:
                batch = self._validate(vectors)
            except DimensionMismatchError as e:
                record_error(span, e)
                logger.error(
                    "store_dimension_mismatch",
                    provider=self.PROVIDER_NAME,
                    expected=e.expected,
                    actual=e.actual,
                    document_count=len(documents),
                )
                raise

            start = len(self._entries)
            new_entries = [
                StoredEntry(document=doc, embedding=row.tolist(), index=start + i)
                for i, (doc, row) in enumerate(zip(documents, batch, strict=True))
            ]
            self._entries.extend(new_entries)
            self._matrix = batch if start == 0 else np.vstack([self._matrix, batch])
            self._dimensions = batch.shape[1]

            span.set_attribute("vectordb.total_count", len(self._entries))
            logger.debug(
                "store_documents_added",
                provider=self.PROVIDER_NAME,
                count=len(documents),
                total_count=len(self._entries),
                dimensions=self._dimensions,
            )

    def _validate(
        self, vectors: Sequence[Sequence[float]]
    ) -> npt.NDArray[np.float64]:
        """Check every vector against the established dimensionality.

        Returns:
            The batch as an (n, d) float array.
        """
        expected = self._dimensions
        for vec in vectors:
            if expected is None:
                expected = len(vec)
            elif len(vec) != expected:
                raise DimensionMismatchError(
                    expected, len(vec), provider=self.PROVIDER_NAME
                )
        if expected == 0:
            raise ValueError("Embedding vectors must not be empty")
        return np.array(vectors, dtype=np.float64, copy=True)

    async def similarity_search(
        self,
        query_vector: Sequence[float],
        k: int,
        *,
        filter: DocumentFilter | None = None,
    ) -> list[RetrievalResult]:
        """Return the ``k`` entries most similar to ``query_vector``.

        Args:
            query_vector: Query embedding.
            k: Maximum number of results; all matches are returned when
                ``k`` exceeds the store size.
            filter: Optional predicate; only documents it accepts are ranked.

        Returns:
            Results by descending cosine similarity, ties by insertion order.
            Empty when the store is empty.

        Raises:
            ValueError: If ``k`` is not positive.
            DimensionMismatchError: If the query length differs from the
                store's dimensionality.
        """
        if k < 1:
            raise ValueError(f"k must be a positive integer, got {k}")

        with tracer.start_as_current_span("vectordb.similarity_search") as span:
            span.set_attribute("vectordb.provider", self.PROVIDER_NAME)
            span.set_attribute("vectordb.top_k", k)

            async with self._lock.read():
                entries = self._entries
                matrix = self._matrix
                span.set_attribute("vectordb.collection_size", len(entries))

                if not entries:
                    span.set_attribute("vectordb.results_count", 0)
                    return []

                if len(query_vector) != self._dimensions:
                    error = DimensionMismatchError(
                        matrix.shape[1],
                        len(query_vector),
                        provider=self.PROVIDER_NAME,
                    )
                    record_error(span, error)
                    logger.error(
                        "store_query_dimension_mismatch",
                        provider=self.PROVIDER_NAME,
                        expected=error.expected,
                        actual=error.actual,
                    )
                    raise error

                if filter is not None:
                    positions = [
                        i for i, entry in enumerate(entries) if filter(entry.document)
                    ]
                    matrix = matrix[positions]
                    entries = [entries[i] for i in positions]

                scores = cosine_scores(matrix, query_vector)
                results = [
                    RetrievalResult(
                        document=entries[i].document,
                        score=float(scores[i]),
                        index=entries[i].index,
                    )
                    for i in rank(scores, k)
                ]

            span.set_attribute("vectordb.results_count", len(results))
            if results:
                span.set_attribute("vectordb.top_score", results[0].score)

            logger.debug(
                "store_query_success",
                provider=self.PROVIDER_NAME,
                top_k=k,
                filtered=filter is not None,
                results_count=len(results),
            )
            return results

    async def similarity_search_by_text(
        self,
        query: str,
        k: int,
        *,
        filter: DocumentFilter | None = None,
    ) -> list[RetrievalResult]:
        """Embed ``query`` and run ``similarity_search`` with it."""
        query_vector = await self._embeddings.embed(query)
        return await self.similarity_search(query_vector, k, filter=filter)

    def as_retriever(
        self,
        *,
        k: int = 4,
        observers: Sequence["RetrieverObserver"] = (),
        filter: DocumentFilter | None = None,
        score_threshold: float | None = None,
    ) -> "VectorStoreRetriever":
        """Build a retriever over this store using the store's provider."""
        from memory_retriever.modules.retrieval import (
            RetrieverConfig,
            VectorStoreRetriever,
        )

        config = RetrieverConfig(
            vector_store=self,
            k=k,
            observers=list(observers),
            filter=filter,
            score_threshold=score_threshold,
        )
        return VectorStoreRetriever(self._embeddings, config)
