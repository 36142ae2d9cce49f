"""Observer hooks invoked around each retrieval call."""

import inspect
from collections.abc import Sequence
from typing import Any, Protocol
from uuid import UUID

import structlog

from memory_retriever.infrastructure.vectordb import Document
from memory_retriever.modules.retrieval.exceptions import ObserverError

logger = structlog.get_logger()

ON_START = "on_start"
ON_END = "on_end"
ON_ERROR = "on_error"


class RetrieverObserver(Protocol):
    """Callbacks a retriever invokes for every call.

    Observers may implement any subset of these methods, either as plain
    functions or as coroutines. A missing method is skipped.
    """

    def on_start(self, run_id: UUID, query: str) -> Any:
        """Called before the query is embedded."""
        ...

    def on_end(self, run_id: UUID, documents: list[Document]) -> Any:
        """Called with the ranked documents before they are returned."""
        ...

    def on_error(self, run_id: UUID, error: BaseException) -> Any:
        """Called when embedding or search fails, before the error propagates."""
        ...


async def dispatch(
    observers: Sequence[object],
    hook: str,
    run_id: UUID,
    *args: Any,
) -> None:
    """Invoke ``hook`` on each observer in order, one at a time.

    Async callbacks are awaited before the next observer runs.

    Raises:
        ObserverError: On the first failing callback; later observers are
            not invoked.
    """
    for observer in observers:
        callback = getattr(observer, hook, None)
        if callback is None:
            continue

        try:
            result = callback(run_id, *args)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.error(
                "observer_failed",
                hook=hook,
                run_id=str(run_id),
                observer=type(observer).__name__,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise ObserverError(hook, run_id, observer) from e
