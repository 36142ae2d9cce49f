"""Exceptions for the retrieval module."""

from typing import Any
from uuid import UUID


class RetrieverError(Exception):
    """Base exception for retriever errors."""


class ObserverError(RetrieverError):
    """Raised when an observer callback fails during a retrieval call.

    The callback's exception is chained as ``__cause__``.
    """

    def __init__(self, hook: str, run_id: UUID, observer: Any) -> None:
        self.hook = hook
        self.run_id = run_id
        self.observer = observer
        super().__init__(
            f"Observer {type(observer).__name__}.{hook} failed for run {run_id}"
        )
