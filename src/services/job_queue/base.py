"""Job queue interface."""
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Optional
from uuid import UUID

from src.services.code_review.job_executor import JobResult

# (review_id, attempt) -> JobResult; attempt is 1-based
JobHandler = Callable[[UUID, int], Awaitable[JobResult]]

# review_id -> whether a terminal failure was recorded
ExhaustedHandler = Callable[[UUID], Awaitable[bool]]


class JobQueue(ABC):
    """
    At-least-once delivery of review jobs.

    Each delivery calls the subscribed handler with the review id and the
    attempt number. A job is delivered again, with the next attempt number,
    while the handler reports ``RETRY`` and the attempt budget allows it.
    When the last delivery raises instead of returning, the ``on_exhausted``
    callback gets the review id so it can still be failed.
    No ordering is guaranteed across reviews.
    """

    def __init__(self, max_attempts: int):
        self.max_attempts = max_attempts
        self._handler: Optional[JobHandler] = None
        self._on_exhausted: Optional[ExhaustedHandler] = None

    def subscribe(self, handler: JobHandler, on_exhausted: Optional[ExhaustedHandler] = None) -> None:
        self._handler = handler
        self._on_exhausted = on_exhausted

    @property
    def handler(self) -> JobHandler:
        if self._handler is None:
            raise RuntimeError("No handler subscribed to the job queue")
        return self._handler

    @abstractmethod
    async def enqueue(self, review_id: UUID) -> None:
        """Schedule the first delivery of the job for ``review_id``."""
        pass

    async def start(self) -> None:
        """Begin delivering jobs."""

    async def stop(self) -> None:
        """Stop delivering jobs and release resources."""
