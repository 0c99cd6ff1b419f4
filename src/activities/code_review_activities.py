"""
Temporal activities for code review analysis.

The activity attempt counter kept by Temporal is the attempt number handed
to the job executor. A ``RETRY`` outcome is raised as a retryable
``ApplicationError`` so Temporal schedules the next attempt.
"""

import asyncio
from typing import Any, Dict
from uuid import UUID

from temporalio import activity
from temporalio.exceptions import ApplicationError

from src.services.code_review.exceptions import TERMINAL_FAILURE_MESSAGE
from src.services.code_review.review_store import ReviewStore
from src.services.job_queue.base import JobHandler
from src.utils.logging import get_logger

logger = get_logger(__name__)


class CodeReviewActivities:
    """Activity implementations bound to a job handler and a review store."""

    def __init__(self, handler: JobHandler, store: ReviewStore):
        self.handler = handler
        self.store = store

    @activity.defn(name="analyze_code_review")
    async def analyze_code_review(self, review_id: str) -> Dict[str, Any]:
        """
        Run one delivery of the analysis job.

        Args:
            review_id: Review UUID as a string

        Returns:
            ``JobResult.to_dict()`` for completed, failed and skipped outcomes

        Raises:
            ApplicationError (non_retryable=False): the attempt failed and the
                budget allows another one
        """
        attempt = activity.info().attempt
        logger.info(f"Delivering review {review_id} (attempt {attempt})")

        result = await self.handler(UUID(review_id), attempt)

        if result.should_retry:
            raise ApplicationError(
                f"Analysis attempt {attempt} failed for review {review_id}",
                result.error,
                type="AnalysisAttemptFailed",
                non_retryable=False,
            )
        return result.to_dict()

    @activity.defn(name="mark_review_failed")
    async def mark_review_failed(self, review_id: str) -> Dict[str, Any]:
        """Record a terminal failure when attempts ran out without one (e.g. worker crash)."""
        marked = await asyncio.to_thread(
            self.store.mark_failed, UUID(review_id), TERMINAL_FAILURE_MESSAGE
        )
        if marked:
            logger.error(f"Review {review_id} marked failed after its activity gave up")
        else:
            logger.info(f"Review {review_id} already terminal or deleted, nothing to mark")
        return {"review_id": review_id, "marked_failed": marked}
