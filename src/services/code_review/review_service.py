from typing import List
from uuid import UUID

from fastapi import Depends, HTTPException, Request, status

from src.models.schemas.code_reviews import CodeReviewRead, CodeReviewSubmit, ReviewStats
from src.services.code_review.review_store import ReviewStore
from src.services.job_queue.base import JobQueue
from src.utils.logging.otel_logger import logger


def get_review_store() -> ReviewStore:
    return ReviewStore()


def get_job_queue(request: Request) -> JobQueue:
    job_queue = getattr(request.app.state, "job_queue", None)
    if job_queue is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Analysis queue is not available."
        )
    return job_queue


class ReviewService:
    def __init__(
        self,
        store: ReviewStore = Depends(get_review_store),
        job_queue: JobQueue = Depends(get_job_queue),
    ):
        self.store = store
        self.job_queue = job_queue

    async def submit(self, submission: CodeReviewSubmit) -> CodeReviewRead:
        """
        Creates a pending review and enqueues its analysis job.
        The review is removed again if it cannot be enqueued.
        """
        review = self.store.create_review(submission)
        try:
            await self.job_queue.enqueue(review.id)
        except Exception as e:
            logger.error(f"Failed to enqueue review {review.id}: {e}")
            self.store.delete_review(review.id)
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Code could not be queued for analysis. Please try again."
            ) from e

        logger.info(f"Review {review.id} submitted by {review.user_name} ({review.filename})")
        return CodeReviewRead.model_validate(review)

    def list_for_user(self, user_name: str) -> List[CodeReviewRead]:
        return [CodeReviewRead.model_validate(review) for review in self.store.list_reviews(user_name)]

    def get(self, review_id: UUID) -> CodeReviewRead:
        review = self.store.get_review(review_id)
        if review is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Review not found."
            )
        return CodeReviewRead.model_validate(review)

    def delete(self, review_id: UUID) -> None:
        if not self.store.delete_review(review_id):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Review not found."
            )

    def stats(self, user_name: str) -> ReviewStats:
        return ReviewStats.model_validate(self.store.get_stats(user_name))
