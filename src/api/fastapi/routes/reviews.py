from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from src.models.schemas.code_reviews import CodeReviewSubmit
from src.models.schemas.responses import (
    CodeReviewListResponse,
    CodeReviewResponse,
    MessageResponse,
    ReviewStatsResponse,
)
from src.services.code_review.review_service import ReviewService

router = APIRouter(
    tags=["Reviews"],
)

@router.get("/reviews", response_model=CodeReviewListResponse)
def list_reviews(
    user_name: str = Query(..., min_length=1),
    review_service: ReviewService = Depends(ReviewService)
):
    """Get the most recent reviews submitted under a name"""
    return CodeReviewListResponse(success=True, data=review_service.list_for_user(user_name))

@router.post("/reviews", response_model=CodeReviewResponse, status_code=status.HTTP_201_CREATED)
async def submit_review(
    submission: CodeReviewSubmit,
    review_service: ReviewService = Depends(ReviewService)
):
    """Submit code for asynchronous review"""
    review = await review_service.submit(submission)
    return CodeReviewResponse(
        success=True,
        message="Code submitted successfully. Analysis in progress.",
        data=review,
    )

@router.get("/reviews/{review_id}", response_model=CodeReviewResponse)
def get_review(
    review_id: UUID,
    review_service: ReviewService = Depends(ReviewService)
):
    """Get a single review with all of its issues"""
    return CodeReviewResponse(success=True, data=review_service.get(review_id))

@router.delete("/reviews/{review_id}", response_model=MessageResponse)
def delete_review(
    review_id: UUID,
    review_service: ReviewService = Depends(ReviewService)
):
    """Delete a review and its issues"""
    review_service.delete(review_id)
    return MessageResponse(success=True, message="Review deleted successfully.")

@router.get("/stats", response_model=ReviewStatsResponse)
def get_stats(
    user_name: str = Query(..., min_length=1),
    review_service: ReviewService = Depends(ReviewService)
):
    """Get review statistics for a name"""
    return ReviewStatsResponse(success=True, data=review_service.stats(user_name))
