from pydantic import BaseModel
from typing import List, Optional

from src.models.schemas.code_reviews import CodeReviewRead, ReviewStats


class BaseResponse(BaseModel):
    """Base response model for all API responses"""

    success: bool


class ErrorResponse(BaseModel):
    """Error response model for 400 and 5xx responses"""

    success: bool = False
    errorMessage: str


class MessageResponse(BaseResponse):
    message: str


class CodeReviewResponse(BaseResponse):
    message: Optional[str] = None
    data: CodeReviewRead


class CodeReviewListResponse(BaseResponse):
    data: List[CodeReviewRead]


class ReviewStatsResponse(BaseResponse):
    data: ReviewStats
