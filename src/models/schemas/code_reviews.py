from uuid import UUID
from enum import Enum
from pydantic import BaseModel, Field, validator
from datetime import datetime
from typing import List, Optional


class ReviewStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (ReviewStatus.COMPLETED, ReviewStatus.FAILED)


class Severity(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class Language(str, Enum):
    JAVASCRIPT = "javascript"
    PHP = "php"
    PYTHON = "python"
    JAVA = "java"
    CSHARP = "csharp"
    RUBY = "ruby"
    GO = "go"
    TYPESCRIPT = "typescript"
    SWIFT = "swift"
    KOTLIN = "kotlin"


MAX_CODE_LENGTH = 50000
MIN_CODE_LENGTH = 10


class CodeReviewSubmit(BaseModel):
    user_name: str = Field(..., description="Name of the submitter", max_length=100)
    filename: str = Field(
        ...,
        description="Name of the submitted file",
        max_length=255,
        pattern=r"^[\w\-. ]+$",
    )
    language: Language = Field(..., description="Language of the submitted code")
    code: str = Field(
        ...,
        description="Source code to review",
        min_length=MIN_CODE_LENGTH,
        max_length=MAX_CODE_LENGTH,
    )

    @validator('user_name')
    def validate_user_name_not_blank(cls, v):
        name = v.strip()
        if not name:
            raise ValueError('Please provide your name.')
        return name


class CodeIssueRead(BaseModel):
    id: UUID
    line_number: int
    severity: Severity
    type: str
    message: str
    suggestion: str
    code_snippet: Optional[str] = None

    class Config:
        from_attributes = True


class CodeReviewRead(BaseModel):
    id: UUID
    user_name: str
    filename: str
    language: str
    status: ReviewStatus
    original_code: str
    ai_analysis: Optional[str] = None
    total_issues: int = 0
    high_severity: int = 0
    medium_severity: int = 0
    low_severity: int = 0
    suggestions_count: int = 0
    issues: List[CodeIssueRead] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class SeverityBreakdown(BaseModel):
    high: int = 0
    medium: int = 0
    low: int = 0


class CommonIssue(BaseModel):
    type: str
    count: int


class ReviewStats(BaseModel):
    total_reviews: int
    total_issues: int
    avg_issues_per_review: float
    issues_by_severity: SeverityBreakdown
    common_issues: List[CommonIssue] = Field(default_factory=list)
