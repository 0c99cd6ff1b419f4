"""
Analysis result schemas.

Typed output of the response parser. Counts are always recomputed from
``issues``; values the model reports for them are never trusted.
"""

from pydantic import BaseModel, Field
from typing import List, Optional

from src.models.schemas.code_reviews import Severity


DEFAULT_ISSUE_TYPE = "General"


class AnalysisIssue(BaseModel):
    """One finding reported by the model, after field-level defaults."""

    line: int = Field(0, description="1-based line number, 0 when unlocated", ge=0)
    severity: Severity = Field(Severity.LOW, description="Normalized severity")
    type: str = Field(DEFAULT_ISSUE_TYPE, description="Finding category")
    message: str = Field("", description="Description of the issue")
    suggestion: str = Field("", description="Recommended fix")
    code_snippet: Optional[str] = Field(None, description="Offending code, if quoted")


class AnalysisResult(BaseModel):
    """Validated analysis of one submission."""

    summary: str
    issues: List[AnalysisIssue] = Field(default_factory=list)
    total_issues: int = Field(0, ge=0)
    high_severity: int = Field(0, ge=0)
    medium_severity: int = Field(0, ge=0)
    low_severity: int = Field(0, ge=0)

    @classmethod
    def from_issues(cls, summary: str, issues: List[AnalysisIssue]) -> "AnalysisResult":
        counts = {severity: 0 for severity in Severity}
        for issue in issues:
            counts[issue.severity] += 1
        return cls(
            summary=summary,
            issues=issues,
            total_issues=len(issues),
            high_severity=counts[Severity.HIGH],
            medium_severity=counts[Severity.MEDIUM],
            low_severity=counts[Severity.LOW],
        )
