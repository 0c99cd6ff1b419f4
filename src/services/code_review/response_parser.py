"""
Response parser for model-generated analyses.

The model is asked for bare JSON but is not trusted to deliver it. This
module strips code fences, decodes, checks the two required top-level
fields and normalizes every issue with fixed per-field defaults. Severity
counts are always recomputed from the normalized issues.
"""

import json
import re
from typing import Any, Dict, List

from src.models.schemas.analysis import AnalysisIssue, AnalysisResult, DEFAULT_ISSUE_TYPE
from src.models.schemas.code_reviews import Severity
from src.services.code_review.exceptions import ParseError, ParseErrorKind
from src.utils.logging import get_logger

logger = get_logger(__name__)

_LEADING_FENCE = re.compile(r"^\s*```[A-Za-z0-9_-]*[ \t]*\n?")
_TRAILING_FENCE = re.compile(r"\n?[ \t]*```\s*$")

REQUIRED_FIELDS = ("summary", "issues")


def strip_code_fences(raw_text: str) -> str:
    """Remove one surrounding ``` / ```json fence pair and trim whitespace."""
    text = raw_text.strip()
    text = _LEADING_FENCE.sub("", text, count=1)
    text = _TRAILING_FENCE.sub("", text, count=1)
    return text.strip()


def normalize_severity(value: Any) -> Severity:
    """Case-insensitive severity; anything unrecognized becomes ``low``."""
    if isinstance(value, str):
        try:
            return Severity(value.strip().lower())
        except ValueError:
            pass
    return Severity.LOW


def normalize_line(value: Any) -> int:
    """Non-negative integer line number, 0 when missing or unusable."""
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return max(value, 0)
    if isinstance(value, float) and value.is_integer():
        return max(int(value), 0)
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return 0


def _text(value: Any, default: str) -> str:
    if value is None:
        return default
    return value if isinstance(value, str) else str(value)


def normalize_issue(entry: Dict[str, Any]) -> AnalysisIssue:
    """Apply field-level defaults to one raw issue object."""
    snippet = entry.get("code_snippet")
    return AnalysisIssue(
        line=normalize_line(entry.get("line")),
        severity=normalize_severity(entry.get("severity")),
        type=_text(entry.get("type"), DEFAULT_ISSUE_TYPE) or DEFAULT_ISSUE_TYPE,
        message=_text(entry.get("message"), ""),
        suggestion=_text(entry.get("suggestion"), ""),
        code_snippet=None if snippet is None else _text(snippet, ""),
    )


class ResponseParser:
    """Converts raw model output into an ``AnalysisResult``."""

    def parse(self, raw_text: str) -> AnalysisResult:
        """
        Parse one model response.

        Raises:
            ParseError(MALFORMED_JSON): text is not JSON after fence stripping
            ParseError(INVALID_STRUCTURE): not an object, or ``summary``/``issues``
                missing or null
        """
        content = strip_code_fences(raw_text or "")

        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            logger.error(f"Failed to decode analysis response ({len(content)} chars): {e}")
            raise ParseError(
                "Failed to parse AI response",
                kind=ParseErrorKind.MALFORMED_JSON,
                raw_response=content,
                cause=e,
            ) from e

        if not isinstance(data, dict):
            raise ParseError(
                f"Expected a JSON object, got {type(data).__name__}",
                kind=ParseErrorKind.INVALID_STRUCTURE,
                raw_response=content,
            )

        missing = [field for field in REQUIRED_FIELDS if data.get(field) is None]
        if missing:
            raise ParseError(
                f"Invalid response structure: missing {', '.join(missing)}",
                kind=ParseErrorKind.INVALID_STRUCTURE,
                raw_response=content,
            )

        raw_issues = data["issues"]
        if not isinstance(raw_issues, list):
            logger.warning(
                f"'issues' is a {type(raw_issues).__name__}, treating it as empty"
            )
            raw_issues = []

        issues: List[AnalysisIssue] = []
        for index, entry in enumerate(raw_issues):
            if not isinstance(entry, dict):
                logger.warning(
                    f"Issue #{index} is a {type(entry).__name__}, storing it with default fields"
                )
                entry = {}
            issues.append(normalize_issue(entry))

        return AnalysisResult.from_issues(_text(data["summary"], ""), issues)
