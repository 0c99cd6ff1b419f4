"""
Code Analysis Exception Hierarchy

Every failure of one analysis attempt is a ``CodeAnalysisError``. The
``recoverable`` flag tells the job executor whether another attempt may
succeed; only ``TerminalFailure`` is not recoverable.
"""

from enum import Enum
from typing import Optional, Dict, Any
from datetime import datetime, timezone


TERMINAL_FAILURE_MESSAGE = "Analysis failed after multiple retries. Please try again."


class CodeAnalysisError(Exception):
    """Base exception for all code analysis errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        recoverable: bool = True,
        cause: Optional[Exception] = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        self.recoverable = recoverable
        self.timestamp = datetime.now(timezone.utc)
        if cause is not None:
            self.details.setdefault("cause", str(cause))
            self.__cause__ = cause

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
            "recoverable": self.recoverable,
            "timestamp": self.timestamp.isoformat()
        }

    def __str__(self) -> str:
        return f"{self.error_code}: {self.message}"


# ============================================================================
# TRANSPORT ERRORS
# ============================================================================

class TransportError(CodeAnalysisError):
    """Raised when the text-generation endpoint cannot produce a response."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        provider: str = "unknown",
        timed_out: bool = False,
        cause: Optional[Exception] = None
    ):
        super().__init__(
            message=message,
            error_code="TRANSPORT_TIMEOUT" if timed_out else "TRANSPORT_ERROR",
            details={
                "status_code": status_code,
                "provider": provider,
                "timed_out": timed_out,
            },
            cause=cause
        )
        self.status_code = status_code
        self.timed_out = timed_out


# ============================================================================
# PARSE ERRORS
# ============================================================================

class ParseErrorKind(str, Enum):
    MALFORMED_JSON = "malformed_json"
    INVALID_STRUCTURE = "invalid_structure"


class ParseError(CodeAnalysisError):
    """Raised when the model's response is not a usable analysis object."""

    def __init__(
        self,
        message: str,
        kind: ParseErrorKind,
        raw_response: Optional[str] = None,
        cause: Optional[Exception] = None
    ):
        super().__init__(
            message=message,
            error_code=f"PARSE_{kind.name}",
            details={
                "kind": kind.value,
                "raw_response_length": len(raw_response) if raw_response else 0,
            },
            cause=cause
        )
        self.kind = kind


# ============================================================================
# PERSISTENCE ERRORS
# ============================================================================

class PersistenceError(CodeAnalysisError):
    """Raised when a review write fails. The transaction is always rolled back."""

    def __init__(
        self,
        message: str,
        review_id: Optional[str] = None,
        operation: str = "unknown",
        cause: Optional[Exception] = None
    ):
        super().__init__(
            message=message,
            error_code="PERSISTENCE_ERROR",
            details={
                "review_id": review_id,
                "operation": operation,
            },
            cause=cause
        )


# ============================================================================
# TERMINAL FAILURE
# ============================================================================

class TerminalFailure(CodeAnalysisError):
    """The attempt budget is spent. ``user_message`` is what the submitter sees."""

    def __init__(
        self,
        review_id: str,
        attempts: int,
        last_error: Optional[CodeAnalysisError] = None
    ):
        super().__init__(
            message=f"Review {review_id} failed after {attempts} attempts",
            error_code="TERMINAL_FAILURE",
            details={
                "review_id": review_id,
                "attempts": attempts,
                "last_error": last_error.to_dict() if last_error else None,
            },
            recoverable=False
        )
        self.user_message = TERMINAL_FAILURE_MESSAGE
