"""
Job executor for code review analysis.

Runs one delivery of one review job:

    pending ──claim──▶ processing ──success──▶ completed
                           │
                           └─failure─▶ RETRY (budget left) / failed

The caller supplies the attempt number (1-based); the executor compares it
with the attempt budget and reports what the queue should do next through
``JobResult.outcome``. Nothing raised during an attempt escapes ``execute``
except a storage failure while recording the terminal state; queues hand
such jobs to ``mark_exhausted`` once their own retries run out.

Store calls are blocking SQLAlchemy work and run in a worker thread so the
event loop stays free while a review is being written.
"""

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional
from uuid import UUID

from opentelemetry import trace

from src.core.config import settings
from src.models.schemas.analysis import AnalysisResult
from src.services.code_review.analysis_client import AnalysisClient
from src.services.code_review.exceptions import (
    CodeAnalysisError,
    TerminalFailure,
    TERMINAL_FAILURE_MESSAGE,
)
from src.services.code_review.response_parser import ResponseParser
from src.services.code_review.review_store import ClaimedReview, ReviewStore
from src.utils.logging import Logger

tracer = trace.get_tracer(__name__)

MAX_ANALYSIS_ATTEMPTS = settings.MAX_ANALYSIS_ATTEMPTS


class JobOutcome(str, Enum):
    COMPLETED = "completed"
    RETRY = "retry"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class JobResult:
    review_id: UUID
    attempt: int
    outcome: JobOutcome
    error: Optional[Dict[str, Any]] = None
    issues_persisted: int = field(default=0)

    @property
    def should_retry(self) -> bool:
        return self.outcome is JobOutcome.RETRY

    def to_dict(self) -> Dict[str, Any]:
        return {
            "review_id": str(self.review_id),
            "attempt": self.attempt,
            "outcome": self.outcome.value,
            "error": self.error,
            "issues_persisted": self.issues_persisted,
        }


class JobExecutor:
    """Drives one review through the analysis state machine."""

    def __init__(
        self,
        store: Optional[ReviewStore] = None,
        analysis_client: Optional[AnalysisClient] = None,
        parser: Optional[ResponseParser] = None,
        max_attempts: int = MAX_ANALYSIS_ATTEMPTS,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.store = store or ReviewStore()
        self.analysis_client = analysis_client or AnalysisClient()
        self.parser = parser or ResponseParser()
        self.max_attempts = max_attempts

    async def execute(self, review_id: UUID, attempt: int) -> JobResult:
        """Run delivery ``attempt`` of the job for ``review_id``."""
        log = Logger(__name__, {"review_id": str(review_id), "attempt": attempt})

        with tracer.start_as_current_span("code_review.execute") as span:
            span.set_attribute("review.id", str(review_id))
            span.set_attribute("job.attempt", attempt)

            try:
                claimed = await asyncio.to_thread(
                    self.store.claim_for_processing, review_id, attempt
                )
            except CodeAnalysisError as e:
                log.error(f"Could not claim review: {e}", {"error": e.to_dict()})
                result = await self._attempt_failed(review_id, attempt, e, log)
                span.set_attribute("job.outcome", result.outcome.value)
                return result

            if claimed is None:
                log.info("Review is not claimable by this delivery, skipping")
                span.set_attribute("job.outcome", JobOutcome.SKIPPED.value)
                return JobResult(review_id, attempt, JobOutcome.SKIPPED)

            log.info(
                "Review moved to processing",
                {"source_file": claimed.filename, "language": claimed.language},
            )

            try:
                analysis = await self._analyze(claimed)
                persisted = await asyncio.to_thread(
                    self.store.complete_review, review_id, claimed.attempt, analysis
                )
            except CodeAnalysisError as e:
                result = await self._attempt_failed(review_id, attempt, e, log)
            except Exception as e:
                error = CodeAnalysisError(
                    f"Unexpected error during analysis: {type(e).__name__}",
                    error_code="UNEXPECTED_ERROR",
                    cause=e,
                )
                log.exception("Unexpected error during analysis attempt")
                result = await self._attempt_failed(review_id, attempt, error, log)
            else:
                if persisted:
                    log.info(
                        "Review completed",
                        {
                            "total_issues": analysis.total_issues,
                            "high_severity": analysis.high_severity,
                            "medium_severity": analysis.medium_severity,
                            "low_severity": analysis.low_severity,
                        },
                    )
                    result = JobResult(
                        review_id, attempt, JobOutcome.COMPLETED,
                        issues_persisted=analysis.total_issues,
                    )
                else:
                    log.warning("Review was deleted or superseded before completion, discarding analysis")
                    result = JobResult(review_id, attempt, JobOutcome.SKIPPED)

            span.set_attribute("job.outcome", result.outcome.value)
            return result

    async def _analyze(self, claimed: ClaimedReview) -> AnalysisResult:
        raw_text = await self.analysis_client.analyze(
            claimed.original_code, claimed.language, claimed.filename
        )
        return self.parser.parse(raw_text)

    async def mark_exhausted(self, review_id: UUID) -> bool:
        """Fail a review whose deliveries ran out without recording a terminal state."""
        marked = await asyncio.to_thread(
            self.store.mark_failed, review_id, TERMINAL_FAILURE_MESSAGE
        )
        if marked:
            Logger(__name__, {"review_id": str(review_id)}).error(
                "Review marked failed after its deliveries were exhausted"
            )
        return marked

    async def _attempt_failed(
        self,
        review_id: UUID,
        attempt: int,
        error: CodeAnalysisError,
        log: Logger,
    ) -> JobResult:
        if error.recoverable and attempt < self.max_attempts:
            log.warning(
                f"Analysis attempt {attempt}/{self.max_attempts} failed, will retry",
                {"error": error.to_dict()},
            )
            return JobResult(review_id, attempt, JobOutcome.RETRY, error=error.to_dict())

        failure = TerminalFailure(str(review_id), attempt, last_error=error)
        if await asyncio.to_thread(self.store.mark_failed, review_id, failure.user_message):
            log.error("Review failed permanently", {"error": failure.to_dict()})
            return JobResult(review_id, attempt, JobOutcome.FAILED, error=failure.to_dict())

        log.warning("Review was deleted or already terminal, failure not recorded")
        return JobResult(review_id, attempt, JobOutcome.SKIPPED, error=failure.to_dict())
