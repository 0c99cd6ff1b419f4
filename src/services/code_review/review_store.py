"""
Review store.

All reads and writes of ``code_reviews`` / ``code_issues``. Status changes
made on behalf of the job executor are conditional UPDATEs: a write whose
guard no longer matches (review deleted, already terminal, claimed by a
later attempt) touches nothing and reports ``False``.
"""

import datetime
from dataclasses import dataclass
from typing import Callable, List, Optional
from uuid import UUID

from sqlalchemy import and_, delete, desc, func, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from src.core.database import SessionLocal
from src.models.db.code_issues import CodeIssue
from src.models.db.code_reviews import CodeReview
from src.models.schemas.analysis import AnalysisResult
from src.models.schemas.code_reviews import CodeReviewSubmit, ReviewStatus
from src.services.code_review.exceptions import PersistenceError
from src.utils.logging import get_logger

logger = get_logger(__name__)

RECENT_REVIEWS_LIMIT = 50
COMMON_ISSUES_LIMIT = 5

NON_TERMINAL_STATUSES = [status.value for status in ReviewStatus if not status.is_terminal]


@dataclass(frozen=True)
class ClaimedReview:
    """What an executor needs from a review it has claimed."""
    id: UUID
    filename: str
    language: str
    original_code: str
    attempt: int


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc).replace(tzinfo=None)


class ReviewStore:
    """Persistence for reviews and their issues."""

    def __init__(self, session_factory: Callable[[], Session] = SessionLocal):
        self.session_factory = session_factory

    # ------------------------------------------------------------------
    # Submission / query side
    # ------------------------------------------------------------------

    def create_review(self, submission: CodeReviewSubmit) -> CodeReview:
        """Insert a new ``pending`` review and return it with issues loaded."""
        db = self.session_factory()
        try:
            now = _utcnow()
            review = CodeReview(
                user_name=submission.user_name,
                filename=submission.filename,
                language=submission.language.value,
                original_code=submission.code,
                status=ReviewStatus.PENDING.value,
                attempts=0,
                created_at=now,
                updated_at=now,
            )
            db.add(review)
            db.commit()
            return self._load(db, review.id)
        except SQLAlchemyError as e:
            db.rollback()
            raise PersistenceError(
                f"Failed to create review: {e}", operation="create", cause=e
            ) from e
        finally:
            db.close()

    def get_review(self, review_id: UUID) -> Optional[CodeReview]:
        db = self.session_factory()
        try:
            return self._load(db, review_id)
        finally:
            db.close()

    def list_reviews(self, user_name: str, limit: int = RECENT_REVIEWS_LIMIT) -> List[CodeReview]:
        """Most recent reviews of one submitter, issues included."""
        db = self.session_factory()
        try:
            stmt = (
                select(CodeReview)
                .options(selectinload(CodeReview.issues))
                .where(CodeReview.user_name == user_name)
                .order_by(desc(CodeReview.created_at), desc(CodeReview.id))
                .limit(limit)
            )
            reviews = list(db.scalars(stmt).all())
            db.expunge_all()
            return reviews
        finally:
            db.close()

    def delete_review(self, review_id: UUID) -> bool:
        """Delete a review and, through the cascade, all of its issues."""
        db = self.session_factory()
        try:
            review = db.get(CodeReview, review_id)
            if review is None:
                return False
            db.delete(review)
            db.commit()
            logger.info(f"Deleted review {review_id}")
            return True
        except SQLAlchemyError as e:
            db.rollback()
            raise PersistenceError(
                f"Failed to delete review: {e}",
                review_id=str(review_id),
                operation="delete",
                cause=e,
            ) from e
        finally:
            db.close()

    def get_stats(self, user_name: str) -> dict:
        """Aggregate counters over every review of one submitter."""
        db = self.session_factory()
        try:
            totals = db.execute(
                select(
                    func.count(CodeReview.id),
                    func.coalesce(func.sum(CodeReview.total_issues), 0),
                    func.coalesce(func.sum(CodeReview.high_severity), 0),
                    func.coalesce(func.sum(CodeReview.medium_severity), 0),
                    func.coalesce(func.sum(CodeReview.low_severity), 0),
                ).where(CodeReview.user_name == user_name)
            ).one()
            total_reviews, total_issues, high, medium, low = (int(value) for value in totals)

            issue_count = func.count(CodeIssue.id).label("count")
            common = db.execute(
                select(CodeIssue.type, issue_count)
                .join(CodeReview, CodeIssue.code_review_id == CodeReview.id)
                .where(CodeReview.user_name == user_name)
                .group_by(CodeIssue.type)
                .order_by(desc(issue_count), CodeIssue.type)
                .limit(COMMON_ISSUES_LIMIT)
            ).all()

            return {
                "total_reviews": total_reviews,
                "total_issues": total_issues,
                "avg_issues_per_review": round(total_issues / total_reviews, 1) if total_reviews else 0,
                "issues_by_severity": {"high": high, "medium": medium, "low": low},
                "common_issues": [{"type": row[0], "count": int(row[1])} for row in common],
            }
        finally:
            db.close()

    # ------------------------------------------------------------------
    # Job executor side
    # ------------------------------------------------------------------

    def claim_for_processing(self, review_id: UUID, attempt: int) -> Optional[ClaimedReview]:
        """
        Move a review to ``processing`` for delivery ``attempt``.

        Succeeds when the review is ``pending``, or ``processing`` under an
        earlier attempt (a redelivery after a failed attempt). Returns None
        for duplicates, terminal or missing reviews.
        """
        db = self.session_factory()
        try:
            result = db.execute(
                update(CodeReview)
                .where(CodeReview.id == review_id)
                .where(or_(
                    CodeReview.status == ReviewStatus.PENDING.value,
                    and_(
                        CodeReview.status == ReviewStatus.PROCESSING.value,
                        CodeReview.attempts < attempt,
                    ),
                ))
                .values(
                    status=ReviewStatus.PROCESSING.value,
                    attempts=attempt,
                    updated_at=_utcnow(),
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                db.rollback()
                return None

            row = db.execute(
                select(
                    CodeReview.filename,
                    CodeReview.language,
                    CodeReview.original_code,
                ).where(CodeReview.id == review_id)
            ).one()
            db.commit()
            return ClaimedReview(
                id=review_id,
                filename=row.filename,
                language=row.language,
                original_code=row.original_code,
                attempt=attempt,
            )
        except SQLAlchemyError as e:
            db.rollback()
            raise PersistenceError(
                f"Failed to claim review: {e}",
                review_id=str(review_id),
                operation="claim",
                cause=e,
            ) from e
        finally:
            db.close()

    def complete_review(self, review_id: UUID, attempt: int, result: AnalysisResult) -> bool:
        """
        Store the analysis and its issues in one transaction.

        Returns False, writing nothing, when the review is no longer
        ``processing`` under ``attempt``.
        """
        db = self.session_factory()
        try:
            updated = db.execute(
                update(CodeReview)
                .where(CodeReview.id == review_id)
                .where(CodeReview.status == ReviewStatus.PROCESSING.value)
                .where(CodeReview.attempts == attempt)
                .values(
                    ai_analysis=result.summary,
                    total_issues=result.total_issues,
                    high_severity=result.high_severity,
                    medium_severity=result.medium_severity,
                    low_severity=result.low_severity,
                    suggestions_count=len(result.issues),
                    status=ReviewStatus.COMPLETED.value,
                    updated_at=_utcnow(),
                )
                .execution_options(synchronize_session=False)
            )
            if updated.rowcount != 1:
                db.rollback()
                return False

            now = _utcnow()
            db.add_all([
                CodeIssue(
                    code_review_id=review_id,
                    line_number=issue.line,
                    severity=issue.severity.value,
                    type=issue.type,
                    message=issue.message,
                    suggestion=issue.suggestion,
                    code_snippet=issue.code_snippet,
                    created_at=now,
                )
                for issue in result.issues
            ])
            db.commit()
            return True
        except SQLAlchemyError as e:
            db.rollback()
            raise PersistenceError(
                f"Failed to persist analysis: {e}",
                review_id=str(review_id),
                operation="complete",
                cause=e,
            ) from e
        finally:
            db.close()

    def mark_failed(self, review_id: UUID, message: str) -> bool:
        """
        Terminal failure of a review that has not reached a terminal state.

        A ``pending`` review is failed in the same single UPDATE, which covers
        jobs whose every claim failed before the review reached ``processing``.
        """
        db = self.session_factory()
        try:
            updated = db.execute(
                update(CodeReview)
                .where(CodeReview.id == review_id)
                .where(CodeReview.status.in_(NON_TERMINAL_STATUSES))
                .values(
                    status=ReviewStatus.FAILED.value,
                    ai_analysis=message,
                    updated_at=_utcnow(),
                )
                .execution_options(synchronize_session=False)
            )
            if updated.rowcount != 1:
                db.rollback()
                return False
            # a failed review never owns issues
            db.execute(delete(CodeIssue).where(CodeIssue.code_review_id == review_id))
            db.commit()
            return True
        except SQLAlchemyError as e:
            db.rollback()
            raise PersistenceError(
                f"Failed to mark review failed: {e}",
                review_id=str(review_id),
                operation="fail",
                cause=e,
            ) from e
        finally:
            db.close()

    @staticmethod
    def _load(db: Session, review_id: UUID) -> Optional[CodeReview]:
        review = db.scalars(
            select(CodeReview)
            .options(selectinload(CodeReview.issues))
            .where(CodeReview.id == review_id)
        ).first()
        if review is not None:
            db.expunge(review)
        return review
