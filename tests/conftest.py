"""
Global test configuration and fixtures for code review tests.

Store, executor and route tests run against an in-memory SQLite database
with foreign keys enforced, so cascades behave as they do in Postgres.
"""

import json
import pytest
from typing import Generator
from unittest.mock import AsyncMock, Mock

from sqlalchemy import create_engine, event, func, select
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from src.core.database import Base
from src.models.db.code_issues import CodeIssue
from src.models.db.code_reviews import CodeReview
from src.models.schemas.code_reviews import CodeReviewSubmit, Language
from src.services.code_review.review_store import ReviewStore


@pytest.fixture
def session_factory() -> Generator[sessionmaker, None, None]:
    """Session factory bound to a fresh in-memory database."""
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def store(session_factory) -> ReviewStore:
    return ReviewStore(session_factory=session_factory)


@pytest.fixture
def sample_submission() -> CodeReviewSubmit:
    return CodeReviewSubmit(
        user_name="Ada",
        filename="users.py",
        language=Language.PYTHON,
        code="def get_user(id):\n    return db.execute(f'SELECT * FROM users WHERE id={id}')\n",
    )


@pytest.fixture
def pending_review(store, sample_submission) -> CodeReview:
    return store.create_review(sample_submission)


@pytest.fixture
def sample_analysis_payload() -> dict:
    """Well-formed model output with one issue per severity."""
    return {
        "summary": "The code has a SQL injection and some style problems.",
        "issues": [
            {
                "line": 2,
                "severity": "HIGH",
                "type": "Security",
                "message": "SQL injection",
                "suggestion": "Use parameterized queries",
                "code_snippet": "f'SELECT * FROM users WHERE id={id}'",
            },
            {
                "line": 1,
                "severity": "medium",
                "type": "Code Quality",
                "message": "Parameter shadows builtin id",
                "suggestion": "Rename to user_id",
            },
            {
                "line": 1,
                "severity": "low",
                "type": "Maintainability",
                "message": "Missing docstring",
                "suggestion": "Document the function",
            },
        ],
    }


@pytest.fixture
def sample_analysis_text(sample_analysis_payload) -> str:
    return json.dumps(sample_analysis_payload)


@pytest.fixture
def mock_analysis_client():
    """AnalysisClient stand-in; set ``analyze.side_effect`` / ``return_value`` per test."""
    client = Mock()
    client.analyze = AsyncMock()
    client.check_connection = AsyncMock(return_value=True)
    return client


@pytest.fixture
def count_issues(session_factory):
    """Number of issue rows stored for a review."""
    def _count(review_id) -> int:
        with session_factory() as db:
            return db.scalar(
                select(func.count(CodeIssue.id)).where(CodeIssue.code_review_id == review_id)
            )
    return _count


@pytest.fixture
def fetch_review(session_factory):
    """Reload a review straight from the database, bypassing the store."""
    def _fetch(review_id) -> CodeReview:
        with session_factory() as db:
            review = db.get(CodeReview, review_id)
            if review is not None:
                db.expunge(review)
            return review
    return _fetch
