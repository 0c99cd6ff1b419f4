"""
Unit tests for JobExecutor.

Runs the executor against a real ReviewStore on SQLite with a mocked
analysis client, driving attempts the way a job queue would.
"""

import threading
import uuid
import pytest
from unittest.mock import patch

from src.models.schemas.code_reviews import ReviewStatus
from src.services.code_review.exceptions import (
    PersistenceError,
    TransportError,
    TERMINAL_FAILURE_MESSAGE,
)
from src.services.code_review.job_executor import JobExecutor, JobOutcome


@pytest.fixture
def executor(store, mock_analysis_client):
    return JobExecutor(store=store, analysis_client=mock_analysis_client, max_attempts=3)


def transport_error():
    return TransportError("Claude API returned status 529", status_code=529, provider="claude")


class TestSuccessfulExecution:

    @pytest.mark.asyncio
    async def test_completes_review(self, executor, mock_analysis_client, pending_review,
                                    sample_analysis_text, fetch_review, count_issues):
        mock_analysis_client.analyze.return_value = sample_analysis_text

        result = await executor.execute(pending_review.id, 1)

        assert result.outcome is JobOutcome.COMPLETED
        assert result.issues_persisted == 3
        review = fetch_review(pending_review.id)
        assert review.status == ReviewStatus.COMPLETED.value
        assert review.total_issues == count_issues(pending_review.id) == 3
        assert review.high_severity + review.medium_severity + review.low_severity == review.total_issues
        mock_analysis_client.analyze.assert_awaited_once_with(
            pending_review.original_code, "python", "users.py"
        )

    @pytest.mark.asyncio
    async def test_fenced_response_completes(self, executor, mock_analysis_client, pending_review,
                                             sample_analysis_text, fetch_review):
        mock_analysis_client.analyze.return_value = f"```json\n{sample_analysis_text}\n```"

        result = await executor.execute(pending_review.id, 1)

        assert result.outcome is JobOutcome.COMPLETED
        assert fetch_review(pending_review.id).total_issues == 3


class TestRetrySemantics:

    @pytest.mark.asyncio
    async def test_three_transport_failures_fail_the_review(self, executor, mock_analysis_client,
                                                            pending_review, fetch_review, count_issues):
        mock_analysis_client.analyze.side_effect = transport_error()

        outcomes = [(await executor.execute(pending_review.id, attempt)).outcome for attempt in (1, 2, 3)]

        assert outcomes == [JobOutcome.RETRY, JobOutcome.RETRY, JobOutcome.FAILED]
        review = fetch_review(pending_review.id)
        assert review.status == ReviewStatus.FAILED.value
        assert review.ai_analysis == TERMINAL_FAILURE_MESSAGE
        assert review.total_issues == 0
        assert count_issues(pending_review.id) == 0

    @pytest.mark.asyncio
    async def test_review_stays_processing_between_attempts(self, executor, mock_analysis_client,
                                                            pending_review, fetch_review):
        mock_analysis_client.analyze.side_effect = transport_error()

        result = await executor.execute(pending_review.id, 1)

        assert result.should_retry
        review = fetch_review(pending_review.id)
        assert review.status == ReviewStatus.PROCESSING.value
        assert review.ai_analysis is None

    @pytest.mark.asyncio
    async def test_two_failures_then_success_completes(self, executor, mock_analysis_client,
                                                       pending_review, sample_analysis_text,
                                                       fetch_review, count_issues):
        mock_analysis_client.analyze.side_effect = [
            transport_error(),
            "not json at all",
            sample_analysis_text,
        ]

        outcomes = [(await executor.execute(pending_review.id, attempt)).outcome for attempt in (1, 2, 3)]

        assert outcomes == [JobOutcome.RETRY, JobOutcome.RETRY, JobOutcome.COMPLETED]
        review = fetch_review(pending_review.id)
        assert review.status == ReviewStatus.COMPLETED.value
        assert count_issues(pending_review.id) == 3

    @pytest.mark.asyncio
    async def test_parse_error_is_retryable(self, executor, mock_analysis_client, pending_review):
        mock_analysis_client.analyze.return_value = '{"issues": []}'

        result = await executor.execute(pending_review.id, 1)

        assert result.outcome is JobOutcome.RETRY
        assert result.error["error_code"] == "PARSE_INVALID_STRUCTURE"

    @pytest.mark.asyncio
    async def test_persistence_error_is_retryable(self, executor, store, mock_analysis_client,
                                                  pending_review, sample_analysis_text, count_issues):
        mock_analysis_client.analyze.return_value = sample_analysis_text

        with patch.object(store, "complete_review", side_effect=PersistenceError("db down", operation="complete")):
            result = await executor.execute(pending_review.id, 1)

        assert result.outcome is JobOutcome.RETRY
        assert count_issues(pending_review.id) == 0

    @pytest.mark.asyncio
    async def test_unexpected_error_counts_as_failed_attempt(self, executor, mock_analysis_client,
                                                             pending_review, fetch_review):
        mock_analysis_client.analyze.side_effect = KeyError("content")

        result = await executor.execute(pending_review.id, 3)

        assert result.outcome is JobOutcome.FAILED
        review = fetch_review(pending_review.id)
        assert review.status == ReviewStatus.FAILED.value
        assert "KeyError" not in review.ai_analysis

    @pytest.mark.asyncio
    async def test_single_attempt_budget_fails_immediately(self, store, mock_analysis_client, pending_review):
        executor = JobExecutor(store=store, analysis_client=mock_analysis_client, max_attempts=1)
        mock_analysis_client.analyze.side_effect = transport_error()

        result = await executor.execute(pending_review.id, 1)

        assert result.outcome is JobOutcome.FAILED

    def test_invalid_budget_rejected(self, store, mock_analysis_client):
        with pytest.raises(ValueError):
            JobExecutor(store=store, analysis_client=mock_analysis_client, max_attempts=0)


class TestDuplicateDelivery:

    @pytest.mark.asyncio
    async def test_redelivery_after_completion_is_skipped(self, executor, mock_analysis_client,
                                                          pending_review, sample_analysis_text,
                                                          count_issues):
        mock_analysis_client.analyze.return_value = sample_analysis_text
        await executor.execute(pending_review.id, 1)

        duplicate = await executor.execute(pending_review.id, 1)
        later = await executor.execute(pending_review.id, 2)

        assert duplicate.outcome is JobOutcome.SKIPPED
        assert later.outcome is JobOutcome.SKIPPED
        assert count_issues(pending_review.id) == 3
        assert mock_analysis_client.analyze.await_count == 1

    @pytest.mark.asyncio
    async def test_concurrent_duplicate_of_same_attempt_is_skipped(self, executor, store,
                                                                   mock_analysis_client, pending_review):
        store.claim_for_processing(pending_review.id, 1)

        result = await executor.execute(pending_review.id, 1)

        assert result.outcome is JobOutcome.SKIPPED
        mock_analysis_client.analyze.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failed_review_is_not_overwritten(self, executor, mock_analysis_client,
                                                    pending_review, sample_analysis_text, fetch_review):
        mock_analysis_client.analyze.side_effect = transport_error()
        await executor.execute(pending_review.id, 3)

        mock_analysis_client.analyze.side_effect = None
        mock_analysis_client.analyze.return_value = sample_analysis_text
        result = await executor.execute(pending_review.id, 4)

        assert result.outcome is JobOutcome.SKIPPED
        assert fetch_review(pending_review.id).status == ReviewStatus.FAILED.value

    @pytest.mark.asyncio
    async def test_missing_review_is_skipped(self, executor, mock_analysis_client):
        result = await executor.execute(uuid.uuid4(), 1)

        assert result.outcome is JobOutcome.SKIPPED
        mock_analysis_client.analyze.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_review_deleted_mid_flight(self, executor, store, mock_analysis_client,
                                             pending_review, sample_analysis_text, count_issues):
        async def analyze_then_delete(*args):
            store.delete_review(pending_review.id)
            return sample_analysis_text

        mock_analysis_client.analyze.side_effect = analyze_then_delete

        result = await executor.execute(pending_review.id, 1)

        assert result.outcome is JobOutcome.SKIPPED
        assert count_issues(pending_review.id) == 0


class TestStorageFailures:

    @pytest.mark.asyncio
    async def test_claim_failing_on_every_attempt_fails_the_review(self, executor, store, pending_review,
                                                                   mock_analysis_client, fetch_review):
        claim_error = PersistenceError("connection reset", operation="claim")

        with patch.object(store, "claim_for_processing", side_effect=claim_error):
            outcomes = [(await executor.execute(pending_review.id, attempt)).outcome for attempt in (1, 2, 3)]

        assert outcomes == [JobOutcome.RETRY, JobOutcome.RETRY, JobOutcome.FAILED]
        review = fetch_review(pending_review.id)
        assert review.status == ReviewStatus.FAILED.value
        assert review.ai_analysis == TERMINAL_FAILURE_MESSAGE
        mock_analysis_client.analyze.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failure_write_error_escapes_execute(self, executor, store, pending_review,
                                                       mock_analysis_client):
        mock_analysis_client.analyze.side_effect = transport_error()

        with patch.object(store, "mark_failed", side_effect=PersistenceError("db down", operation="fail")):
            with pytest.raises(PersistenceError):
                await executor.execute(pending_review.id, 3)

    @pytest.mark.asyncio
    async def test_mark_exhausted_fails_stuck_review(self, executor, store, pending_review, fetch_review):
        store.claim_for_processing(pending_review.id, 3)

        assert await executor.mark_exhausted(pending_review.id) is True

        review = fetch_review(pending_review.id)
        assert review.status == ReviewStatus.FAILED.value
        assert review.ai_analysis == TERMINAL_FAILURE_MESSAGE

    @pytest.mark.asyncio
    async def test_mark_exhausted_leaves_completed_review(self, executor, mock_analysis_client, pending_review,
                                                          sample_analysis_text, fetch_review):
        mock_analysis_client.analyze.return_value = sample_analysis_text
        await executor.execute(pending_review.id, 1)

        assert await executor.mark_exhausted(pending_review.id) is False
        assert fetch_review(pending_review.id).status == ReviewStatus.COMPLETED.value

    @pytest.mark.asyncio
    async def test_store_calls_run_off_the_event_loop_thread(self, executor, store, pending_review,
                                                             mock_analysis_client, sample_analysis_text):
        mock_analysis_client.analyze.return_value = sample_analysis_text
        loop_thread = threading.get_ident()
        store_threads = []
        claim = store.claim_for_processing

        def recording_claim(*args):
            store_threads.append(threading.get_ident())
            return claim(*args)

        with patch.object(store, "claim_for_processing", side_effect=recording_claim):
            await executor.execute(pending_review.id, 1)

        assert store_threads and loop_thread not in store_threads
