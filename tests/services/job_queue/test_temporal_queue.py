import uuid
import pytest
from unittest.mock import AsyncMock, Mock

from temporalio.common import WorkflowIDReusePolicy
from temporalio.exceptions import WorkflowAlreadyStartedError

from src.services.job_queue.temporal_queue import TemporalJobQueue, workflow_id_for
from src.workflows.code_review_workflow import CodeReviewWorkflow


@pytest.fixture
def workflow_client():
    client = Mock()
    client.start_workflow = AsyncMock()
    return client


@pytest.fixture
def temporal_client(workflow_client):
    temporal = Mock()
    temporal.connect = AsyncMock()
    temporal.disconnect = AsyncMock()
    temporal.get_client = AsyncMock(return_value=workflow_client)
    return temporal


@pytest.fixture
def job_queue(temporal_client):
    return TemporalJobQueue(max_attempts=3, temporal_client=temporal_client, task_queue="reviews-test")


class TestTemporalJobQueue:

    @pytest.mark.asyncio
    async def test_enqueue_starts_one_workflow_per_review(self, job_queue, workflow_client):
        review_id = uuid.uuid4()

        await job_queue.enqueue(review_id)

        workflow_client.start_workflow.assert_awaited_once_with(
            CodeReviewWorkflow.run,
            str(review_id),
            id=f"code-review:{review_id}",
            task_queue="reviews-test",
            id_reuse_policy=WorkflowIDReusePolicy.REJECT_DUPLICATE,
        )

    @pytest.mark.asyncio
    async def test_duplicate_enqueue_is_ignored(self, job_queue, workflow_client):
        review_id = uuid.uuid4()
        workflow_client.start_workflow.side_effect = WorkflowAlreadyStartedError(
            workflow_id_for(review_id), "CodeReviewWorkflow"
        )

        await job_queue.enqueue(review_id)

    @pytest.mark.asyncio
    async def test_enqueue_errors_propagate(self, job_queue, workflow_client):
        workflow_client.start_workflow.side_effect = RuntimeError("temporal unreachable")

        with pytest.raises(RuntimeError):
            await job_queue.enqueue(uuid.uuid4())

    @pytest.mark.asyncio
    async def test_start_and_stop_manage_connection(self, job_queue, temporal_client):
        await job_queue.start()
        await job_queue.stop()

        temporal_client.connect.assert_awaited_once()
        temporal_client.disconnect.assert_awaited_once()
