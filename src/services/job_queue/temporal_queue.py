"""Job queue that hands each review to a Temporal ``CodeReviewWorkflow``."""
from typing import Optional
from uuid import UUID

from temporalio.common import WorkflowIDReusePolicy
from temporalio.exceptions import WorkflowAlreadyStartedError

from src.core.config import settings
from src.core.temporal_client import TemporalClient
from src.services.job_queue.base import JobQueue
from src.workflows.code_review_workflow import CodeReviewWorkflow
from src.utils.logging import get_logger

logger = get_logger(__name__)


def workflow_id_for(review_id: UUID) -> str:
    return f"code-review:{review_id}"


class TemporalJobQueue(JobQueue):
    """
    Delivery and redelivery are done by Temporal; the attempt budget is the
    workflow's retry policy. Handlers run inside the worker process
    (``src.workers.code_review_worker``), not here.
    """

    def __init__(
        self,
        max_attempts: int,
        temporal_client: Optional[TemporalClient] = None,
        task_queue: Optional[str] = None,
    ):
        super().__init__(max_attempts)
        self.temporal_client = temporal_client or TemporalClient()
        self.task_queue = task_queue or settings.TEMPORAL_TASK_QUEUE

    async def start(self) -> None:
        await self.temporal_client.connect()

    async def stop(self) -> None:
        await self.temporal_client.disconnect()

    async def enqueue(self, review_id: UUID) -> None:
        client = await self.temporal_client.get_client()
        workflow_id = workflow_id_for(review_id)
        try:
            await client.start_workflow(
                CodeReviewWorkflow.run,
                str(review_id),
                id=workflow_id,
                task_queue=self.task_queue,
                id_reuse_policy=WorkflowIDReusePolicy.REJECT_DUPLICATE,
            )
        except WorkflowAlreadyStartedError:
            logger.warning(f"Workflow {workflow_id} already exists, not enqueuing again")
            return
        logger.info(f"Started workflow {workflow_id} on {self.task_queue}")
