"""In-process job queue backed by ``asyncio.Queue`` and a pool of worker tasks."""
import asyncio
from dataclasses import dataclass
from typing import List
from uuid import UUID

from src.services.code_review.job_executor import JobOutcome
from src.services.job_queue.base import JobQueue
from src.utils.logging import get_logger

logger = get_logger(__name__)

EXHAUSTED_HANDLER_ATTEMPTS = 5


@dataclass(frozen=True)
class QueuedJob:
    review_id: UUID
    attempt: int = 1


class InMemoryJobQueue(JobQueue):
    """
    Local worker pool for development and tests.

    Jobs do not survive a restart. Different reviews are processed
    concurrently by up to ``concurrency`` workers.
    """

    def __init__(self, max_attempts: int, concurrency: int = 4, retry_delay_seconds: float = 0.0):
        super().__init__(max_attempts)
        self.concurrency = concurrency
        self.retry_delay_seconds = retry_delay_seconds
        self._queue: "asyncio.Queue[QueuedJob]" = asyncio.Queue()
        self._workers: List[asyncio.Task] = []
        self._pending_retries: set = set()

    async def enqueue(self, review_id: UUID) -> None:
        await self._queue.put(QueuedJob(review_id))
        logger.info(f"Enqueued review {review_id}")

    async def start(self) -> None:
        if self._workers:
            return
        if self._handler is None:
            raise RuntimeError("Subscribe a handler before starting the job queue")
        self._workers = [
            asyncio.create_task(self._worker(index), name=f"review-worker-{index}")
            for index in range(self.concurrency)
        ]
        logger.info(f"Started {self.concurrency} review workers")

    async def stop(self) -> None:
        tasks = self._workers + list(self._pending_retries)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._workers = []
        self._pending_retries.clear()
        logger.info("Stopped review workers")

    async def join(self) -> None:
        """Wait until every enqueued job, retries included, has been handled."""
        while True:
            await self._queue.join()
            if not self._pending_retries:
                return
            await asyncio.gather(*list(self._pending_retries), return_exceptions=True)

    async def _worker(self, index: int) -> None:
        while True:
            job = await self._queue.get()
            try:
                await self._deliver(job)
            finally:
                self._queue.task_done()

    async def _deliver(self, job: QueuedJob) -> None:
        try:
            result = await self.handler(job.review_id, job.attempt)
            should_retry = result.outcome is JobOutcome.RETRY
        except Exception:
            logger.exception(f"Handler raised for review {job.review_id} (attempt {job.attempt})")
            should_retry = True

        if not should_retry:
            return
        if job.attempt >= self.max_attempts:
            logger.error(f"Review {job.review_id} exhausted {self.max_attempts} delivery attempts")
            await self._exhausted(job.review_id)
            return

        retry = QueuedJob(job.review_id, job.attempt + 1)
        if self.retry_delay_seconds > 0:
            task = asyncio.create_task(self._requeue_later(retry))
            self._pending_retries.add(task)
            task.add_done_callback(self._pending_retries.discard)
        else:
            await self._queue.put(retry)

    async def _exhausted(self, review_id: UUID) -> None:
        if self._on_exhausted is None:
            return
        for attempt in range(1, EXHAUSTED_HANDLER_ATTEMPTS + 1):
            try:
                await self._on_exhausted(review_id)
                return
            except Exception:
                logger.exception(
                    f"Exhausted-job handler failed for review {review_id} "
                    f"({attempt}/{EXHAUSTED_HANDLER_ATTEMPTS})"
                )
                if self.retry_delay_seconds > 0:
                    await asyncio.sleep(self.retry_delay_seconds)
        logger.error(f"Review {review_id} could not be marked failed")

    async def _requeue_later(self, job: QueuedJob) -> None:
        await asyncio.sleep(self.retry_delay_seconds)
        await self._queue.put(job)
