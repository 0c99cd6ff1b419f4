import asyncio
from temporalio.client import Client
from temporalio.worker import Worker
from dotenv import load_dotenv

from src.activities.code_review_activities import CodeReviewActivities
from src.core.config import settings
from src.services.code_review.job_executor import JobExecutor
from src.services.code_review.review_store import ReviewStore
from src.workflows.code_review_workflow import CodeReviewWorkflow
from src.utils.logging.otel_logger import logger


async def main():
    load_dotenv()
    client = await Client.connect(settings.TEMPORAL_SERVER_URL)

    store = ReviewStore()
    executor = JobExecutor(store=store)
    activities = CodeReviewActivities(handler=executor.execute, store=store)

    worker = Worker(
        client,
        task_queue=settings.TEMPORAL_TASK_QUEUE,
        workflows=[CodeReviewWorkflow],
        activities=[
            activities.analyze_code_review,
            activities.mark_review_failed,
        ],
    )
    logger.info(f"Code review worker listening on {settings.TEMPORAL_TASK_QUEUE}")
    await worker.run()

def run():
    asyncio.run(main())

if __name__ == "__main__":
    run()
