from fastapi import FastAPI
import uvicorn
from dotenv import load_dotenv
from contextlib import asynccontextmanager

from src.api.fastapi import FastAPIApp
from src.core.config import settings
from src.services.code_review.job_executor import JobExecutor
from src.services.job_queue import InMemoryJobQueue, JobQueue
from src.utils.exception import add_exception_handlers
from src.utils.logging.otel_logger import logger

load_dotenv()


def build_job_queue() -> JobQueue:
    backend = settings.JOB_QUEUE_BACKEND.lower()
    if backend == "temporal":
        from src.services.job_queue.temporal_queue import TemporalJobQueue
        return TemporalJobQueue(max_attempts=settings.MAX_ANALYSIS_ATTEMPTS)
    if backend == "local":
        job_queue = InMemoryJobQueue(
            max_attempts=settings.MAX_ANALYSIS_ATTEMPTS,
            concurrency=settings.LOCAL_WORKER_CONCURRENCY,
        )
        executor = JobExecutor()
        job_queue.subscribe(executor.execute, on_exhausted=executor.mark_exhausted)
        return job_queue
    raise ValueError(f"Unknown JOB_QUEUE_BACKEND: {settings.JOB_QUEUE_BACKEND}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting up CodeReview AI (queue backend: {settings.JOB_QUEUE_BACKEND})")
    job_queue = build_job_queue()
    try:
        await job_queue.start()
    except Exception as e:
        logger.error(f"Failed to start job queue: {e}")
        raise e
    app.state.job_queue = job_queue
    
    yield
    
    logger.info("Shutting down CodeReview AI")
    try:
        await job_queue.stop()
        logger.info("Job queue stopped")
    except Exception as e:
        logger.error(f"Failed to stop job queue: {e}")

app_instance = FastAPIApp(lifespan=lifespan)
app = app_instance.get_app()

add_exception_handlers(app, logger)

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000, log_level="info")
