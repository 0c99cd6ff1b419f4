from datetime import timedelta
from temporalio import workflow
from temporalio.common import RetryPolicy
from temporalio.exceptions import ActivityError

with workflow.unsafe.imports_passed_through():
    from src.activities.code_review_activities import CodeReviewActivities
    from src.core.config import settings

# must outlive one full LLM call plus persistence
ANALYSIS_ACTIVITY_TIMEOUT = timedelta(seconds=settings.ANALYSIS_TIMEOUT_SECONDS + 60)


@workflow.defn
class CodeReviewWorkflow:

    @workflow.run
    async def run(self, review_id: str) -> dict:
        retry_policy = RetryPolicy(
            maximum_attempts=settings.MAX_ANALYSIS_ATTEMPTS,
            initial_interval=timedelta(seconds=10),
            maximum_interval=timedelta(seconds=30),
            backoff_coefficient=2.0,
        )

        try:
            return await workflow.execute_activity_method(
                CodeReviewActivities.analyze_code_review,
                review_id,
                start_to_close_timeout=ANALYSIS_ACTIVITY_TIMEOUT,
                retry_policy=retry_policy,
            )
        except ActivityError as e:
            workflow.logger.error(f"Analysis activity gave up for review {review_id}: {e}")
            return await workflow.execute_activity_method(
                CodeReviewActivities.mark_review_failed,
                review_id,
                start_to_close_timeout=timedelta(seconds=30),
                retry_policy=RetryPolicy(maximum_attempts=5),
            )
