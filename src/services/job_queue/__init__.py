"""Job queue backends for review analysis."""

from .base import JobQueue, JobHandler
from .in_memory import InMemoryJobQueue

__all__ = [
    "JobQueue",
    "JobHandler",
    "InMemoryJobQueue",
]
