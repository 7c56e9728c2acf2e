"""Jobs module: queues, workers, import pipeline and scheduler."""

from src.jobs import scheduler
from src.jobs.descriptors import ENRICHMENT, MEDIA, JobDescriptor
from src.jobs.importer import ImportPipeline, ImportStats
from src.jobs.queue import Job, JobQueue, has_pending_jobs
from src.jobs.worker import Worker

__all__ = [
    "ENRICHMENT",
    "MEDIA",
    "ImportPipeline",
    "ImportStats",
    "Job",
    "JobDescriptor",
    "JobQueue",
    "Worker",
    "has_pending_jobs",
    "scheduler",
]
