"""
Redis-backed job queue.

Each queue keeps four keys:

    queue:<name>:scheduled  sorted set, job id scored by run_at
    queue:<name>:running    sorted set, job id scored by attempt deadline
    queue:<name>:jobs       hash, job id -> job JSON
    queue:<name>:failed     hash, job id -> job JSON with failure payload

A worker claims a job by removing it from the scheduled set; ZREM returns 1
for exactly one caller, so concurrent workers never run the same job.
"""

import json
import time
import uuid
from dataclasses import asdict, dataclass, field
from typing import Any, Iterable, Optional

import redis.asyncio as redis
from loguru import logger

from src.jobs.descriptors import JobDescriptor

queue_log = logger.bind(module="Queue")


@dataclass
class Job:
    """A unit of background work tied to one listing."""

    queue: str
    listing_id: int
    payload: dict[str, Any] = field(default_factory=dict)
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    attempts: int = 0
    run_at: float = field(default_factory=time.time)
    failure: Optional[dict[str, Any]] = None

    def to_json(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False, default=str)

    @classmethod
    def from_json(cls, data: str) -> "Job":
        return cls(**json.loads(data))


class JobQueue:
    """One named queue on Redis."""

    def __init__(self, client: redis.Redis, descriptor: JobDescriptor):
        """
        Initialize queue.

        Args:
            client: Redis client (decode_responses=True)
            descriptor: Retry policy of this queue
        """
        self._client = client
        self.descriptor = descriptor

    @property
    def name(self) -> str:
        return self.descriptor.name

    # ========== Key Generators ==========

    def _scheduled_key(self) -> str:
        return f"queue:{self.name}:scheduled"

    def _running_key(self) -> str:
        return f"queue:{self.name}:running"

    def _jobs_key(self) -> str:
        return f"queue:{self.name}:jobs"

    def _failed_key(self) -> str:
        return f"queue:{self.name}:failed"

    # ========== Producer ==========

    async def enqueue(
        self,
        listing_id: int,
        payload: Optional[dict[str, Any]] = None,
        delay: float = 0,
    ) -> Job:
        """
        Schedule a job.

        Args:
            listing_id: Listing the job works on
            payload: Extra job data
            delay: Seconds before the job becomes due

        Returns:
            The scheduled Job
        """
        job = Job(
            queue=self.name,
            listing_id=listing_id,
            payload=payload or {},
            run_at=time.time() + max(delay, 0),
        )

        pipe = self._client.pipeline()
        pipe.hset(self._jobs_key(), job.id, job.to_json())
        pipe.zadd(self._scheduled_key(), {job.id: job.run_at})
        await pipe.execute()

        queue_log.debug(
            f"Queued {self.name} job {job.id} for listing {listing_id} (delay={delay:.1f}s)"
        )
        return job

    # ========== Consumer ==========

    async def pop_due(self, now: Optional[float] = None) -> Optional[Job]:
        """
        Claim the earliest due job, if any.

        The claimed job's attempt counter is incremented and it is tracked
        as running until complete(), reschedule() or fail() is called.

        Returns:
            Claimed Job or None when nothing is due
        """
        now = time.time() if now is None else now
        job_ids = await self._client.zrangebyscore(
            self._scheduled_key(), "-inf", now, start=0, num=1
        )

        for job_id in job_ids:
            if not await self._client.zrem(self._scheduled_key(), job_id):
                # Claimed by another worker
                continue

            data = await self._client.hget(self._jobs_key(), job_id)
            if not data:
                queue_log.warning(f"Job {job_id} on {self.name} has no payload, dropping")
                continue

            job = Job.from_json(data)
            job.attempts += 1

            pipe = self._client.pipeline()
            pipe.hset(self._jobs_key(), job.id, job.to_json())
            pipe.zadd(self._running_key(), {job.id: now + self.descriptor.timeout})
            await pipe.execute()
            return job

        return None

    async def complete(self, job: Job) -> None:
        """Forget a finished job."""
        pipe = self._client.pipeline()
        pipe.zrem(self._running_key(), job.id)
        pipe.hdel(self._jobs_key(), job.id)
        await pipe.execute()

    async def reschedule(self, job: Job, delay: float) -> None:
        """Put a claimed job back, due after delay seconds."""
        job.run_at = time.time() + max(delay, 0)

        pipe = self._client.pipeline()
        pipe.hset(self._jobs_key(), job.id, job.to_json())
        pipe.zrem(self._running_key(), job.id)
        pipe.zadd(self._scheduled_key(), {job.id: job.run_at})
        await pipe.execute()

    async def fail(self, job: Job, error: BaseException) -> None:
        """Move a claimed job to the failed hash with its failure payload."""
        job.failure = {
            "error": type(error).__name__,
            "message": str(error),
            "attempts": job.attempts,
            "failed_at": time.time(),
        }

        pipe = self._client.pipeline()
        pipe.hset(self._failed_key(), job.id, job.to_json())
        pipe.hdel(self._jobs_key(), job.id)
        pipe.zrem(self._running_key(), job.id)
        await pipe.execute()

    async def requeue_stale(self, now: Optional[float] = None) -> int:
        """
        Return running jobs past their deadline to the scheduled set.

        Covers workers that died mid-attempt.

        Returns:
            Number of jobs requeued
        """
        now = time.time() if now is None else now
        stale = await self._client.zrangebyscore(self._running_key(), "-inf", now)

        requeued = 0
        for job_id in stale:
            if not await self._client.zrem(self._running_key(), job_id):
                continue
            await self._client.zadd(self._scheduled_key(), {job_id: now})
            requeued += 1

        if requeued:
            queue_log.warning(f"Requeued {requeued} stale {self.name} job(s)")
        return requeued

    # ========== Inspection ==========

    async def count(self) -> int:
        """Scheduled plus running jobs."""
        pipe = self._client.pipeline()
        pipe.zcard(self._scheduled_key())
        pipe.zcard(self._running_key())
        scheduled, running = await pipe.execute()
        return int(scheduled) + int(running)

    async def failed_jobs(self) -> list[Job]:
        """All jobs that ended in failure."""
        data = await self._client.hgetall(self._failed_key())
        return [Job.from_json(v) for v in data.values()]


async def has_pending_jobs(queues: Iterable[JobQueue]) -> bool:
    """Whether any queue still has scheduled or running work."""
    for queue in queues:
        if await queue.count() > 0:
            return True
    return False
