"""
Queue worker.

Generic loop that claims due jobs from one queue, runs them through a
handler under the queue's timeout and applies the retry policy.
"""

import asyncio
from typing import Optional, Protocol

from loguru import logger

from src.jobs.queue import Job, JobQueue

worker_log = logger.bind(module="Worker")


class JobHandler(Protocol):
    """What a worker needs from a job implementation."""

    async def handle(self, job: Job) -> None: ...

    async def on_failed(self, job: Job, error: BaseException) -> None: ...


class Worker:
    """Consumes one queue."""

    def __init__(
        self,
        queue: JobQueue,
        handler: JobHandler,
        poll_interval: float = 2.0,
        name: Optional[str] = None,
    ):
        """
        Initialize worker.

        Args:
            queue: Queue to consume
            handler: Job implementation
            poll_interval: Seconds to sleep when nothing is due
            name: Label used in logs
        """
        self._queue = queue
        self._handler = handler
        self._poll_interval = poll_interval
        self._running = False
        self.name = name or f"{queue.name}-worker"

    @property
    def descriptor(self):
        return self._queue.descriptor

    async def run_once(self) -> bool:
        """
        Process at most one due job.

        Returns:
            True if a job was claimed
        """
        job = await self._queue.pop_due()
        if job is None:
            return False

        descriptor = self.descriptor
        try:
            await asyncio.wait_for(self._handler.handle(job), timeout=descriptor.timeout)
        except asyncio.CancelledError:
            await self._queue.reschedule(job, 0)
            raise
        except Exception as e:
            await self._handle_error(job, e)
            return True

        await self._queue.complete(job)
        worker_log.debug(f"[{self.name}] job {job.id} done (listing {job.listing_id})")
        return True

    async def _handle_error(self, job: Job, error: Exception) -> None:
        descriptor = self.descriptor
        if isinstance(error, asyncio.TimeoutError):
            error = TimeoutError(f"{descriptor.name} job exceeded {descriptor.timeout}s")

        if descriptor.is_retryable(error) and job.attempts < descriptor.max_attempts:
            delay = descriptor.delay_for(job.attempts, error)
            worker_log.warning(
                f"[{self.name}] job {job.id} (listing {job.listing_id}) attempt "
                f"{job.attempts}/{descriptor.max_attempts} failed: {error}; retry in {delay}s"
            )
            await self._queue.reschedule(job, delay)
            return

        worker_log.error(
            f"[{self.name}] job {job.id} (listing {job.listing_id}) failed after "
            f"{job.attempts} attempt(s): {error}"
        )
        await self._queue.fail(job, error)
        try:
            await self._handler.on_failed(job, error)
        except Exception as e:
            worker_log.error(f"[{self.name}] failure hook for job {job.id} raised: {e}")

    async def run_forever(self) -> None:
        """Poll until stop() is called or the task is cancelled."""
        self._running = True
        worker_log.info(f"[{self.name}] started")
        await self._queue.requeue_stale()

        while self._running:
            try:
                claimed = await self.run_once()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                worker_log.error(f"[{self.name}] queue error: {e}")
                claimed = False

            if not claimed:
                await asyncio.sleep(self._poll_interval)

        worker_log.info(f"[{self.name}] stopped")

    def stop(self) -> None:
        """Let the loop exit after the current job."""
        self._running = False
