"""
Pipeline runtime.

Wires repositories, services, queues and workers on top of the shared
Postgres pool and Redis client. One instance per process.
"""

import asyncio
from typing import Optional

from loguru import logger

from config.settings import get_settings
from src.connections.postgres import get_postgres
from src.connections.redis import get_redis
from src.enrichment import EnrichmentClient, Normalizer
from src.jobs.descriptors import ENRICHMENT, MEDIA
from src.jobs.enrichment import EnrichmentJobHandler
from src.jobs.importer import ImportPipeline
from src.jobs.media import MediaJobHandler
from src.jobs.queue import JobQueue, has_pending_jobs
from src.jobs.worker import Worker
from src.modules.listings import ListingRepository, ListingService
from src.modules.media import ListingImageService, MediaRepository

runtime_log = logger.bind(module="Runtime")


class PipelineRuntime:
    """Everything the import cycle and the queue workers need."""

    def __init__(self, pool, redis_client):
        """
        Initialize runtime.

        Args:
            pool: asyncpg connection pool
            redis_client: redis.asyncio client
        """
        self.listings = ListingRepository(pool)
        self.media = MediaRepository(pool)
        self.images = ListingImageService(self.media)
        self.service = ListingService(self.listings, media=self.images)
        self.client = EnrichmentClient()
        self.normalizer = Normalizer(self.client)

        self.enrichment_queue = JobQueue(redis_client, ENRICHMENT)
        self.media_queue = JobQueue(redis_client, MEDIA)
        self.enrichment_handler = EnrichmentJobHandler(
            self.listings, self.service, self.normalizer
        )
        self.media_handler = MediaJobHandler(self.listings, self.images)

        self.pipeline = ImportPipeline(
            self.service,
            self.enrichment_queue,
            self.media_queue,
            enrichment_handler=self.enrichment_handler,
            media_handler=self.media_handler,
        )

        self._workers: list[Worker] = []
        self._tasks: list[asyncio.Task] = []

    @property
    def queues(self) -> list[JobQueue]:
        return [self.enrichment_queue, self.media_queue]

    async def processing_status(self) -> dict:
        """Whether background work is outstanding, with per-queue counts."""
        return {
            "processing": await has_pending_jobs(self.queues),
            "enrichment": await self.enrichment_queue.count(),
            "media": await self.media_queue.count(),
        }

    def start_workers(self) -> None:
        """Spawn worker tasks for both queues."""
        settings = get_settings().queue
        plan = [
            (self.enrichment_queue, self.enrichment_handler, settings.enrichment_workers),
            (self.media_queue, self.media_handler, settings.media_workers),
        ]
        for queue, handler, count in plan:
            for i in range(count):
                worker = Worker(
                    queue, handler, settings.poll_interval, name=f"{queue.name}-{i + 1}"
                )
                self._workers.append(worker)
                self._tasks.append(asyncio.create_task(worker.run_forever()))

        runtime_log.info(f"Started {len(self._tasks)} queue worker(s)")

    async def stop_workers(self) -> None:
        """Stop and cancel worker tasks."""
        for worker in self._workers:
            worker.stop()
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)

        self._workers.clear()
        self._tasks.clear()
        runtime_log.info("Queue workers stopped")

    def close(self) -> None:
        """Release HTTP resources."""
        self.client.close()
        self.images.close()


# Singleton instance
_runtime: Optional[PipelineRuntime] = None


async def get_runtime() -> PipelineRuntime:
    """Get or create the runtime on the shared connections."""
    global _runtime
    if _runtime is None:
        postgres = await get_postgres()
        redis = await get_redis()
        _runtime = PipelineRuntime(postgres.pool, redis.client)
    return _runtime


async def close_runtime() -> None:
    """Stop workers and release resources."""
    global _runtime
    if _runtime is not None:
        await _runtime.stop_workers()
        _runtime.close()
        _runtime = None
