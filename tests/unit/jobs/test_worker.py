"""
Unit tests for src/jobs/worker.py
"""

import asyncio
import time

import pytest

from src.enrichment.exceptions import EnrichmentError
from src.jobs.descriptors import JobDescriptor
from src.jobs.queue import JobQueue
from src.jobs.worker import Worker

pytest_plugins = ["tests.fixtures.queue"]


class RecordingHandler:
    """Handler that raises the queued outcomes in order, then succeeds."""

    def __init__(self, *outcomes: BaseException, delay: float = 0):
        self.outcomes = list(outcomes)
        self.delay = delay
        self.handled = []
        self.failed = []

    async def handle(self, job):
        self.handled.append(job.id)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.outcomes:
            raise self.outcomes.pop(0)

    async def on_failed(self, job, error):
        self.failed.append((job.id, error))


def _scheduled_delay(fake_redis, queue_name, job_id) -> float:
    return fake_redis.zsets[f"queue:{queue_name}:scheduled"][job_id] - time.time()


class TestRunOnce:
    """Tests for Worker.run_once method."""

    def test_nothing_due(self, enrichment_queue):
        worker = Worker(enrichment_queue, RecordingHandler())
        assert asyncio.run(worker.run_once()) is False

    def test_success_completes(self, enrichment_queue, fake_redis):
        handler = RecordingHandler()
        job = asyncio.run(enrichment_queue.enqueue(1))

        assert asyncio.run(Worker(enrichment_queue, handler).run_once()) is True

        assert handler.handled == [job.id]
        assert asyncio.run(enrichment_queue.count()) == 0
        assert fake_redis.hashes["queue:enrichment:jobs"] == {}

    def test_rate_limit_rescheduled_with_short_backoff(self, enrichment_queue, fake_redis):
        handler = RecordingHandler(EnrichmentError.rate_limited())
        job = asyncio.run(enrichment_queue.enqueue(1))

        asyncio.run(Worker(enrichment_queue, handler).run_once())

        assert 55 < _scheduled_delay(fake_redis, "enrichment", job.id) <= 60
        assert handler.failed == []

    def test_transient_error_uses_normal_backoff(self, enrichment_queue, fake_redis):
        handler = RecordingHandler(EnrichmentError.overloaded())
        job = asyncio.run(enrichment_queue.enqueue(1))

        asyncio.run(Worker(enrichment_queue, handler).run_once())

        assert 115 < _scheduled_delay(fake_redis, "enrichment", job.id) <= 120

    def test_non_retryable_fails_immediately(self, enrichment_queue):
        error = EnrichmentError.api_error(400, "invalid request")
        handler = RecordingHandler(error)
        job = asyncio.run(enrichment_queue.enqueue(1))

        asyncio.run(Worker(enrichment_queue, handler).run_once())

        assert handler.failed == [(job.id, error)]
        assert asyncio.run(enrichment_queue.count()) == 0
        failed = asyncio.run(enrichment_queue.failed_jobs())
        assert failed[0].failure["attempts"] == 1

    def test_attempts_exhausted(self, fake_redis):
        queue = JobQueue(fake_redis, JobDescriptor("flaky", max_attempts=2, backoff=(0,)))
        handler = RecordingHandler(RuntimeError("one"), RuntimeError("two"))
        job = asyncio.run(queue.enqueue(1))
        worker = Worker(queue, handler)

        asyncio.run(worker.run_once())
        assert handler.failed == []

        asyncio.run(worker.run_once())
        assert [(job_id, str(e)) for job_id, e in handler.failed] == [(job.id, "two")]
        assert len(handler.handled) == 2
        assert asyncio.run(queue.count()) == 0

    def test_timeout(self, fake_redis):
        queue = JobQueue(fake_redis, JobDescriptor("slow", max_attempts=1, backoff=(0,), timeout=0.05))
        handler = RecordingHandler(delay=1)
        asyncio.run(queue.enqueue(1))

        asyncio.run(Worker(queue, handler).run_once())

        assert len(handler.failed) == 1
        assert isinstance(handler.failed[0][1], TimeoutError)
        assert asyncio.run(queue.failed_jobs())[0].failure["error"] == "TimeoutError"

    def test_failure_hook_error_is_contained(self, fake_redis):
        class BrokenHook(RecordingHandler):
            async def on_failed(self, job, error):
                raise RuntimeError("hook broke")

        queue = JobQueue(fake_redis, JobDescriptor("x", max_attempts=1, backoff=(0,)))
        asyncio.run(queue.enqueue(1))

        assert asyncio.run(Worker(queue, BrokenHook(ValueError("bad"))).run_once()) is True
        assert len(asyncio.run(queue.failed_jobs())) == 1


class TestRunForever:
    """Tests for Worker.run_forever method."""

    def test_stops_after_current_job(self, media_queue):
        class StoppingHandler(RecordingHandler):
            async def handle(self, job):
                await super().handle(job)
                worker.stop()

        handler = StoppingHandler()
        worker = Worker(media_queue, handler, poll_interval=0.01)
        asyncio.run(media_queue.enqueue(1))
        asyncio.run(media_queue.enqueue(2))

        asyncio.run(asyncio.wait_for(worker.run_forever(), timeout=5))

        assert len(handler.handled) == 1
        assert asyncio.run(media_queue.count()) == 1

    def test_cancel_returns_job_to_queue(self, media_queue):
        handler = RecordingHandler(delay=5)
        worker = Worker(media_queue, handler, poll_interval=0.01)
        asyncio.run(media_queue.enqueue(1))

        async def run_and_cancel():
            task = asyncio.create_task(worker.run_forever())
            await asyncio.sleep(0.1)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        asyncio.run(run_and_cancel())

        assert len(handler.handled) == 1
        assert asyncio.run(media_queue.pop_due()) is not None
