"""
Job Scheduler Module.

Runs the import cycle on an interval.
"""

from datetime import datetime, timezone

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from loguru import logger

from config.settings import get_settings
from src.jobs.runtime import get_runtime

scheduler_log = logger.bind(module="Scheduler")

# Scheduler instance
_scheduler = AsyncIOScheduler(timezone="UTC")


async def run_import_job() -> None:
    """Scheduled import cycle."""
    try:
        scheduler_log.info("Running scheduled import job...")
        runtime = await get_runtime()
        stats = await runtime.pipeline.run()
        scheduler_log.info(
            f"Import job: {stats.created} created, {stats.skipped} skipped, "
            f"{stats.errors} errors"
        )
    except Exception as e:
        scheduler_log.error(f"Import job failed: {e}")


def setup_jobs(run_now: bool = True) -> None:
    """
    Setup scheduler jobs.

    Args:
        run_now: Also run one import immediately on startup
    """
    scraper = get_settings().scraper

    _scheduler.add_job(
        run_import_job,
        IntervalTrigger(minutes=scraper.interval_minutes, timezone="UTC"),
        id="import_job",
        name=f"Import {scraper.provider} (every {scraper.interval_minutes} min)",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )
    scheduler_log.info(
        f"Import job: {scraper.provider} every {scraper.interval_minutes}min "
        f"(limit={scraper.import_limit})"
    )

    if run_now:
        _scheduler.add_job(
            run_import_job,
            trigger="date",
            run_date=datetime.now(timezone.utc),
            id="import_job_startup",
            name="Startup import",
            replace_existing=True,
        )
        scheduler_log.info("Startup job scheduled to run immediately")


def start(run_now: bool = True) -> None:
    """Start the scheduler."""
    setup_jobs(run_now)
    _scheduler.start()
    scheduler_log.info("Scheduler started")


def shutdown() -> None:
    """Shutdown the scheduler."""
    if _scheduler.running:
        _scheduler.shutdown(wait=False)
    scheduler_log.info("Scheduler stopped")
