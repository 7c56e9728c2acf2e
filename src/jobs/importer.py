"""
Import pipeline.

Skeleton-first import:
    1. Scrape raw offers from a provider (no enrichment).
    2. Create a pending skeleton per offer; fingerprint and external-ID
       duplicates are skipped before any enrichment call is paid for.
    3. Queue an enrichment job and a media job per new skeleton. Enrichment
       jobs are staggered so a burst of imports does not hit the rate limit.
"""

from dataclasses import asdict, dataclass
from typing import Optional

from loguru import logger

from config.settings import get_settings
from src.crawler.extractors.types import RawScrapeRecord
from src.crawler.providers import available_providers, get_provider
from src.jobs.queue import Job, JobQueue
from src.jobs.worker import JobHandler
from src.modules.listings.service import ListingService

import_log = logger.bind(module="Import")

# Seconds added to each successive enrichment job
ENRICHMENT_STAGGER = 0.5


@dataclass
class ImportStats:
    """Counters of one import cycle."""

    fetched: int = 0
    created: int = 0
    skipped_external: int = 0
    skipped_fingerprint: int = 0
    dispatched: int = 0
    errors: int = 0

    @property
    def skipped(self) -> int:
        return self.skipped_external + self.skipped_fingerprint

    def to_dict(self) -> dict:
        return asdict(self)


def enrichment_delay(dispatched: int) -> int:
    """
    Stagger for the next enrichment job, given jobs already dispatched.

    Two jobs (enrichment + media) are dispatched per listing.

    Examples:
        >>> [enrichment_delay(n) for n in (0, 2, 4, 6)]
        [0, 0, 1, 1]
    """
    return int((dispatched / 2) * ENRICHMENT_STAGGER)


class ImportPipeline:
    """Scrape, create skeletons and dispatch background work."""

    def __init__(
        self,
        service: ListingService,
        enrichment_queue: JobQueue,
        media_queue: JobQueue,
        enrichment_handler: Optional[JobHandler] = None,
        media_handler: Optional[JobHandler] = None,
    ):
        """
        Initialize pipeline.

        Args:
            service: Listing lifecycle service
            enrichment_queue: Queue for normalization jobs
            media_queue: Queue for image jobs
            enrichment_handler: Used instead of the queue in sync mode
            media_handler: Used instead of the queue in sync mode
        """
        self._service = service
        self._enrichment_queue = enrichment_queue
        self._media_queue = media_queue
        self._enrichment_handler = enrichment_handler
        self._media_handler = media_handler

    async def run(
        self,
        provider_name: Optional[str] = None,
        limit: Optional[int] = None,
        sync: bool = False,
    ) -> ImportStats:
        """
        Run one import cycle.

        Args:
            provider_name: Registered provider (defaults to SCRAPER_PROVIDER)
            limit: Maximum offers to scrape (defaults to SCRAPER_IMPORT_LIMIT)
            sync: Run enrichment and media inline instead of queueing

        Returns:
            ImportStats

        Raises:
            ValueError: Unknown provider, or sync mode without handlers
        """
        settings = get_settings().scraper
        provider_name = provider_name or settings.provider
        limit = limit or settings.import_limit

        if sync and (self._enrichment_handler is None or self._media_handler is None):
            raise ValueError("Sync import needs enrichment and media handlers")

        provider = get_provider(provider_name)
        if provider is None:
            raise ValueError(
                f"Provider '{provider_name}' not found. "
                f"Available: {', '.join(available_providers())}"
            )

        import_log.info(
            f"Starting import from {provider_name} (limit={limit}, "
            f"mode={'sync' if sync else 'queue'})"
        )

        await provider.start()
        try:
            records = await provider.fetch(limit)
        finally:
            await provider.close()

        stats = ImportStats(fetched=len(records))
        if not records:
            import_log.warning("No listings fetched from provider")
            return stats

        for record in records:
            await self._process(record, stats, sync)

        import_log.info(
            f"Import done: fetched={stats.fetched} created={stats.created} "
            f"skipped={stats.skipped} (fingerprint={stats.skipped_fingerprint}, "
            f"external={stats.skipped_external}) dispatched={stats.dispatched} "
            f"errors={stats.errors}"
        )
        return stats

    async def _process(self, record: RawScrapeRecord, stats: ImportStats, sync: bool) -> None:
        try:
            result = await self._service.create_skeleton(record)
            if not result.is_new:
                if result.is_fingerprint_duplicate:
                    stats.skipped_fingerprint += 1
                else:
                    stats.skipped_external += 1
                return

            stats.created += 1
            listing_id = result.listing.id
            extracted_images = record.get("extracted_images") or []

            if sync:
                await self._process_sync(listing_id, extracted_images)
                return

            await self._enrichment_queue.enqueue(
                listing_id, delay=enrichment_delay(stats.dispatched)
            )
            await self._media_queue.enqueue(
                listing_id, {"extracted_images": extracted_images}
            )
            stats.dispatched += 2
        except Exception as e:
            stats.errors += 1
            import_log.error(f"Failed to process listing {record.get('external_id')}: {e}")

    async def _process_sync(self, listing_id: int, extracted_images: list) -> None:
        await self._enrichment_handler.handle(
            Job(queue=self._enrichment_queue.name, listing_id=listing_id)
        )
        await self._media_handler.handle(
            Job(
                queue=self._media_queue.name,
                listing_id=listing_id,
                payload={"extracted_images": extracted_images},
            )
        )
