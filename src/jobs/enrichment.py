"""
Enrichment job.

Normalizes one pending skeleton and applies the result through the
lifecycle service. A job whose retries run out demotes the listing to
UNVERIFIED so it never stays pending forever.
"""

from typing import Any

from loguru import logger

from src.enrichment.normalizer import Normalizer
from src.jobs.queue import Job
from src.modules.listings.models import Listing
from src.modules.listings.repository import ListingRepository
from src.modules.listings.service import ListingService

enrichment_job_log = logger.bind(module="EnrichmentJob")


def build_raw(listing: Listing) -> dict[str, Any]:
    """Normalizer input assembled from a stored skeleton."""
    raw_data = listing.raw_data or {}
    return {
        "external_id": listing.external_id,
        "url": raw_data.get("url"),
        "title": listing.title,
        "structured": raw_data.get("json_ld"),
        "raw_data": raw_data,
    }


class EnrichmentJobHandler:
    """Runs normalization for queued listings."""

    def __init__(
        self,
        repository: ListingRepository,
        service: ListingService,
        normalizer: Normalizer,
    ):
        self._repository = repository
        self._service = service
        self._normalizer = normalizer

    async def handle(self, job: Job) -> None:
        """
        Normalize and finalize the job's listing.

        No-op when the listing is gone or already past PENDING.

        Raises:
            EnrichmentError: Propagated for the worker's retry policy
        """
        listing = await self._repository.get_by_id(job.listing_id)
        if listing is None:
            enrichment_job_log.debug(f"Listing {job.listing_id} no longer exists, skipping")
            return
        if not listing.is_pending:
            enrichment_job_log.debug(
                f"Listing {listing.id} is {listing.status.value}, skipping enrichment"
            )
            return

        dto = await self._normalizer.normalize(build_raw(listing))
        result = await self._service.apply_normalization(listing, dto)

        enrichment_job_log.info(
            f"Listing {listing.id} ({listing.external_id}) normalized: "
            f"status={result.status} score={result.quality_score}"
        )

    async def on_failed(self, job: Job, error: BaseException) -> None:
        """Demote the listing once the job has failed for good."""
        enrichment_job_log.error(
            f"Enrichment permanently failed for listing {job.listing_id}: {error}"
        )
        await self._service.mark_unverified(job.listing_id)
