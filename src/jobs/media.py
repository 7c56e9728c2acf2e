"""
Media job.

Downloads and attaches a listing's images. Runs alongside enrichment, so
the curated selection may or may not exist yet; without it the raw
extracted URLs are used.
"""

from typing import Any, Optional

from loguru import logger

from src.jobs.queue import Job
from src.modules.listings.repository import ListingRepository
from src.modules.media.service import ListingImageService
from src.utils.image_urls import url_from_image

media_job_log = logger.bind(module="MediaJob")


def fallback_urls(payload_images: Any, raw_data: dict[str, Any]) -> list[str]:
    """Raw image URLs from the job payload, else from the stored scrape."""
    for source in (payload_images, raw_data.get("extracted_images")):
        if not isinstance(source, list):
            continue
        urls = [u for u in (url_from_image(image) for image in source) if u]
        if urls:
            return urls
    return []


class MediaJobHandler:
    """Attaches images for queued listings."""

    def __init__(self, repository: ListingRepository, images: ListingImageService):
        self._repository = repository
        self._images = images

    async def handle(self, job: Job) -> None:
        listing = await self._repository.get_by_id(job.listing_id)
        if listing is None:
            media_job_log.debug(f"Listing {job.listing_id} no longer exists, skipping")
            return

        raw_data = listing.raw_data or {}
        selected: Optional[dict[str, Any]] = raw_data.get("selected_images")
        urls = fallback_urls(job.payload.get("extracted_images"), raw_data)

        summary = await self._images.attach_images(listing.id, selected, urls)
        if summary.count == 0:
            media_job_log.warning(f"Listing {listing.id}: no images attached")
            return

        # Enrichment may have finished while we were downloading
        if selected is None:
            latest = await self._repository.get_by_id(listing.id)
            if latest is not None and not latest.is_pending:
                hero_url = (latest.raw_data.get("selected_images") or {}).get("hero_url")
                await self._images.designate_hero(latest.id, hero_url)

    async def on_failed(self, job: Job, error: BaseException) -> None:
        media_job_log.error(f"Image attachment failed for listing {job.listing_id}: {error}")
