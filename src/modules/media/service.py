"""
Listing image service.

Downloads external images with browser-like headers, validates them by
HTTP Content-Type and by magic bytes, stores them and records a
listing_media row per image.

Attachment strategies:
    A. curated selection: hero_url + up to 8 gallery_urls. When the hero
       fails, the first gallery image that succeeds becomes the hero.
    B. fallback: the first 5 raw URLs, the first one as hero.
"""

import asyncio
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Optional

import requests
from loguru import logger

from config.settings import ImageSettings, get_settings
from src.modules.media.exceptions import ImageDownloadError
from src.modules.media.models import AttachmentSummary, DownloadedImage, ListingMedia
from src.modules.media.repository import MediaRepository
from src.modules.media.storage import MediaStorage
from src.utils.image_urls import is_valid_image_url

media_log = logger.bind(module="Media")

ACCEPTED_MIME_TYPES = (
    "image/jpeg",
    "image/png",
    "image/webp",
    "image/gif",
    "image/jpg",
)

BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": "image/avif,image/webp,image/apng,image/svg+xml,image/*,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9,pl;q=0.8",
    "Referer": "https://www.otodom.pl/",
    "Sec-Fetch-Dest": "image",
    "Sec-Fetch-Mode": "no-cors",
    "Sec-Fetch-Site": "cross-site",
}


def sniff_mime(content: bytes) -> str:
    """
    MIME type from leading magic bytes.

    Examples:
        >>> sniff_mime(b"\\x89PNG\\r\\n\\x1a\\n....")
        'image/png'
        >>> sniff_mime(b"<html>")
        'application/octet-stream'
    """
    if content.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if content.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if content[:6] in (b"GIF87a", b"GIF89a"):
        return "image/gif"
    if content[:4] == b"RIFF" and content[8:12] == b"WEBP":
        return "image/webp"
    if content.lstrip()[:1] == b"<":
        return "text/html"
    return "application/octet-stream"


class ListingImageService:
    """Downloads and attaches listing images."""

    def __init__(
        self,
        repository: MediaRepository,
        storage: Optional[MediaStorage] = None,
        settings: Optional[ImageSettings] = None,
        session: Optional[requests.Session] = None,
        max_workers: int = 4,
    ):
        """
        Initialize service.

        Args:
            repository: Media repository
            storage: File store for image bodies
            settings: Image settings (defaults to application settings)
            session: requests session for downloads
            max_workers: Thread pool size for blocking downloads
        """
        self._repository = repository
        self._settings = settings or get_settings().images
        self._storage = storage or MediaStorage(self._settings.storage_dir)
        self._session = session or requests.Session()
        self._session.headers.update(BROWSER_HEADERS)
        self._executor = ThreadPoolExecutor(max_workers=max_workers)

    async def attach_images(
        self,
        listing_id: int,
        selected_images: Optional[dict[str, Any]] = None,
        fallback_urls: Optional[list[str]] = None,
    ) -> AttachmentSummary:
        """
        Attach the best available images to a listing.

        No-op when the listing already has media.

        Args:
            listing_id: Listing ID
            selected_images: Curated {"hero_url", "gallery_urls"} selection
            fallback_urls: Raw image URLs used when curation yields nothing

        Returns:
            AttachmentSummary
        """
        existing = await self._repository.get_by_listing(listing_id)
        if existing:
            return AttachmentSummary(
                hero_attached=any(m.is_hero for m in existing), count=len(existing)
            )

        summary = AttachmentSummary()
        selected = selected_images or {}
        hero_url = selected.get("hero_url") or None
        gallery_urls = selected.get("gallery_urls") or []
        curated = bool(hero_url or gallery_urls)

        if curated:
            if hero_url:
                if await self._attach_one(listing_id, hero_url, True, "Hero", summary):
                    summary.hero_attached = True

            for i, url in enumerate(gallery_urls[: self._settings.max_gallery_images]):
                if url == hero_url:
                    continue
                promote = not summary.hero_attached and summary.count == 0
                if await self._attach_one(listing_id, url, promote, f"Gallery[{i}]", summary):
                    summary.hero_attached = summary.hero_attached or promote

        if summary.count == 0 and fallback_urls:
            for i, url in enumerate(fallback_urls[: self._settings.max_fallback_images]):
                if await self._attach_one(listing_id, url, i == 0, f"Fallback[{i}]", summary):
                    summary.hero_attached = summary.hero_attached or i == 0

        if summary.errors:
            media_log.warning(
                f"Listing {listing_id}: {len(summary.errors)} image(s) failed "
                f"({'curated' if curated else 'fallback'}, attached={summary.count}): "
                f"{summary.errors[:3]}"
            )
        else:
            media_log.info(f"Listing {listing_id}: attached {summary.count} image(s)")

        return summary

    async def designate_hero(self, listing_id: int, hero_url: Optional[str]) -> bool:
        """
        Mark the listing's hero image among already attached media.

        Matches hero_url against recorded source URLs, else promotes the
        first attached image.

        Returns:
            True if a hero was set, False when no media exists yet
        """
        media = await self._repository.get_by_listing(listing_id)
        if not media:
            return False

        target = media[0]
        if hero_url:
            for item in media:
                if item.source_url == hero_url:
                    target = item
                    break

        if target.is_hero and sum(1 for m in media if m.is_hero) == 1:
            return True

        await self._repository.set_hero(listing_id, target.id)
        media_log.debug(f"Listing {listing_id}: hero set to media {target.id}")
        return True

    async def _attach_one(
        self,
        listing_id: int,
        url: str,
        is_hero: bool,
        label: str,
        summary: AttachmentSummary,
    ) -> Optional[ListingMedia]:
        try:
            media = await self.download_and_attach(listing_id, url, is_hero)
        except ImageDownloadError as e:
            summary.errors.append(f"{label} failed: {e}")
            return None
        summary.count += 1
        return media

    async def download_and_attach(
        self, listing_id: int, url: str, is_hero: bool = False
    ) -> ListingMedia:
        """
        Download one image, store it and record it.

        Raises:
            ImageDownloadError: URL, HTTP, size or MIME validation failed
        """
        loop = asyncio.get_event_loop()
        image = await loop.run_in_executor(self._executor, self.download, url)

        file_path = await loop.run_in_executor(
            self._executor, self._storage.save, listing_id, image
        )
        return await self._repository.create(
            listing_id=listing_id,
            source_url=url,
            file_path=file_path,
            mime_type=image.mime_type,
            size_bytes=len(image.content),
            is_hero=is_hero,
        )

    def download(self, url: str) -> DownloadedImage:
        """
        Blocking download with validation.

        Raises:
            ImageDownloadError: On any validation or transport failure
        """
        if not is_valid_image_url(url):
            raise ImageDownloadError.invalid_url(url)

        try:
            head = self._session.head(
                url, timeout=self._settings.head_timeout, allow_redirects=True
            )
            if head.status_code < 400:
                content_type = head.headers.get("Content-Type", "")
                if (
                    content_type
                    and "octet-stream" not in content_type
                    and not any(mime in content_type for mime in ACCEPTED_MIME_TYPES)
                ):
                    raise ImageDownloadError.invalid_mime(url, content_type)

            resp = self._session.get(url, timeout=self._settings.download_timeout)
        except requests.RequestException as e:
            media_log.error(f"Download failed for {url}: {e}")
            raise ImageDownloadError(f"Download failed: {e}", url=url) from e

        if resp.status_code >= 400:
            raise ImageDownloadError.http_error(url, resp.status_code)

        content = resp.content
        if len(content) < self._settings.min_body_bytes:
            raise ImageDownloadError.body_too_small(url, len(content))

        mime_type = sniff_mime(content)
        if mime_type not in ACCEPTED_MIME_TYPES:
            raise ImageDownloadError.invalid_mime(url, mime_type)

        return DownloadedImage(url=url, content=content, mime_type=mime_type)

    def close(self) -> None:
        """Release the session and thread pool."""
        self._session.close()
        self._executor.shutdown(wait=False)
