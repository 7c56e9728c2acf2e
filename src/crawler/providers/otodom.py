"""
Otodom provider using requests + BeautifulSoup.

Flow:
    1. Paginate search result pages collecting offer URLs
    2. Fetch each offer's HTML
    3. Run the structured-data extractor (no enrichment)
    4. Return raw records for skeleton creation
"""

import asyncio
import html as html_lib
import re
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Optional

import requests
from loguru import logger

from config.settings import ScraperSettings, get_settings
from src.crawler.exceptions import ScraperError
from src.crawler.extractors import structured_extractor
from src.crawler.extractors.types import RawScrapeRecord
from src.crawler.providers.base import ListingProvider

otodom_log = logger.bind(module="Otodom")

OFFER_LINK_PATTERN = re.compile(
    r"<a[^>]*href=[\"']([^\"']*/oferta/[^\"']*)[\"']", re.IGNORECASE
)
LISTING_ITEM_LINK_PATTERN = re.compile(
    r"data-cy=\"listing-item\"[^>]*>.*?<a[^>]*href=[\"']([^\"']*oferta[^\"']*)[\"']",
    re.IGNORECASE | re.DOTALL,
)
TITLE_PATTERN = re.compile(r"<title[^>]*>(.*?)</title>", re.IGNORECASE | re.DOTALL)


class OtodomProvider(ListingProvider):
    """Scrapes sale listings from otodom.pl."""

    name = "otodom"

    def __init__(
        self,
        settings: Optional[ScraperSettings] = None,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the provider.

        Args:
            settings: Scraper settings (defaults to application settings)
            session: Pre-configured requests session
        """
        self._settings = settings or get_settings().scraper
        self._session = session
        self._executor: Optional[ThreadPoolExecutor] = None

    @property
    def default_headers(self) -> dict[str, str]:
        """Browser-like headers to avoid bot detection."""
        return {
            "User-Agent": (
                "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
                "AppleWebKit/537.36 (KHTML, like Gecko) "
                "Chrome/120.0.0.0 Safari/537.36"
            ),
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
            "Accept-Language": "pl-PL,pl;q=0.9,en-US;q=0.8,en;q=0.7",
            "Accept-Encoding": "gzip, deflate, br",
            "Connection": "keep-alive",
            "Upgrade-Insecure-Requests": "1",
            "Referer": self._settings.base_url,
        }

    async def start(self) -> None:
        """Initialize session and executor."""
        if self._session is None:
            self._session = requests.Session()
            self._session.headers.update(self.default_headers)
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1)
        otodom_log.info("OtodomProvider started")

    async def close(self) -> None:
        """Close session and executor."""
        if self._session:
            self._session.close()
            self._session = None
        if self._executor:
            self._executor.shutdown(wait=False)
            self._executor = None
        otodom_log.info("OtodomProvider closed")

    async def fetch(self, limit: int = 10) -> list[RawScrapeRecord]:
        """Scrape up to limit offers without blocking the event loop."""
        if self._session is None or self._executor is None:
            await self.start()

        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(self._executor, self.fetch_sync, limit)

    def fetch_sync(self, limit: int = 10) -> list[RawScrapeRecord]:
        """
        Blocking scrape of up to limit offers.

        Args:
            limit: Maximum number of offers

        Returns:
            List of RawScrapeRecord (empty when the search itself fails)
        """
        try:
            offer_urls = self.collect_offer_urls(limit)
        except ScraperError as e:
            otodom_log.warning(f"Search failed: {e}")
            return []

        if not offer_urls:
            otodom_log.warning("No offer URLs found")
            return []

        return self.scrape_offers(offer_urls)

    def collect_offer_urls(self, limit: int) -> list[str]:
        """
        Paginate search results until limit unique offer URLs are found.

        A failed first page raises; a failed later page ends pagination.
        """
        search_url = self._settings.base_url + self._settings.search_path
        offer_urls: list[str] = []
        page = 1

        while len(offer_urls) < limit and page <= self._settings.max_pages:
            url = search_url if page == 1 else f"{search_url}?page={page}"
            try:
                body = self._request(url)
            except ScraperError:
                if page == 1:
                    raise
                break

            page_urls = self.extract_offer_urls(body, limit - len(offer_urls))
            if not page_urls:
                break

            for offer_url in page_urls:
                if offer_url not in offer_urls:
                    offer_urls.append(offer_url)

            page += 1
            if page <= self._settings.max_pages and len(offer_urls) < limit:
                time.sleep(self._settings.page_delay)

        otodom_log.debug(f"Collected {len(offer_urls)} offer URLs from {page - 1} pages")
        return offer_urls[:limit]

    def extract_offer_urls(self, html: str, limit: int) -> list[str]:
        """
        Offer URLs from a search results page.

        Args:
            html: Search page HTML
            limit: Maximum URLs to return

        Returns:
            Unique normalized offer URLs in page order
        """
        urls: list[str] = []
        for pattern in (OFFER_LINK_PATTERN, LISTING_ITEM_LINK_PATTERN):
            for href in pattern.findall(html):
                url = self.normalize_url(href)
                if url and url not in urls:
                    urls.append(url)
                if len(urls) >= limit:
                    return urls
        return urls

    def normalize_url(self, url: str) -> Optional[str]:
        """
        Absolute offer URL without query string or fragment.

        Examples:
            >>> OtodomProvider().normalize_url("/pl/oferta/abc-ID4x?ref=1")
            'https://www.otodom.pl/pl/oferta/abc-ID4x'
        """
        url = html_lib.unescape(url.strip())
        if not url.startswith("http"):
            prefix = "" if url.startswith("/") else "/"
            url = self._settings.base_url + prefix + url
        url = re.split(r"[?#]", url, maxsplit=1)[0]
        return url or None

    def scrape_offers(self, offer_urls: list[str]) -> list[RawScrapeRecord]:
        """Fetch and extract each offer; failures are logged and skipped."""
        results: list[RawScrapeRecord] = []

        for idx, offer_url in enumerate(offer_urls):
            try:
                html = self._request(offer_url)
                results.append(self.build_record(offer_url, html))
            except ScraperError as e:
                otodom_log.warning(f"Offer skipped: {e}")

            if idx < len(offer_urls) - 1:
                time.sleep(self._settings.offer_delay)

        otodom_log.info(f"Scraped {len(results)}/{len(offer_urls)} offers")
        return results

    def build_record(self, offer_url: str, html: str) -> RawScrapeRecord:
        """Raw record for one offer page."""
        structured = structured_extractor.extract(html)

        if structured is not None:
            images = structured["images"]
            title = structured["title"]
            external_id = structured["external_id"] or ""
        else:
            images = structured_extractor.extract_images(html)
            title = self._page_title(html)
            external_id = ""

        return {
            "external_id": external_id or structured_extractor.external_id_from_url(offer_url),
            "url": offer_url,
            "raw_html": structured_extractor.truncate_html(html),
            "structured": structured,
            "extracted_images": images,
            "title": title,
            "scraped_at": datetime.now(timezone.utc).isoformat(),
        }

    def _page_title(self, html: str) -> str:
        match = TITLE_PATTERN.search(html)
        return html_lib.unescape(match.group(1)).strip() if match else ""

    def _request(self, url: str) -> str:
        """GET a page, raising ScraperError on transport or HTTP failure."""
        if self._session is None:
            self._session = requests.Session()
            self._session.headers.update(self.default_headers)

        try:
            resp = self._session.get(url, timeout=self._settings.request_timeout)
        except requests.RequestException as e:
            raise ScraperError.network_error(url, str(e)) from e

        if resp.status_code != 200:
            raise ScraperError.http_error(url, resp.status_code)
        return resp.text
