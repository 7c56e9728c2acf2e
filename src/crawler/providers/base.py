"""
Listing provider interface.

A provider scrapes one portal and returns raw offer records. It does no
enrichment; records go straight to skeleton creation.
"""

from abc import ABC, abstractmethod

from src.crawler.extractors.types import RawScrapeRecord


class ListingProvider(ABC):
    """Base class for portal scrapers."""

    name: str = ""

    async def start(self) -> None:
        """Acquire HTTP resources."""

    async def close(self) -> None:
        """Release HTTP resources."""

    @abstractmethod
    async def fetch(self, limit: int = 10) -> list[RawScrapeRecord]:
        """
        Scrape up to limit offers.

        Per-offer failures are logged and skipped; a failed search results
        in an empty list rather than an exception.

        Args:
            limit: Maximum number of offers to return

        Returns:
            List of RawScrapeRecord
        """
