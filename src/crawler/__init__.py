"""Crawler modules."""

from src.crawler.exceptions import ScraperError
from src.crawler.extractors.types import (
    ImageCandidate,
    RawScrapeRecord,
    StructuredRecord,
)
from src.crawler.providers import (
    PROVIDERS,
    ListingProvider,
    OtodomProvider,
    available_providers,
    get_provider,
)

__all__ = [
    # Types
    "ImageCandidate",
    "StructuredRecord",
    "RawScrapeRecord",
    # Errors
    "ScraperError",
    # Providers
    "ListingProvider",
    "OtodomProvider",
    "PROVIDERS",
    "get_provider",
    "available_providers",
]
