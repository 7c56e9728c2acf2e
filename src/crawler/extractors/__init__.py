"""
Extractors for listing offer pages.

Deterministic parsing of raw HTML into structured records, no enrichment.
"""

from src.crawler.extractors.structured_extractor import (
    extract,
    extract_images,
    external_id_from_url,
)
from src.crawler.extractors.types import (
    ImageCandidate,
    RawScrapeRecord,
    StructuredRecord,
)

__all__ = [
    # Types
    "ImageCandidate",
    "StructuredRecord",
    "RawScrapeRecord",
    # Structured extractor
    "extract",
    "extract_images",
    "external_id_from_url",
]
