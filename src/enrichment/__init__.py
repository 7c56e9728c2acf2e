"""Listing enrichment: prompt, client, JSON repair and normalization."""

from src.enrichment.client import EnrichmentClient
from src.enrichment.exceptions import EnrichmentError
from src.enrichment.normalizer import Normalizer

__all__ = [
    "EnrichmentClient",
    "EnrichmentError",
    "Normalizer",
]
