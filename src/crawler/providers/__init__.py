"""Listing providers."""

from src.crawler.providers.base import ListingProvider
from src.crawler.providers.otodom import OtodomProvider
from src.crawler.providers.registry import PROVIDERS, available_providers, get_provider

__all__ = [
    "ListingProvider",
    "OtodomProvider",
    "PROVIDERS",
    "get_provider",
    "available_providers",
]
