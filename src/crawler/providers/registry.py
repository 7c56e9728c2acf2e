"""
Provider registry.

Maps provider slugs to ListingProvider classes. Adding a portal means a new
provider class and one entry in PROVIDERS.
"""

from typing import Optional

from src.crawler.providers.base import ListingProvider
from src.crawler.providers.otodom import OtodomProvider

PROVIDERS: dict[str, type[ListingProvider]] = {
    "otodom": OtodomProvider,
}


def get_provider(name: str) -> Optional[ListingProvider]:
    """
    Instantiate a provider by slug.

    Args:
        name: Provider slug (e.g. "otodom")

    Returns:
        Provider instance or None if the slug is unknown
    """
    provider_cls = PROVIDERS.get(name)
    if provider_cls is None:
        return None
    return provider_cls()


def available_providers() -> list[str]:
    """Registered provider slugs."""
    return list(PROVIDERS)
