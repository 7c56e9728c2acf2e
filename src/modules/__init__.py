"""Modules package - Domain modules with repository pattern."""

from src.modules.listings import (
    Listing,
    ListingDTO,
    ListingRepository,
    ListingService,
    ListingStatus,
    PropertyType,
)
from src.modules.media import (
    ListingImageService,
    ListingMedia,
    MediaRepository,
)

__all__ = [
    # Listings
    "Listing",
    "ListingDTO",
    "ListingStatus",
    "PropertyType",
    "ListingRepository",
    "ListingService",
    # Media
    "ListingMedia",
    "MediaRepository",
    "ListingImageService",
]
