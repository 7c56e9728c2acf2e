"""Listings module."""

from src.modules.listings.enums import ListingStatus, PropertyType
from src.modules.listings.models import Listing, ListingDTO, slugify
from src.modules.listings.quality import QualityEvaluation, evaluate
from src.modules.listings.repository import ListingRepository
from src.modules.listings.service import (
    ListingService,
    NormalizationResult,
    SkeletonResult,
)

__all__ = [
    "PropertyType",
    "ListingStatus",
    "Listing",
    "ListingDTO",
    "slugify",
    "QualityEvaluation",
    "evaluate",
    "ListingRepository",
    "ListingService",
    "SkeletonResult",
    "NormalizationResult",
]
