"""
Listing Service.

Owns every write to listing state: skeleton creation with fingerprint
deduplication, application of normalized data, and status demotion.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Optional, Protocol

from loguru import logger

from src.modules.listings.enums import ListingStatus, PropertyType
from src.modules.listings.models import Listing, ListingDTO
from src.modules.listings.repository import ListingRepository
from src.utils.fingerprint import UNKNOWN_CITY
from src.utils.fingerprint import calculate as calculate_fingerprint

lifecycle_log = logger.bind(module="Lifecycle")

# Price must move by more than 0.5% to be written on a duplicate re-scrape
PRICE_CHANGE_TOLERANCE = 0.005
DUPLICATE_WINDOW_DAYS = 30
DEFAULT_TITLE = "Property Listing"


class HeroDesignator(Protocol):
    """Media component hook used once a listing is finalized."""

    async def designate_hero(self, listing_id: int, hero_url: Optional[str]) -> bool:
        ...


@dataclass
class SkeletonResult:
    """Outcome of create_skeleton."""

    listing: Listing
    is_new: bool
    is_fingerprint_duplicate: bool


@dataclass
class NormalizationResult:
    """Outcome of apply_normalization."""

    merged: bool
    quality_score: int
    status: str


def _decimal(value: Any) -> Decimal:
    return Decimal(str(value or 0))


def is_fingerprintable(price: float, city: Optional[str]) -> bool:
    """
    Whether price/city carry enough signal for a meaningful fingerprint.

    With no price and no city every such record would hash to the same
    all-sentinel value and collide with each other.
    """
    city = (city or "").strip().lower()
    return price > 0 or city not in ("", UNKNOWN_CITY)


def structured_fingerprint(structured: Optional[dict]) -> Optional[str]:
    """
    Fingerprint from structured pre-data.

    Returns None when there is nothing to fingerprint: no structured record,
    or no price and no city, which would otherwise collide on the
    all-sentinel hash.
    """
    if not structured:
        return None

    price = float(structured.get("price") or 0)
    city = str(structured.get("city") or "")
    if not is_fingerprintable(price, city):
        return None

    return calculate_fingerprint(
        city,
        structured.get("street"),
        price,
        float(structured.get("area_m2") or 0),
        int(structured.get("rooms") or 0),
    )


def price_moved(old_price: float, new_price: float) -> bool:
    """Whether new_price differs from old_price by more than the tolerance."""
    if old_price <= 0 or new_price <= 0:
        return False
    return abs(new_price - old_price) / old_price > PRICE_CHANGE_TOLERANCE


class ListingService:
    """Listing lifecycle operations."""

    def __init__(
        self,
        repository: ListingRepository,
        media: Optional[HeroDesignator] = None,
    ):
        """
        Initialize service.

        Args:
            repository: Listing repository
            media: Image component used for hero designation
        """
        self._repository = repository
        self._media = media

    async def create_skeleton(self, raw: dict[str, Any]) -> SkeletonResult:
        """
        Create a pending listing for a scraped record unless it is a duplicate.

        Args:
            raw: Raw scrape record (external_id, url, raw_html, structured, ...)

        Returns:
            SkeletonResult describing the stored or matched listing
        """
        external_id = raw["external_id"]
        structured = raw.get("structured")
        fingerprint = structured_fingerprint(structured)

        if fingerprint is not None:
            duplicate = await self._repository.find_recent_duplicate(
                fingerprint, DUPLICATE_WINDOW_DAYS
            )
            if duplicate is not None:
                await self._refresh_duplicate(duplicate, structured)
                lifecycle_log.debug(
                    f"Semantic duplicate of listing {duplicate.id} "
                    f"({external_id}, {fingerprint}), skipping enrichment"
                )
                return SkeletonResult(
                    listing=duplicate, is_new=False, is_fingerprint_duplicate=True
                )

        existing = await self._repository.get_by_external_id(external_id)
        if existing is not None:
            await self._repository.refresh_seen(existing.id)
            return SkeletonResult(
                listing=existing, is_new=False, is_fingerprint_duplicate=False
            )

        raw_data: dict[str, Any] = {
            "html": raw.get("raw_html", ""),
            "url": raw.get("url", ""),
            "extracted_images": raw.get("extracted_images") or [],
            "scraped_at": raw.get("scraped_at") or datetime.now(timezone.utc).isoformat(),
        }
        if structured is not None:
            raw_data["json_ld"] = structured

        data = structured or {}
        listing = await self._repository.create(
            {
                "external_id": external_id,
                "fingerprint": fingerprint,
                "title": data.get("title") or raw.get("title") or DEFAULT_TITLE,
                "description": data.get("description") or "",
                "price": _decimal(data.get("price")),
                "currency": data.get("currency") or "PLN",
                "area_m2": _decimal(data.get("area_m2")),
                "rooms": int(data.get("rooms") or 0),
                "city": data.get("city") or "",
                "street": data.get("street"),
                "type": data.get("type") or PropertyType.APARTMENT.value,
                "status": ListingStatus.PENDING.value,
                "raw_data": raw_data,
                "last_seen_at": datetime.now(timezone.utc),
            }
        )
        lifecycle_log.info(f"Created skeleton listing {listing.id} ({external_id})")
        return SkeletonResult(listing=listing, is_new=True, is_fingerprint_duplicate=False)

    async def apply_normalization(
        self, skeleton: Listing, dto: ListingDTO
    ) -> NormalizationResult:
        """
        Finalize a skeleton with normalized data, or merge it into a duplicate.

        Args:
            skeleton: Pending listing created by create_skeleton
            dto: Normalized listing

        Returns:
            NormalizationResult; status is "merged" when the skeleton was deleted
        """
        if await self._merge_duplicate(skeleton, dto):
            return NormalizationResult(merged=True, quality_score=0, status="merged")

        errors = dto.validate_fields()
        quality_score = dto.quality_score()
        fully_parsed = dto.is_fully_parsed()
        status = dto.resolve_status()

        if errors:
            lifecycle_log.warning(
                f"Listing {skeleton.id} failed critical-field validation: {errors} "
                f"(score={quality_score}, status={status.value})"
            )

        raw_data = dict(skeleton.raw_data)
        selected_images = dto.raw_data.get("selected_images")
        if selected_images is not None:
            raw_data["selected_images"] = selected_images
        raw_data["extracted_images"] = dto.images or raw_data.get("extracted_images") or []
        for key in ("imputed_fields", "raw_title", "ai_fallback"):
            if key in dto.raw_data:
                raw_data[key] = dto.raw_data[key]

        await self._repository.update(
            skeleton.id,
            {
                "title": dto.title,
                "description": dto.description,
                "price": _decimal(dto.price),
                "currency": dto.currency,
                "area_m2": _decimal(dto.area_m2),
                "rooms": dto.rooms,
                "city": dto.city,
                "street": dto.street,
                "type": dto.type.value,
                "status": status.value,
                "quality_score": quality_score,
                "is_fully_parsed": fully_parsed,
                "fingerprint": (
                    dto.fingerprint() if is_fingerprintable(dto.price, dto.city) else None
                ),
                "keywords": dto.keywords,
                "images": dto.images,
                "raw_data": raw_data,
            },
        )
        lifecycle_log.debug(
            f"Normalization applied to listing {skeleton.id}: "
            f"status={status.value} score={quality_score} fully_parsed={fully_parsed}"
        )

        if self._media is not None:
            hero_url = (selected_images or {}).get("hero_url")
            await self._media.designate_hero(skeleton.id, hero_url)

        return NormalizationResult(
            merged=False, quality_score=quality_score, status=status.value
        )

    async def mark_unverified(self, listing_id: int) -> bool:
        """
        Demote a listing from PENDING to UNVERIFIED.

        Listings in any other status are left untouched.

        Returns:
            True if the listing was demoted
        """
        demoted = await self._repository.transition_status(
            listing_id, ListingStatus.PENDING, ListingStatus.UNVERIFIED
        )
        if demoted:
            lifecycle_log.info(f"Listing {listing_id} marked unverified")
        return demoted

    async def _refresh_duplicate(self, existing: Listing, structured: dict) -> None:
        new_price = float(structured.get("price") or 0)
        if price_moved(float(existing.price), new_price):
            lifecycle_log.debug(
                f"Duplicate {existing.id} price updated: {existing.price} -> {new_price}"
            )
            await self._repository.refresh_seen(existing.id, _decimal(new_price))
        else:
            await self._repository.refresh_seen(existing.id)

    async def _merge_duplicate(self, skeleton: Listing, dto: ListingDTO) -> bool:
        if not is_fingerprintable(dto.price, dto.city):
            return False

        fingerprint = dto.fingerprint()
        existing = await self._repository.find_recent_duplicate(
            fingerprint, DUPLICATE_WINDOW_DAYS, exclude_id=skeleton.id
        )
        if existing is None:
            return False

        lifecycle_log.warning(
            f"Post-enrichment duplicate {fingerprint}: merging skeleton {skeleton.id} "
            f"into listing {existing.id}"
        )
        new_price = None
        if dto.price > 0 and _decimal(dto.price) != existing.price:
            new_price = _decimal(dto.price)
        await self._repository.refresh_seen(existing.id, new_price)
        await self._repository.delete(skeleton.id)
        return True
