"""
Listing Models.

Pydantic models for persisted listings and the immutable transport object
produced by the enrichment normalizer.
"""

import re
import unicodedata
from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.modules.listings import quality
from src.modules.listings.enums import ListingStatus, PropertyType
from src.utils.fingerprint import calculate as calculate_fingerprint

# Characters NFKD does not decompose to ASCII
_SLUG_TRANSLITERATION = str.maketrans({"ł": "l", "Ł": "L", "ø": "o", "ß": "ss", "đ": "d"})


def slugify(value: str) -> str:
    """
    Convert text to a lowercase ASCII slug.

    Examples:
        >>> slugify("Smart Home")
        'smart-home'
        >>> slugify("  Duży balkon! ")
        'duzy-balkon'
    """
    value = value.translate(_SLUG_TRANSLITERATION)
    value = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    value = re.sub(r"[^a-z0-9]+", "-", value.lower())
    return value.strip("-")


class ListingDTO(BaseModel):
    """Immutable listing transport object."""

    model_config = ConfigDict(frozen=True)

    external_id: str | None = None
    title: str
    description: str = ""
    price: float = 0.0
    currency: str = "PLN"
    area_m2: float = 0.0
    rooms: int = 0
    city: str = ""
    street: str | None = None
    type: PropertyType = PropertyType.UNKNOWN
    status: ListingStatus = ListingStatus.AVAILABLE
    raw_data: dict[str, Any] = Field(default_factory=dict)
    images: list[str] | None = None
    keywords: list[str] | None = None

    @field_validator("type", mode="before")
    @classmethod
    def parse_type(cls, v: Any) -> PropertyType:
        """Map unrecognised property types to UNKNOWN."""
        return PropertyType.from_safe(v)

    @field_validator("keywords", mode="before")
    @classmethod
    def parse_keywords(cls, v: Any) -> list[str] | None:
        """Slugify and deduplicate keywords; empty becomes None."""
        if not isinstance(v, list) or not v:
            return None
        return cls.normalize_keywords(v) or None

    @staticmethod
    def normalize_keywords(raw: list[Any]) -> list[str]:
        """Slugify keywords, dropping empties and duplicates (order kept)."""
        normalized: list[str] = []
        for keyword in raw:
            slug = slugify(str(keyword).strip())
            if slug and slug not in normalized:
                normalized.append(slug)
        return normalized

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ListingDTO":
        """Build a DTO from a loosely typed dict."""
        return cls(
            external_id=data.get("external_id"),
            title=data["title"],
            description=data.get("description") or "",
            price=float(data.get("price") or 0),
            currency=data.get("currency") or "PLN",
            area_m2=float(data.get("area_m2") or 0),
            rooms=int(data.get("rooms") or 0),
            city=data.get("city") or "",
            street=data.get("street"),
            type=data.get("type"),
            status=data.get("status") or ListingStatus.AVAILABLE,
            raw_data=data.get("raw_data") or {},
            images=data.get("images"),
            keywords=data.get("keywords"),
        )

    @property
    def is_fallback(self) -> bool:
        """True when built from structured data without enrichment."""
        return bool(self.raw_data.get("ai_fallback"))

    def fingerprint(self) -> str:
        """Semantic fingerprint of the normalised attributes."""
        return calculate_fingerprint(
            self.city, self.street, self.price, self.area_m2, self.rooms
        )

    def validate_fields(self) -> dict[str, str]:
        """Critical-field validation errors."""
        return quality.validate(self)

    def quality_score(self) -> int:
        """Completeness score in [0, 100]."""
        return quality.score(self)

    def is_fully_parsed(self) -> bool:
        """True when every critical and optional field is present."""
        return quality.is_fully_parsed(self)

    def resolve_status(self) -> ListingStatus:
        """
        Final status for persistence.

        Valid records built without enrichment stay UNVERIFIED.
        """
        status = quality.resolve_status(self.validate_fields())
        if status is ListingStatus.AVAILABLE and self.is_fallback:
            return ListingStatus.UNVERIFIED
        return status

    def to_dict(self) -> dict[str, Any]:
        """Project to listing column values."""
        return {
            "external_id": self.external_id,
            "fingerprint": self.fingerprint(),
            "title": self.title,
            "description": self.description,
            "price": self.price,
            "currency": self.currency,
            "area_m2": self.area_m2,
            "rooms": self.rooms,
            "city": self.city,
            "street": self.street,
            "type": self.type.value,
            "status": self.status.value,
            "raw_data": self.raw_data,
            "images": self.images,
            "keywords": self.keywords,
        }


class Listing(BaseModel):
    """Persisted listing row."""

    id: int
    external_id: str | None = None
    fingerprint: str | None = None
    title: str = ""
    description: str | None = None
    price: Decimal = Decimal("0")
    currency: str = "PLN"
    area_m2: Decimal = Decimal("0")
    rooms: int = 0
    city: str = ""
    street: str | None = None
    type: PropertyType = PropertyType.UNKNOWN
    status: ListingStatus = ListingStatus.PENDING
    quality_score: int = 0
    is_fully_parsed: bool = False
    raw_data: dict[str, Any] = Field(default_factory=dict)
    images: list[str] | None = None
    keywords: list[str] | None = None
    last_seen_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("type", mode="before")
    @classmethod
    def parse_type(cls, v: Any) -> PropertyType:
        """Map unrecognised property types to UNKNOWN."""
        return PropertyType.from_safe(v)

    @field_validator("raw_data", mode="before")
    @classmethod
    def parse_raw_data(cls, v: Any) -> dict[str, Any]:
        """NULL raw_data becomes an empty dict."""
        return v if isinstance(v, dict) else {}

    @property
    def is_pending(self) -> bool:
        """Whether the listing still awaits enrichment."""
        return self.status is ListingStatus.PENDING

    def __str__(self) -> str:
        """String representation for console output."""
        return (
            f"[{self.id}] {self.title}\n"
            f"    {self.price} {self.currency} | {self.area_m2} m² | {self.rooms} rooms\n"
            f"    {self.street or 'N/A'}, {self.city or 'N/A'} | {self.type.value} | {self.status.value}"
        )
