"""
Semantic fingerprint calculation.

A fingerprint is an MD5 digest of normalised physical-property attributes
(city, street, price, area, rooms). Two listings describing the same unit,
scraped at different times or from different portals, produce the same value.

Normalisation rules:
    - city / street: trimmed, lowercased, street prefix ("ul.", "ulica") removed,
      fallback to sentinel tokens when empty
    - price: rounded to the nearest 1 000
    - area: rounded to the nearest integer m²
    - rooms: floored at 0
"""

import hashlib
from decimal import ROUND_HALF_UP, Decimal

from src.utils.cleaning import strip_street_prefix

UNKNOWN_CITY = "unknown"
UNKNOWN_STREET = "unknown-street"

PRICE_STEP = Decimal("1000")


def normalize_text(value: str | None, fallback: str) -> str:
    """
    Lowercase and trim a text attribute.

    Args:
        value: Raw text (may be None)
        fallback: Sentinel returned for empty input

    Returns:
        Normalised text or the sentinel
    """
    clean = (value or "").strip().lower()
    return clean if clean else fallback


def round_price(price: float) -> int:
    """
    Round price to the nearest 1 000 (half away from zero).

    Examples:
        >>> round_price(1_002_000)
        1000000
        >>> round_price(1_500)
        2000
    """
    steps = (Decimal(str(price)) / PRICE_STEP).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return int(steps * PRICE_STEP)


def round_area(area_m2: float) -> int:
    """Round area to the nearest integer (half away from zero)."""
    return int(Decimal(str(area_m2)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def calculate(
    city: str | None,
    street: str | None,
    price: float,
    area_m2: float,
    rooms: int,
) -> str:
    """
    Calculate the semantic fingerprint of a property.

    Args:
        city: City name
        street: Street name (nullable)
        price: Asking price
        area_m2: Area in square metres
        rooms: Room count

    Returns:
        32-character hex digest

    Examples:
        >>> calculate("Krakow", "ul. Lipowa", 1_002_000, 64.4, 3) == calculate(
        ...     "krakow", "Lipowa", 1_000_000, 64, 3
        ... )
        True
    """
    parts = [
        normalize_text(city, UNKNOWN_CITY),
        normalize_text(strip_street_prefix(street), UNKNOWN_STREET),
        str(round_price(price or 0)),
        str(round_area(area_m2 or 0)),
        str(max(0, int(rooms or 0))),
    ]
    return hashlib.md5("|".join(parts).encode("utf-8")).hexdigest()
