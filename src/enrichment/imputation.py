"""
Deterministic imputation for rooms and property type.

Applied to every normalized listing regardless of what the enrichment
service returned, so a missing room count or type is filled from the
title and description using Polish real-estate vocabulary.
"""

import re

from src.modules.listings.enums import PropertyType

MIN_ROOMS = 1
MAX_ROOMS = 20

ROOM_COUNT_PATTERN = re.compile(
    r"(\d+)\s*[-–]?\s*(?:pokojow|pokoi|pokoje|pokój|pok\.?|rooms?|bedrooms?)",
    re.IGNORECASE,
)
STUDIO_PATTERN = re.compile(r"kawalerk|studio", re.IGNORECASE)

# Upper area bound (m²) -> rooms, checked in order
AREA_ROOM_BUCKETS = ((35, 1), (55, 2), (80, 3), (120, 4))
LARGEST_BUCKET_ROOMS = 5

# Checked in order, first match wins
TYPE_KEYWORDS: tuple[tuple[re.Pattern, PropertyType], ...] = (
    (re.compile(r"penthouse", re.IGNORECASE), PropertyType.PENTHOUSE),
    (re.compile(r"loft", re.IGNORECASE), PropertyType.LOFT),
    (re.compile(r"willa|villa", re.IGNORECASE), PropertyType.VILLA),
    (re.compile(r"kawalerk|studio", re.IGNORECASE), PropertyType.STUDIO),
    (re.compile(r"szeregowiec|bliźniak|townhouse", re.IGNORECASE), PropertyType.TOWNHOUSE),
    (re.compile(r"\bdom\b|house", re.IGNORECASE), PropertyType.HOUSE),
    (re.compile(r"apartament|mieszkani|blok|kamienica|apartment", re.IGNORECASE), PropertyType.APARTMENT),
)


def rooms_from_area(area_m2: float) -> int:
    """
    Estimate rooms from floor area.

    Examples:
        >>> rooms_from_area(35)
        1
        >>> rooms_from_area(80.5)
        4
        >>> rooms_from_area(0)
        0
    """
    if area_m2 <= 0:
        return 0
    for upper, rooms in AREA_ROOM_BUCKETS:
        if area_m2 <= upper:
            return rooms
    return LARGEST_BUCKET_ROOMS


def impute_rooms(title: str, description: str, area_m2: float) -> int:
    """
    Infer a room count, most confident source first.

    1. explicit phrasing: "2-pokojowe", "3 pokoje", "4 pok.", "3 rooms"
    2. "kawalerka" / "studio" means 1
    3. area buckets

    Returns:
        Room count, 0 when nothing is known
    """
    text = f"{title} {description}".lower()

    match = ROOM_COUNT_PATTERN.search(text)
    if match:
        rooms = int(match.group(1))
        if MIN_ROOMS <= rooms <= MAX_ROOMS:
            return rooms

    if STUDIO_PATTERN.search(text):
        return 1

    return rooms_from_area(area_m2)


def impute_type(title: str, description: str) -> PropertyType:
    """Infer the property type from keywords in title and description."""
    text = f"{title} {description}".lower()
    for pattern, property_type in TYPE_KEYWORDS:
        if pattern.search(text):
            return property_type
    return PropertyType.UNKNOWN
