"""
Structured listing titles.

Format: "<N>-Bedroom <Type> on <Street> in <City>", absent segments omitted.
Used to validate enrichment titles and to build them when enrichment fails
or returns marketing copy.
"""

import re
from typing import Optional

from src.modules.listings.enums import PropertyType
from src.utils.cleaning import strip_street_prefix

DEFAULT_TITLE = "Property Listing"
UNKNOWN_CITY = "unknown"

LOCATION_PATTERN = re.compile(r"\b(in|on)\s+[A-ZĄĆĘŁŃÓŚŹŻ][a-ząćęłńóśźż]+")
FLUFF_PATTERN = re.compile(
    r"okazja|pilne|super\s*oferta|mega|hot|!!!|bez\s*prowizji", re.IGNORECASE
)


def build_title(
    property_type: PropertyType | str | None,
    rooms: int,
    street: Optional[str],
    city: Optional[str],
) -> str:
    """
    Build a structured title.

    Studios omit the room count. Never returns an empty string.

    Examples:
        >>> build_title("apartment", 3, "Lipowa", "Krakow")
        '3-Bedroom Apartment on Lipowa in Krakow'
        >>> build_title("studio", 0, None, "")
        'Studio'
        >>> build_title("unknown", 0, None, "Gdansk")
        'Property in Gdansk'
    """
    type_enum = PropertyType.from_safe(property_type)

    parts: list[str] = []
    if type_enum is PropertyType.STUDIO:
        parts.append(type_enum.label())
    else:
        if rooms > 0:
            parts.append(f"{rooms}-Bedroom")
        if type_enum is not PropertyType.UNKNOWN:
            parts.append(type_enum.label())

    location: list[str] = []
    street = strip_street_prefix(street)
    if street:
        location.append(f"on {street}")
    city = (city or "").strip()
    if city and city.lower() != UNKNOWN_CITY:
        location.append(f"in {city}")

    description = " ".join(parts)
    where = " ".join(location)

    if description and where:
        return f"{description} {where}"
    if description:
        return description
    if where:
        return f"Property {where}"
    return DEFAULT_TITLE


def is_structured_title(title: Optional[str]) -> bool:
    """
    Whether a title already reads like a structured one.

    Requires an "in"/"on" + capitalized word location phrase and rejects
    marketing fluff.

    Examples:
        >>> is_structured_title("2-Bedroom Apartment in Warsaw")
        True
        >>> is_structured_title("OKAZJA!!! Mieszkanie in Warsaw")
        False
    """
    if not title:
        return False
    if not LOCATION_PATTERN.search(title):
        return False
    return not FLUFF_PATTERN.search(title)
