"""
Raw data type definitions for the listing crawler.

These TypedDicts describe what providers and the structured-data extractor
hand to the listing pipeline. Values are plain JSON types so they can be
stored verbatim in a listing's raw_data payload.
"""

from typing import Any, TypedDict


class ImageCandidate(TypedDict):
    """
    Image found on an offer page.

    Attributes:
        url: Absolute image URL
        label: Caption from alt/title/aria-label or nearby text
    """

    url: str
    label: str


class StructuredRecord(TypedDict):
    """
    Fields extracted deterministically from an offer page's JSON-LD.

    Attributes:
        title: Listing name
        description: Listing description
        price: Asking price (0 when unknown)
        currency: ISO currency code, PLN by default
        area_m2: Floor area in m² (0 when unknown or implausible)
        rooms: Room count (0 when unknown)
        city: addressLocality
        street: streetAddress without "ul."/"ulica" prefix
        type: Property type value
        external_id: Provider-scoped ID derived from the URL
        images: Images from <picture> elements
        url: Canonical offer URL from JSON-LD
        json_ld_raw: The listing node as found in the page
    """

    title: str
    description: str
    price: float
    currency: str
    area_m2: float
    rooms: int
    city: str
    street: str | None
    type: str
    external_id: str | None
    images: list[ImageCandidate]
    url: str
    json_ld_raw: dict[str, Any]


class RawScrapeRecord(TypedDict, total=False):
    """
    One scraped offer as returned by a provider.

    Attributes:
        external_id: Provider-scoped listing ID
        url: Offer URL
        raw_html: Page HTML truncated to MAX_HTML_BYTES
        structured: Extractor output, when the page carried JSON-LD
        extracted_images: Images found on the page
        title: Page or JSON-LD title
        scraped_at: ISO-8601 timestamp
    """

    external_id: str
    url: str
    raw_html: str
    structured: StructuredRecord | None
    extracted_images: list[ImageCandidate]
    title: str
    scraped_at: str
