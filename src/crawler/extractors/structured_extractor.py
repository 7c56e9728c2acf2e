"""
Structured-data extractor for listing offer pages.

Deterministic extraction, no network and no enrichment:
    - listing fields from the page's JSON-LD (schema.org) node
    - images from <picture> elements in the DOM
"""

import hashlib
import json
import re
from typing import Any

from bs4 import BeautifulSoup, Tag
from loguru import logger

from src.crawler.extractors.types import ImageCandidate, StructuredRecord
from src.utils.cleaning import strip_street_prefix
from src.utils.image_urls import is_valid_image_url

extractor_log = logger.bind(module="Extractor")

MAX_HTML_BYTES = 500_000
MAX_IMAGES = 15
MAX_LABEL_LEN = 100
DEFAULT_IMAGE_LABEL = "Property image"
DEFAULT_TITLE = "Property Listing"

MIN_AREA_M2 = 5
MAX_AREA_M2 = 10_000
MIN_ROOMS = 1
MAX_ROOMS = 20

EXTERNAL_ID_PREFIX = "otodom_"

LISTING_NODE_TYPES = {
    "Product",
    "Apartment",
    "Residence",
    "House",
    "SingleFamilyResidence",
    "RealEstateListing",
}

# schema.org @type -> property type
SCHEMA_TYPE_MAP = {
    "Apartment": "apartment",
    "House": "house",
    "SingleFamilyResidence": "house",
    "Residence": "apartment",
}

# Building-type keyword -> property type, first match wins
BUILDING_TYPE_VOCABULARY = (
    ("apartament", "apartment"),
    ("blok", "apartment"),
    ("kamienica", "apartment"),
    ("loft", "loft"),
    ("dom", "house"),
    ("willa", "villa"),
    ("szeregowiec", "townhouse"),
    ("penthouse", "penthouse"),
)

LD_JSON_PATTERN = re.compile(
    r"<script[^>]*type=[\"']application/ld\+json[\"'][^>]*>(.*?)</script>",
    re.IGNORECASE | re.DOTALL,
)
AREA_PROPERTY_PATTERN = re.compile(r"powierzchnia|area|floor\s*area", re.IGNORECASE)
BUILDING_TYPE_PATTERN = re.compile(r"rodzaj\s*zabudowy|building\s*type", re.IGNORECASE)
EXTERNAL_ID_PATTERN = re.compile(r"[-/]([A-Za-z0-9]{6,12})(?:[?#]|$)")
BACKGROUND_IMAGE_PATTERN = re.compile(
    r"background-image:\s*url\([\"']?([^\"')]+)[\"']?\)", re.IGNORECASE
)

# Attribute precedence for image sources
IMAGE_SRC_ATTRIBUTES = (
    "src",
    "data-src",
    "data-lazy-src",
    "data-original",
    "data-url",
    "data-image-url",
)


def truncate_html(html: str) -> str:
    """Cut HTML to MAX_HTML_BYTES of UTF-8."""
    encoded = html.encode("utf-8", errors="ignore")
    if len(encoded) <= MAX_HTML_BYTES:
        return html
    return encoded[:MAX_HTML_BYTES].decode("utf-8", errors="ignore")


def extract(html: str) -> StructuredRecord | None:
    """
    Extract structured listing data from an offer page.

    Args:
        html: Full page HTML

    Returns:
        StructuredRecord, or None when the page has no listing JSON-LD node
    """
    node = find_listing_node(html)
    if node is None:
        return None

    url = str(node.get("url") or "")
    offers = node.get("offers")
    currency = offers.get("priceCurrency") if isinstance(offers, dict) else None
    address = node.get("address") if isinstance(node.get("address"), dict) else {}

    record: StructuredRecord = {
        "title": str(node.get("name") or DEFAULT_TITLE),
        "description": str(node.get("description") or ""),
        "price": parse_price(node),
        "currency": str(currency or "PLN"),
        "area_m2": parse_area(node),
        "rooms": parse_rooms(node.get("numberOfRooms")),
        "city": str(address.get("addressLocality") or "").strip(),
        "street": strip_street_prefix(str(address.get("streetAddress") or "")),
        "type": parse_property_type(node),
        "external_id": external_id_from_url(url),
        "images": extract_images(html),
        "url": url,
        "json_ld_raw": node,
    }

    extractor_log.debug(
        f"JSON-LD extracted: {record['street']}, {record['city']} | "
        f"{record['price']} {record['currency']} | {record['area_m2']} m² | "
        f"{record['rooms']} rooms | {len(record['images'])} images"
    )
    return record


def find_listing_node(html: str) -> dict[str, Any] | None:
    """
    Find the first JSON-LD node describing a listing.

    Nodes are searched directly and inside @graph arrays.
    """
    for match in LD_JSON_PATTERN.finditer(html):
        try:
            decoded = json.loads(match.group(1).strip())
        except ValueError:
            continue

        if not isinstance(decoded, dict):
            continue

        if _is_listing_node(decoded):
            return decoded

        graph = decoded.get("@graph")
        if not isinstance(graph, list):
            continue
        for node in graph:
            if isinstance(node, dict) and _is_listing_node(node):
                return node

    return None


def _is_listing_node(node: dict[str, Any]) -> bool:
    return any(t in LISTING_NODE_TYPES for t in _node_types(node))


def _node_types(node: dict[str, Any]) -> list[str]:
    types = node.get("@type", [])
    if isinstance(types, str):
        return [types]
    return [t for t in types if isinstance(t, str)] if isinstance(types, list) else []


def _to_float(raw: Any, pattern: str) -> float:
    cleaned = re.sub(pattern, "", str(raw)).replace(",", ".")
    try:
        return float(cleaned)
    except ValueError:
        return 0.0


def parse_price(node: dict[str, Any]) -> float:
    """Price from offers.price, offers[0].price or price, currency stripped."""
    offers = node.get("offers")
    raw = None
    if isinstance(offers, dict):
        raw = offers.get("price")
    elif isinstance(offers, list) and offers and isinstance(offers[0], dict):
        raw = offers[0].get("price")
    if raw is None:
        raw = node.get("price", "0")
    return _to_float(raw, r"[^\d.]")


def parse_area(node: dict[str, Any]) -> float:
    """
    Floor area in m².

    additionalProperty named like area wins over floorSize. Values outside
    5-10,000 m² are treated as unknown (0).
    """
    area = 0.0
    found = False

    properties = node.get("additionalProperty")
    if isinstance(properties, list):
        for prop in properties:
            if not isinstance(prop, dict):
                continue
            if AREA_PROPERTY_PATTERN.search(str(prop.get("name") or "")):
                area = _to_float(prop.get("value", "0"), r"[^\d.,]")
                found = True
                break

    if not found:
        floor_size = node.get("floorSize")
        if isinstance(floor_size, dict):
            floor_size = floor_size.get("value")
        if floor_size is not None:
            area = _to_float(floor_size, r"[^\d.,]")

    if not MIN_AREA_M2 <= area <= MAX_AREA_M2:
        return 0.0
    return area


def parse_rooms(raw: Any) -> int:
    """Room count bounded to 1-20, otherwise 0 (unknown)."""
    if isinstance(raw, dict):
        raw = raw.get("value")
    try:
        rooms = int(float(str(raw).strip()))
    except (TypeError, ValueError):
        return 0
    return rooms if MIN_ROOMS <= rooms <= MAX_ROOMS else 0


def parse_property_type(node: dict[str, Any]) -> str:
    """Property type from the building-type property, else the @type."""
    properties = node.get("additionalProperty")
    if isinstance(properties, list):
        for prop in properties:
            if not isinstance(prop, dict):
                continue
            if BUILDING_TYPE_PATTERN.search(str(prop.get("name") or "")):
                value = str(prop.get("value") or "").strip().lower()
                for keyword, property_type in BUILDING_TYPE_VOCABULARY:
                    if keyword in value:
                        return property_type
                return "apartment"

    for schema_type in _node_types(node):
        if schema_type in SCHEMA_TYPE_MAP:
            return SCHEMA_TYPE_MAP[schema_type]

    return "apartment"


def external_id_from_url(url: str) -> str | None:
    """
    Provider-scoped ID from the trailing URL slug.

    Examples:
        >>> external_id_from_url("https://www.otodom.pl/pl/oferta/mieszkanie-ID4abCd12")
        'otodom_ID4abCd12'
        >>> external_id_from_url("")
    """
    match = EXTERNAL_ID_PATTERN.search(url)
    if match:
        return EXTERNAL_ID_PREFIX + match.group(1)
    if url:
        return EXTERNAL_ID_PREFIX + hashlib.md5(url.encode("utf-8")).hexdigest()
    return None


def extract_images(html: str) -> list[ImageCandidate]:
    """
    Collect gallery images from <picture> elements.

    Returns:
        Ordered, de-duplicated candidates, at most MAX_IMAGES
    """
    soup = BeautifulSoup(truncate_html(html), "html.parser")

    images: list[ImageCandidate] = []
    seen: set[str] = set()
    for node in soup.select("picture img, picture source[srcset]"):
        src = resolve_image_src(node)
        if src is None or src in seen or not is_valid_image_url(src):
            continue
        seen.add(src)
        images.append({"url": src, "label": resolve_image_label(node)})
        if len(images) >= MAX_IMAGES:
            break

    return images


def resolve_image_src(node: Tag) -> str | None:
    """
    Image URL of an <img>/<source> element.

    Protocol-relative URLs get https:, root-relative URLs are dropped.
    """
    src = ""
    for attr in IMAGE_SRC_ATTRIBUTES:
        src = str(node.get(attr) or "").strip()
        if src:
            break

    if not src:
        srcset = str(node.get("srcset") or "").strip()
        match = re.match(r"([^\s,]+)", srcset)
        if match:
            src = match.group(1)

    if not src:
        match = BACKGROUND_IMAGE_PATTERN.search(str(node.get("style") or ""))
        if match:
            src = match.group(1)

    if not src:
        return None
    if src.startswith("//"):
        return "https:" + src
    if src.startswith("/"):
        return None
    return src


def resolve_image_label(node: Tag) -> str:
    """Caption from alt, title, aria-label and short parent text."""
    parts = [
        str(node.get("alt") or "").strip(),
        str(node.get("title") or "").strip(),
        str(node.get("aria-label") or "").strip(),
    ]

    if node.parent is not None:
        parent_text = node.parent.get_text(" ", strip=True)
        if parent_text and len(parent_text) < MAX_LABEL_LEN:
            parts.append(parent_text)

    label = " ".join(part for part in parts if part)
    return label or DEFAULT_IMAGE_LABEL
