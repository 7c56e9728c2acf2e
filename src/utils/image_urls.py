"""
Image URL validation.

Single source of truth for accepting or rejecting image URLs. The extractor,
the JSON repair pass, the normalizer and the image downloader all call
is_valid_image_url so they reach identical decisions.
"""

from typing import Any
from urllib.parse import urlparse

MIN_IMAGE_URL_LENGTH = 20

BLOCKED_URL_KEYWORDS = (
    "placeholder",
    "icon",
    "logo",
    "avatar",
    "data:",
    "svg",
    "favicon",
)


def is_valid_image_url(url: Any) -> bool:
    """
    Check whether a URL plausibly points at a real property photo.

    Rejects non-strings, short URLs, non-HTTP(S) schemes, malformed URLs and
    URLs containing placeholder/icon/logo/avatar/data-URI markers.

    Examples:
        >>> is_valid_image_url("https://cdn.example.com/photos/1.jpg")
        True
        >>> is_valid_image_url("https://cdn.example.com/logo.png")
        False
        >>> is_valid_image_url("//cdn.example.com/photos/1.jpg")
        False
    """
    if not isinstance(url, str) or len(url) < MIN_IMAGE_URL_LENGTH:
        return False

    if not url.startswith(("https://", "http://")):
        return False

    if any(ch.isspace() for ch in url):
        return False

    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    if not parsed.netloc or "." not in parsed.netloc:
        return False

    lower = url.lower()
    return not any(keyword in lower for keyword in BLOCKED_URL_KEYWORDS)


def url_from_image(item: Any) -> str | None:
    """
    Pull the URL out of an image entry.

    Entries are either plain strings or dicts with a "url" key.
    """
    if isinstance(item, str):
        return item
    if isinstance(item, dict) and isinstance(item.get("url"), str):
        return item["url"]
    if isinstance(item, (list, tuple)) and item and isinstance(item[0], str):
        return item[0]
    return None
