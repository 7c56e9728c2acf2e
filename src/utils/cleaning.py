"""
Text-cleaning utilities.

Shared by the extractor, the enrichment normalizer and the fingerprint
calculation so every component sanitises text the same way.
"""

import re
from typing import Any

STREET_PREFIX_PATTERN = re.compile(r"^(?:ulica\s+|ul\.\s*|ul\s+)", re.IGNORECASE)

# Control characters except \t, \n, \r
CONTROL_CHARS_PATTERN = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")


def strip_street_prefix(street: str | None) -> str | None:
    """
    Remove the Polish street prefix ("ul.", "ulica") from a street name.

    Args:
        street: Raw street string

    Returns:
        Street without prefix, or None if nothing remains

    Examples:
        >>> strip_street_prefix("ul. Lipowa 3")
        'Lipowa 3'
        >>> strip_street_prefix("ulica Długa")
        'Długa'
        >>> strip_street_prefix("  ")
    """
    if street is None or not street.strip():
        return None

    cleaned = STREET_PREFIX_PATTERN.sub("", street.strip()).strip()
    return cleaned or None


def clean_utf8(data: Any) -> Any:
    """
    Recursively drop invalid UTF-8 sequences and control characters.

    Dicts and lists are walked; strings are scrubbed; other values pass
    through untouched.

    Args:
        data: Any JSON-like value

    Returns:
        Cleaned value of the same shape
    """
    if isinstance(data, dict):
        return {key: clean_utf8(value) for key, value in data.items()}

    if isinstance(data, list):
        return [clean_utf8(item) for item in data]

    if isinstance(data, bytes):
        data = data.decode("utf-8", errors="ignore")

    if isinstance(data, str):
        # Lone surrogates survive str but fail on encode
        data = data.encode("utf-8", errors="ignore").decode("utf-8", errors="ignore")
        return CONTROL_CHARS_PATTERN.sub("", data)

    return data
