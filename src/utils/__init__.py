"""
Utility modules for the listing pipeline.
"""

from src.utils.cleaning import clean_utf8, strip_street_prefix
from src.utils.fingerprint import calculate as calculate_fingerprint
from src.utils.image_urls import is_valid_image_url, url_from_image

__all__ = [
    # Cleaning
    "clean_utf8",
    "strip_street_prefix",
    # Fingerprint
    "calculate_fingerprint",
    # Image URLs
    "is_valid_image_url",
    "url_from_image",
]
