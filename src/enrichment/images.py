"""
Image handling for normalization.

Builds the prompt's image section, merges image URLs from the enrichment
response and the scrape, and pulls out the model's curated selection.
"""

from typing import Any, Iterable, Optional

from src.enrichment.prompts import IMAGE_SECTION_FOOTER, IMAGE_SECTION_HEADER
from src.utils.image_urls import is_valid_image_url, url_from_image

MAX_PROMPT_IMAGES = 15
DEFAULT_LABEL = "Property image"

LOGO_KEYWORDS = ("logo", "brand", "watermark", "agency", "company", "firm", "biuro")


def is_logo_image(url: str, label: str) -> bool:
    """Whether the URL or caption suggests an agency graphic rather than a photo."""
    url = url.lower()
    label = label.lower()
    return any(keyword in url or keyword in label for keyword in LOGO_KEYWORDS)


def build_image_section(images: Iterable[Any]) -> str:
    """
    Numbered "N. url (Label: caption)" lines for the prompt.

    Logos and invalid URLs are skipped, at most MAX_PROMPT_IMAGES are listed.

    Returns:
        Section text, or "" when no image qualifies
    """
    lines: list[str] = []
    for image in images:
        url = url_from_image(image) or ""
        label = DEFAULT_LABEL
        if isinstance(image, dict) and image.get("label"):
            label = str(image["label"])

        if not url or is_logo_image(url, label) or not is_valid_image_url(url):
            continue

        lines.append(f"{len(lines) + 1}. {url} (Label: {label})")
        if len(lines) >= MAX_PROMPT_IMAGES:
            break

    if not lines:
        return ""
    return "\n".join([IMAGE_SECTION_HEADER, *lines, IMAGE_SECTION_FOOTER])


def assemble_image_urls(*sources: Any) -> list[str]:
    """
    Merge image sources into one validated, de-duplicated URL list.

    Each source is a list of URL strings or {url, label} dicts; anything
    else is ignored. Order of first appearance is kept.
    """
    urls: list[str] = []
    for source in sources:
        if not isinstance(source, list):
            continue
        for image in source:
            url = url_from_image(image)
            if url and url not in urls and is_valid_image_url(url):
                urls.append(url)
    return urls


def extract_curation(normalized: dict[str, Any]) -> Optional[dict[str, Any]]:
    """
    The model's hero/gallery choice.

    Accepts either "selected_images" or "image_curation".

    Returns:
        {"hero_url": str | None, "gallery_urls": list[str]} or None
    """
    selected = normalized.get("selected_images") or normalized.get("image_curation")
    if not isinstance(selected, dict):
        return None

    gallery = selected.get("gallery_urls")
    return {
        "hero_url": selected.get("hero_url"),
        "gallery_urls": gallery if isinstance(gallery, list) else [],
    }
