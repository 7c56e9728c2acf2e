"""
Listing normalizer.

Sends a skeleton's structured pre-data to the enrichment service for
translation, cleanup and image curation, then applies local imputation and
title rules. When enrichment yields nothing but the structured record has a
price, a fallback DTO is built from the structured fields alone.
"""

import json
from typing import Any, Optional

from loguru import logger

from src.enrichment import json_repair
from src.enrichment.client import EnrichmentClient
from src.enrichment.exceptions import EnrichmentError
from src.enrichment.images import (
    assemble_image_urls,
    build_image_section,
    extract_curation,
)
from src.enrichment.imputation import impute_rooms, impute_type
from src.enrichment.prompts import SYSTEM_PROMPT, render_user_prompt
from src.enrichment.titles import DEFAULT_TITLE, build_title, is_structured_title
from src.modules.listings.enums import ListingStatus, PropertyType
from src.modules.listings.models import ListingDTO
from src.utils.cleaning import clean_utf8

normalizer_log = logger.bind(module="Normalizer")

UNKNOWN_CITY = "Unknown"
PROMPT_EXCLUDED_KEYS = ("json_ld_raw",)


def _to_float(value: Any) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


def _to_int(value: Any) -> int:
    try:
        return int(float(value or 0))
    except (TypeError, ValueError):
        return 0


class Normalizer:
    """Turns a raw skeleton payload into a ListingDTO."""

    def __init__(self, client: Optional[EnrichmentClient] = None):
        """
        Initialize normalizer.

        Args:
            client: Enrichment API client
        """
        self._client = client or EnrichmentClient()

    async def normalize(self, raw: dict[str, Any]) -> ListingDTO:
        """
        Normalize one listing.

        Args:
            raw: external_id, url, title, structured (extractor output or
                None) and raw_data (the skeleton's auxiliary payload)

        Returns:
            ListingDTO

        Raises:
            EnrichmentError: Surfaced client errors, or no_usable_data when
                neither enrichment nor a priced structured record exists
        """
        structured = raw.get("structured")
        content = await self._client.complete(SYSTEM_PROMPT, self.build_prompt(raw))
        normalized = self._parse(content, raw) if content is not None else None

        if normalized is None:
            if structured and _to_float(structured.get("price")) > 0:
                normalizer_log.warning(
                    f"Enrichment failed for {raw.get('external_id')}, "
                    f"falling back to structured data"
                )
                return self.fallback_dto(structured, raw)
            if content is not None:
                raise EnrichmentError.json_parse_failed(f"Listing {raw.get('external_id')}")
            raise EnrichmentError.no_usable_data(
                f"Enrichment returned nothing for {raw.get('external_id')}"
            )

        return self.to_dto(normalized, raw)

    def build_prompt(self, raw: dict[str, Any]) -> str:
        """User prompt embedding the structured record and image candidates."""
        structured = raw.get("structured")
        raw_data = raw.get("raw_data") or {}

        if structured:
            payload = {k: v for k, v in structured.items() if k not in PROMPT_EXCLUDED_KEYS}
            images = structured.get("images") or []
        else:
            payload = raw_data or raw
            images = raw_data.get("extracted_images") or []

        json_data = json.dumps(clean_utf8(payload), indent=4, ensure_ascii=False, default=str)
        return render_user_prompt(json_data, build_image_section(clean_utf8(images)))

    def _parse(self, content: str, raw: dict[str, Any]) -> Optional[dict[str, Any]]:
        parsed = json_repair.extract(content)
        if parsed is None:
            normalizer_log.error(
                f"No JSON in enrichment response for {raw.get('external_id')}: "
                f"{content[:500]!r}"
            )
            return None
        return clean_utf8(parsed)

    def to_dto(self, normalized: dict[str, Any], raw: dict[str, Any]) -> ListingDTO:
        """Map an enrichment response to a DTO."""
        raw_data = dict(raw.get("raw_data") or {})
        if raw.get("url") and not raw_data.get("url"):
            raw_data["url"] = raw["url"]

        images = assemble_image_urls(
            normalized.get("images"),
            raw_data.get("images") or raw.get("images"),
            raw_data.get("extracted_images"),
        )
        curation = extract_curation(normalized)
        if curation is not None:
            raw_data["selected_images"] = curation
        raw_data["extracted_images"] = images

        description = normalized.get("description") or raw_data.get("description") or ""
        area_m2 = _to_float(normalized.get("area_m2"))
        rooms = _to_int(normalized.get("rooms"))
        city = normalized.get("city") or UNKNOWN_CITY
        street = normalized.get("street") or raw_data.get("street")
        property_type = PropertyType.from_safe(normalized.get("type"))

        raw_title = (
            normalized.get("raw_title") or raw_data.get("title") or raw.get("title") or ""
        )
        if raw_title:
            raw_data["raw_title"] = raw_title

        imputed = normalized.get("imputed_fields")
        imputed_fields = list(imputed) if isinstance(imputed, list) else []
        rooms, property_type = self._impute(
            raw_title, description, area_m2, rooms, property_type, imputed_fields
        )
        raw_data["imputed_fields"] = imputed_fields

        ai_title = normalized.get("title") or ""
        title = (
            ai_title
            if is_structured_title(ai_title)
            else build_title(property_type, rooms, street, city)
        )

        keywords = normalized.get("keywords")
        return ListingDTO.from_dict(
            {
                "external_id": raw.get("external_id"),
                "title": title,
                "description": description,
                "price": _to_float(normalized.get("price")),
                "currency": normalized.get("currency") or "PLN",
                "area_m2": area_m2,
                "rooms": rooms,
                "city": city,
                "street": street,
                "type": property_type,
                "status": ListingStatus.AVAILABLE,
                "raw_data": raw_data,
                "images": images,
                "keywords": keywords if isinstance(keywords, list) else None,
            }
        )

    def fallback_dto(self, structured: dict[str, Any], raw: dict[str, Any]) -> ListingDTO:
        """
        DTO from structured data alone.

        No translation or curation; imputation and title rules still apply
        and the record is flagged ai_fallback so it resolves to UNVERIFIED.
        """
        raw_data = dict(raw.get("raw_data") or {})
        if raw.get("url") and not raw_data.get("url"):
            raw_data["url"] = raw["url"]
        raw_data["json_ld"] = structured
        raw_data["ai_fallback"] = True

        extracted = raw_data.get("extracted_images") or []
        raw_data["extracted_images"] = structured.get("images") or extracted
        images = assemble_image_urls(structured.get("images"), extracted)

        raw_title = structured.get("title") or DEFAULT_TITLE
        description = structured.get("description") or ""
        area_m2 = _to_float(structured.get("area_m2"))
        rooms = _to_int(structured.get("rooms"))
        city = structured.get("city") or UNKNOWN_CITY
        street = structured.get("street")
        property_type = PropertyType.from_safe(structured.get("type"))
        raw_data["raw_title"] = raw_title

        imputed_fields: list[str] = []
        rooms, property_type = self._impute(
            raw_title, description, area_m2, rooms, property_type, imputed_fields
        )
        raw_data["imputed_fields"] = imputed_fields

        return ListingDTO.from_dict(
            {
                "external_id": raw.get("external_id") or structured.get("external_id"),
                "title": build_title(property_type, rooms, street, city),
                "description": description,
                "price": _to_float(structured.get("price")),
                "currency": structured.get("currency") or "PLN",
                "area_m2": area_m2,
                "rooms": rooms,
                "city": city,
                "street": street,
                "type": property_type,
                "status": ListingStatus.UNVERIFIED,
                "raw_data": raw_data,
                "images": images,
                "keywords": None,
            }
        )

    @staticmethod
    def _impute(
        title: str,
        description: str,
        area_m2: float,
        rooms: int,
        property_type: PropertyType,
        imputed_fields: list[str],
    ) -> tuple[int, PropertyType]:
        """Fill rooms/type from text, recording what was filled."""
        if rooms <= 0:
            rooms = impute_rooms(title, description, area_m2)
            if rooms > 0 and "rooms" not in imputed_fields:
                imputed_fields.append("rooms")

        if property_type is PropertyType.UNKNOWN:
            property_type = impute_type(title, description)
            if property_type is not PropertyType.UNKNOWN and "type" not in imputed_fields:
                imputed_fields.append("type")

        return rooms, property_type
