"""
Unit tests for src/modules/listings/models.py
"""

import pytest
from pydantic import ValidationError

from src.modules.listings.enums import ListingStatus, PropertyType
from src.modules.listings.models import Listing, ListingDTO, slugify
from src.utils.fingerprint import calculate


class TestSlugify:
    """Tests for slugify function."""

    def test_spaces(self):
        assert slugify("Smart Home") == "smart-home"

    def test_polish_characters(self):
        assert slugify("  Duży balkon! ") == "duzy-balkon"
        assert slugify("Łazienka") == "lazienka"

    def test_symbols_only(self):
        assert slugify("!!!") == ""


class TestListingDTO:
    """Tests for ListingDTO model."""

    def test_from_dict_coerces(self):
        dto = ListingDTO.from_dict(
            {"title": "T", "price": "1000", "area_m2": None, "rooms": "2", "type": "LOFT"}
        )
        assert dto.price == 1000.0
        assert dto.area_m2 == 0.0
        assert dto.rooms == 2
        assert dto.type is PropertyType.LOFT
        assert dto.currency == "PLN"
        assert dto.status is ListingStatus.AVAILABLE

    def test_unknown_type(self):
        assert ListingDTO(title="T", type="castle").type is PropertyType.UNKNOWN

    def test_keywords_normalized(self):
        dto = ListingDTO(title="T", keywords=["Balcony", "balcony", " ", "Near Tram"])
        assert dto.keywords == ["balcony", "near-tram"]

    def test_empty_keywords_become_none(self):
        assert ListingDTO(title="T", keywords=[]).keywords is None
        assert ListingDTO(title="T", keywords=["!!"]).keywords is None

    def test_frozen(self):
        dto = ListingDTO(title="T")
        with pytest.raises(ValidationError):
            dto.price = 5

    def test_fingerprint(self):
        dto = ListingDTO(title="T", city="Krakow", street="ul. Lipowa", price=850000, area_m2=64.5, rooms=3)
        assert dto.fingerprint() == calculate("Krakow", "Lipowa", 850000, 64.5, 3)

    def test_is_fallback(self):
        assert ListingDTO(title="T", raw_data={"ai_fallback": True}).is_fallback is True
        assert ListingDTO(title="T").is_fallback is False

    def test_to_dict(self):
        dto = ListingDTO(title="T", city="Krakow", type="house", status="unverified")
        data = dto.to_dict()
        assert data["type"] == "house"
        assert data["status"] == "unverified"
        assert data["fingerprint"] == dto.fingerprint()


class TestListing:
    """Tests for Listing model."""

    def test_defaults(self):
        listing = Listing(id=1, raw_data=None, type="nope")
        assert listing.raw_data == {}
        assert listing.type is PropertyType.UNKNOWN
        assert listing.is_pending is True

    def test_not_pending(self):
        assert Listing(id=1, status="available").is_pending is False


class TestEnums:
    """Tests for listing enums."""

    def test_visible_statuses(self):
        visible = ListingStatus.visible()
        assert ListingStatus.AVAILABLE in visible
        assert ListingStatus.UNVERIFIED in visible
        for hidden in (ListingStatus.PENDING, ListingStatus.INCOMPLETE, ListingStatus.FAILED):
            assert hidden not in visible

    def test_property_type_label(self):
        assert PropertyType.PENTHOUSE.label() == "Penthouse"
        assert PropertyType.UNKNOWN.label() == ""

    def test_property_type_from_safe(self):
        assert PropertyType.from_safe(" Villa ") is PropertyType.VILLA
        assert PropertyType.from_safe(None) is PropertyType.UNKNOWN
        assert PropertyType.from_safe("castle") is PropertyType.UNKNOWN
