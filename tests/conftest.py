"""
Shared pytest fixtures for all tests.
"""

import json

import pytest

# ============================================================
# Sample Data Fixtures
# ============================================================


@pytest.fixture
def sample_json_ld() -> dict:
    """schema.org node as served on an Otodom offer page."""
    return {
        "@context": "https://schema.org",
        "@type": ["Product", "Apartment"],
        "name": "Mieszkanie 3 pokoje, ul. Lipowa, Kraków",
        "description": "Przestronne mieszkanie z balkonem.",
        "url": "https://www.otodom.pl/pl/oferta/mieszkanie-3-pokoje-ID4abCd12",
        "offers": {"@type": "Offer", "price": "850000", "priceCurrency": "PLN"},
        "numberOfRooms": 3,
        "floorSize": {"@type": "QuantitativeValue", "value": "64,5"},
        "address": {
            "@type": "PostalAddress",
            "addressLocality": "Kraków",
            "streetAddress": "ul. Lipowa",
        },
        "additionalProperty": [
            {"@type": "PropertyValue", "name": "Rodzaj zabudowy", "value": "blok"},
        ],
    }


@pytest.fixture
def sample_offer_html(sample_json_ld) -> str:
    """Offer page with JSON-LD and a picture gallery."""
    return f"""
    <html>
    <head>
        <title>Mieszkanie 3 pokoje | Otodom</title>
        <script type="application/ld+json">{json.dumps(sample_json_ld)}</script>
    </head>
    <body>
        <div class="gallery">
            <picture>
                <source srcset="https://ireland.apollo.olxcdn.com/v1/files/photo-1/image.webp 1x">
                <img src="https://ireland.apollo.olxcdn.com/v1/files/photo-1/image.jpg" alt="Salon">
            </picture>
            <picture>
                <img data-src="//ireland.apollo.olxcdn.com/v1/files/photo-2/image.jpg" alt="Kuchnia">
            </picture>
            <picture>
                <img src="https://static.otodom.pl/images/logo.png" alt="Otodom">
            </picture>
            <picture>
                <img src="/relative/photo.jpg" alt="Relative">
            </picture>
        </div>
    </body>
    </html>
    """


@pytest.fixture
def sample_structured() -> dict:
    """Extractor output for a complete listing."""
    return {
        "title": "Mieszkanie 3 pokoje, ul. Lipowa, Kraków",
        "description": "Przestronne mieszkanie z balkonem.",
        "price": 850000.0,
        "currency": "PLN",
        "area_m2": 64.5,
        "rooms": 3,
        "city": "Kraków",
        "street": "Lipowa",
        "type": "apartment",
        "external_id": "otodom_ID4abCd12",
        "images": [
            {"url": "https://cdn.example.com/photos/1.jpg", "label": "Salon"},
            {"url": "https://cdn.example.com/photos/2.jpg", "label": "Kuchnia"},
        ],
        "url": "https://www.otodom.pl/pl/oferta/mieszkanie-3-pokoje-ID4abCd12",
        "json_ld_raw": {"@type": "Apartment"},
    }


@pytest.fixture
def sample_raw_record(sample_structured) -> dict:
    """Raw scrape record as returned by a provider."""
    return {
        "external_id": sample_structured["external_id"],
        "url": sample_structured["url"],
        "raw_html": "<html></html>",
        "structured": sample_structured,
        "extracted_images": sample_structured["images"],
        "title": sample_structured["title"],
        "scraped_at": "2026-01-01T00:00:00+00:00",
    }


@pytest.fixture
def sample_enrichment_response() -> dict:
    """Normalized object as returned by the enrichment service."""
    return {
        "title": "3-Bedroom Apartment on Lipowa in Krakow",
        "description": "Spacious apartment with a balcony.",
        "price": 850000,
        "currency": "PLN",
        "area_m2": 64.5,
        "rooms": 3,
        "city": "Krakow",
        "street": "Lipowa",
        "type": "apartment",
        "keywords": ["Balcony", "balcony", "Near Tram"],
        "images": [
            "https://cdn.example.com/photos/1.jpg",
            "https://cdn.example.com/photos/2.jpg",
        ],
        "selected_images": {
            "hero_url": "https://cdn.example.com/photos/2.jpg",
            "gallery_urls": ["https://cdn.example.com/photos/1.jpg"],
        },
    }
