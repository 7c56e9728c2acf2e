"""
Unit tests for src/crawler/providers/otodom.py
"""

import asyncio

import pytest
import requests

from config.settings import ScraperSettings
from src.crawler.exceptions import ScraperError
from src.crawler.providers import OtodomProvider, available_providers, get_provider
from tests.fixtures.http import FakeResponse, FakeSession

BASE = "https://www.otodom.pl"
SEARCH = BASE + "/pl/wyniki/sprzedaz/mieszkanie"


def _search_page(*slugs: str) -> str:
    links = "".join(f'<a href="/pl/oferta/{slug}?utm=x">Offer</a>' for slug in slugs)
    return f"<html><body>{links}</body></html>"


@pytest.fixture
def settings() -> ScraperSettings:
    return ScraperSettings(
        base_url=BASE,
        search_path="/pl/wyniki/sprzedaz/mieszkanie",
        max_pages=2,
        page_delay=0,
        offer_delay=0,
    )


def _provider(settings, session) -> OtodomProvider:
    return OtodomProvider(settings=settings, session=session)


class TestNormalizeUrl:
    """Tests for normalize_url method."""

    def test_relative(self, settings):
        provider = _provider(settings, FakeSession())
        assert provider.normalize_url("/pl/oferta/abc-ID4x?ref=1") == BASE + "/pl/oferta/abc-ID4x"

    def test_relative_without_slash(self, settings):
        provider = _provider(settings, FakeSession())
        assert provider.normalize_url("pl/oferta/abc") == BASE + "/pl/oferta/abc"

    def test_absolute_with_fragment(self, settings):
        provider = _provider(settings, FakeSession())
        url = "https://www.otodom.pl/pl/oferta/abc#gallery"
        assert provider.normalize_url(url) == "https://www.otodom.pl/pl/oferta/abc"

    def test_html_entities(self, settings):
        provider = _provider(settings, FakeSession())
        assert provider.normalize_url("/pl/oferta/a&amp;b") == BASE + "/pl/oferta/a&b"


class TestExtractOfferUrls:
    """Tests for extract_offer_urls method."""

    def test_unique_in_order(self, settings):
        provider = _provider(settings, FakeSession())
        html = _search_page("one-ID1", "two-ID2", "one-ID1")
        assert provider.extract_offer_urls(html, 10) == [
            BASE + "/pl/oferta/one-ID1",
            BASE + "/pl/oferta/two-ID2",
        ]

    def test_limit(self, settings):
        provider = _provider(settings, FakeSession())
        html = _search_page("a", "b", "c")
        assert len(provider.extract_offer_urls(html, 2)) == 2

    def test_no_links(self, settings):
        provider = _provider(settings, FakeSession())
        assert provider.extract_offer_urls("<html></html>", 5) == []


class TestCollectOfferUrls:
    """Tests for collect_offer_urls method."""

    def test_paginates_until_limit(self, settings):
        session = FakeSession(
            get={
                SEARCH: FakeResponse(200, text=_search_page("a", "b")),
                SEARCH + "?page=2": FakeResponse(200, text=_search_page("c", "d")),
            }
        )
        urls = _provider(settings, session).collect_offer_urls(3)
        assert [u.rsplit("/", 1)[1] for u in urls] == ["a", "b", "c"]

    def test_first_page_failure_raises(self, settings):
        session = FakeSession(get={SEARCH: FakeResponse(503)})
        with pytest.raises(ScraperError) as exc:
            _provider(settings, session).collect_offer_urls(5)
        assert exc.value.http_status == 503

    def test_later_page_failure_stops(self, settings):
        session = FakeSession(get={SEARCH: FakeResponse(200, text=_search_page("a"))})
        urls = _provider(settings, session).collect_offer_urls(5)
        assert len(urls) == 1


class TestBuildRecord:
    """Tests for build_record method."""

    def test_structured_page(self, settings, sample_offer_html):
        url = BASE + "/pl/oferta/mieszkanie-3-pokoje-ID4abCd12"
        record = _provider(settings, FakeSession()).build_record(url, sample_offer_html)

        assert record["external_id"] == "otodom_ID4abCd12"
        assert record["url"] == url
        assert record["structured"]["price"] == 850000.0
        assert record["extracted_images"] == record["structured"]["images"]
        assert record["title"] == record["structured"]["title"]
        assert record["scraped_at"]

    def test_page_without_json_ld(self, settings):
        url = BASE + "/pl/oferta/dom-IDzz9988"
        html = (
            "<html><head><title>Dom &amp; ogród</title></head><body>"
            "<picture><img src='https://cdn.example.com/photos/9.jpg'></picture>"
            "</body></html>"
        )
        record = _provider(settings, FakeSession()).build_record(url, html)

        assert record["structured"] is None
        assert record["external_id"] == "otodom_IDzz9988"
        assert record["title"] == "Dom & ogród"
        assert record["extracted_images"][0]["url"] == "https://cdn.example.com/photos/9.jpg"


class TestFetch:
    """Tests for fetch / fetch_sync."""

    def test_fetch_skips_failed_offers(self, settings, sample_offer_html):
        session = FakeSession(
            get={
                SEARCH: FakeResponse(200, text=_search_page("good-ID4abCd12", "bad-IDbad000")),
                BASE + "/pl/oferta/good-ID4abCd12": FakeResponse(200, text=sample_offer_html),
                BASE + "/pl/oferta/bad-IDbad000": requests.ConnectionError("reset"),
            }
        )
        provider = _provider(settings, session)

        async def run():
            await provider.start()
            try:
                return await provider.fetch(2)
            finally:
                await provider.close()

        records = asyncio.run(run())
        assert len(records) == 1
        assert records[0]["external_id"] == "otodom_ID4abCd12"

    def test_search_failure_returns_empty(self, settings):
        session = FakeSession(get={SEARCH: requests.Timeout("slow")})
        assert _provider(settings, session).fetch_sync(5) == []


class TestRegistry:
    """Tests for the provider registry."""

    def test_known(self):
        assert isinstance(get_provider("otodom"), OtodomProvider)

    def test_unknown(self):
        assert get_provider("nope") is None

    def test_available(self):
        assert "otodom" in available_providers()
