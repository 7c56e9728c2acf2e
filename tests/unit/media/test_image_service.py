"""
Unit tests for src/modules/media/service.py
"""

import asyncio
import threading
from pathlib import Path

import pytest
import requests

from config.settings import ImageSettings
from src.modules.media.exceptions import ImageDownloadError
from src.modules.media.service import ListingImageService, sniff_mime
from src.modules.media.storage import MediaStorage
from tests.fixtures.http import (
    JPEG_BODY,
    PNG_BODY,
    FakeResponse,
    FakeSession,
    image_response,
)

pytest_plugins = ["tests.fixtures.listings"]

HERO = "https://cdn.example.com/photos/hero.jpg"
GALLERY = [f"https://cdn.example.com/photos/g{i}.jpg" for i in range(1, 4)]
RAW = [f"https://cdn.example.com/photos/raw{i}.jpg" for i in range(1, 8)]


@pytest.fixture
def make_service(media_repo, tmp_path):
    """Build an image service over the given GET responses."""
    services = []

    def _make(responses: dict) -> ListingImageService:
        service = ListingImageService(
            media_repo,
            storage=MediaStorage(str(tmp_path)),
            settings=ImageSettings(storage_dir=str(tmp_path)),
            session=FakeSession(get=responses),
        )
        services.append(service)
        return service

    yield _make

    for service in services:
        service.close()


def _ok(*urls: str) -> dict:
    return {url: image_response() for url in urls}


# ============================================================
# sniff_mime tests
# ============================================================


class TestSniffMime:
    """Tests for sniff_mime function."""

    def test_jpeg(self):
        assert sniff_mime(JPEG_BODY) == "image/jpeg"

    def test_png(self):
        assert sniff_mime(PNG_BODY) == "image/png"

    def test_gif(self):
        assert sniff_mime(b"GIF89a" + b"\x00" * 10) == "image/gif"

    def test_webp(self):
        assert sniff_mime(b"RIFF\x00\x00\x00\x00WEBPVP8 ") == "image/webp"

    def test_html(self):
        assert sniff_mime(b"  <!DOCTYPE html><html>") == "text/html"

    def test_unknown(self):
        assert sniff_mime(b"\x00\x01\x02") == "application/octet-stream"


# ============================================================
# download tests
# ============================================================


class TestDownload:
    """Tests for download method."""

    def test_valid_image(self, make_service):
        service = make_service(_ok(HERO))
        image = service.download(HERO)
        assert image.mime_type == "image/jpeg"
        assert image.extension == "jpg"

    def test_invalid_url(self, make_service):
        service = make_service({})
        with pytest.raises(ImageDownloadError, match="Invalid image URL"):
            service.download("//cdn.example.com/photos/1.jpg")
        assert service._session.calls == []

    def test_html_body_rejected(self, make_service):
        body = b"<html>" + b"x" * 2000
        service = make_service({HERO: FakeResponse(200, content=body)})
        with pytest.raises(ImageDownloadError, match="text/html"):
            service.download(HERO)

    def test_html_content_type_rejected_before_get(self, media_repo, tmp_path):
        session = FakeSession(
            get=_ok(HERO),
            head={HERO: FakeResponse(200, headers={"Content-Type": "text/html; charset=utf-8"})},
        )
        service = ListingImageService(
            media_repo, storage=MediaStorage(str(tmp_path)), settings=ImageSettings(), session=session
        )
        try:
            with pytest.raises(ImageDownloadError, match="Invalid MIME"):
                service.download(HERO)
            assert [method for method, _, _ in session.calls] == ["HEAD"]
        finally:
            service.close()

    def test_body_too_small(self, make_service):
        service = make_service({HERO: FakeResponse(200, content=b"\xff\xd8\xff" + b"\x00" * 10)})
        with pytest.raises(ImageDownloadError, match="too small"):
            service.download(HERO)

    def test_http_error(self, make_service):
        service = make_service({})
        with pytest.raises(ImageDownloadError) as exc_info:
            service.download(HERO)
        assert exc_info.value.http_status == 404

    def test_transport_error(self, make_service):
        service = make_service({HERO: requests.ConnectionError("reset")})
        with pytest.raises(ImageDownloadError, match="Download failed"):
            service.download(HERO)


# ============================================================
# attach_images tests
# ============================================================


class TestAttachImages:
    """Tests for attach_images method."""

    def test_curated_hero_and_gallery(self, make_service, media_repo, tmp_path):
        service = make_service(_ok(HERO, *GALLERY))
        selected = {"hero_url": HERO, "gallery_urls": GALLERY}

        summary = asyncio.run(service.attach_images(1, selected, RAW))

        assert summary.count == 4
        assert summary.hero_attached is True
        assert summary.errors == []
        assert [m.source_url for m in media_repo.rows] == [HERO, *GALLERY]
        assert [m.is_hero for m in media_repo.rows] == [True, False, False, False]
        assert all(Path(m.file_path).exists() for m in media_repo.rows)
        assert all(Path(m.file_path).parent == tmp_path / "1" for m in media_repo.rows)

    def test_hero_repeated_in_gallery_is_skipped(self, make_service, media_repo):
        service = make_service(_ok(HERO, *GALLERY))
        selected = {"hero_url": HERO, "gallery_urls": [HERO, GALLERY[0]]}

        summary = asyncio.run(service.attach_images(1, selected))

        assert summary.count == 2
        assert [m.source_url for m in media_repo.rows] == [HERO, GALLERY[0]]

    def test_failed_hero_promotes_first_gallery_image(self, make_service, media_repo):
        service = make_service(_ok(*GALLERY))
        selected = {"hero_url": HERO, "gallery_urls": GALLERY}

        summary = asyncio.run(service.attach_images(1, selected, RAW))

        assert summary.hero_attached is True
        assert summary.count == 3
        assert len(summary.errors) == 1
        heroes = [m.source_url for m in media_repo.rows if m.is_hero]
        assert heroes == [GALLERY[0]]

    def test_gallery_capped(self, make_service, media_repo):
        gallery = [f"https://cdn.example.com/photos/many{i}.jpg" for i in range(12)]
        service = make_service(_ok(HERO, *gallery))

        summary = asyncio.run(service.attach_images(1, {"hero_url": HERO, "gallery_urls": gallery}))

        assert summary.count == 1 + 8

    def test_fallback_takes_first_five(self, make_service, media_repo):
        service = make_service(_ok(*RAW))

        summary = asyncio.run(service.attach_images(1, None, RAW))

        assert summary.count == 5
        assert [m.source_url for m in media_repo.rows] == RAW[:5]
        assert [m.is_hero for m in media_repo.rows] == [True, False, False, False, False]

    def test_failed_curated_set_falls_back(self, make_service, media_repo):
        service = make_service(_ok(*RAW))
        selected = {"hero_url": HERO, "gallery_urls": GALLERY}

        summary = asyncio.run(service.attach_images(1, selected, RAW))

        assert summary.count == 5
        assert summary.hero_attached is True
        assert media_repo.rows[0].source_url == RAW[0]
        assert len(summary.errors) == 1 + len(GALLERY)

    def test_invalid_urls_recorded_as_errors(self, make_service, media_repo):
        service = make_service(_ok(RAW[0]))

        summary = asyncio.run(
            service.attach_images(1, None, ["https://cdn.example.com/logo.png", RAW[0]])
        )

        assert summary.count == 1
        assert summary.hero_attached is False
        assert "Invalid image URL" in summary.errors[0]

    def test_existing_media_is_noop(self, make_service, media_repo):
        service = make_service(_ok(HERO, *RAW))
        asyncio.run(service.attach_images(1, {"hero_url": HERO}))

        summary = asyncio.run(service.attach_images(1, None, RAW))

        assert summary.count == 1
        assert summary.hero_attached is True
        assert len(media_repo.rows) == 1

    def test_nothing_to_attach(self, make_service, media_repo):
        service = make_service({})
        summary = asyncio.run(service.attach_images(1))
        assert summary.count == 0
        assert media_repo.rows == []


# ============================================================
# download_and_attach tests
# ============================================================


class ThreadRecordingStorage(MediaStorage):
    """Records the thread each save runs on."""

    def __init__(self, base_dir: str):
        super().__init__(base_dir)
        self.threads: list[threading.Thread] = []

    def save(self, listing_id, image):
        self.threads.append(threading.current_thread())
        return super().save(listing_id, image)


class TestDownloadAndAttach:
    """Tests for download_and_attach method."""

    def test_file_written_off_event_loop(self, media_repo, tmp_path):
        storage = ThreadRecordingStorage(str(tmp_path))
        service = ListingImageService(
            media_repo,
            storage=storage,
            settings=ImageSettings(storage_dir=str(tmp_path)),
            session=FakeSession(get=_ok(HERO)),
        )
        try:
            media = asyncio.run(service.download_and_attach(1, HERO, is_hero=True))
        finally:
            service.close()

        assert len(storage.threads) == 1
        assert storage.threads[0] is not threading.main_thread()
        assert Path(media.file_path).exists()
        assert media.is_hero is True
        assert media.position == 0


# ============================================================
# designate_hero tests
# ============================================================


class TestDesignateHero:
    """Tests for designate_hero method."""

    def test_matches_source_url(self, make_service, media_repo):
        service = make_service(_ok(*RAW))
        asyncio.run(service.attach_images(1, None, RAW))

        assert asyncio.run(service.designate_hero(1, RAW[2])) is True

        heroes = [m.source_url for m in media_repo.rows if m.is_hero]
        assert heroes == [RAW[2]]

    def test_unknown_url_promotes_first(self, make_service, media_repo):
        service = make_service(_ok(*GALLERY))
        asyncio.run(service.attach_images(1, {"gallery_urls": GALLERY}))
        asyncio.run(media_repo.set_hero(1, media_repo.rows[1].id))

        assert asyncio.run(service.designate_hero(1, "https://cdn.example.com/gone.jpg")) is True

        heroes = [m.source_url for m in media_repo.rows if m.is_hero]
        assert heroes == [GALLERY[0]]

    def test_no_media_yet(self, make_service):
        service = make_service({})
        assert asyncio.run(service.designate_hero(1, HERO)) is False
