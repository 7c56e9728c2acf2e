"""
Unit tests for src/utils/image_urls.py
"""

import pytest

from src.utils.image_urls import is_valid_image_url, url_from_image


class TestIsValidImageUrl:
    """Tests for is_valid_image_url function."""

    def test_valid_https(self):
        assert is_valid_image_url("https://cdn.example.com/photos/1.jpg") is True

    def test_valid_http(self):
        assert is_valid_image_url("http://cdn.example.com/photos/1.jpg") is True

    @pytest.mark.parametrize(
        "url",
        [
            "https://cdn.example.com/img/placeholder.jpg",
            "https://cdn.example.com/static/icon-home.png",
            "https://cdn.example.com/brand/logo.png",
            "https://cdn.example.com/users/avatar-1.jpg",
            "https://cdn.example.com/images/pin.svg",
            "https://cdn.example.com/favicon-32.png",
        ],
    )
    def test_blocked_keywords(self, url):
        assert is_valid_image_url(url) is False

    def test_too_short(self):
        assert is_valid_image_url("https://a.b/c") is False

    def test_scheme_required(self):
        assert is_valid_image_url("//cdn.example.com/photos/1.jpg") is False
        assert is_valid_image_url("ftp://cdn.example.com/photos/1.jpg") is False

    def test_data_uri(self):
        assert is_valid_image_url("data:image/png;base64,iVBORw0KGgo=") is False

    def test_whitespace(self):
        assert is_valid_image_url("https://cdn.example.com/photo 1.jpg") is False

    def test_host_without_dot(self):
        assert is_valid_image_url("https://localhost/photos/1.jpg") is False

    def test_non_string(self):
        assert is_valid_image_url(None) is False
        assert is_valid_image_url({"url": "https://cdn.example.com/1.jpg"}) is False


class TestUrlFromImage:
    """Tests for url_from_image function."""

    def test_string(self):
        assert url_from_image("https://x.example.com/1.jpg") == "https://x.example.com/1.jpg"

    def test_dict(self):
        assert url_from_image({"url": "https://x.example.com/1.jpg", "label": "a"}) == (
            "https://x.example.com/1.jpg"
        )

    def test_dict_without_url(self):
        assert url_from_image({"label": "a"}) is None

    def test_other(self):
        assert url_from_image(42) is None
