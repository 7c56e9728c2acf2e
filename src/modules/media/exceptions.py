"""Media exceptions."""

from typing import Optional


class ImageDownloadError(Exception):
    """Raised when an image cannot be downloaded or is not a usable image."""

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        http_status: Optional[int] = None,
    ):
        super().__init__(message)
        self.url = url
        self.http_status = http_status

    @classmethod
    def invalid_url(cls, url: str) -> "ImageDownloadError":
        return cls(f"Invalid image URL: {url}", url=url)

    @classmethod
    def http_error(cls, url: str, status: int) -> "ImageDownloadError":
        return cls(f"HTTP {status} downloading image from {url}", url=url, http_status=status)

    @classmethod
    def invalid_mime(cls, url: str, mime: str) -> "ImageDownloadError":
        return cls(f"Invalid MIME type '{mime}' for image at {url}", url=url)

    @classmethod
    def body_too_small(cls, url: str, size: int) -> "ImageDownloadError":
        return cls(f"Body too small ({size} bytes) for image at {url}", url=url)
