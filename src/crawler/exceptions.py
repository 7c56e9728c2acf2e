"""Crawler exceptions."""

from typing import Optional


class ScraperError(Exception):
    """Raised when an offer or search page cannot be fetched or parsed."""

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
    def network_error(cls, url: str, detail: str = "") -> "ScraperError":
        return cls(f"Network error fetching {url}: {detail}", url=url)

    @classmethod
    def http_error(cls, url: str, status: int) -> "ScraperError":
        return cls(f"HTTP {status} fetching {url}", url=url, http_status=status)
