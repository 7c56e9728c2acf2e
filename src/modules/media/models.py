"""
Media Models.

Pydantic model for attached listing images and the attachment summary.
"""

from dataclasses import dataclass, field
from datetime import datetime

from pydantic import BaseModel


class ListingMedia(BaseModel):
    """Downloaded image attached to a listing."""

    id: int
    listing_id: int
    source_url: str
    file_path: str
    mime_type: str
    size_bytes: int
    position: int = 0
    is_hero: bool = False
    created_at: datetime | None = None


@dataclass
class AttachmentSummary:
    """Outcome of attaching images to a listing."""

    hero_attached: bool = False
    count: int = 0
    errors: list[str] = field(default_factory=list)


@dataclass
class DownloadedImage:
    """Validated image body."""

    url: str
    content: bytes
    mime_type: str

    @property
    def extension(self) -> str:
        """File extension for the MIME type."""
        return MIME_EXTENSIONS.get(self.mime_type, "jpg")


MIME_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
    "image/gif": "gif",
}
