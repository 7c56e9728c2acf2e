"""Media module."""

from src.modules.media.exceptions import ImageDownloadError
from src.modules.media.models import AttachmentSummary, DownloadedImage, ListingMedia
from src.modules.media.repository import MediaRepository
from src.modules.media.service import ListingImageService, sniff_mime
from src.modules.media.storage import MediaStorage

__all__ = [
    "ImageDownloadError",
    "AttachmentSummary",
    "DownloadedImage",
    "ListingMedia",
    "MediaRepository",
    "MediaStorage",
    "ListingImageService",
    "sniff_mime",
]
