"""
Media Storage.

Stores downloaded image bodies on the local filesystem under
<storage_dir>/<listing_id>/.
"""

import uuid
from pathlib import Path
from typing import Optional

from config.settings import get_settings
from src.modules.media.models import DownloadedImage


class MediaStorage:
    """Filesystem store for listing images."""

    def __init__(self, base_dir: Optional[str] = None):
        """
        Initialize storage.

        Args:
            base_dir: Root directory (defaults to IMAGE_STORAGE_DIR)
        """
        self._base_dir = Path(base_dir or get_settings().images.storage_dir)

    def save(self, listing_id: int, image: DownloadedImage) -> str:
        """
        Write an image to disk.

        Returns:
            Path of the written file
        """
        directory = self._base_dir / str(listing_id)
        directory.mkdir(parents=True, exist_ok=True)

        path = directory / f"listing-{listing_id}-{uuid.uuid4().hex[:12]}.{image.extension}"
        path.write_bytes(image.content)
        return str(path)

    def delete(self, file_path: str) -> None:
        """Remove a stored file if it exists."""
        Path(file_path).unlink(missing_ok=True)
