"""
Media Repository.

Data access layer for listing_media rows.
"""

from typing import Optional

from asyncpg import Pool

from src.modules.media.models import ListingMedia


class MediaRepository:
    """Repository for listing media database operations."""

    def __init__(self, pool: Pool):
        """
        Initialize repository with database connection pool.

        Args:
            pool: asyncpg connection pool
        """
        self._pool = pool

    async def get_by_listing(self, listing_id: int) -> list[ListingMedia]:
        """
        Get a listing's images in attachment order.

        Args:
            listing_id: Listing ID

        Returns:
            List of media rows
        """
        query = "SELECT * FROM listing_media WHERE listing_id = $1 ORDER BY position, id"
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(query, listing_id)
            return [ListingMedia(**dict(row)) for row in rows]

    async def create(
        self,
        listing_id: int,
        source_url: str,
        file_path: str,
        mime_type: str,
        size_bytes: int,
        is_hero: bool = False,
    ) -> ListingMedia:
        """
        Insert a media row at the end of the listing's gallery.

        Returns:
            Created media row
        """
        query = """
        INSERT INTO listing_media (
            listing_id, source_url, file_path, mime_type, size_bytes, is_hero, position
        ) VALUES (
            $1, $2, $3, $4, $5, $6,
            (SELECT COALESCE(MAX(position) + 1, 0) FROM listing_media WHERE listing_id = $1)
        )
        RETURNING *
        """
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(
                query, listing_id, source_url, file_path, mime_type, size_bytes, is_hero
            )
            return ListingMedia(**dict(row))

    async def set_hero(self, listing_id: int, media_id: int) -> Optional[ListingMedia]:
        """
        Make one image the listing's only hero.

        Args:
            listing_id: Listing ID
            media_id: Media row to promote

        Returns:
            Promoted media row or None if it does not belong to the listing
        """
        async with self._pool.acquire() as conn:
            async with conn.transaction():
                await conn.execute(
                    "UPDATE listing_media SET is_hero = FALSE WHERE listing_id = $1 AND id <> $2",
                    listing_id,
                    media_id,
                )
                row = await conn.fetchrow(
                    "UPDATE listing_media SET is_hero = TRUE "
                    "WHERE listing_id = $1 AND id = $2 RETURNING *",
                    listing_id,
                    media_id,
                )
            return ListingMedia(**dict(row)) if row else None
