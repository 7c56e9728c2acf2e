"""
Listing Repository.

Data access layer for listing operations.
"""

from decimal import Decimal
from typing import Any, Optional

from asyncpg import Pool
from loguru import logger

from src.modules.listings.enums import ListingStatus
from src.modules.listings.models import Listing

listings_log = logger.bind(module="Listings")

# Columns callers may write through create/update
WRITABLE_COLUMNS = (
    "external_id",
    "fingerprint",
    "title",
    "description",
    "price",
    "currency",
    "area_m2",
    "rooms",
    "city",
    "street",
    "type",
    "status",
    "quality_score",
    "is_fully_parsed",
    "raw_data",
    "images",
    "keywords",
    "last_seen_at",
)


def _columns(values: dict[str, Any]) -> list[str]:
    unknown = set(values) - set(WRITABLE_COLUMNS)
    if unknown:
        raise ValueError(f"Unknown listing columns: {sorted(unknown)}")
    return [key for key in WRITABLE_COLUMNS if key in values]


class ListingRepository:
    """Repository for listing database operations."""

    def __init__(self, pool: Pool):
        """
        Initialize repository with database connection pool.

        Args:
            pool: asyncpg connection pool
        """
        self._pool = pool

    async def get_by_id(self, listing_id: int) -> Optional[Listing]:
        """
        Get listing by ID.

        Args:
            listing_id: Listing ID

        Returns:
            Listing or None if not found
        """
        query = "SELECT * FROM listings WHERE id = $1"
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(query, listing_id)
            return Listing(**dict(row)) if row else None

    async def get_by_external_id(self, external_id: str) -> Optional[Listing]:
        """
        Get listing by the provider's external ID.

        Args:
            external_id: Provider-scoped listing ID

        Returns:
            Listing or None if not found
        """
        query = "SELECT * FROM listings WHERE external_id = $1"
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(query, external_id)
            return Listing(**dict(row)) if row else None

    async def find_recent_duplicate(
        self,
        fingerprint: str,
        window_days: int,
        exclude_id: Optional[int] = None,
    ) -> Optional[Listing]:
        """
        Find the most recently updated listing sharing a fingerprint.

        Args:
            fingerprint: Semantic fingerprint
            window_days: Only rows updated within this many days match
            exclude_id: Listing ID to ignore (the record being checked)

        Returns:
            Matching listing or None
        """
        query = """
        SELECT * FROM listings
        WHERE fingerprint = $1
          AND updated_at >= NOW() - make_interval(days => $2)
          AND ($3::BIGINT IS NULL OR id <> $3)
        ORDER BY updated_at DESC
        LIMIT 1
        """
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(query, fingerprint, window_days, exclude_id)
            return Listing(**dict(row)) if row else None

    async def create(self, values: dict[str, Any]) -> Listing:
        """
        Insert a listing.

        Args:
            values: Column values

        Returns:
            Created listing
        """
        columns = _columns(values)
        placeholders = ", ".join(f"${idx}" for idx in range(1, len(columns) + 1))
        query = f"""
        INSERT INTO listings ({", ".join(columns)})
        VALUES ({placeholders})
        RETURNING *
        """
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(query, *(values[col] for col in columns))
            listing = Listing(**dict(row))
        listings_log.debug(f"Inserted listing {listing.id} ({listing.external_id})")
        return listing

    async def update(self, listing_id: int, values: dict[str, Any]) -> Optional[Listing]:
        """
        Update a listing.

        Args:
            listing_id: Listing ID
            values: Fields to update (None values are written as NULL)

        Returns:
            Updated listing or None if not found
        """
        columns = _columns(values)
        if not columns:
            return await self.get_by_id(listing_id)

        fields = [f"{col} = ${idx}" for idx, col in enumerate(columns, start=1)]
        params = [values[col] for col in columns]
        params.append(listing_id)
        query = f"""
        UPDATE listings
        SET {", ".join(fields)}, updated_at = NOW()
        WHERE id = ${len(params)}
        RETURNING *
        """
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(query, *params)
            return Listing(**dict(row)) if row else None

    async def refresh_seen(self, listing_id: int, price: Optional[Decimal] = None) -> None:
        """
        Bump last_seen_at, optionally replacing the price.

        Args:
            listing_id: Listing ID
            price: New price, or None to keep the current one
        """
        query = """
        UPDATE listings
        SET last_seen_at = NOW(),
            price = COALESCE($2, price),
            updated_at = NOW()
        WHERE id = $1
        """
        async with self._pool.acquire() as conn:
            await conn.execute(query, listing_id, price)

    async def delete(self, listing_id: int) -> bool:
        """
        Delete a listing.

        Args:
            listing_id: Listing ID

        Returns:
            True if deleted, False if not found
        """
        query = "DELETE FROM listings WHERE id = $1 RETURNING id"
        async with self._pool.acquire() as conn:
            result = await conn.fetchrow(query, listing_id)
            return result is not None

    async def transition_status(
        self, listing_id: int, from_status: ListingStatus, to_status: ListingStatus
    ) -> bool:
        """
        Change status only when the listing is currently in from_status.

        Returns:
            True if a row was updated
        """
        query = """
        UPDATE listings
        SET status = $3, updated_at = NOW()
        WHERE id = $1 AND status = $2
        RETURNING id
        """
        async with self._pool.acquire() as conn:
            result = await conn.fetchrow(
                query, listing_id, from_status.value, to_status.value
            )
            return result is not None
