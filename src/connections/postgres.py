"""
PostgreSQL Connection Module.

Manages the PostgreSQL connection pool and the listings schema.
"""

import json
from typing import Optional

import asyncpg
from loguru import logger

from config.settings import get_settings

pg_log = logger.bind(module="Postgres")

SCHEMA = """
CREATE TABLE IF NOT EXISTS listings (
    id              BIGSERIAL PRIMARY KEY,
    external_id     VARCHAR(255) UNIQUE,
    fingerprint     CHAR(32),
    title           VARCHAR(255) NOT NULL,
    description     TEXT,
    price           NUMERIC(12, 2) NOT NULL DEFAULT 0,
    currency        CHAR(3) NOT NULL DEFAULT 'PLN',
    area_m2         NUMERIC(8, 2) NOT NULL DEFAULT 0,
    rooms           INTEGER NOT NULL DEFAULT 0 CHECK (rooms >= 0),
    city            VARCHAR(255) NOT NULL DEFAULT '',
    street          VARCHAR(255),
    type            VARCHAR(32) NOT NULL DEFAULT 'apartment',
    status          VARCHAR(32) NOT NULL DEFAULT 'pending',
    quality_score   SMALLINT NOT NULL DEFAULT 0,
    is_fully_parsed BOOLEAN NOT NULL DEFAULT FALSE,
    images          JSONB,
    keywords        JSONB,
    raw_data        JSONB,
    last_seen_at    TIMESTAMPTZ,
    created_at      TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at      TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS listings_fingerprint_freshness_index
    ON listings (fingerprint, updated_at);
CREATE INDEX IF NOT EXISTS listings_status_price_index ON listings (status, price);
CREATE INDEX IF NOT EXISTS listings_status_created_at_index ON listings (status, created_at);
CREATE INDEX IF NOT EXISTS listings_city_index ON listings (city);
CREATE INDEX IF NOT EXISTS listings_fulltext_index ON listings USING GIN (
    to_tsvector(
        'simple',
        coalesce(title, '') || ' ' || coalesce(description, '') || ' '
        || coalesce(city, '') || ' ' || coalesce(street, '')
    )
);

CREATE TABLE IF NOT EXISTS listing_media (
    id          BIGSERIAL PRIMARY KEY,
    listing_id  BIGINT NOT NULL REFERENCES listings (id) ON DELETE CASCADE,
    source_url  TEXT NOT NULL,
    file_path   TEXT NOT NULL,
    mime_type   VARCHAR(32) NOT NULL,
    size_bytes  INTEGER NOT NULL,
    position    INTEGER NOT NULL DEFAULT 0,
    is_hero     BOOLEAN NOT NULL DEFAULT FALSE,
    created_at  TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS listing_media_listing_index ON listing_media (listing_id, position);
"""


async def _init_connection(conn: asyncpg.Connection) -> None:
    """Decode JSON/JSONB columns to Python objects."""
    for type_name in ("json", "jsonb"):
        await conn.set_type_codec(
            type_name,
            encoder=lambda v: json.dumps(v, ensure_ascii=False, default=str),
            decoder=json.loads,
            schema="pg_catalog",
        )


class PostgresConnection:
    """PostgreSQL connection manager."""

    def __init__(self):
        """Initialize PostgreSQL connection."""
        self.settings = get_settings().postgres
        self._pool: Optional[asyncpg.Pool] = None

    async def connect(self) -> None:
        """Connect to PostgreSQL."""
        pg_log.info(f"Connecting to PostgreSQL at {self.settings.host}:{self.settings.port}")
        self._pool = await asyncpg.create_pool(
            host=self.settings.host,
            port=self.settings.port,
            user=self.settings.user,
            password=self.settings.password,
            database=self.settings.database,
            min_size=2,
            max_size=self.settings.pool_max,
            init=_init_connection,
        )
        pg_log.info("PostgreSQL connected successfully")

    async def close(self) -> None:
        """Close PostgreSQL connection pool."""
        if self._pool:
            await self._pool.close()
            pg_log.info("PostgreSQL connection closed")

    @property
    def pool(self) -> asyncpg.Pool:
        """Get connection pool."""
        if not self._pool:
            raise RuntimeError("PostgreSQL not connected. Call connect() first.")
        return self._pool

    async def ensure_schema(self) -> None:
        """Create tables and indexes if they do not exist."""
        async with self.pool.acquire() as conn:
            await conn.execute(SCHEMA)
        pg_log.info("Listings schema ensured")


# Singleton instance
_postgres: Optional[PostgresConnection] = None


async def get_postgres() -> PostgresConnection:
    """Get PostgreSQL connection singleton."""
    global _postgres
    if _postgres is None:
        _postgres = PostgresConnection()
        await _postgres.connect()
    return _postgres


async def close_postgres() -> None:
    """Close PostgreSQL connection."""
    global _postgres
    if _postgres:
        await _postgres.close()
        _postgres = None
