"""Health check routes."""

from fastapi import APIRouter

from src.connections.postgres import get_postgres
from src.connections.redis import get_redis

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health() -> dict:
    """Health check endpoint; reports whether Postgres and Redis answer."""
    postgres = await get_postgres()
    redis = await get_redis()

    async with postgres.pool.acquire() as conn:
        db_ok = await conn.fetchval("SELECT 1") == 1
    redis_ok = bool(await redis.client.ping())

    return {"status": db_ok and redis_ok, "postgres": db_ok, "redis": redis_ok}
