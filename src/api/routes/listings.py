"""Listing routes."""

from fastapi import APIRouter

from src.api.dependencies import Runtime

router = APIRouter(prefix="/listings", tags=["Listings"])


@router.get("/processing")
async def processing_status(runtime: Runtime) -> dict:
    """Whether enrichment or image jobs are still outstanding."""
    return await runtime.processing_status()
