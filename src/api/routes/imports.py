"""Import routes."""

from typing import Optional

from fastapi import APIRouter, HTTPException, Query
from loguru import logger

from src.api.dependencies import Runtime

import_log = logger.bind(module="Import")

router = APIRouter(prefix="/import", tags=["Import"])


@router.post("/run")
async def trigger_import(
    runtime: Runtime,
    provider: Optional[str] = None,
    limit: Optional[int] = Query(default=None, ge=1, le=200),
) -> dict:
    """Manually run one import cycle."""
    import_log.info(f"Manually triggering import (provider={provider}, limit={limit})...")
    try:
        stats = await runtime.pipeline.run(provider, limit)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return {"status": True, "stats": stats.to_dict()}
