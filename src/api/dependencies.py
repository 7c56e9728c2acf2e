"""
API Dependencies.

Shared dependencies for API routes.
"""

from typing import Annotated

from fastapi import Depends

from src.jobs.runtime import PipelineRuntime, get_runtime


async def get_pipeline_runtime() -> PipelineRuntime:
    """
    Get the process-wide pipeline runtime.

    Returns:
        PipelineRuntime wired on the shared Postgres pool and Redis client
    """
    return await get_runtime()


# Type alias for dependency injection
Runtime = Annotated[PipelineRuntime, Depends(get_pipeline_runtime)]
