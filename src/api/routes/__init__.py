"""API routes module."""

from src.api.routes.health import router as health_router
from src.api.routes.imports import router as imports_router
from src.api.routes.listings import router as listings_router

__all__ = [
    "health_router",
    "imports_router",
    "listings_router",
]
