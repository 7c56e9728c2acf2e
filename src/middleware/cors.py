"""
CORS Middleware Configuration.

Handles Cross-Origin Resource Sharing settings.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config.settings import get_settings


def setup_cors(app: FastAPI) -> None:
    """
    Configure CORS middleware for the application.

    Origins come from CORS_ORIGINS, comma separated ("*" by default).

    Args:
        app: FastAPI application instance
    """
    origins = [o.strip() for o in get_settings().cors_origins.split(",") if o.strip()]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )
