"""
FastAPI application entry point for the donation directory.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI

from backend.config import get_settings
from backend.db import DbClient
from backend.dependencies import get_db_client, get_geocoding_client
from backend.geocoding import GeocodingClient
from backend.routes import router
from backend.views import router as views_router


def create_app(
    db_client: Optional[DbClient] = None,
    geocoding_client: Optional[GeocodingClient] = None,
) -> FastAPI:
    """
    Build the app. Explicit clients replace the environment-configured ones.
    """
    settings = get_settings()
    logging.basicConfig(level=settings.log_level)

    app = FastAPI(title="Donation Directory", version="0.1.0")
    app.include_router(router, prefix=settings.api_prefix)
    app.include_router(views_router)

    if db_client is not None:
        app.dependency_overrides[get_db_client] = lambda: db_client
    if geocoding_client is not None:
        app.dependency_overrides[get_geocoding_client] = lambda: geocoding_client
    return app


app = create_app()
