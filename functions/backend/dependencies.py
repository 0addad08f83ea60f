"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

from backend.config import get_settings
from backend.db import DbClient, InMemoryDbClient, PostgresDbClient
from backend.geocoding import (
    GeocodingClient,
    GoogleMapsGeocodingClient,
    StaticGeocodingClient,
)

_db_client: DbClient | None = None
_geocoding_client: GeocodingClient | None = None


def get_db_client() -> DbClient:
    """
    Return a singleton DB client so directory state persists across requests.
    """
    global _db_client
    if _db_client:
        return _db_client

    settings = get_settings()
    if settings.use_in_memory_backends:
        _db_client = InMemoryDbClient()
    elif settings.database_url:
        _db_client = PostgresDbClient(settings.database_url)
    elif settings.firestore_project:
        # Firestore credentials are only required when this backend is selected.
        from backend.firestore_db import FirestoreDbClient

        _db_client = FirestoreDbClient(project=settings.firestore_project)
    else:
        _db_client = InMemoryDbClient()
    return _db_client


def get_geocoding_client() -> GeocodingClient:
    global _geocoding_client
    if _geocoding_client:
        return _geocoding_client

    settings = get_settings()
    if settings.use_in_memory_backends or not settings.maps_key:
        _geocoding_client = StaticGeocodingClient()
    else:
        _geocoding_client = GoogleMapsGeocodingClient(
            api_key=settings.maps_key,
            endpoint=settings.geocode_url,
            timeout=settings.geocode_timeout,
        )
    return _geocoding_client
