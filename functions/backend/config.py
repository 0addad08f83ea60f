"""
Configuration and settings for the donation directory service.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

PRODUCTION_ENVIRONMENT = "production"
DEV_COLLECTION_PREFIX = "dev-"


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    api_prefix: str = Field(default="")

    # Selects the collection namespace ("production" or anything else)
    node_env: str = Field(default="development", env="NODE_ENV")

    # Google Maps geocoding
    maps_key: Optional[str] = Field(default=None, env="MAPS_KEY")
    geocode_url: str = Field(
        default="https://maps.googleapis.com/maps/api/geocode/json",
        env="GEOCODE_URL",
    )
    geocode_timeout: float = Field(default=30.0, env="GEOCODE_TIMEOUT")

    # Stores: SQLAlchemy URL (Postgres expected) or a Firestore project
    database_url: Optional[str] = Field(default=None, env="DATABASE_URL")
    firestore_project: Optional[str] = Field(default=None, env="FIRESTORE_PROJECT")

    # Development toggles
    use_in_memory_backends: bool = Field(
        default=False, env="USE_IN_MEMORY_BACKENDS"
    )

    # Identity headers set by the fronting auth proxy
    auth_user_id_header: str = Field(
        default="X-Authenticated-User-Id", env="AUTH_USER_ID_HEADER"
    )
    auth_user_name_header: str = Field(
        default="X-Authenticated-User-Name", env="AUTH_USER_NAME_HEADER"
    )
    auth_user_email_header: str = Field(
        default="X-Authenticated-User-Email", env="AUTH_USER_EMAIL_HEADER"
    )

    log_level: str = Field(default="INFO", env="LOG_LEVEL")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()


def resolve_collection_name(name: str, node_env: str | None = None) -> str:
    """
    Return the collection (or table) name for the current environment.

    Production uses the bare name; every other environment gets a ``dev-``
    prefix so development data never lands in production collections.
    """
    if node_env is None:
        node_env = get_settings().node_env
    if node_env == PRODUCTION_ENVIRONMENT:
        return name
    return f"{DEV_COLLECTION_PREFIX}{name}"
