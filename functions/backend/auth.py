"""
Caller identity for request handlers.

Login happens in the auth proxy in front of the service; it forwards the
authenticated identity as request headers (names are configurable). A request
without the id header is unauthenticated.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException, Request

from backend.config import get_settings


@dataclass
class AuthenticatedUser:
    id: str
    display_name: Optional[str] = None
    email: Optional[str] = None


def get_current_user(request: Request) -> Optional[AuthenticatedUser]:
    settings = get_settings()
    user_id = (request.headers.get(settings.auth_user_id_header) or "").strip()
    if not user_id:
        return None
    return AuthenticatedUser(
        id=user_id,
        display_name=request.headers.get(settings.auth_user_name_header),
        email=request.headers.get(settings.auth_user_email_header),
    )


def require_user(
    user: Optional[AuthenticatedUser] = Depends(get_current_user),
) -> AuthenticatedUser:
    if user is None:
        raise HTTPException(status_code=401, detail="Authentication required")
    return user
