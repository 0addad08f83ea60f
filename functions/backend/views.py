"""
Server-rendered pages: search list, organization details and the category
dashboard. Pages read through the same directory queries as the JSON API.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from backend import directory
from backend.auth import AuthenticatedUser, get_current_user, require_user
from backend.db import DbClient
from backend.dependencies import get_db_client
from shared.formatting import format_category, format_phone_number

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
templates.env.filters["phone"] = format_phone_number
templates.env.filters["category"] = format_category

router = APIRouter()


def _organization_context(db: DbClient, organization_id: str) -> dict:
    organization = db.get_organization(organization_id)
    if organization is None:
        raise HTTPException(status_code=404, detail="Organization not found")
    return {
        "organization": organization.as_dict(),
        "accepted_categories": directory.get_accepted_category_cards(db, organization_id),
    }


@router.get("/", response_class=HTMLResponse)
@router.get("/search", response_class=HTMLResponse)
def search_list(
    request: Request,
    filter: Optional[str] = Query(None),
    db: DbClient = Depends(get_db_client),
    user: Optional[AuthenticatedUser] = Depends(get_current_user),
):
    if filter and filter.strip():
        organizations = directory.get_filtered_organizations(db, filter, user)
    else:
        organizations = directory.get_all_organizations(db, user)
    return templates.TemplateResponse(
        request,
        "search_list.html",
        {
            "organizations": organizations,
            "categories": db.list_categories(),
            "selected": (filter or "").strip().lower(),
            "is_logged_in": user is not None,
        },
    )


@router.get("/organizations/{organization_id}", response_class=HTMLResponse)
def more_info(
    request: Request, organization_id: str, db: DbClient = Depends(get_db_client)
):
    return templates.TemplateResponse(
        request, "more_info.html", _organization_context(db, organization_id)
    )


@router.get("/organizations/{organization_id}/email", response_class=HTMLResponse)
def organization_email(
    request: Request, organization_id: str, db: DbClient = Depends(get_db_client)
):
    """Email-ready summary of an organization and its donation instructions."""
    return templates.TemplateResponse(
        request, "organization_email.html", _organization_context(db, organization_id)
    )


@router.get("/dashboard", response_class=HTMLResponse)
def dashboard(
    request: Request,
    db: DbClient = Depends(get_db_client),
    user: AuthenticatedUser = Depends(require_user),
):
    member = directory.ensure_member(db, user)
    organization_id = directory.get_administered_organization_id(db, member.id)
    context = {"organization": None, "available_categories": [], "accepted_categories": []}

    if organization_id:
        context.update(_organization_context(db, organization_id))
        accepted_ids = {card["category"] for card in context["accepted_categories"]}
        context["available_categories"] = [
            category for category in db.list_categories() if category.id not in accepted_ids
        ]
    return templates.TemplateResponse(request, "dashboard_categories.html", context)
