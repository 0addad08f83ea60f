"""
HTTP routes for the directory data API.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Form, HTTPException
from fastapi.responses import RedirectResponse

from backend import directory
from backend.auth import AuthenticatedUser, get_current_user, require_user
from backend.db import (
    DbClient,
    DuplicateRecordError,
    RecordNotFoundError,
    category_id_for,
)
from backend.dependencies import get_db_client, get_geocoding_client
from backend.geocoding import GeocodingClient
from backend.schemas import (
    AcceptedCategoryResponse,
    AcceptedCategoryUpdateRequest,
    AcceptedCategoryUpsertRequest,
    CategoryCreateRequest,
    CategoryResponse,
    DirectoryOrganization,
    DiscoverRequest,
    FavoritesResponse,
    MemberIdResponse,
    MemberResponse,
    OrganizationCreateRequest,
    OrganizationResponse,
    StatusResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()

DASHBOARD_PATH = "/dashboard"
ACCEPTED_CATEGORY_LOOKUP_FIELDS = ("organization", "category")
FALSE_FORM_VALUES = {"", "0", "false", "off", "no"}

OK = StatusResponse(status="ok")


def _coerce_flag(value: Optional[str]) -> bool:
    """Checkbox-style form value to bool; an absent field is False."""
    if value is None:
        return False
    return value.strip().lower() not in FALSE_FORM_VALUES


def _geocoded_coordinates(geocoder: GeocodingClient, address: str):
    result = geocoder.geocode_address(address)
    if result.resolved and result.coordinates:
        return result.coordinates
    logger.warning(
        "Storing organization without coordinates; geocoding %r returned %s (%s)",
        address,
        result.status.value,
        result.error,
    )
    return None


def _require_organization(db: DbClient, organization_id: str):
    organization = db.get_organization(organization_id)
    if organization is None:
        raise HTTPException(status_code=404, detail="Organization not found")
    return organization


def _require_category(db: DbClient, category: str) -> str:
    category_id = category_id_for(category)
    if db.get_category(category_id) is None:
        raise HTTPException(status_code=404, detail="Category not found")
    return category_id


# Organizations


@router.get("/data/organizations/{organization_id}", response_model=OrganizationResponse)
def organizations_get(organization_id: str, db: DbClient = Depends(get_db_client)):
    organization = _require_organization(db, organization_id)
    return organization.as_dict()


@router.post("/data/organizations", response_model=OrganizationResponse, status_code=201)
def organizations_create(
    payload: OrganizationCreateRequest,
    db: DbClient = Depends(get_db_client),
    geocoder: GeocodingClient = Depends(get_geocoding_client),
    user: Optional[AuthenticatedUser] = Depends(get_current_user),
):
    """
    Register an organization. An authenticated caller becomes its administrator.
    """
    fields = {
        "name": payload.name,
        "address": payload.address,
        "phone": payload.phone,
        "website": payload.website,
        "email": payload.email,
        "description": payload.description,
        "accepts_drop_off": payload.acceptsDropOff,
        "accepts_pick_up": payload.acceptsPickUp,
        "accepts_shipping": payload.acceptsShipping,
    }
    if payload.address:
        fields["coordinates"] = _geocoded_coordinates(geocoder, payload.address)
    organization = db.create_organization(fields)

    if user is not None:
        member = directory.ensure_member(db, user)
        db.assign_member(member.id, organization.id)
    return organization.as_dict()


@router.post("/data/organizations/{organization_id}")
def organizations_post(
    organization_id: str,
    name: Optional[str] = Form(None),
    address: Optional[str] = Form(None),
    phone: Optional[str] = Form(None),
    website: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    acceptsDropOff: Optional[str] = Form(None),
    acceptsPickUp: Optional[str] = Form(None),
    acceptsShipping: Optional[str] = Form(None),
    db: DbClient = Depends(get_db_client),
    geocoder: GeocodingClient = Depends(get_geocoding_client),
):
    """
    Update an organization from the dashboard form and return to the dashboard.

    The geocode runs before the write; a failed geocode stores no coordinates
    rather than failing the request.
    """
    _require_organization(db, organization_id)

    fields = {
        key: value
        for key, value in {
            "name": name,
            "address": address,
            "phone": phone,
            "website": website,
            "email": email,
            "description": description,
        }.items()
        if value is not None
    }
    if address is not None:
        fields["coordinates"] = _geocoded_coordinates(geocoder, address)
    fields["accepts_drop_off"] = _coerce_flag(acceptsDropOff)
    fields["accepts_pick_up"] = _coerce_flag(acceptsPickUp)
    fields["accepts_shipping"] = _coerce_flag(acceptsShipping)

    try:
        db.update_organization(organization_id, fields)
    except RecordNotFoundError:
        raise HTTPException(status_code=404, detail="Organization not found")
    return RedirectResponse(url=DASHBOARD_PATH, status_code=303)


@router.post("/discover", response_model=list[DirectoryOrganization])
def discover(
    payload: DiscoverRequest,
    db: DbClient = Depends(get_db_client),
    user: Optional[AuthenticatedUser] = Depends(get_current_user),
):
    if not payload.filter or not payload.filter.strip():
        return directory.get_all_organizations(db, user)
    return directory.get_filtered_organizations(db, payload.filter, user)


# Categories


@router.get("/data/categories", response_model=list[str])
def categories_get(db: DbClient = Depends(get_db_client)):
    return directory.get_categories(db)


@router.post("/data/categories", response_model=CategoryResponse, status_code=201)
def categories_post(payload: CategoryCreateRequest, db: DbClient = Depends(get_db_client)):
    if not category_id_for(payload.name):
        raise HTTPException(status_code=400, detail="Category name is blank")
    return db.save_category(payload.name).as_dict()


@router.delete("/data/categories/{category_id}", response_model=StatusResponse)
def categories_delete(category_id: str, db: DbClient = Depends(get_db_client)):
    db.delete_category(category_id)
    return OK


# Accepted categories


@router.get(
    "/data/acceptedcategories/{accepted_category_id}",
    response_model=AcceptedCategoryResponse,
)
def accepted_categories_get(
    accepted_category_id: str, db: DbClient = Depends(get_db_client)
):
    accepted = db.get_accepted_category(accepted_category_id)
    if accepted is None:
        raise HTTPException(status_code=404, detail="Accepted category not found")
    return accepted.as_dict()


@router.post(
    "/data/acceptedcategories/{accepted_category_id}",
    response_model=StatusResponse,
    status_code=201,
)
def accepted_categories_post(
    accepted_category_id: str,
    payload: AcceptedCategoryUpdateRequest,
    db: DbClient = Depends(get_db_client),
):
    updates = payload.model_dump(exclude_unset=True)
    fields = {}
    if updates.get("organization") is not None:
        fields["organization_id"] = _require_organization(db, updates["organization"]).id
    if updates.get("category") is not None:
        fields["category_id"] = _require_category(db, updates["category"])
    if updates.get("qualityGuidelines") is not None:
        fields["quality_guidelines"] = updates["qualityGuidelines"]
    if updates.get("instructions") is not None:
        fields["instructions"] = updates["instructions"]

    try:
        db.update_accepted_category(accepted_category_id, fields)
    except RecordNotFoundError:
        raise HTTPException(status_code=404, detail="Accepted category not found")
    except DuplicateRecordError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    return OK


@router.delete(
    "/data/acceptedcategories/{accepted_category_id}", response_model=StatusResponse
)
def accepted_categories_delete(
    accepted_category_id: str, db: DbClient = Depends(get_db_client)
):
    db.delete_accepted_category(accepted_category_id)
    return OK


@router.get(
    "/data/acceptedcategories/{field}/{record_id}",
    response_model=dict[str, AcceptedCategoryResponse],
)
def accepted_categories_by_field_get(
    field: str, record_id: str, db: DbClient = Depends(get_db_client)
):
    if field not in ACCEPTED_CATEGORY_LOOKUP_FIELDS:
        raise HTTPException(
            status_code=400,
            detail=f"field must be one of {', '.join(ACCEPTED_CATEGORY_LOOKUP_FIELDS)}",
        )
    if field == "organization":
        records = db.list_accepted_categories(organization_id=record_id)
    else:
        records = db.list_accepted_categories(category_id=category_id_for(record_id))
    return {record.id: record.as_dict() for record in records}


@router.post(
    "/data/acceptedcategories/organization/{organization_id}",
    response_model=AcceptedCategoryResponse,
    status_code=201,
)
def accepted_categories_organization_post(
    organization_id: str,
    payload: AcceptedCategoryUpsertRequest,
    db: DbClient = Depends(get_db_client),
):
    """
    Add a category to an organization, or update it if already accepted.
    """
    _require_organization(db, organization_id)
    category_id = _require_category(db, payload.category)
    accepted = db.upsert_accepted_category(
        organization_id,
        category_id,
        quality_guidelines=payload.qualityGuidelines,
        instructions=payload.instructions,
    )
    return accepted.as_dict()


# Members


@router.get("/member", response_model=MemberIdResponse)
def get_member(
    db: DbClient = Depends(get_db_client),
    user: AuthenticatedUser = Depends(require_user),
):
    member = directory.ensure_member(db, user)
    return MemberIdResponse(id=member.id)


@router.get("/member-from-organization/{organization_id}", response_model=MemberResponse)
def get_member_from_organization(
    organization_id: str, db: DbClient = Depends(get_db_client)
):
    member = directory.get_organization_administrator(db, organization_id)
    if member is None:
        raise HTTPException(status_code=404, detail="No member assigned to organization")
    return member.as_dict()


@router.get("/organization-from-member/{member_id}", response_model=MemberIdResponse)
def get_organization_from_member(member_id: str, db: DbClient = Depends(get_db_client)):
    # An unapproved member has no assignment yet.
    return MemberIdResponse(id=directory.get_administered_organization_id(db, member_id))


# Favorites


@router.get("/favorites", response_model=FavoritesResponse)
def get_favorites(
    db: DbClient = Depends(get_db_client),
    user: AuthenticatedUser = Depends(require_user),
):
    member = directory.ensure_member(db, user)
    return FavoritesResponse(
        organizations=directory.get_favorite_organizations(db, member.id),
        isLoggedIn=True,
    )


@router.post(
    "/favorites/{organization_id}", response_model=StatusResponse, status_code=201
)
def post_favorite(
    organization_id: str,
    db: DbClient = Depends(get_db_client),
    user: AuthenticatedUser = Depends(require_user),
):
    _require_organization(db, organization_id)
    member = directory.ensure_member(db, user)
    db.add_favorite(member.id, organization_id)
    return OK


@router.delete("/favorites/{organization_id}", response_model=StatusResponse)
def delete_favorite(
    organization_id: str,
    db: DbClient = Depends(get_db_client),
    user: AuthenticatedUser = Depends(require_user),
):
    member_id = directory.get_member_id(db, user)
    if member_id is not None:
        db.remove_favorite(member_id, organization_id)
    return OK
