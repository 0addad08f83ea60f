"""
Directory queries composed from a ``DbClient``.

Organizations leave this module as plain dicts in the web client's format,
annotated with ``favorite`` (for the requesting user) and ``categories``
(ids of the categories the organization accepts).
"""

from __future__ import annotations

import logging
from typing import Optional

from backend.auth import AuthenticatedUser
from backend.db import DbClient, MemberRecord, OrganizationRecord

logger = logging.getLogger(__name__)


def get_organization_categories(db: DbClient, organization_id: str) -> list[str]:
    """Return the category ids of every accepted category of an organization."""
    return [
        accepted.category_id
        for accepted in db.list_accepted_categories(organization_id=organization_id)
    ]


def get_member_id(db: DbClient, user: Optional[AuthenticatedUser]) -> Optional[str]:
    """Resolve the caller to a member id, or None when unauthenticated or unknown."""
    if user is None:
        return None
    member = db.find_member(user.id)
    return member.id if member else None


def ensure_member(db: DbClient, user: AuthenticatedUser) -> MemberRecord:
    """Return the caller's member record, creating it on first use."""
    member, created = db.get_or_create_member(
        user.id, name=user.display_name, email=user.email
    )
    if created:
        logger.info("Created member %s for authentication id %s", member.id, user.id)
    return member


def is_favorite_of_member(
    db: DbClient, organization_id: str, user: Optional[AuthenticatedUser]
) -> bool:
    member_id = get_member_id(db, user)
    if member_id is None:
        return False
    return db.is_favorite(member_id, organization_id)


def _annotate(
    db: DbClient,
    organization: OrganizationRecord,
    member_id: Optional[str],
) -> dict:
    data = organization.as_dict()
    data["favorite"] = bool(member_id) and db.is_favorite(member_id, organization.id)
    data["categories"] = get_organization_categories(db, organization.id)
    return data


def get_all_organizations(db: DbClient, user: Optional[AuthenticatedUser]) -> list[dict]:
    member_id = get_member_id(db, user)
    return [_annotate(db, org, member_id) for org in db.list_organizations()]


def get_filtered_organizations(
    db: DbClient, filter: str, user: Optional[AuthenticatedUser]
) -> list[dict]:
    """Return the organizations that accept the category named by ``filter``."""
    category_id = filter.strip().lower()
    member_id = get_member_id(db, user)

    organizations = []
    for accepted in db.list_accepted_categories(category_id=category_id):
        organization = db.get_organization(accepted.organization_id)
        if organization is None:
            logger.warning(
                "Accepted category %s points at missing organization %s",
                accepted.id,
                accepted.organization_id,
            )
            continue
        organizations.append(_annotate(db, organization, member_id))
    return organizations


def get_categories(db: DbClient) -> list[str]:
    return [category.id for category in db.list_categories()]


def get_favorite_organizations(db: DbClient, member_id: str) -> list[dict]:
    organizations = []
    for favorite in db.list_favorites(member_id):
        organization = db.get_organization(favorite.organization_id)
        if organization is None:
            continue
        data = organization.as_dict()
        data["favorite"] = True
        data["categories"] = get_organization_categories(db, organization.id)
        organizations.append(data)
    return organizations


def get_accepted_category_cards(db: DbClient, organization_id: str) -> list[dict]:
    """Accepted categories of an organization joined with their category names."""
    cards = []
    for accepted in db.list_accepted_categories(organization_id=organization_id):
        category = db.get_category(accepted.category_id)
        card = accepted.as_dict()
        card["categoryName"] = category.name if category else accepted.category_id
        cards.append(card)
    return sorted(cards, key=lambda card: card["category"])


def get_administered_organization_id(db: DbClient, member_id: str) -> Optional[str]:
    assignments = db.list_member_assignments(member_id=member_id)
    return assignments[0].organization_id if assignments else None


def get_organization_administrator(
    db: DbClient, organization_id: str
) -> Optional[MemberRecord]:
    assignments = db.list_member_assignments(organization_id=organization_id)
    if not assignments:
        return None
    return db.get_member(assignments[0].member_id)
