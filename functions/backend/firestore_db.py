"""
Cloud Firestore implementation of the directory store.

Documents keep the camelCase field names used by the web client. Favorites,
member assignments and members use deterministic document ids, so a single
``set``/``create`` call is the whole conditional write. Accepted categories keep
their ids when their pair changes; uniqueness per (organization, category) is
held by a guard document per pair, written in the same transaction.
"""

from __future__ import annotations

import logging
import uuid
from typing import Optional

from google.api_core import exceptions
from google.cloud import firestore
from google.cloud.firestore_v1.base_query import FieldFilter

from backend.config import resolve_collection_name
from backend.db import (
    ACCEPTED_CATEGORY_FIELDS,
    ORGANIZATION_FIELDS,
    AcceptedCategoryRecord,
    CategoryRecord,
    DuplicateRecordError,
    FavoriteRecord,
    MemberAssignmentRecord,
    MemberRecord,
    OrganizationRecord,
    RecordNotFoundError,
    check_fields,
    category_id_for,
)
from backend.geocoding import Coordinates

logger = logging.getLogger(__name__)

ORGANIZATIONS_COLLECTION = "Organizations"
CATEGORIES_COLLECTION = "Categories"
ACCEPTED_CATEGORIES_COLLECTION = "AcceptedCategories"
MEMBERS_COLLECTION = "Members"
MEMBER_ASSIGNMENTS_COLLECTION = "MemberAssignments"
FAVORITES_COLLECTION = "Favorites"
ACCEPTED_CATEGORY_PAIRS_COLLECTION = "AcceptedCategoryPairs"

# Firestore rejects batches with more writes than this.
BATCH_WRITE_LIMIT = 500

_ID_NAMESPACE = uuid.UUID("6f1c1f4e-5b0e-4c7a-9a7e-3d2b8f0c9e11")

ORGANIZATION_DOCUMENT_KEYS = {
    "name": "name",
    "address": "address",
    "phone": "phone",
    "website": "website",
    "email": "email",
    "description": "description",
    "coordinates": "coordinates",
    "accepts_drop_off": "acceptsDropOff",
    "accepts_pick_up": "acceptsPickUp",
    "accepts_shipping": "acceptsShipping",
}

ACCEPTED_CATEGORY_DOCUMENT_KEYS = {
    "organization_id": "organization",
    "category_id": "category",
    "quality_guidelines": "qualityGuidelines",
    "instructions": "instructions",
}


def pair_document_id(*parts: str) -> str:
    """Deterministic document id for a record keyed by an ordered tuple of ids."""
    return uuid.uuid5(_ID_NAMESPACE, "/".join(parts)).hex


def _organization_document(fields: dict) -> dict:
    document = {}
    for key, value in fields.items():
        if key == "coordinates" and value is not None:
            value = value.as_dict()
        document[ORGANIZATION_DOCUMENT_KEYS[key]] = value
    return document


def _to_organization(snapshot) -> OrganizationRecord:
    data = snapshot.to_dict() or {}
    location = data.get("coordinates")
    coordinates = None
    if location and "lat" in location and "lng" in location:
        coordinates = Coordinates(lat=location["lat"], lng=location["lng"])
    return OrganizationRecord(
        id=snapshot.id,
        name=data.get("name", ""),
        address=data.get("address"),
        phone=data.get("phone"),
        website=data.get("website"),
        email=data.get("email"),
        description=data.get("description"),
        coordinates=coordinates,
        accepts_drop_off=bool(data.get("acceptsDropOff")),
        accepts_pick_up=bool(data.get("acceptsPickUp")),
        accepts_shipping=bool(data.get("acceptsShipping")),
    )


def _to_accepted_category(snapshot) -> AcceptedCategoryRecord:
    data = snapshot.to_dict() or {}
    return AcceptedCategoryRecord(
        id=snapshot.id,
        organization_id=data["organization"],
        category_id=data["category"],
        quality_guidelines=list(data.get("qualityGuidelines") or []),
        instructions=list(data.get("instructions") or []),
    )


def _to_member(snapshot) -> MemberRecord:
    data = snapshot.to_dict() or {}
    return MemberRecord(
        id=snapshot.id,
        authentication_id=data["authenticationID"],
        name=data.get("name"),
        email=data.get("email"),
    )


def _to_pair(snapshot, record_class):
    data = snapshot.to_dict() or {}
    return record_class(
        id=snapshot.id,
        member_id=data["member"],
        organization_id=data["organization"],
    )


class FirestoreDbClient:
    """Directory store backed by Cloud Firestore."""

    def __init__(self, client: Optional[firestore.Client] = None, project: Optional[str] = None):
        self.client = client or firestore.Client(project=project)
        self.organizations = self.client.collection(
            resolve_collection_name(ORGANIZATIONS_COLLECTION)
        )
        self.categories = self.client.collection(
            resolve_collection_name(CATEGORIES_COLLECTION)
        )
        self.accepted_categories = self.client.collection(
            resolve_collection_name(ACCEPTED_CATEGORIES_COLLECTION)
        )
        self.members = self.client.collection(resolve_collection_name(MEMBERS_COLLECTION))
        self.member_assignments = self.client.collection(
            resolve_collection_name(MEMBER_ASSIGNMENTS_COLLECTION)
        )
        self.favorites = self.client.collection(
            resolve_collection_name(FAVORITES_COLLECTION)
        )
        self.accepted_category_pairs = self.client.collection(
            resolve_collection_name(ACCEPTED_CATEGORY_PAIRS_COLLECTION)
        )

    # Organizations

    def list_organizations(self) -> list[OrganizationRecord]:
        return [_to_organization(doc) for doc in self.organizations.stream()]

    def get_organization(self, organization_id: str) -> Optional[OrganizationRecord]:
        snapshot = self.organizations.document(organization_id).get()
        return _to_organization(snapshot) if snapshot.exists else None

    def create_organization(self, fields: dict) -> OrganizationRecord:
        check_fields(fields, ORGANIZATION_FIELDS)
        doc_ref = self.organizations.document()
        document = {"name": ""}
        document.update(_organization_document(fields))
        doc_ref.set(document)
        return _to_organization(doc_ref.get())

    def update_organization(self, organization_id: str, fields: dict) -> OrganizationRecord:
        check_fields(fields, ORGANIZATION_FIELDS)
        doc_ref = self.organizations.document(organization_id)
        try:
            doc_ref.update(_organization_document(fields))
        except exceptions.NotFound as exc:
            raise RecordNotFoundError(organization_id) from exc
        return _to_organization(doc_ref.get())

    # Categories

    def list_categories(self) -> list[CategoryRecord]:
        records = [
            CategoryRecord(id=doc.id, name=(doc.to_dict() or {}).get("name", doc.id))
            for doc in self.categories.stream()
        ]
        return sorted(records, key=lambda c: c.id)

    def get_category(self, category_id: str) -> Optional[CategoryRecord]:
        snapshot = self.categories.document(category_id).get()
        if not snapshot.exists:
            return None
        return CategoryRecord(
            id=snapshot.id, name=(snapshot.to_dict() or {}).get("name", snapshot.id)
        )

    def save_category(self, name: str) -> CategoryRecord:
        record = CategoryRecord(id=category_id_for(name), name=name.strip())
        self.categories.document(record.id).set({"name": record.name})
        return record

    def delete_category(self, category_id: str) -> None:
        references = []
        query = self.accepted_categories.where(
            filter=FieldFilter("category", "==", category_id)
        )
        for doc in query.stream():
            accepted = _to_accepted_category(doc)
            references.append(doc.reference)
            references.append(self._pair_guard(accepted.organization_id, accepted.category_id))
        references.append(self.categories.document(category_id))

        for start in range(0, len(references), BATCH_WRITE_LIMIT):
            batch = self.client.batch()
            for reference in references[start : start + BATCH_WRITE_LIMIT]:
                batch.delete(reference)
            batch.commit()

    # Accepted categories

    def _pair_guard(self, organization_id: str, category_id: str):
        return self.accepted_category_pairs.document(
            pair_document_id(organization_id, category_id)
        )

    def get_accepted_category(
        self, accepted_category_id: str
    ) -> Optional[AcceptedCategoryRecord]:
        snapshot = self.accepted_categories.document(accepted_category_id).get()
        return _to_accepted_category(snapshot) if snapshot.exists else None

    def list_accepted_categories(
        self,
        *,
        organization_id: Optional[str] = None,
        category_id: Optional[str] = None,
    ) -> list[AcceptedCategoryRecord]:
        query = self.accepted_categories
        if organization_id is not None:
            query = query.where(filter=FieldFilter("organization", "==", organization_id))
        if category_id is not None:
            query = query.where(filter=FieldFilter("category", "==", category_id))
        return [_to_accepted_category(doc) for doc in query.stream()]

    def upsert_accepted_category(
        self,
        organization_id: str,
        category_id: str,
        *,
        quality_guidelines: Optional[list[str]] = None,
        instructions: Optional[list[str]] = None,
    ) -> AcceptedCategoryRecord:
        guard_ref = self._pair_guard(organization_id, category_id)
        document = {"organization": organization_id, "category": category_id}
        if quality_guidelines is not None:
            document["qualityGuidelines"] = list(quality_guidelines)
        if instructions is not None:
            document["instructions"] = list(instructions)
        transaction = self.client.transaction()

        @firestore.transactional
        def _upsert_transaction(transaction):
            guard = guard_ref.get(transaction=transaction)
            if guard.exists:
                doc_ref = self.accepted_categories.document(
                    guard.to_dict()["acceptedCategory"]
                )
                transaction.set(doc_ref, document, merge=True)
                return doc_ref

            doc_ref = self.accepted_categories.document()
            created = {"qualityGuidelines": [], "instructions": []}
            created.update(document)
            transaction.set(doc_ref, created)
            transaction.set(guard_ref, {"acceptedCategory": doc_ref.id})
            return doc_ref

        doc_ref = _upsert_transaction(transaction)
        return _to_accepted_category(doc_ref.get())

    def update_accepted_category(
        self, accepted_category_id: str, fields: dict
    ) -> AcceptedCategoryRecord:
        """
        Apply a partial update in place. Changing the organization or category
        moves the pair guard in the same transaction.
        """
        check_fields(fields, ACCEPTED_CATEGORY_FIELDS)
        doc_ref = self.accepted_categories.document(accepted_category_id)
        transaction = self.client.transaction()

        @firestore.transactional
        def _update_transaction(transaction):
            snapshot = doc_ref.get(transaction=transaction)
            if not snapshot.exists:
                raise RecordNotFoundError(accepted_category_id)

            current = _to_accepted_category(snapshot)
            organization_id = fields.get("organization_id", current.organization_id)
            category_id = fields.get("category_id", current.category_id)
            changes = {
                ACCEPTED_CATEGORY_DOCUMENT_KEYS[key]: value for key, value in fields.items()
            }

            moved = (organization_id, category_id) != (
                current.organization_id,
                current.category_id,
            )
            if moved:
                target_guard = self._pair_guard(organization_id, category_id)
                if target_guard.get(transaction=transaction).exists:
                    raise DuplicateRecordError(
                        f"Organization {organization_id} already accepts {category_id}"
                    )
                transaction.delete(
                    self._pair_guard(current.organization_id, current.category_id)
                )
                transaction.set(target_guard, {"acceptedCategory": accepted_category_id})
            if changes:
                transaction.update(doc_ref, changes)
            return (organization_id, category_id) if moved else None

        new_pair = _update_transaction(transaction)
        if new_pair:
            logger.info(
                "Accepted category %s now pairs organization %s with category %s",
                accepted_category_id,
                *new_pair,
            )
        return _to_accepted_category(doc_ref.get())

    def delete_accepted_category(self, accepted_category_id: str) -> None:
        doc_ref = self.accepted_categories.document(accepted_category_id)
        snapshot = doc_ref.get()
        if not snapshot.exists:
            return
        accepted = _to_accepted_category(snapshot)
        batch = self.client.batch()
        batch.delete(doc_ref)
        batch.delete(self._pair_guard(accepted.organization_id, accepted.category_id))
        batch.commit()

    # Members

    def get_member(self, member_id: str) -> Optional[MemberRecord]:
        snapshot = self.members.document(member_id).get()
        return _to_member(snapshot) if snapshot.exists else None

    def find_member(self, authentication_id: str) -> Optional[MemberRecord]:
        return self.get_member(pair_document_id(authentication_id))

    def get_or_create_member(
        self,
        authentication_id: str,
        *,
        name: Optional[str] = None,
        email: Optional[str] = None,
    ) -> tuple[MemberRecord, bool]:
        doc_ref = self.members.document(pair_document_id(authentication_id))
        try:
            doc_ref.create(
                {"authenticationID": authentication_id, "name": name, "email": email}
            )
            created = True
        except exceptions.AlreadyExists:
            created = False
        return _to_member(doc_ref.get()), created

    def assign_member(self, member_id: str, organization_id: str) -> MemberAssignmentRecord:
        doc_ref = self.member_assignments.document(
            pair_document_id(member_id, organization_id)
        )
        doc_ref.set({"member": member_id, "organization": organization_id})
        return MemberAssignmentRecord(
            id=doc_ref.id, member_id=member_id, organization_id=organization_id
        )

    def list_member_assignments(
        self,
        *,
        member_id: Optional[str] = None,
        organization_id: Optional[str] = None,
    ) -> list[MemberAssignmentRecord]:
        query = self.member_assignments
        if member_id is not None:
            query = query.where(filter=FieldFilter("member", "==", member_id))
        if organization_id is not None:
            query = query.where(filter=FieldFilter("organization", "==", organization_id))
        return [_to_pair(doc, MemberAssignmentRecord) for doc in query.stream()]

    # Favorites

    def add_favorite(self, member_id: str, organization_id: str) -> FavoriteRecord:
        doc_ref = self.favorites.document(pair_document_id(member_id, organization_id))
        doc_ref.set({"member": member_id, "organization": organization_id})
        return FavoriteRecord(
            id=doc_ref.id, member_id=member_id, organization_id=organization_id
        )

    def remove_favorite(self, member_id: str, organization_id: str) -> None:
        self.favorites.document(pair_document_id(member_id, organization_id)).delete()

    def list_favorites(self, member_id: str) -> list[FavoriteRecord]:
        query = self.favorites.where(filter=FieldFilter("member", "==", member_id))
        return [_to_pair(doc, FavoriteRecord) for doc in query.stream()]

    def is_favorite(self, member_id: str, organization_id: str) -> bool:
        snapshot = self.favorites.document(pair_document_id(member_id, organization_id)).get()
        return snapshot.exists
