"""
Database abstraction for the directory: an in-memory implementation for
development/tests and a SQLAlchemy implementation for Postgres.
"""

from __future__ import annotations

import threading
import uuid
from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, Optional, Protocol

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Float,
    ForeignKey,
    String,
    Text,
    UniqueConstraint,
    create_engine,
    delete,
    select,
)
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from backend.config import resolve_collection_name
from backend.geocoding import Coordinates


class DirectoryError(Exception):
    """Base class for store errors surfaced to the HTTP layer."""


class RecordNotFoundError(DirectoryError):
    pass


class DuplicateRecordError(DirectoryError):
    pass


ORGANIZATION_FIELDS = (
    "name",
    "address",
    "phone",
    "website",
    "email",
    "description",
    "coordinates",
    "accepts_drop_off",
    "accepts_pick_up",
    "accepts_shipping",
)

ACCEPTED_CATEGORY_FIELDS = (
    "organization_id",
    "category_id",
    "quality_guidelines",
    "instructions",
)

UNIQUE_VIOLATION_SQLSTATE = "23505"


def category_id_for(name: str) -> str:
    """Categories are keyed by their lower-cased name."""
    return name.strip().lower()


def _new_id() -> str:
    return uuid.uuid4().hex


def _is_unique_violation(exc: IntegrityError) -> bool:
    """True for unique-constraint failures on Postgres (SQLSTATE 23505) or SQLite."""
    if getattr(exc.orig, "pgcode", None) == UNIQUE_VIOLATION_SQLSTATE:
        return True
    return "UNIQUE constraint failed" in str(exc.orig)


def check_fields(fields: dict, allowed: Iterable[str]) -> None:
    unknown = set(fields) - set(allowed)
    if unknown:
        raise ValueError(f"Unknown fields: {', '.join(sorted(unknown))}")


@dataclass
class OrganizationRecord:
    id: str
    name: str = ""
    address: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    email: Optional[str] = None
    description: Optional[str] = None
    coordinates: Optional[Coordinates] = None
    accepts_drop_off: bool = False
    accepts_pick_up: bool = False
    accepts_shipping: bool = False

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "address": self.address,
            "phone": self.phone,
            "website": self.website,
            "email": self.email,
            "description": self.description,
            "coordinates": self.coordinates.as_dict() if self.coordinates else None,
            "acceptsDropOff": self.accepts_drop_off,
            "acceptsPickUp": self.accepts_pick_up,
            "acceptsShipping": self.accepts_shipping,
        }


@dataclass
class CategoryRecord:
    id: str
    name: str

    def as_dict(self) -> dict:
        return {"id": self.id, "name": self.name}


@dataclass
class AcceptedCategoryRecord:
    id: str
    organization_id: str
    category_id: str
    quality_guidelines: list[str] = field(default_factory=list)
    instructions: list[str] = field(default_factory=list)

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "organization": self.organization_id,
            "category": self.category_id,
            "qualityGuidelines": list(self.quality_guidelines),
            "instructions": list(self.instructions),
        }


@dataclass
class MemberRecord:
    id: str
    authentication_id: str
    name: Optional[str] = None
    email: Optional[str] = None

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "authenticationID": self.authentication_id,
            "name": self.name,
            "email": self.email,
        }


@dataclass
class MemberAssignmentRecord:
    id: str
    member_id: str
    organization_id: str


@dataclass
class FavoriteRecord:
    id: str
    member_id: str
    organization_id: str


class DbClient(Protocol):
    """Interface for directory storage."""

    def list_organizations(self) -> list[OrganizationRecord]:
        ...

    def get_organization(self, organization_id: str) -> Optional[OrganizationRecord]:
        ...

    def create_organization(self, fields: dict) -> OrganizationRecord:
        ...

    def update_organization(self, organization_id: str, fields: dict) -> OrganizationRecord:
        ...

    def list_categories(self) -> list[CategoryRecord]:
        ...

    def get_category(self, category_id: str) -> Optional[CategoryRecord]:
        ...

    def save_category(self, name: str) -> CategoryRecord:
        ...

    def delete_category(self, category_id: str) -> None:
        ...

    def get_accepted_category(
        self, accepted_category_id: str
    ) -> Optional[AcceptedCategoryRecord]:
        ...

    def list_accepted_categories(
        self,
        *,
        organization_id: Optional[str] = None,
        category_id: Optional[str] = None,
    ) -> list[AcceptedCategoryRecord]:
        ...

    def upsert_accepted_category(
        self,
        organization_id: str,
        category_id: str,
        *,
        quality_guidelines: Optional[list[str]] = None,
        instructions: Optional[list[str]] = None,
    ) -> AcceptedCategoryRecord:
        ...

    def update_accepted_category(
        self, accepted_category_id: str, fields: dict
    ) -> AcceptedCategoryRecord:
        ...

    def delete_accepted_category(self, accepted_category_id: str) -> None:
        ...

    def get_member(self, member_id: str) -> Optional[MemberRecord]:
        ...

    def find_member(self, authentication_id: str) -> Optional[MemberRecord]:
        ...

    def get_or_create_member(
        self,
        authentication_id: str,
        *,
        name: Optional[str] = None,
        email: Optional[str] = None,
    ) -> tuple[MemberRecord, bool]:
        ...

    def assign_member(self, member_id: str, organization_id: str) -> MemberAssignmentRecord:
        ...

    def list_member_assignments(
        self,
        *,
        member_id: Optional[str] = None,
        organization_id: Optional[str] = None,
    ) -> list[MemberAssignmentRecord]:
        ...

    def add_favorite(self, member_id: str, organization_id: str) -> FavoriteRecord:
        ...

    def remove_favorite(self, member_id: str, organization_id: str) -> None:
        ...

    def list_favorites(self, member_id: str) -> list[FavoriteRecord]:
        ...

    def is_favorite(self, member_id: str, organization_id: str) -> bool:
        ...


class InMemoryDbClient:
    """
    Simple in-memory database for development and tests.

    Pair uniqueness (organization/category, member/organization) is kept in
    index dictionaries updated under a single lock.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self.organizations: Dict[str, OrganizationRecord] = {}
        self.categories: Dict[str, CategoryRecord] = {}
        self.accepted_categories: Dict[str, AcceptedCategoryRecord] = {}
        self.members: Dict[str, MemberRecord] = {}
        self.member_assignments: Dict[str, MemberAssignmentRecord] = {}
        self.favorites: Dict[str, FavoriteRecord] = {}
        self._accepted_index: Dict[tuple[str, str], str] = {}
        self._member_index: Dict[str, str] = {}
        self._assignment_index: Dict[tuple[str, str], str] = {}
        self._favorite_index: Dict[tuple[str, str], str] = {}

    # Organizations

    def list_organizations(self) -> list[OrganizationRecord]:
        with self._lock:
            return list(self.organizations.values())

    def get_organization(self, organization_id: str) -> Optional[OrganizationRecord]:
        return self.organizations.get(organization_id)

    def create_organization(self, fields: dict) -> OrganizationRecord:
        check_fields(fields, ORGANIZATION_FIELDS)
        record = OrganizationRecord(id=_new_id(), **fields)
        with self._lock:
            self.organizations[record.id] = record
        return record

    def update_organization(self, organization_id: str, fields: dict) -> OrganizationRecord:
        check_fields(fields, ORGANIZATION_FIELDS)
        with self._lock:
            existing = self.organizations.get(organization_id)
            if existing is None:
                raise RecordNotFoundError(organization_id)
            updated = replace(existing, **fields)
            self.organizations[organization_id] = updated
            return updated

    # Categories

    def list_categories(self) -> list[CategoryRecord]:
        with self._lock:
            return sorted(self.categories.values(), key=lambda c: c.id)

    def get_category(self, category_id: str) -> Optional[CategoryRecord]:
        return self.categories.get(category_id)

    def save_category(self, name: str) -> CategoryRecord:
        record = CategoryRecord(id=category_id_for(name), name=name.strip())
        with self._lock:
            self.categories[record.id] = record
        return record

    def delete_category(self, category_id: str) -> None:
        with self._lock:
            self.categories.pop(category_id, None)
            for accepted in list(self.accepted_categories.values()):
                if accepted.category_id == category_id:
                    self._drop_accepted_category(accepted)

    # Accepted categories

    def get_accepted_category(
        self, accepted_category_id: str
    ) -> Optional[AcceptedCategoryRecord]:
        return self.accepted_categories.get(accepted_category_id)

    def list_accepted_categories(
        self,
        *,
        organization_id: Optional[str] = None,
        category_id: Optional[str] = None,
    ) -> list[AcceptedCategoryRecord]:
        with self._lock:
            return [
                record
                for record in self.accepted_categories.values()
                if (organization_id is None or record.organization_id == organization_id)
                and (category_id is None or record.category_id == category_id)
            ]

    def upsert_accepted_category(
        self,
        organization_id: str,
        category_id: str,
        *,
        quality_guidelines: Optional[list[str]] = None,
        instructions: Optional[list[str]] = None,
    ) -> AcceptedCategoryRecord:
        key = (organization_id, category_id)
        with self._lock:
            existing_id = self._accepted_index.get(key)
            if existing_id is None:
                record = AcceptedCategoryRecord(
                    id=_new_id(),
                    organization_id=organization_id,
                    category_id=category_id,
                    quality_guidelines=list(quality_guidelines or []),
                    instructions=list(instructions or []),
                )
                self.accepted_categories[record.id] = record
                self._accepted_index[key] = record.id
                return record

            record = self.accepted_categories[existing_id]
            if quality_guidelines is not None:
                record = replace(record, quality_guidelines=list(quality_guidelines))
            if instructions is not None:
                record = replace(record, instructions=list(instructions))
            self.accepted_categories[existing_id] = record
            return record

    def update_accepted_category(
        self, accepted_category_id: str, fields: dict
    ) -> AcceptedCategoryRecord:
        check_fields(fields, ACCEPTED_CATEGORY_FIELDS)
        with self._lock:
            existing = self.accepted_categories.get(accepted_category_id)
            if existing is None:
                raise RecordNotFoundError(accepted_category_id)
            updated = replace(existing, **fields)
            old_key = (existing.organization_id, existing.category_id)
            new_key = (updated.organization_id, updated.category_id)
            if new_key != old_key:
                if new_key in self._accepted_index:
                    raise DuplicateRecordError(
                        f"Organization {new_key[0]} already accepts {new_key[1]}"
                    )
                del self._accepted_index[old_key]
                self._accepted_index[new_key] = accepted_category_id
            self.accepted_categories[accepted_category_id] = updated
            return updated

    def delete_accepted_category(self, accepted_category_id: str) -> None:
        with self._lock:
            record = self.accepted_categories.get(accepted_category_id)
            if record:
                self._drop_accepted_category(record)

    def _drop_accepted_category(self, record: AcceptedCategoryRecord) -> None:
        self.accepted_categories.pop(record.id, None)
        self._accepted_index.pop((record.organization_id, record.category_id), None)

    # Members

    def get_member(self, member_id: str) -> Optional[MemberRecord]:
        return self.members.get(member_id)

    def find_member(self, authentication_id: str) -> Optional[MemberRecord]:
        with self._lock:
            member_id = self._member_index.get(authentication_id)
            return self.members.get(member_id) if member_id else None

    def get_or_create_member(
        self,
        authentication_id: str,
        *,
        name: Optional[str] = None,
        email: Optional[str] = None,
    ) -> tuple[MemberRecord, bool]:
        with self._lock:
            existing = self.find_member(authentication_id)
            if existing:
                return existing, False
            record = MemberRecord(
                id=_new_id(),
                authentication_id=authentication_id,
                name=name,
                email=email,
            )
            self.members[record.id] = record
            self._member_index[authentication_id] = record.id
            return record, True

    def assign_member(self, member_id: str, organization_id: str) -> MemberAssignmentRecord:
        key = (member_id, organization_id)
        with self._lock:
            existing_id = self._assignment_index.get(key)
            if existing_id:
                return self.member_assignments[existing_id]
            record = MemberAssignmentRecord(
                id=_new_id(), member_id=member_id, organization_id=organization_id
            )
            self.member_assignments[record.id] = record
            self._assignment_index[key] = record.id
            return record

    def list_member_assignments(
        self,
        *,
        member_id: Optional[str] = None,
        organization_id: Optional[str] = None,
    ) -> list[MemberAssignmentRecord]:
        with self._lock:
            return [
                record
                for record in self.member_assignments.values()
                if (member_id is None or record.member_id == member_id)
                and (organization_id is None or record.organization_id == organization_id)
            ]

    # Favorites

    def add_favorite(self, member_id: str, organization_id: str) -> FavoriteRecord:
        key = (member_id, organization_id)
        with self._lock:
            existing_id = self._favorite_index.get(key)
            if existing_id:
                return self.favorites[existing_id]
            record = FavoriteRecord(
                id=_new_id(), member_id=member_id, organization_id=organization_id
            )
            self.favorites[record.id] = record
            self._favorite_index[key] = record.id
            return record

    def remove_favorite(self, member_id: str, organization_id: str) -> None:
        with self._lock:
            favorite_id = self._favorite_index.pop((member_id, organization_id), None)
            if favorite_id:
                self.favorites.pop(favorite_id, None)

    def list_favorites(self, member_id: str) -> list[FavoriteRecord]:
        with self._lock:
            return [f for f in self.favorites.values() if f.member_id == member_id]

    def is_favorite(self, member_id: str, organization_id: str) -> bool:
        with self._lock:
            return (member_id, organization_id) in self._favorite_index


class PostgresDbClient:
    """
    SQLAlchemy-backed implementation. Accepts any SQLAlchemy URL (e.g., Postgres or SQLite for tests).

    Pair uniqueness is enforced by unique constraints; inserts that may collide
    are issued as a single ``INSERT ... ON CONFLICT`` statement.
    """

    def __init__(self, database_url: str):
        if not database_url:
            raise ValueError("DATABASE_URL is required for PostgresDbClient")
        self.engine = create_engine(
            database_url,
            future=True,
            pool_pre_ping=True,
            pool_recycle=1800,
        )
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        Base.metadata.create_all(self.engine)

    def _insert(self, row_class):
        dialect = self.engine.dialect.name
        if dialect == "postgresql":
            return postgresql_insert(row_class.__table__)
        if dialect == "sqlite":
            return sqlite_insert(row_class.__table__)
        raise NotImplementedError(f"Conditional inserts are not supported on {dialect}")

    def _to_organization(self, row: "OrganizationRow") -> OrganizationRecord:
        coordinates = None
        if row.lat is not None and row.lng is not None:
            coordinates = Coordinates(lat=row.lat, lng=row.lng)
        return OrganizationRecord(
            id=row.id,
            name=row.name,
            address=row.address,
            phone=row.phone,
            website=row.website,
            email=row.email,
            description=row.description,
            coordinates=coordinates,
            accepts_drop_off=bool(row.accepts_drop_off),
            accepts_pick_up=bool(row.accepts_pick_up),
            accepts_shipping=bool(row.accepts_shipping),
        )

    def _to_accepted_category(self, row: "AcceptedCategoryRow") -> AcceptedCategoryRecord:
        return AcceptedCategoryRecord(
            id=row.id,
            organization_id=row.organization_id,
            category_id=row.category_id,
            quality_guidelines=list(row.quality_guidelines or []),
            instructions=list(row.instructions or []),
        )

    def _to_member(self, row: "MemberRow") -> MemberRecord:
        return MemberRecord(
            id=row.id,
            authentication_id=row.authentication_id,
            name=row.name,
            email=row.email,
        )

    def _apply_organization_fields(self, row: "OrganizationRow", fields: dict) -> None:
        for key, value in fields.items():
            if key == "coordinates":
                row.lat = value.lat if value else None
                row.lng = value.lng if value else None
            else:
                setattr(row, key, value)

    # Organizations

    def list_organizations(self) -> list[OrganizationRecord]:
        with self.Session() as session:
            rows = session.execute(select(OrganizationRow)).scalars().all()
            return [self._to_organization(row) for row in rows]

    def get_organization(self, organization_id: str) -> Optional[OrganizationRecord]:
        with self.Session() as session:
            row = session.get(OrganizationRow, organization_id)
            return self._to_organization(row) if row else None

    def create_organization(self, fields: dict) -> OrganizationRecord:
        check_fields(fields, ORGANIZATION_FIELDS)
        with self.Session() as session:
            row = OrganizationRow(id=_new_id(), name="")
            self._apply_organization_fields(row, fields)
            session.add(row)
            session.commit()
            session.refresh(row)
            return self._to_organization(row)

    def update_organization(self, organization_id: str, fields: dict) -> OrganizationRecord:
        check_fields(fields, ORGANIZATION_FIELDS)
        with self.Session() as session:
            row = session.get(OrganizationRow, organization_id)
            if not row:
                raise RecordNotFoundError(organization_id)
            self._apply_organization_fields(row, fields)
            session.commit()
            session.refresh(row)
            return self._to_organization(row)

    # Categories

    def list_categories(self) -> list[CategoryRecord]:
        with self.Session() as session:
            rows = session.execute(select(CategoryRow).order_by(CategoryRow.id)).scalars()
            return [CategoryRecord(id=row.id, name=row.name) for row in rows]

    def get_category(self, category_id: str) -> Optional[CategoryRecord]:
        with self.Session() as session:
            row = session.get(CategoryRow, category_id)
            return CategoryRecord(id=row.id, name=row.name) if row else None

    def save_category(self, name: str) -> CategoryRecord:
        record = CategoryRecord(id=category_id_for(name), name=name.strip())
        stmt = self._insert(CategoryRow).values(id=record.id, name=record.name)
        stmt = stmt.on_conflict_do_update(
            index_elements=["id"], set_={"name": stmt.excluded.name}
        )
        with self.Session() as session:
            session.execute(stmt)
            session.commit()
        return record

    def delete_category(self, category_id: str) -> None:
        with self.Session() as session:
            session.execute(
                delete(AcceptedCategoryRow).where(
                    AcceptedCategoryRow.category_id == category_id
                )
            )
            session.execute(delete(CategoryRow).where(CategoryRow.id == category_id))
            session.commit()

    # Accepted categories

    def get_accepted_category(
        self, accepted_category_id: str
    ) -> Optional[AcceptedCategoryRecord]:
        with self.Session() as session:
            row = session.get(AcceptedCategoryRow, accepted_category_id)
            return self._to_accepted_category(row) if row else None

    def list_accepted_categories(
        self,
        *,
        organization_id: Optional[str] = None,
        category_id: Optional[str] = None,
    ) -> list[AcceptedCategoryRecord]:
        stmt = select(AcceptedCategoryRow)
        if organization_id is not None:
            stmt = stmt.where(AcceptedCategoryRow.organization_id == organization_id)
        if category_id is not None:
            stmt = stmt.where(AcceptedCategoryRow.category_id == category_id)
        with self.Session() as session:
            rows = session.execute(stmt).scalars().all()
            return [self._to_accepted_category(row) for row in rows]

    def upsert_accepted_category(
        self,
        organization_id: str,
        category_id: str,
        *,
        quality_guidelines: Optional[list[str]] = None,
        instructions: Optional[list[str]] = None,
    ) -> AcceptedCategoryRecord:
        stmt = self._insert(AcceptedCategoryRow).values(
            id=_new_id(),
            organization_id=organization_id,
            category_id=category_id,
            quality_guidelines=list(quality_guidelines or []),
            instructions=list(instructions or []),
        )
        updates = {}
        if quality_guidelines is not None:
            updates["quality_guidelines"] = stmt.excluded.quality_guidelines
        if instructions is not None:
            updates["instructions"] = stmt.excluded.instructions
        conflict_target = ["organization_id", "category_id"]
        if updates:
            stmt = stmt.on_conflict_do_update(index_elements=conflict_target, set_=updates)
        else:
            stmt = stmt.on_conflict_do_nothing(index_elements=conflict_target)

        with self.Session() as session:
            session.execute(stmt)
            session.commit()
            row = session.execute(
                select(AcceptedCategoryRow).where(
                    AcceptedCategoryRow.organization_id == organization_id,
                    AcceptedCategoryRow.category_id == category_id,
                )
            ).scalar_one()
            return self._to_accepted_category(row)

    def update_accepted_category(
        self, accepted_category_id: str, fields: dict
    ) -> AcceptedCategoryRecord:
        check_fields(fields, ACCEPTED_CATEGORY_FIELDS)
        with self.Session() as session:
            row = session.get(AcceptedCategoryRow, accepted_category_id)
            if not row:
                raise RecordNotFoundError(accepted_category_id)
            for key, value in fields.items():
                setattr(row, key, value)
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                if not _is_unique_violation(exc):
                    raise
                raise DuplicateRecordError(str(exc.orig)) from exc
            session.refresh(row)
            return self._to_accepted_category(row)

    def delete_accepted_category(self, accepted_category_id: str) -> None:
        with self.Session() as session:
            session.execute(
                delete(AcceptedCategoryRow).where(
                    AcceptedCategoryRow.id == accepted_category_id
                )
            )
            session.commit()

    # Members

    def get_member(self, member_id: str) -> Optional[MemberRecord]:
        with self.Session() as session:
            row = session.get(MemberRow, member_id)
            return self._to_member(row) if row else None

    def find_member(self, authentication_id: str) -> Optional[MemberRecord]:
        with self.Session() as session:
            row = session.execute(
                select(MemberRow).where(MemberRow.authentication_id == authentication_id)
            ).scalar_one_or_none()
            return self._to_member(row) if row else None

    def get_or_create_member(
        self,
        authentication_id: str,
        *,
        name: Optional[str] = None,
        email: Optional[str] = None,
    ) -> tuple[MemberRecord, bool]:
        stmt = (
            self._insert(MemberRow)
            .values(
                id=_new_id(),
                authentication_id=authentication_id,
                name=name,
                email=email,
            )
            .on_conflict_do_nothing(index_elements=["authentication_id"])
        )
        with self.Session() as session:
            result = session.execute(stmt)
            session.commit()
            created = bool(result.rowcount)
        return self.find_member(authentication_id), created

    def assign_member(self, member_id: str, organization_id: str) -> MemberAssignmentRecord:
        stmt = (
            self._insert(MemberAssignmentRow)
            .values(id=_new_id(), member_id=member_id, organization_id=organization_id)
            .on_conflict_do_nothing(index_elements=["member_id", "organization_id"])
        )
        with self.Session() as session:
            session.execute(stmt)
            session.commit()
            row = session.execute(
                select(MemberAssignmentRow).where(
                    MemberAssignmentRow.member_id == member_id,
                    MemberAssignmentRow.organization_id == organization_id,
                )
            ).scalar_one()
            return MemberAssignmentRecord(
                id=row.id, member_id=row.member_id, organization_id=row.organization_id
            )

    def list_member_assignments(
        self,
        *,
        member_id: Optional[str] = None,
        organization_id: Optional[str] = None,
    ) -> list[MemberAssignmentRecord]:
        stmt = select(MemberAssignmentRow)
        if member_id is not None:
            stmt = stmt.where(MemberAssignmentRow.member_id == member_id)
        if organization_id is not None:
            stmt = stmt.where(MemberAssignmentRow.organization_id == organization_id)
        with self.Session() as session:
            rows = session.execute(stmt).scalars().all()
            return [
                MemberAssignmentRecord(
                    id=row.id, member_id=row.member_id, organization_id=row.organization_id
                )
                for row in rows
            ]

    # Favorites

    def add_favorite(self, member_id: str, organization_id: str) -> FavoriteRecord:
        stmt = (
            self._insert(FavoriteRow)
            .values(id=_new_id(), member_id=member_id, organization_id=organization_id)
            .on_conflict_do_nothing(index_elements=["member_id", "organization_id"])
        )
        with self.Session() as session:
            session.execute(stmt)
            session.commit()
            row = session.execute(
                select(FavoriteRow).where(
                    FavoriteRow.member_id == member_id,
                    FavoriteRow.organization_id == organization_id,
                )
            ).scalar_one()
            return FavoriteRecord(
                id=row.id, member_id=row.member_id, organization_id=row.organization_id
            )

    def remove_favorite(self, member_id: str, organization_id: str) -> None:
        with self.Session() as session:
            session.execute(
                delete(FavoriteRow).where(
                    FavoriteRow.member_id == member_id,
                    FavoriteRow.organization_id == organization_id,
                )
            )
            session.commit()

    def list_favorites(self, member_id: str) -> list[FavoriteRecord]:
        with self.Session() as session:
            rows = session.execute(
                select(FavoriteRow).where(FavoriteRow.member_id == member_id)
            ).scalars()
            return [
                FavoriteRecord(
                    id=row.id, member_id=row.member_id, organization_id=row.organization_id
                )
                for row in rows
            ]

    def is_favorite(self, member_id: str, organization_id: str) -> bool:
        with self.Session() as session:
            row = session.execute(
                select(FavoriteRow.id).where(
                    FavoriteRow.member_id == member_id,
                    FavoriteRow.organization_id == organization_id,
                )
            ).first()
            return row is not None


Base = declarative_base()

ORGANIZATIONS_TABLE = resolve_collection_name("organizations")
CATEGORIES_TABLE = resolve_collection_name("categories")
ACCEPTED_CATEGORIES_TABLE = resolve_collection_name("accepted_categories")
MEMBERS_TABLE = resolve_collection_name("members")
MEMBER_ASSIGNMENTS_TABLE = resolve_collection_name("member_assignments")
FAVORITES_TABLE = resolve_collection_name("favorites")


class OrganizationRow(Base):
    __tablename__ = ORGANIZATIONS_TABLE

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False, default="")
    address = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    website = Column(String, nullable=True)
    email = Column(String, nullable=True)
    description = Column(Text, nullable=True)
    lat = Column(Float, nullable=True)
    lng = Column(Float, nullable=True)
    accepts_drop_off = Column(Boolean, nullable=False, default=False)
    accepts_pick_up = Column(Boolean, nullable=False, default=False)
    accepts_shipping = Column(Boolean, nullable=False, default=False)


class CategoryRow(Base):
    __tablename__ = CATEGORIES_TABLE

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)


class AcceptedCategoryRow(Base):
    __tablename__ = ACCEPTED_CATEGORIES_TABLE
    __table_args__ = (
        UniqueConstraint("organization_id", "category_id", name="uq_accepted_category"),
    )

    id = Column(String, primary_key=True)
    organization_id = Column(
        String,
        ForeignKey(f"{ORGANIZATIONS_TABLE}.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    category_id = Column(
        String,
        ForeignKey(f"{CATEGORIES_TABLE}.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    quality_guidelines = Column(JSON, nullable=False, default=list)
    instructions = Column(JSON, nullable=False, default=list)


class MemberRow(Base):
    __tablename__ = MEMBERS_TABLE

    id = Column(String, primary_key=True)
    authentication_id = Column(String, nullable=False, unique=True)
    name = Column(String, nullable=True)
    email = Column(String, nullable=True)


class MemberAssignmentRow(Base):
    __tablename__ = MEMBER_ASSIGNMENTS_TABLE
    __table_args__ = (
        UniqueConstraint("member_id", "organization_id", name="uq_member_assignment"),
    )

    id = Column(String, primary_key=True)
    member_id = Column(
        String, ForeignKey(f"{MEMBERS_TABLE}.id", ondelete="CASCADE"), nullable=False, index=True
    )
    organization_id = Column(
        String,
        ForeignKey(f"{ORGANIZATIONS_TABLE}.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )


class FavoriteRow(Base):
    __tablename__ = FAVORITES_TABLE
    __table_args__ = (
        UniqueConstraint("member_id", "organization_id", name="uq_favorite"),
    )

    id = Column(String, primary_key=True)
    member_id = Column(
        String, ForeignKey(f"{MEMBERS_TABLE}.id", ondelete="CASCADE"), nullable=False, index=True
    )
    organization_id = Column(
        String,
        ForeignKey(f"{ORGANIZATIONS_TABLE}.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
