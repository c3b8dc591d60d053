# ============================================================
# DB access layer
# ============================================================
from datetime import datetime
from typing import Any, Protocol

from sqlalchemy import delete, func, select, update
from sqlalchemy.orm import Session

from fleetfuel.db.models import ActionLogRow, FuelRequestRow, IdentityRow, ValidationRecordRow
from fleetfuel.domain.common import PageResult, Pagination, page_meta

from .entities import Identity, Role


class IdentityRepositoryProtocol(Protocol):
    def get(self, identity_id: str) -> Identity | None:
        """Get an identity by id"""
        ...

    def get_with_password(self, email: str) -> tuple[Identity, str] | None:
        """Get an identity and its password hash by email"""
        ...

    def email_taken(self, email: str, *, exclude_id: str | None = None) -> bool:
        ...

    def create(
            self,
            identity_id: str,
            name: str,
            email: str,
            role: Role,
            active: bool,
            password_hash: str,
            created_at: datetime,
    ) -> Identity:
        """Create a new identity"""
        ...

    def update(self, identity_id: str, changes: dict[str, Any]) -> Identity | None:
        ...

    def delete(self, identity_id: str) -> bool:
        ...

    def has_history(self, identity_id: str) -> bool:
        """True when any fuel request or audit record points at the identity"""
        ...

    def get_all(self, paging: Pagination, role: Role | None = None) -> PageResult[Identity]:
        ...


def _to_entity(row: IdentityRow) -> Identity:
    return Identity(
        id=row.id,
        name=row.name,
        email=row.email,
        role=Role(row.role),
        active=row.active,
        created_at=row.created_at,
    )


class IdentityRepository(IdentityRepositoryProtocol):
    """Identity persistence. Never commits: callers own the transaction."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, identity_id: str) -> Identity | None:
        row = self.db.get(IdentityRow, identity_id)
        return _to_entity(row) if row else None

    def get_with_password(self, email: str) -> tuple[Identity, str] | None:
        row = self.db.execute(
            select(IdentityRow).where(IdentityRow.email == email.strip().lower())
        ).scalar_one_or_none()
        if row is None:
            return None
        return _to_entity(row), row.password_hash

    def email_taken(self, email: str, *, exclude_id: str | None = None) -> bool:
        query = select(func.count()).select_from(IdentityRow).where(IdentityRow.email == email)
        if exclude_id:
            query = query.where(IdentityRow.id != exclude_id)
        return self.db.execute(query).scalar_one() > 0

    def create(
            self,
            identity_id: str,
            name: str,
            email: str,
            role: Role,
            active: bool,
            password_hash: str,
            created_at: datetime,
    ) -> Identity:
        row = IdentityRow(
            id=identity_id,
            name=name,
            email=email,
            role=role.value,
            active=active,
            password_hash=password_hash,
            created_at=created_at,
        )
        self.db.add(row)
        self.db.flush()
        return _to_entity(row)

    def update(self, identity_id: str, changes: dict[str, Any]) -> Identity | None:
        values = {k: (v.value if isinstance(v, Role) else v) for k, v in changes.items()}
        if values:
            self.db.execute(
                update(IdentityRow).where(IdentityRow.id == identity_id).values(**values)
            )
            self.db.flush()
        row = self.db.get(IdentityRow, identity_id, populate_existing=True)
        return _to_entity(row) if row else None

    def delete(self, identity_id: str) -> bool:
        result = self.db.execute(delete(IdentityRow).where(IdentityRow.id == identity_id))
        return result.rowcount > 0

    def has_history(self, identity_id: str) -> bool:
        for row_type, column in (
            (FuelRequestRow, FuelRequestRow.requester_id),
            (ValidationRecordRow, ValidationRecordRow.validator_id),
            (ActionLogRow, ActionLogRow.actor_id),
        ):
            query = select(func.count()).select_from(row_type).where(column == identity_id)
            if self.db.execute(query).scalar_one() > 0:
                return True
        return False

    def get_all(self, paging: Pagination, role: Role | None = None) -> PageResult[Identity]:
        conditions = []
        if role is not None:
            conditions.append(IdentityRow.role == role.value)

        total = self.db.execute(
            select(func.count()).select_from(IdentityRow).where(*conditions)
        ).scalar_one()
        rows = self.db.execute(
            select(IdentityRow)
            .where(*conditions)
            .order_by(IdentityRow.created_at.desc(), IdentityRow.id)
            .limit(paging.limit)
            .offset(paging.offset)
        ).scalars()

        return PageResult(data=[_to_entity(r) for r in rows], meta=page_meta(total, paging))
