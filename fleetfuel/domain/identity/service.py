"""Identity management: admin/director CRUD plus self-registration."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Callable

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from fleetfuel.core.errors import NotFoundError, PermissionDeniedError, ValidationError
from fleetfuel.db.connection import transaction
from fleetfuel.domain.audit import ActionLogRepository
from fleetfuel.domain.common import PageResult, Pagination, new_id
from fleetfuel.observability.tracing import log_event, new_trace_id

from .entities import Identity, Role
from .passwords import hash_password
from .permissions import require_active, require_role
from .repository import IdentityRepository

MANAGERS = {Role.ADMIN, Role.DIRECTOR}
MIN_PASSWORD_CHARS = 8


def _clean_name(name: str) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValidationError("Name is required")
    return cleaned


def _clean_email(email: str) -> str:
    cleaned = (email or "").strip().lower()
    if "@" not in cleaned or cleaned.startswith("@") or cleaned.endswith("@"):
        raise ValidationError(f"Invalid email address: '{email}'")
    return cleaned


def _parse_role(role: Role | str) -> Role:
    try:
        return Role(role)
    except ValueError as exc:
        raise ValidationError(f"Unknown role: '{role}'") from exc


def _check_password(password: str) -> str:
    if len(password or "") < MIN_PASSWORD_CHARS:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_CHARS} characters")
    return password


class IdentityService:
    def __init__(
        self,
        db: Session,
        *,
        allow_self_assigned_roles: bool = True,
        now: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._db = db
        self._identities = IdentityRepository(db)
        self._logs = ActionLogRepository(db)
        self._allow_self_assigned_roles = allow_self_assigned_roles
        self._now = now

    def register(self, *, name: str, email: str, password: str, role: Role = Role.DRIVER) -> Identity:
        """Self-registration. The caller picks their own role unless disabled by settings."""
        if not self._allow_self_assigned_roles:
            role = Role.DRIVER
        identity = self._create(
            actor_id=None,
            name=name,
            email=email,
            password=password,
            role=role,
            active=True,
            action="identity.registered",
        )
        log_event("identity.registered", trace_id=new_trace_id(), identity_id=identity.id, role=identity.role.value)
        return identity

    def create_identity(
        self,
        actor: Identity,
        *,
        name: str,
        email: str,
        password: str,
        role: Role,
        active: bool = True,
    ) -> Identity:
        require_role(actor, MANAGERS, action="create identities")
        identity = self._create(
            actor_id=actor.id,
            name=name,
            email=email,
            password=password,
            role=role,
            active=active,
            action="identity.created",
        )
        log_event("identity.created", trace_id=new_trace_id(), actor_id=actor.id, identity_id=identity.id)
        return identity

    def _create(
        self,
        *,
        actor_id: str | None,
        name: str,
        email: str,
        password: str,
        role: Role,
        active: bool,
        action: str,
    ) -> Identity:
        name = _clean_name(name)
        email = _clean_email(email)
        password_hash = hash_password(_check_password(password))

        try:
            with transaction(self._db):
                if self._identities.email_taken(email):
                    raise ValidationError(f"Email '{email}' is already registered")
                identity = self._identities.create(
                    identity_id=new_id(),
                    name=name,
                    email=email,
                    role=_parse_role(role),
                    active=active,
                    password_hash=password_hash,
                    created_at=self._now(),
                )
                self._logs.append(
                    actor_id=actor_id or identity.id,
                    action=action,
                    details=f"Email: {email}, Role: {identity.role.value}",
                    created_at=self._now(),
                )
        except IntegrityError as exc:
            raise ValidationError(f"Email '{email}' is already registered") from exc
        return identity

    def get_identity(self, actor: Identity, identity_id: str) -> Identity:
        require_active(actor)
        if actor.id != identity_id and actor.role not in MANAGERS:
            raise PermissionDeniedError(f"Role '{actor.role.value}' may not read other identities")
        identity = self._identities.get(identity_id)
        if identity is None:
            raise NotFoundError("Identity", identity_id)
        return identity

    def list_identities(
        self,
        actor: Identity,
        *,
        paging: Pagination | None = None,
        role: Role | None = None,
    ) -> PageResult[Identity]:
        require_role(actor, MANAGERS, action="list identities")
        return self._identities.get_all(paging or Pagination(), role=role)

    def update_identity(self, actor: Identity, identity_id: str, **fields: Any) -> Identity:
        """Update name, email, role, active or password. Unknown fields are rejected."""
        require_role(actor, MANAGERS, action="update identities")
        allowed = {"name", "email", "role", "active", "password"}
        unknown = set(fields) - allowed
        if unknown:
            raise ValidationError(f"Unknown identity fields: {', '.join(sorted(unknown))}")

        changes: dict[str, Any] = {}
        if fields.get("name") is not None:
            changes["name"] = _clean_name(fields["name"])
        if fields.get("email") is not None:
            changes["email"] = _clean_email(fields["email"])
        if fields.get("role") is not None:
            changes["role"] = _parse_role(fields["role"])
        if fields.get("active") is not None:
            changes["active"] = bool(fields["active"])
        if fields.get("password"):
            changes["password_hash"] = hash_password(_check_password(fields["password"]))

        try:
            with transaction(self._db):
                if self._identities.get(identity_id) is None:
                    raise NotFoundError("Identity", identity_id)
                if "email" in changes and self._identities.email_taken(changes["email"], exclude_id=identity_id):
                    raise ValidationError(f"Email '{changes['email']}' is already registered")
                identity = self._identities.update(identity_id, changes)
                self._logs.append(
                    actor_id=actor.id,
                    action="identity.updated",
                    details=f"Identity: {identity_id}, Fields: {', '.join(sorted(changes)) or '-'}",
                    created_at=self._now(),
                )
        except IntegrityError as exc:
            raise ValidationError("Identity update violates a uniqueness rule") from exc

        log_event("identity.updated", trace_id=new_trace_id(), actor_id=actor.id, identity_id=identity_id)
        return identity

    def delete_identity(self, actor: Identity, identity_id: str) -> None:
        require_role(actor, MANAGERS, action="delete identities")
        if actor.id == identity_id:
            raise ValidationError("An identity cannot delete itself")

        with transaction(self._db):
            existing = self._identities.get(identity_id)
            if existing is None:
                raise NotFoundError("Identity", identity_id)
            if self._identities.has_history(identity_id):
                raise ValidationError(
                    f"Identity '{existing.email}' has fuel requests or audit records; deactivate it instead"
                )
            self._identities.delete(identity_id)
            self._logs.append(
                actor_id=actor.id,
                action="identity.deleted",
                details=f"Email: {existing.email}",
                created_at=self._now(),
            )

        log_event("identity.deleted", trace_id=new_trace_id(), actor_id=actor.id, identity_id=identity_id)
