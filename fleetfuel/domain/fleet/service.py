"""Vehicle and vehicle-type management.

Thin CRUD with role gates: vehicle types are written by admins only, vehicles
by admins and directors. Any authenticated identity may read both. Every
write records an action log entry in the same transaction.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Callable

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from fleetfuel.core.errors import NotFoundError, ValidationError
from fleetfuel.db.connection import transaction
from fleetfuel.domain.audit import ActionLogRepository
from fleetfuel.domain.common import new_id
from fleetfuel.domain.identity import Identity, Role, require_active, require_role
from fleetfuel.observability.tracing import log_event, new_trace_id

from .entities import Vehicle, VehicleType
from .repository import VehicleRepository, VehicleTypeRepository

TYPE_WRITERS = {Role.ADMIN}
VEHICLE_WRITERS = {Role.ADMIN, Role.DIRECTOR}


def normalize_plate(plate: str) -> str:
    cleaned = " ".join((plate or "").split()).upper()
    if not cleaned:
        raise ValidationError("Plate is required")
    return cleaned


def _threshold(value: Any) -> Decimal:
    try:
        threshold = Decimal(str(value))
    except InvalidOperation as exc:
        raise ValidationError(f"Invalid consumption threshold: '{value}'") from exc
    if not threshold.is_finite() or threshold <= 0:
        raise ValidationError("Consumption threshold must be a positive number")
    return threshold.quantize(Decimal("0.01"))


def _label(value: str) -> str:
    cleaned = (value or "").strip()
    if not cleaned:
        raise ValidationError("Vehicle type label is required")
    return cleaned


class FleetService:
    def __init__(self, db: Session, *, now: Callable[[], datetime] = datetime.now) -> None:
        self._db = db
        self._types = VehicleTypeRepository(db)
        self._vehicles = VehicleRepository(db)
        self._logs = ActionLogRepository(db)
        self._now = now

    # -------------------------
    # Vehicle types
    # -------------------------

    def list_vehicle_types(self, actor: Identity) -> list[VehicleType]:
        require_active(actor)
        return self._types.get_all()

    def get_vehicle_type(self, actor: Identity, type_id: str) -> VehicleType:
        require_active(actor)
        found = self._types.get(type_id)
        if found is None:
            raise NotFoundError("VehicleType", type_id)
        return found

    def create_vehicle_type(
        self,
        actor: Identity,
        *,
        label: str,
        consumption_threshold_per_km: Any = Decimal("0.08"),
    ) -> VehicleType:
        require_role(actor, TYPE_WRITERS, action="manage vehicle types")
        label = _label(label)
        threshold = _threshold(consumption_threshold_per_km)

        try:
            with transaction(self._db):
                if self._types.label_taken(label):
                    raise ValidationError(f"Vehicle type '{label}' already exists")
                created = self._types.create(new_id(), label, threshold, self._now())
                self._log(actor, "vehicle_type.created", f"Label: {label}, Threshold: {threshold}")
        except IntegrityError as exc:
            raise ValidationError(f"Vehicle type '{label}' already exists") from exc

        log_event("vehicle_type.created", trace_id=new_trace_id(), actor_id=actor.id, vehicle_type_id=created.id)
        return created

    def update_vehicle_type(
        self,
        actor: Identity,
        type_id: str,
        *,
        label: str | None = None,
        consumption_threshold_per_km: Any = None,
    ) -> VehicleType:
        require_role(actor, TYPE_WRITERS, action="manage vehicle types")
        changes: dict[str, Any] = {}
        if label is not None:
            changes["label"] = _label(label)
        if consumption_threshold_per_km is not None:
            changes["consumption_threshold_per_km"] = _threshold(consumption_threshold_per_km)

        try:
            with transaction(self._db):
                if self._types.get(type_id) is None:
                    raise NotFoundError("VehicleType", type_id)
                if "label" in changes and self._types.label_taken(changes["label"], exclude_id=type_id):
                    raise ValidationError(f"Vehicle type '{changes['label']}' already exists")
                updated = self._types.update(type_id, changes)
                self._log(actor, "vehicle_type.updated", f"Vehicle type: {type_id}")
        except IntegrityError as exc:
            raise ValidationError("Vehicle type update violates a uniqueness rule") from exc
        return updated

    def delete_vehicle_type(self, actor: Identity, type_id: str) -> None:
        require_role(actor, TYPE_WRITERS, action="manage vehicle types")
        with transaction(self._db):
            existing = self._types.get(type_id)
            if existing is None:
                raise NotFoundError("VehicleType", type_id)
            if self._types.in_use(type_id):
                raise ValidationError(f"Vehicle type '{existing.label}' is still assigned to vehicles")
            self._types.delete(type_id)
            self._log(actor, "vehicle_type.deleted", f"Label: {existing.label}")

    # -------------------------
    # Vehicles
    # -------------------------

    def list_vehicles(
        self,
        actor: Identity,
        *,
        search: str | None = None,
        active_only: bool = False,
    ) -> list[Vehicle]:
        require_active(actor)
        return self._vehicles.get_all(search=search, active_only=active_only)

    def get_vehicle(self, actor: Identity, vehicle_id: str) -> Vehicle:
        require_active(actor)
        found = self._vehicles.get(vehicle_id)
        if found is None:
            raise NotFoundError("Vehicle", vehicle_id)
        return found

    def create_vehicle(
        self,
        actor: Identity,
        *,
        plate: str,
        vehicle_type_id: str,
        active: bool = True,
    ) -> Vehicle:
        require_role(actor, VEHICLE_WRITERS, action="manage vehicles")
        plate = normalize_plate(plate)

        try:
            with transaction(self._db):
                if self._types.get(vehicle_type_id) is None:
                    raise NotFoundError("VehicleType", vehicle_type_id)
                if self._vehicles.plate_taken(plate):
                    raise ValidationError(f"Plate '{plate}' is already registered")
                created = self._vehicles.create(new_id(), plate, vehicle_type_id, active, self._now())
                self._log(actor, "vehicle.created", f"Plate: {plate}")
        except IntegrityError as exc:
            raise ValidationError(f"Plate '{plate}' is already registered") from exc

        log_event("vehicle.created", trace_id=new_trace_id(), actor_id=actor.id, vehicle_id=created.id)
        return created

    def update_vehicle(
        self,
        actor: Identity,
        vehicle_id: str,
        *,
        plate: str | None = None,
        vehicle_type_id: str | None = None,
        active: bool | None = None,
    ) -> Vehicle:
        require_role(actor, VEHICLE_WRITERS, action="manage vehicles")
        changes: dict[str, Any] = {}
        if plate is not None:
            changes["plate"] = normalize_plate(plate)
        if vehicle_type_id is not None:
            changes["vehicle_type_id"] = vehicle_type_id
        if active is not None:
            changes["active"] = active

        try:
            with transaction(self._db):
                if self._vehicles.get(vehicle_id) is None:
                    raise NotFoundError("Vehicle", vehicle_id)
                if vehicle_type_id is not None and self._types.get(vehicle_type_id) is None:
                    raise NotFoundError("VehicleType", vehicle_type_id)
                if "plate" in changes and self._vehicles.plate_taken(changes["plate"], exclude_id=vehicle_id):
                    raise ValidationError(f"Plate '{changes['plate']}' is already registered")
                updated = self._vehicles.update(vehicle_id, changes)
                self._log(actor, "vehicle.updated", f"Plate: {updated.plate}")
        except IntegrityError as exc:
            raise ValidationError("Vehicle update violates a uniqueness rule") from exc
        return updated

    def delete_vehicle(self, actor: Identity, vehicle_id: str) -> None:
        require_role(actor, VEHICLE_WRITERS, action="manage vehicles")
        with transaction(self._db):
            existing = self._vehicles.get(vehicle_id)
            if existing is None:
                raise NotFoundError("Vehicle", vehicle_id)
            if self._vehicles.in_use(vehicle_id):
                raise ValidationError(
                    f"Vehicle '{existing.plate}' has fuel requests; deactivate it instead"
                )
            self._vehicles.delete(vehicle_id)
            self._log(actor, "vehicle.deleted", f"Plate: {existing.plate}")

        log_event("vehicle.deleted", trace_id=new_trace_id(), actor_id=actor.id, vehicle_id=vehicle_id)

    def _log(self, actor: Identity, action: str, details: str) -> None:
        self._logs.append(actor_id=actor.id, action=action, details=details, created_at=self._now())
