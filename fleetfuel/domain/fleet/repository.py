# ============================================================
# DB access layer
# ============================================================
from datetime import datetime
from decimal import Decimal
from typing import Any, Protocol

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.orm import Session

from fleetfuel.db.models import FuelRequestRow, VehicleRow, VehicleTypeRow
from fleetfuel.domain.common import LIKE_ESCAPE, contains_pattern

from .entities import Vehicle, VehicleType


class VehicleTypeRepositoryProtocol(Protocol):
    def get(self, type_id: str) -> VehicleType | None:
        ...

    def get_all(self) -> list[VehicleType]:
        ...

    def create(self, type_id: str, label: str, threshold: Decimal, created_at: datetime) -> VehicleType:
        ...

    def update(self, type_id: str, changes: dict[str, Any]) -> VehicleType | None:
        ...

    def delete(self, type_id: str) -> bool:
        ...

    def in_use(self, type_id: str) -> bool:
        ...


class VehicleRepositoryProtocol(Protocol):
    def get(self, vehicle_id: str) -> Vehicle | None:
        ...

    def get_all(self, search: str | None = None, active_only: bool = False) -> list[Vehicle]:
        ...

    def plate_taken(self, plate: str, *, exclude_id: str | None = None) -> bool:
        ...

    def create(
            self,
            vehicle_id: str,
            plate: str,
            vehicle_type_id: str,
            active: bool,
            created_at: datetime,
    ) -> Vehicle:
        ...

    def update(self, vehicle_id: str, changes: dict[str, Any]) -> Vehicle | None:
        ...

    def delete(self, vehicle_id: str) -> bool:
        ...

    def in_use(self, vehicle_id: str) -> bool:
        ...

    def count_active(self) -> int:
        ...


def _type_entity(row: VehicleTypeRow) -> VehicleType:
    return VehicleType(
        id=row.id,
        label=row.label,
        consumption_threshold_per_km=Decimal(str(row.consumption_threshold_per_km)),
        created_at=row.created_at,
    )


def _vehicle_entity(row: VehicleRow, type_row: VehicleTypeRow | None = None) -> Vehicle:
    return Vehicle(
        id=row.id,
        plate=row.plate,
        vehicle_type_id=row.vehicle_type_id,
        active=row.active,
        created_at=row.created_at,
        vehicle_type=_type_entity(type_row) if type_row is not None else None,
    )


class VehicleTypeRepository(VehicleTypeRepositoryProtocol):
    def __init__(self, db: Session):
        self.db = db

    def get(self, type_id: str) -> VehicleType | None:
        row = self.db.get(VehicleTypeRow, type_id)
        return _type_entity(row) if row else None

    def get_all(self) -> list[VehicleType]:
        rows = self.db.execute(select(VehicleTypeRow).order_by(VehicleTypeRow.label)).scalars()
        return [_type_entity(r) for r in rows]

    def label_taken(self, label: str, *, exclude_id: str | None = None) -> bool:
        query = select(func.count()).select_from(VehicleTypeRow).where(
            func.lower(VehicleTypeRow.label) == label.lower()
        )
        if exclude_id:
            query = query.where(VehicleTypeRow.id != exclude_id)
        return self.db.execute(query).scalar_one() > 0

    def create(self, type_id: str, label: str, threshold: Decimal, created_at: datetime) -> VehicleType:
        row = VehicleTypeRow(
            id=type_id,
            label=label,
            consumption_threshold_per_km=threshold,
            created_at=created_at,
        )
        self.db.add(row)
        self.db.flush()
        return _type_entity(row)

    def update(self, type_id: str, changes: dict[str, Any]) -> VehicleType | None:
        if changes:
            self.db.execute(update(VehicleTypeRow).where(VehicleTypeRow.id == type_id).values(**changes))
            self.db.flush()
        row = self.db.get(VehicleTypeRow, type_id, populate_existing=True)
        return _type_entity(row) if row else None

    def delete(self, type_id: str) -> bool:
        return self.db.execute(delete(VehicleTypeRow).where(VehicleTypeRow.id == type_id)).rowcount > 0

    def in_use(self, type_id: str) -> bool:
        query = select(func.count()).select_from(VehicleRow).where(VehicleRow.vehicle_type_id == type_id)
        return self.db.execute(query).scalar_one() > 0


class VehicleRepository(VehicleRepositoryProtocol):
    def __init__(self, db: Session):
        self.db = db

    def _select(self):
        return select(VehicleRow, VehicleTypeRow).join(
            VehicleTypeRow, VehicleTypeRow.id == VehicleRow.vehicle_type_id, isouter=True
        )

    def get(self, vehicle_id: str) -> Vehicle | None:
        found = self.db.execute(self._select().where(VehicleRow.id == vehicle_id)).one_or_none()
        if found is None:
            return None
        return _vehicle_entity(*found)

    def get_all(self, search: str | None = None, active_only: bool = False) -> list[Vehicle]:
        query = self._select()
        if active_only:
            query = query.where(VehicleRow.active.is_(True))
        if search and search.strip():
            pattern = contains_pattern(search)
            query = query.where(
                or_(
                    func.lower(VehicleRow.plate).like(pattern, escape=LIKE_ESCAPE),
                    func.lower(VehicleTypeRow.label).like(pattern, escape=LIKE_ESCAPE),
                )
            )
        rows = self.db.execute(query.order_by(VehicleRow.plate)).all()
        return [_vehicle_entity(v, t) for v, t in rows]

    def plate_taken(self, plate: str, *, exclude_id: str | None = None) -> bool:
        query = select(func.count()).select_from(VehicleRow).where(VehicleRow.plate == plate)
        if exclude_id:
            query = query.where(VehicleRow.id != exclude_id)
        return self.db.execute(query).scalar_one() > 0

    def create(
            self,
            vehicle_id: str,
            plate: str,
            vehicle_type_id: str,
            active: bool,
            created_at: datetime,
    ) -> Vehicle:
        self.db.add(
            VehicleRow(
                id=vehicle_id,
                plate=plate,
                vehicle_type_id=vehicle_type_id,
                active=active,
                created_at=created_at,
            )
        )
        self.db.flush()
        return self.get(vehicle_id)

    def update(self, vehicle_id: str, changes: dict[str, Any]) -> Vehicle | None:
        if changes:
            self.db.execute(update(VehicleRow).where(VehicleRow.id == vehicle_id).values(**changes))
            self.db.flush()
            self.db.expire_all()
        return self.get(vehicle_id)

    def delete(self, vehicle_id: str) -> bool:
        return self.db.execute(delete(VehicleRow).where(VehicleRow.id == vehicle_id)).rowcount > 0

    def in_use(self, vehicle_id: str) -> bool:
        query = select(func.count()).select_from(FuelRequestRow).where(FuelRequestRow.vehicle_id == vehicle_id)
        return self.db.execute(query).scalar_one() > 0

    def count_active(self) -> int:
        query = select(func.count()).select_from(VehicleRow).where(VehicleRow.active.is_(True))
        return self.db.execute(query).scalar_one()
