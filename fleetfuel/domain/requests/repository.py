# ============================================================
# DB access layer
# ============================================================
from datetime import datetime
from decimal import Decimal
from typing import Protocol

from sqlalchemy import func, or_, select, update
from sqlalchemy.orm import Session

from fleetfuel.db.models import (
    FuelRequestRow,
    IdentityRow,
    ValidationRecordRow,
    VehicleRow,
)
from fleetfuel.domain.common import LIKE_ESCAPE, PageResult, Pagination, Sorting, contains_pattern, page_meta

from .entities import (
    FuelRequest,
    Outcome,
    RequestFilters,
    RequestStatus,
    ValidationRecord,
)


class FuelRequestRepositoryProtocol(Protocol):
    def create(self, request: FuelRequest) -> FuelRequest:
        """Insert a new fuel request"""
        ...

    def get(self, request_id: str) -> FuelRequest | None:
        """Get a fuel request by id"""
        ...

    def transition_status(
            self,
            request_id: str,
            expected: RequestStatus,
            new_status: RequestStatus,
            updated_at: datetime,
    ) -> bool:
        """Move the status only if it still equals `expected`. Returns False otherwise."""
        ...

    def set_quantity_served(self, request_id: str, quantity: Decimal, updated_at: datetime) -> None:
        ...

    def add_validation(self, record: ValidationRecord) -> ValidationRecord:
        """Append a validation record"""
        ...

    def get_validations(self, request_id: str) -> list[ValidationRecord]:
        ...

    def decided_levels(self, request_id: str) -> set[int]:
        ...

    def get_all(
            self,
            filters: RequestFilters,
            paging: Pagination,
            sorting: Sorting,
    ) -> PageResult[FuelRequest]:
        ...


def _to_decimal(value) -> Decimal | None:
    if value is None:
        return None
    return Decimal(str(value)).quantize(Decimal("0.01"))


def _to_entity(row: FuelRequestRow, requester_name: str | None = None, plate: str | None = None) -> FuelRequest:
    return FuelRequest(
        id=row.id,
        requester_id=row.requester_id,
        vehicle_id=row.vehicle_id,
        odometer=row.odometer,
        site=row.site,
        mission=row.mission,
        quantity_requested=_to_decimal(row.quantity_requested),
        quantity_served=_to_decimal(row.quantity_served),
        justification=row.justification,
        status=RequestStatus(row.status),
        created_at=row.created_at,
        updated_at=row.updated_at,
        requester_name=requester_name,
        vehicle_plate=plate,
    )


def _validation_entity(row: ValidationRecordRow) -> ValidationRecord:
    return ValidationRecord(
        id=row.id,
        request_id=row.request_id,
        validator_id=row.validator_id,
        level=row.level,
        outcome=Outcome(row.outcome),
        comment=row.comment,
        created_at=row.created_at,
    )


class FuelRequestRepository(FuelRequestRepositoryProtocol):
    """Fuel request and validation record persistence.

    Never commits: the approval engine groups calls into one transaction.
    """

    # Allowed sort columns at persistence layer (defense in depth)
    _SORT_COLUMNS = {
        "created_at": FuelRequestRow.created_at,
        "updated_at": FuelRequestRow.updated_at,
        "status": FuelRequestRow.status,
        "quantity_requested": FuelRequestRow.quantity_requested,
    }

    def __init__(self, db: Session):
        self.db = db

    def _select(self):
        return (
            select(FuelRequestRow, IdentityRow.name, VehicleRow.plate)
            .join(IdentityRow, IdentityRow.id == FuelRequestRow.requester_id, isouter=True)
            .join(VehicleRow, VehicleRow.id == FuelRequestRow.vehicle_id, isouter=True)
        )

    def create(self, request: FuelRequest) -> FuelRequest:
        self.db.add(
            FuelRequestRow(
                id=request.id,
                requester_id=request.requester_id,
                vehicle_id=request.vehicle_id,
                odometer=request.odometer,
                site=request.site,
                mission=request.mission,
                quantity_requested=request.quantity_requested,
                quantity_served=request.quantity_served,
                justification=request.justification,
                status=request.status.value,
                created_at=request.created_at,
                updated_at=request.updated_at,
            )
        )
        self.db.flush()
        return self.get(request.id)

    def get(self, request_id: str) -> FuelRequest | None:
        found = self.db.execute(
            self._select().where(FuelRequestRow.id == request_id).execution_options(populate_existing=True)
        ).one_or_none()
        if found is None:
            return None
        return _to_entity(*found)

    def transition_status(
            self,
            request_id: str,
            expected: RequestStatus,
            new_status: RequestStatus,
            updated_at: datetime,
    ) -> bool:
        # Compare-and-set: a concurrent writer that already moved the status
        # makes this a no-op, which the caller reports as a stale transition.
        result = self.db.execute(
            update(FuelRequestRow)
            .where(FuelRequestRow.id == request_id, FuelRequestRow.status == expected.value)
            .values(status=new_status.value, updated_at=updated_at)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def set_quantity_served(self, request_id: str, quantity: Decimal, updated_at: datetime) -> None:
        self.db.execute(
            update(FuelRequestRow)
            .where(FuelRequestRow.id == request_id)
            .values(quantity_served=quantity, updated_at=updated_at)
            .execution_options(synchronize_session=False)
        )

    def add_validation(self, record: ValidationRecord) -> ValidationRecord:
        row = ValidationRecordRow(
            id=record.id,
            request_id=record.request_id,
            validator_id=record.validator_id,
            level=record.level,
            outcome=record.outcome.value,
            comment=record.comment,
            created_at=record.created_at,
        )
        self.db.add(row)
        self.db.flush()
        return _validation_entity(row)

    def get_validations(self, request_id: str) -> list[ValidationRecord]:
        rows = self.db.execute(
            select(ValidationRecordRow)
            .where(ValidationRecordRow.request_id == request_id)
            .order_by(ValidationRecordRow.level)
        ).scalars()
        return [_validation_entity(r) for r in rows]

    def decided_levels(self, request_id: str) -> set[int]:
        rows = self.db.execute(
            select(ValidationRecordRow.level).where(ValidationRecordRow.request_id == request_id)
        ).scalars()
        return set(rows)

    def get_all(
            self,
            filters: RequestFilters,
            paging: Pagination,
            sorting: Sorting,
    ) -> PageResult[FuelRequest]:
        """
        Retrieve fuel requests matching the given filters.

        All filters are optional.
        Pagination is always applied.
        """
        conditions = []

        # --- Filters ---
        if filters.status:
            conditions.append(FuelRequestRow.status == RequestStatus(filters.status).value)

        if filters.requester_id:
            conditions.append(FuelRequestRow.requester_id == filters.requester_id)

        if filters.vehicle_id:
            conditions.append(FuelRequestRow.vehicle_id == filters.vehicle_id)

        if filters.created_from:
            conditions.append(FuelRequestRow.created_at >= filters.created_from)

        if filters.created_to:
            conditions.append(FuelRequestRow.created_at <= filters.created_to)

        if filters.search and filters.search.strip():
            pattern = contains_pattern(filters.search)
            conditions.append(
                or_(
                    func.lower(VehicleRow.plate).like(pattern, escape=LIKE_ESCAPE),
                    func.lower(IdentityRow.name).like(pattern, escape=LIKE_ESCAPE),
                    func.lower(FuelRequestRow.site).like(pattern, escape=LIKE_ESCAPE),
                    func.lower(FuelRequestRow.mission).like(pattern, escape=LIKE_ESCAPE),
                )
            )

        base = self._select().where(*conditions)

        # --- Total Count ---
        total = self.db.execute(select(func.count()).select_from(base.subquery())).scalar_one()

        # ORDER BY: allow-list mapping
        sort_col = self._SORT_COLUMNS.get(sorting.sort_by, FuelRequestRow.created_at)
        order = sort_col.asc() if sorting.sort_order == "asc" else sort_col.desc()

        rows = self.db.execute(
            base.order_by(order, FuelRequestRow.id)
            .limit(paging.limit)
            .offset(paging.offset)
            .execution_options(populate_existing=True)
        ).all()

        return PageResult(
            data=[_to_entity(*r) for r in rows],
            meta=page_meta(total, paging),
        )
