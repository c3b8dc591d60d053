# ------------------------------------
# Reporting aggregates
# ------------------------------------
#
# Liters are the served quantity when recorded, else the requested one.
# Rejected requests never count towards consumption.

from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime, time
from decimal import Decimal
from typing import Callable

from sqlalchemy import select
from sqlalchemy.orm import Session

from fleetfuel.core.errors import ValidationError
from fleetfuel.db.models import FuelRequestRow, VehicleRow, VehicleTypeRow
from fleetfuel.domain.fleet.repository import VehicleRepository
from fleetfuel.domain.identity import Identity, Role, require_active, require_role
from fleetfuel.domain.requests import RequestStatus

from .entities import (
    ConsumptionReport,
    DailyConsumption,
    DashboardStats,
    LabeledConsumption,
    StatusCount,
)

REPORT_READERS = {Role.SUPERVISOR, Role.FUELER, Role.DIRECTOR, Role.ADMIN}
UNKNOWN_TYPE = "Unknown"


def _liters(row: FuelRequestRow) -> Decimal:
    value = row.quantity_served if row.quantity_served is not None else row.quantity_requested
    return Decimal(str(value)).quantize(Decimal("0.01"))


def _status_counts(statuses: list[str]) -> list[StatusCount]:
    return [StatusCount(status=s.value, count=statuses.count(s.value)) for s in RequestStatus]


class ReportService:
    def __init__(self, db: Session, *, now: Callable[[], datetime] = datetime.now) -> None:
        self._db = db
        self._vehicles = VehicleRepository(db)
        self._now = now

    def dashboard(self, actor: Identity) -> DashboardStats:
        """Headline figures. Drivers only see figures over their own requests."""
        require_active(actor)
        query = select(FuelRequestRow)
        if actor.role == Role.DRIVER:
            query = query.where(FuelRequestRow.requester_id == actor.id)
        rows = list(self._db.execute(query).scalars())

        today = self._now()
        month_liters = sum(
            (
                _liters(r)
                for r in rows
                if r.status != RequestStatus.REJECTED.value
                and r.created_at.year == today.year
                and r.created_at.month == today.month
            ),
            Decimal("0.00"),
        )
        statuses = [r.status for r in rows]

        return DashboardStats(
            total_requests=len(rows),
            pending_requests=statuses.count(RequestStatus.PENDING.value),
            liters_this_month=month_liters,
            active_vehicles=self._vehicles.count_active(),
            requests_by_status=_status_counts(statuses),
        )

    def consumption_report(self, actor: Identity, *, start: date, end: date, top: int = 5) -> ConsumptionReport:
        require_role(actor, REPORT_READERS, action="read consumption reports")
        if end < start:
            raise ValidationError("Report end date is before its start date")
        if top < 1:
            raise ValidationError("top must be at least 1")

        rows = self._db.execute(
            select(FuelRequestRow, VehicleRow.plate, VehicleTypeRow.label)
            .join(VehicleRow, VehicleRow.id == FuelRequestRow.vehicle_id, isouter=True)
            .join(VehicleTypeRow, VehicleTypeRow.id == VehicleRow.vehicle_type_id, isouter=True)
            .where(
                FuelRequestRow.created_at >= datetime.combine(start, time.min),
                FuelRequestRow.created_at <= datetime.combine(end, time.max),
            )
            .order_by(FuelRequestRow.created_at)
        ).all()

        by_day: dict[date, Decimal] = defaultdict(Decimal)
        by_type: dict[str, Decimal] = defaultdict(Decimal)
        by_vehicle: dict[str, Decimal] = defaultdict(Decimal)
        statuses: list[str] = []

        for request, plate, type_label in rows:
            statuses.append(request.status)
            if request.status == RequestStatus.REJECTED.value:
                continue
            liters = _liters(request)
            by_day[request.created_at.date()] += liters
            by_type[type_label or UNKNOWN_TYPE] += liters
            by_vehicle[plate or request.vehicle_id] += liters

        top_vehicles = sorted(by_vehicle.items(), key=lambda item: (-item[1], item[0]))[:top]

        return ConsumptionReport(
            start=start,
            end=end,
            total_liters=sum(by_day.values(), Decimal("0.00")),
            by_day=[DailyConsumption(day=d, liters=v) for d, v in sorted(by_day.items())],
            by_vehicle_type=[LabeledConsumption(label=k, liters=v) for k, v in sorted(by_type.items())],
            top_vehicles=[LabeledConsumption(label=k, liters=v) for k, v in top_vehicles],
            status_distribution=_status_counts(statuses),
        )
