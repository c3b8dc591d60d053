from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

import pytest

from fleetfuel.core.errors import PermissionDeniedError, ValidationError
from fleetfuel.domain.approval import ApprovalEngine
from fleetfuel.domain.identity import Role
from fleetfuel.domain.reports import ReportService
from fleetfuel.domain.requests import Outcome

from tests.fixtures.factories import make_identity, make_vehicle, request_fields

MARCH_3 = datetime(2024, 3, 3, 9, 30)
MARCH_4 = datetime(2024, 3, 4, 14, 0)


def _counts(stats) -> dict[str, int]:
    return {c.status: c.count for c in stats.requests_by_status}


@pytest.fixture
def seeded(db, blob_store, driver, supervisor, fueler, vehicle):
    """Three requests: one served, one rejected, one pending from another driver."""
    truck = make_vehicle(db, plate="TR-001", label="Truck")
    other_driver = make_identity(db, Role.DRIVER)

    day_one = ApprovalEngine(db, blob_store=blob_store, now=lambda: MARCH_3)
    served = day_one.submit_request(driver, **request_fields(vehicle, quantity_requested="40")).request
    day_one.decide(served.id, supervisor, Outcome.APPROVED)
    day_one.decide(served.id, fueler, Outcome.APPROVED)
    day_one.record_served_quantity(served.id, fueler, "35")

    rejected = day_one.submit_request(driver, **request_fields(vehicle, quantity_requested="500")).request
    day_one.decide(rejected.id, supervisor, Outcome.REJECTED)

    day_two = ApprovalEngine(db, blob_store=blob_store, now=lambda: MARCH_4)
    day_two.submit_request(other_driver, **request_fields(truck, quantity_requested="120"))
    return other_driver


def test_dashboard_for_staff(db, seeded, director) -> None:
    stats = ReportService(db, now=lambda: MARCH_4).dashboard(director)

    assert stats.total_requests == 3
    assert stats.pending_requests == 1
    assert stats.liters_this_month == Decimal("155.00")
    assert stats.active_vehicles == 2
    assert _counts(stats) == {
        "pending": 1,
        "supervisor_approved": 0,
        "fueler_approved": 1,
        "director_approved": 0,
        "rejected": 1,
    }


def test_dashboard_for_driver_is_scoped(db, seeded, driver) -> None:
    stats = ReportService(db, now=lambda: MARCH_4).dashboard(driver)

    assert stats.total_requests == 2
    assert stats.pending_requests == 0
    assert stats.liters_this_month == Decimal("35.00")


def test_dashboard_outside_the_month(db, seeded, director) -> None:
    stats = ReportService(db, now=lambda: datetime(2024, 5, 1)).dashboard(director)

    assert stats.liters_this_month == Decimal("0.00")


def test_consumption_report(db, seeded, supervisor, vehicle) -> None:
    report = ReportService(db).consumption_report(
        supervisor, start=date(2024, 3, 1), end=date(2024, 3, 31), top=1
    )

    assert report.total_liters == Decimal("155.00")
    assert [(d.day, d.liters) for d in report.by_day] == [
        (date(2024, 3, 3), Decimal("35.00")),
        (date(2024, 3, 4), Decimal("120.00")),
    ]
    assert {t.label: t.liters for t in report.by_vehicle_type} == {
        "Light vehicle": Decimal("35.00"),
        "Truck": Decimal("120.00"),
    }
    assert [(v.label, v.liters) for v in report.top_vehicles] == [("TR-001", Decimal("120.00"))]
    assert sum(s.count for s in report.status_distribution) == 3


def test_consumption_report_rules(db, driver, director) -> None:
    service = ReportService(db)

    with pytest.raises(PermissionDeniedError):
        service.consumption_report(driver, start=date(2024, 3, 1), end=date(2024, 3, 31))
    with pytest.raises(ValidationError):
        service.consumption_report(director, start=date(2024, 3, 31), end=date(2024, 3, 1))
