from __future__ import annotations

from decimal import Decimal

import pytest

from fleetfuel.core.errors import NotFoundError, PermissionDeniedError, ValidationError
from fleetfuel.db import init_db
from fleetfuel.domain.fleet import FleetService, VehicleTypeRepository, normalize_plate
from fleetfuel.domain.fleet.seed import DEFAULT_VEHICLE_TYPES, seed_default_vehicle_types

from tests.fixtures.factories import request_fields


def test_normalize_plate() -> None:
    assert normalize_plate("  ab 123   cd ") == "AB 123 CD"
    with pytest.raises(ValidationError):
        normalize_plate("   ")


def test_seed_only_fills_an_empty_table(engine, db) -> None:
    assert seed_default_vehicle_types(db) == len(DEFAULT_VEHICLE_TYPES)
    assert seed_default_vehicle_types(db) == 0

    init_db(engine, seed_vehicle_types=True)

    labels = [t.label for t in VehicleTypeRepository(db).get_all()]
    assert sorted(labels) == sorted(label for label, _ in DEFAULT_VEHICLE_TYPES)


def test_vehicle_types_are_admin_managed(db, admin, director) -> None:
    service = FleetService(db)

    created = service.create_vehicle_type(admin, label="Tractor", consumption_threshold_per_km="0.4")
    updated = service.update_vehicle_type(admin, created.id, consumption_threshold_per_km=Decimal("0.45"))

    assert updated.consumption_threshold_per_km == Decimal("0.45")
    assert [t.label for t in service.list_vehicle_types(director)] == ["Tractor"]
    with pytest.raises(PermissionDeniedError):
        service.create_vehicle_type(director, label="Scooter")
    with pytest.raises(ValidationError):
        service.create_vehicle_type(admin, label="Tractor")
    with pytest.raises(ValidationError):
        service.create_vehicle_type(admin, label="Moped", consumption_threshold_per_km=0)


def test_vehicle_type_in_use_cannot_be_deleted(db, admin, vehicle) -> None:
    service = FleetService(db)

    with pytest.raises(ValidationError):
        service.delete_vehicle_type(admin, vehicle.vehicle_type_id)

    spare = service.create_vehicle_type(admin, label="Spare")
    service.delete_vehicle_type(admin, spare.id)
    with pytest.raises(NotFoundError):
        service.get_vehicle_type(admin, spare.id)


def test_vehicle_crud(db, director, driver, vehicle) -> None:
    service = FleetService(db)

    created = service.create_vehicle(director, plate="cd 456 ef", vehicle_type_id=vehicle.vehicle_type_id)
    assert created.plate == "CD 456 EF"
    assert created.vehicle_type.label == "Light vehicle"

    updated = service.update_vehicle(director, created.id, active=False)
    assert updated.active is False
    assert [v.id for v in service.list_vehicles(driver, active_only=True)] == [vehicle.id]
    assert [v.id for v in service.list_vehicles(driver, search="cd 456")] == [created.id]

    service.delete_vehicle(director, created.id)
    with pytest.raises(NotFoundError):
        service.get_vehicle(driver, created.id)


def test_vehicle_rules(db, director, driver, vehicle) -> None:
    service = FleetService(db)

    with pytest.raises(PermissionDeniedError):
        service.create_vehicle(driver, plate="NEW-1", vehicle_type_id=vehicle.vehicle_type_id)
    with pytest.raises(ValidationError):
        service.create_vehicle(director, plate=vehicle.plate.lower(), vehicle_type_id=vehicle.vehicle_type_id)
    with pytest.raises(NotFoundError):
        service.create_vehicle(director, plate="NEW-2", vehicle_type_id="missing")


def test_vehicle_with_requests_cannot_be_deleted(db, approval_engine, director, driver, vehicle) -> None:
    approval_engine.submit_request(driver, **request_fields(vehicle))

    with pytest.raises(ValidationError):
        FleetService(db).delete_vehicle(director, vehicle.id)
