from datetime import datetime
from decimal import Decimal

from sqlalchemy.orm import Session

from fleetfuel.domain.common import new_id
from fleetfuel.domain.fleet import Vehicle, VehicleRepository, VehicleTypeRepository
from fleetfuel.domain.identity import Identity, IdentityRepository, Role
from fleetfuel.domain.identity.passwords import hash_password

DEFAULT_PASSWORD = "correct-horse"
# Keeps fixture hashing fast; verify_password reads the count from the hash.
FAST_ITERATIONS = 1_000


def make_identity(
    db: Session,
    role: Role,
    *,
    email: str | None = None,
    name: str | None = None,
    password: str = DEFAULT_PASSWORD,
    active: bool = True,
) -> Identity:
    identity_id = new_id()
    identity = IdentityRepository(db).create(
        identity_id=identity_id,
        name=name or f"{role.value.title()} {identity_id[:6]}",
        email=email or f"{role.value}-{identity_id[:8]}@fleet.test",
        role=role,
        active=active,
        password_hash=hash_password(password, iterations=FAST_ITERATIONS),
        created_at=datetime.now(),
    )
    db.commit()
    return identity


def make_vehicle(
    db: Session,
    *,
    plate: str,
    label: str = "Light vehicle",
    active: bool = True,
) -> Vehicle:
    types = VehicleTypeRepository(db)
    vehicle_type = next((t for t in types.get_all() if t.label == label), None)
    if vehicle_type is None:
        vehicle_type = types.create(new_id(), label, Decimal("0.08"), datetime.now())
    vehicle = VehicleRepository(db).create(
        vehicle_id=new_id(),
        plate=plate,
        vehicle_type_id=vehicle_type.id,
        active=active,
        created_at=datetime.now(),
    )
    db.commit()
    return vehicle


def request_fields(vehicle: Vehicle, **overrides) -> dict:
    fields = {
        "vehicle_id": vehicle.id,
        "odometer": 45210,
        "site": "North depot",
        "mission": "Site delivery",
        "quantity_requested": Decimal("40.00"),
        "justification": "Weekly delivery round",
    }
    fields.update(overrides)
    return fields
