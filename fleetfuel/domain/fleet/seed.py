from datetime import datetime
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from fleetfuel.db.connection import transaction
from fleetfuel.db.models import VehicleTypeRow
from fleetfuel.domain.common import new_id

DEFAULT_VEHICLE_TYPES = [
    ("Light vehicle", Decimal("0.08")),
    ("Van", Decimal("0.12")),
    ("Truck", Decimal("0.25")),
    ("Construction machine", Decimal("0.35")),
    ("Bus", Decimal("0.30")),
]


def seed_default_vehicle_types(db: Session) -> int:
    """Insert the default vehicle types when the table is empty. Returns rows added."""
    with transaction(db):
        if db.execute(select(func.count()).select_from(VehicleTypeRow)).scalar_one() > 0:
            return 0
        now = datetime.now()
        for label, threshold in DEFAULT_VEHICLE_TYPES:
            db.add(
                VehicleTypeRow(
                    id=new_id(),
                    label=label,
                    consumption_threshold_per_km=threshold,
                    created_at=now,
                )
            )
    return len(DEFAULT_VEHICLE_TYPES)
