from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal


@dataclass(frozen=True)
class VehicleType:
    id: str
    label: str
    consumption_threshold_per_km: Decimal
    created_at: datetime | None = None


@dataclass(frozen=True)
class Vehicle:
    id: str
    plate: str
    vehicle_type_id: str
    active: bool = True
    created_at: datetime | None = None
    vehicle_type: VehicleType | None = None
