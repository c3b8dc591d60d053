# ============================================================
# Business/domain entities
# ============================================================
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional


class RequestStatus(str, Enum):
    PENDING = "pending"
    SUPERVISOR_APPROVED = "supervisor_approved"
    FUELER_APPROVED = "fueler_approved"
    DIRECTOR_APPROVED = "director_approved"
    REJECTED = "rejected"


class Outcome(str, Enum):
    APPROVED = "approved"
    REJECTED = "rejected"

    @classmethod
    def _missing_(cls, value):
        # Accept the verb forms used by callers ("approve" / "reject").
        aliases = {"approve": cls.APPROVED, "reject": cls.REJECTED}
        if isinstance(value, str):
            return aliases.get(value.lower())
        return None


@dataclass(frozen=True)
class FuelRequest:
    id: str
    requester_id: str
    vehicle_id: str
    odometer: int
    site: str
    mission: str
    quantity_requested: Decimal
    justification: str
    status: RequestStatus
    created_at: datetime
    updated_at: datetime
    quantity_served: Decimal | None = None
    requester_name: str | None = None
    vehicle_plate: str | None = None


@dataclass(frozen=True)
class ValidationRecord:
    id: str
    request_id: str
    validator_id: str | None
    level: int
    outcome: Outcome
    created_at: datetime
    comment: str | None = None


@dataclass(frozen=True)
class Attachment:
    id: str
    request_id: str
    url: str
    filename: str
    content_type: str
    size: int | None
    created_at: datetime


@dataclass(frozen=True)
class RequestFilters:
    status: Optional[RequestStatus] = None
    search: Optional[str] = None
    requester_id: Optional[str] = None
    vehicle_id: Optional[str] = None
    created_from: Optional[datetime] = None
    created_to: Optional[datetime] = None


@dataclass(frozen=True)
class RequestDetail:
    request: FuelRequest
    validations: list[ValidationRecord] = field(default_factory=list)
    attachments: list[Attachment] = field(default_factory=list)
