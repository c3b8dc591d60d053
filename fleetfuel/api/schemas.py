from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from fleetfuel.domain.identity import Role
from fleetfuel.domain.requests import Outcome, RequestStatus


class SortOrder(str, Enum):
    asc = "asc"
    desc = "desc"


class RequestSortField(str, Enum):
    created_at = "created_at"
    updated_at = "updated_at"
    status = "status"
    quantity_requested = "quantity_requested"


class RequestQuery(BaseModel):
    """
    Query filters for listing fuel requests.

    All fields are optional. Drivers only ever get their own requests,
    whatever the filters say.
    """

    # Filtering
    status: Optional[RequestStatus] = Field(
        default=None,
        description="Filter requests by status"
    )

    search: Optional[str] = Field(
        default=None,
        description="Case-insensitive match on plate, requester name, site or mission"
    )

    requester_id: Optional[str] = Field(
        default=None,
        description="Identity that submitted the request"
    )

    vehicle_id: Optional[str] = Field(
        default=None,
        description="Vehicle the fuel is for"
    )

    # Pagination
    limit: int = Field(
        default=50,
        ge=1,
        le=100,
        description="Maximum number of records to return (1-100)"
    )

    offset: int = Field(
        default=0,
        ge=0,
        description="Number of records to skip (pagination)"
    )

    # Sorting
    sort_by: RequestSortField = Field(
        default=RequestSortField.created_at,
        description="Field to sort by"
    )
    sort_order: SortOrder = Field(
        default=SortOrder.desc,
        description="Sort order (asc or desc)"
    )


T = TypeVar("T")


class PaginationMeta(BaseModel):
    total: int
    limit: int
    offset: int
    has_next: bool
    has_previous: bool


class PaginatedResponse(BaseModel, Generic[T]):
    data: List[T]
    meta: PaginationMeta


class ErrorOut(BaseModel):
    error: str
    detail: str


# -------------------------
# Identities
# -------------------------

class IdentityOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: str
    role: Role
    active: bool
    created_at: Optional[datetime] = None


class RegisterIn(BaseModel):
    name: str = Field(min_length=1)
    email: EmailStr
    password: str = Field(min_length=8)
    role: Role = Role.DRIVER


class IdentityCreateIn(RegisterIn):
    active: bool = True


class IdentityUpdateIn(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    email: Optional[EmailStr] = None
    role: Optional[Role] = None
    active: Optional[bool] = None
    password: Optional[str] = Field(default=None, min_length=8)


# -------------------------
# Fleet
# -------------------------

class VehicleTypeOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    label: str
    consumption_threshold_per_km: Decimal
    created_at: Optional[datetime] = None


class VehicleTypeIn(BaseModel):
    label: str = Field(min_length=1)
    consumption_threshold_per_km: Decimal = Field(default=Decimal("0.08"), gt=0)


class VehicleTypeUpdateIn(BaseModel):
    label: Optional[str] = Field(default=None, min_length=1)
    consumption_threshold_per_km: Optional[Decimal] = Field(default=None, gt=0)


class VehicleOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    plate: str
    vehicle_type_id: str
    active: bool
    created_at: Optional[datetime] = None
    vehicle_type: Optional[VehicleTypeOut] = None


class VehicleIn(BaseModel):
    plate: str = Field(min_length=1)
    vehicle_type_id: str
    active: bool = True


class VehicleUpdateIn(BaseModel):
    plate: Optional[str] = Field(default=None, min_length=1)
    vehicle_type_id: Optional[str] = None
    active: Optional[bool] = None


# -------------------------
# Fuel requests
# -------------------------

class AttachmentIn(BaseModel):
    filename: str = Field(min_length=1)
    content_type: str
    content_base64: str


class AttachmentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    request_id: str
    url: str
    filename: str
    content_type: str
    size: Optional[int] = None
    created_at: datetime


class FuelRequestIn(BaseModel):
    vehicle_id: str
    odometer: int = Field(ge=0)
    site: str = Field(min_length=1)
    mission: str = Field(min_length=1)
    quantity_requested: Decimal = Field(gt=0)
    justification: str = Field(min_length=1)
    attachments: list[AttachmentIn] = Field(default_factory=list)


class FuelRequestOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    requester_id: str
    vehicle_id: str
    odometer: int
    site: str
    mission: str
    quantity_requested: Decimal
    quantity_served: Optional[Decimal] = None
    justification: str
    status: RequestStatus
    created_at: datetime
    updated_at: datetime
    requester_name: Optional[str] = None
    vehicle_plate: Optional[str] = None


class ValidationRecordOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    request_id: str
    validator_id: Optional[str] = None
    level: int
    outcome: Outcome
    comment: Optional[str] = None
    created_at: datetime


class FuelRequestDetailOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    request: FuelRequestOut
    validations: list[ValidationRecordOut]
    attachments: list[AttachmentOut]


class SubmissionOut(BaseModel):
    status: str
    request: FuelRequestOut
    attachments: list[AttachmentOut]
    failed_attachments: list[str] = Field(default_factory=list)
    warning: Optional[str] = None


class DecisionIn(BaseModel):
    outcome: Outcome
    comment: Optional[str] = None

    @field_validator("outcome", mode="before")
    @classmethod
    def _accept_verbs(cls, value):
        # "approve" / "reject" are accepted alongside the stored values.
        return Outcome(value) if isinstance(value, str) else value


class DecisionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    request: FuelRequestOut
    validation: ValidationRecordOut


class ServedQuantityIn(BaseModel):
    quantity_served: Decimal = Field(gt=0)


# -------------------------
# Reports and audit
# -------------------------

class StatusCountOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    status: RequestStatus
    count: int


class DashboardOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total_requests: int
    pending_requests: int
    liters_this_month: Decimal
    active_vehicles: int
    requests_by_status: list[StatusCountOut]


class DailyConsumptionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    day: date
    liters: Decimal


class LabeledConsumptionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    label: str
    liters: Decimal


class ConsumptionReportOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    start: date
    end: date
    total_liters: Decimal
    by_day: list[DailyConsumptionOut]
    by_vehicle_type: list[LabeledConsumptionOut]
    top_vehicles: list[LabeledConsumptionOut]
    status_distribution: list[StatusCountOut]


class ActionLogOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    actor_id: Optional[str] = None
    action: str
    details: Optional[str] = None
    created_at: datetime


def paginated(page, out_model: type[BaseModel]) -> PaginatedResponse:
    """Convert a domain PageResult into the API envelope."""
    return PaginatedResponse(
        data=[out_model.model_validate(item, from_attributes=True) for item in page.data],
        meta=PaginationMeta(
            total=page.meta.total,
            limit=page.meta.limit,
            offset=page.meta.offset,
            has_next=page.meta.has_next,
            has_previous=page.meta.has_previous,
        ),
    )
