from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal


@dataclass(frozen=True)
class StatusCount:
    status: str
    count: int


@dataclass(frozen=True)
class DashboardStats:
    total_requests: int
    pending_requests: int
    liters_this_month: Decimal
    active_vehicles: int
    requests_by_status: list[StatusCount] = field(default_factory=list)


@dataclass(frozen=True)
class DailyConsumption:
    day: date
    liters: Decimal


@dataclass(frozen=True)
class LabeledConsumption:
    label: str
    liters: Decimal


@dataclass(frozen=True)
class ConsumptionReport:
    start: date
    end: date
    total_liters: Decimal
    by_day: list[DailyConsumption] = field(default_factory=list)
    by_vehicle_type: list[LabeledConsumption] = field(default_factory=list)
    top_vehicles: list[LabeledConsumption] = field(default_factory=list)
    status_distribution: list[StatusCount] = field(default_factory=list)
