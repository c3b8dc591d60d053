"""Fuel requests, validation records and attachments as stored data."""
from .entities import (
    Attachment,
    FuelRequest,
    Outcome,
    RequestDetail,
    RequestFilters,
    RequestStatus,
    ValidationRecord,
)
from .repository import FuelRequestRepository, FuelRequestRepositoryProtocol
