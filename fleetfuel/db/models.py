# ============================================================
# Tables
# ============================================================
from datetime import datetime

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class IdentityRow(Base):
    __tablename__ = "identities"

    id = Column(String(32), primary_key=True)
    name = Column(String(200), nullable=False)
    email = Column(String(320), nullable=False, unique=True)
    role = Column(String(16), nullable=False, default="driver")
    active = Column(Boolean, nullable=False, default=True)
    password_hash = Column(String(200), nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.now)


class VehicleTypeRow(Base):
    __tablename__ = "vehicle_types"

    id = Column(String(32), primary_key=True)
    label = Column(String(120), nullable=False, unique=True)
    consumption_threshold_per_km = Column(Numeric(5, 2), nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.now)


class VehicleRow(Base):
    __tablename__ = "vehicles"

    id = Column(String(32), primary_key=True)
    plate = Column(String(32), nullable=False, unique=True)
    vehicle_type_id = Column(
        String(32), ForeignKey("vehicle_types.id", ondelete="RESTRICT"), nullable=False
    )
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=datetime.now)


class FuelRequestRow(Base):
    __tablename__ = "fuel_requests"

    id = Column(String(32), primary_key=True)
    requester_id = Column(
        String(32), ForeignKey("identities.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    vehicle_id = Column(
        String(32), ForeignKey("vehicles.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    odometer = Column(Integer, nullable=False)
    site = Column(Text, nullable=False)
    mission = Column(Text, nullable=False)
    quantity_requested = Column(Numeric(8, 2), nullable=False)
    quantity_served = Column(Numeric(8, 2), nullable=True)
    justification = Column(Text, nullable=False)
    status = Column(String(32), nullable=False, default="pending", index=True)
    created_at = Column(DateTime, nullable=False, index=True)
    updated_at = Column(DateTime, nullable=False)


class ValidationRecordRow(Base):
    __tablename__ = "validation_records"
    # One record per level: the second writer of a stage loses at the database.
    __table_args__ = (UniqueConstraint("request_id", "level", name="uq_validation_request_level"),)

    id = Column(String(32), primary_key=True)
    request_id = Column(
        String(32), ForeignKey("fuel_requests.id", ondelete="CASCADE"), nullable=False, index=True
    )
    validator_id = Column(String(32), ForeignKey("identities.id", ondelete="RESTRICT"))
    level = Column(Integer, nullable=False)
    outcome = Column(String(16), nullable=False)
    comment = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False)


class AttachmentRow(Base):
    __tablename__ = "attachments"

    id = Column(String(32), primary_key=True)
    request_id = Column(
        String(32), ForeignKey("fuel_requests.id", ondelete="CASCADE"), nullable=False, index=True
    )
    url = Column(Text, nullable=False)
    filename = Column(String(255), nullable=False)
    content_type = Column(String(100), nullable=False)
    size = Column(Integer, nullable=True)
    created_at = Column(DateTime, nullable=False)


class ActionLogRow(Base):
    __tablename__ = "action_logs"

    id = Column(String(32), primary_key=True)
    actor_id = Column(String(32), ForeignKey("identities.id", ondelete="RESTRICT"), index=True)
    action = Column(Text, nullable=False)
    details = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, index=True)
