"""Vehicles and vehicle types."""
from .entities import Vehicle, VehicleType
from .repository import VehicleRepository, VehicleTypeRepository
from .service import FleetService, normalize_plate
