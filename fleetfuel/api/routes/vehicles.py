from typing import Optional

from fastapi import APIRouter, Depends, Response, status

from fleetfuel.api.dependencies import get_current_identity, get_fleet_service
from fleetfuel.api.schemas import VehicleIn, VehicleOut, VehicleUpdateIn
from fleetfuel.domain.fleet import FleetService
from fleetfuel.domain.identity import Identity

router = APIRouter(prefix="/vehicles", tags=["Fleet"])


@router.get(
    "",
    summary="List vehicles",
    description="Search matches the plate or the vehicle type label.",
    response_model=list[VehicleOut],
)
def list_vehicles(
    search: Optional[str] = None,
    active_only: bool = False,
    actor: Identity = Depends(get_current_identity),
    service: FleetService = Depends(get_fleet_service),
):
    vehicles = service.list_vehicles(actor, search=search, active_only=active_only)
    return [VehicleOut.model_validate(v, from_attributes=True) for v in vehicles]


@router.post("", status_code=status.HTTP_201_CREATED, response_model=VehicleOut)
def create_vehicle(
    payload: VehicleIn,
    actor: Identity = Depends(get_current_identity),
    service: FleetService = Depends(get_fleet_service),
):
    created = service.create_vehicle(
        actor,
        plate=payload.plate,
        vehicle_type_id=payload.vehicle_type_id,
        active=payload.active,
    )
    return VehicleOut.model_validate(created, from_attributes=True)


@router.get("/{vehicle_id}", response_model=VehicleOut)
def get_vehicle(
    vehicle_id: str,
    actor: Identity = Depends(get_current_identity),
    service: FleetService = Depends(get_fleet_service),
):
    return VehicleOut.model_validate(service.get_vehicle(actor, vehicle_id), from_attributes=True)


@router.patch("/{vehicle_id}", response_model=VehicleOut)
def update_vehicle(
    vehicle_id: str,
    payload: VehicleUpdateIn,
    actor: Identity = Depends(get_current_identity),
    service: FleetService = Depends(get_fleet_service),
):
    updated = service.update_vehicle(
        actor,
        vehicle_id,
        plate=payload.plate,
        vehicle_type_id=payload.vehicle_type_id,
        active=payload.active,
    )
    return VehicleOut.model_validate(updated, from_attributes=True)


@router.delete("/{vehicle_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_vehicle(
    vehicle_id: str,
    actor: Identity = Depends(get_current_identity),
    service: FleetService = Depends(get_fleet_service),
):
    service.delete_vehicle(actor, vehicle_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
