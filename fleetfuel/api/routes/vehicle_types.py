from fastapi import APIRouter, Depends, Response, status

from fleetfuel.api.dependencies import get_current_identity, get_fleet_service
from fleetfuel.api.schemas import VehicleTypeIn, VehicleTypeOut, VehicleTypeUpdateIn
from fleetfuel.domain.fleet import FleetService
from fleetfuel.domain.identity import Identity

router = APIRouter(prefix="/vehicle-types", tags=["Fleet"])


@router.get("", response_model=list[VehicleTypeOut])
def list_vehicle_types(
    actor: Identity = Depends(get_current_identity),
    service: FleetService = Depends(get_fleet_service),
):
    return [VehicleTypeOut.model_validate(t, from_attributes=True) for t in service.list_vehicle_types(actor)]


@router.post("", status_code=status.HTTP_201_CREATED, response_model=VehicleTypeOut)
def create_vehicle_type(
    payload: VehicleTypeIn,
    actor: Identity = Depends(get_current_identity),
    service: FleetService = Depends(get_fleet_service),
):
    created = service.create_vehicle_type(
        actor,
        label=payload.label,
        consumption_threshold_per_km=payload.consumption_threshold_per_km,
    )
    return VehicleTypeOut.model_validate(created, from_attributes=True)


@router.get("/{type_id}", response_model=VehicleTypeOut)
def get_vehicle_type(
    type_id: str,
    actor: Identity = Depends(get_current_identity),
    service: FleetService = Depends(get_fleet_service),
):
    return VehicleTypeOut.model_validate(service.get_vehicle_type(actor, type_id), from_attributes=True)


@router.patch("/{type_id}", response_model=VehicleTypeOut)
def update_vehicle_type(
    type_id: str,
    payload: VehicleTypeUpdateIn,
    actor: Identity = Depends(get_current_identity),
    service: FleetService = Depends(get_fleet_service),
):
    updated = service.update_vehicle_type(
        actor,
        type_id,
        label=payload.label,
        consumption_threshold_per_km=payload.consumption_threshold_per_km,
    )
    return VehicleTypeOut.model_validate(updated, from_attributes=True)


@router.delete("/{type_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_vehicle_type(
    type_id: str,
    actor: Identity = Depends(get_current_identity),
    service: FleetService = Depends(get_fleet_service),
):
    service.delete_vehicle_type(actor, type_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
