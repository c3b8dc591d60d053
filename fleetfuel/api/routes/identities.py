from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status

from fleetfuel.api.dependencies import get_current_identity, get_identity_service
from fleetfuel.api.schemas import (
    IdentityCreateIn,
    IdentityOut,
    IdentityUpdateIn,
    PaginatedResponse,
    paginated,
)
from fleetfuel.domain.common import Pagination
from fleetfuel.domain.identity import Identity, IdentityService, Role

router = APIRouter(prefix="/identities", tags=["Identities"])


@router.get(
    "",
    summary="List identities",
    description="Managers only. Optionally filtered by role.",
    response_model=PaginatedResponse[IdentityOut],
)
def list_identities(
    role: Optional[Role] = None,
    limit: int = Query(default=50, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    actor: Identity = Depends(get_current_identity),
    service: IdentityService = Depends(get_identity_service),
):
    page = service.list_identities(actor, paging=Pagination(limit=limit, offset=offset), role=role)
    return paginated(page, IdentityOut)


@router.post("", status_code=status.HTTP_201_CREATED, response_model=IdentityOut)
def create_identity(
    payload: IdentityCreateIn,
    actor: Identity = Depends(get_current_identity),
    service: IdentityService = Depends(get_identity_service),
):
    identity = service.create_identity(
        actor,
        name=payload.name,
        email=payload.email,
        password=payload.password,
        role=payload.role,
        active=payload.active,
    )
    return IdentityOut.model_validate(identity, from_attributes=True)


@router.get("/{identity_id}", response_model=IdentityOut)
def get_identity(
    identity_id: str,
    actor: Identity = Depends(get_current_identity),
    service: IdentityService = Depends(get_identity_service),
):
    return IdentityOut.model_validate(service.get_identity(actor, identity_id), from_attributes=True)


@router.patch("/{identity_id}", response_model=IdentityOut)
def update_identity(
    identity_id: str,
    payload: IdentityUpdateIn,
    actor: Identity = Depends(get_current_identity),
    service: IdentityService = Depends(get_identity_service),
):
    identity = service.update_identity(actor, identity_id, **payload.model_dump(exclude_unset=True))
    return IdentityOut.model_validate(identity, from_attributes=True)


@router.delete("/{identity_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_identity(
    identity_id: str,
    actor: Identity = Depends(get_current_identity),
    service: IdentityService = Depends(get_identity_service),
):
    service.delete_identity(actor, identity_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
