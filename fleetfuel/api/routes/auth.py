from fastapi import APIRouter, Depends, status

from fleetfuel.api.dependencies import get_current_identity, get_identity_service
from fleetfuel.api.schemas import IdentityOut, RegisterIn
from fleetfuel.domain.identity import Identity, IdentityService

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/register", status_code=status.HTTP_201_CREATED, response_model=IdentityOut)
def register(
    payload: RegisterIn,
    service: IdentityService = Depends(get_identity_service),
):
    """Open self-registration."""
    identity = service.register(
        name=payload.name,
        email=payload.email,
        password=payload.password,
        role=payload.role,
    )
    return IdentityOut.model_validate(identity, from_attributes=True)


@router.get("/me", response_model=IdentityOut)
def me(actor: Identity = Depends(get_current_identity)):
    return IdentityOut.model_validate(actor, from_attributes=True)
