from typing import Optional

from fastapi import APIRouter, Depends, Query

from fleetfuel.api.dependencies import get_audit_service, get_current_identity
from fleetfuel.api.schemas import ActionLogOut, PaginatedResponse, paginated
from fleetfuel.domain.audit.service import AuditService
from fleetfuel.domain.common import Pagination
from fleetfuel.domain.identity import Identity

router = APIRouter(prefix="/action-logs", tags=["Audit"])


@router.get("", response_model=PaginatedResponse[ActionLogOut])
def list_action_logs(
    actor_id: Optional[str] = None,
    limit: int = Query(default=50, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    actor: Identity = Depends(get_current_identity),
    service: AuditService = Depends(get_audit_service),
):
    page = service.list_action_logs(actor, paging=Pagination(limit=limit, offset=offset), actor_id=actor_id)
    return paginated(page, ActionLogOut)
