from sqlalchemy.orm import Session

from fleetfuel.domain.common import PageResult, Pagination
from fleetfuel.domain.identity import Identity, Role, require_role

from .entities import ActionLog
from .repository import ActionLogRepository

LOG_READERS = {Role.ADMIN, Role.DIRECTOR}


class AuditService:
    def __init__(self, db: Session) -> None:
        self._logs = ActionLogRepository(db)

    def list_action_logs(
        self,
        actor: Identity,
        *,
        paging: Pagination | None = None,
        actor_id: str | None = None,
    ) -> PageResult[ActionLog]:
        require_role(actor, LOG_READERS, action="read the action log")
        return self._logs.get_all(paging or Pagination(), actor_id=actor_id)
