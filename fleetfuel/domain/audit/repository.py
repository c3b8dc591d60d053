# ============================================================
# DB access layer
# ============================================================
from datetime import datetime
from typing import Protocol

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from fleetfuel.db.models import ActionLogRow
from fleetfuel.domain.common import PageResult, Pagination, new_id, page_meta

from .entities import ActionLog


class ActionLogRepositoryProtocol(Protocol):
    def append(
            self,
            actor_id: str | None,
            action: str,
            details: str | None,
            created_at: datetime,
    ) -> ActionLog:
        """Append an entry to the action log"""
        ...

    def get_all(self, paging: Pagination, actor_id: str | None = None) -> PageResult[ActionLog]:
        ...


def _to_entity(row: ActionLogRow) -> ActionLog:
    return ActionLog(
        id=row.id,
        actor_id=row.actor_id,
        action=row.action,
        details=row.details,
        created_at=row.created_at,
    )


class ActionLogRepository(ActionLogRepositoryProtocol):
    def __init__(self, db: Session):
        self.db = db

    def append(
            self,
            actor_id: str | None,
            action: str,
            details: str | None,
            created_at: datetime,
    ) -> ActionLog:
        row = ActionLogRow(
            id=new_id(),
            actor_id=actor_id,
            action=action,
            details=details,
            created_at=created_at,
        )
        self.db.add(row)
        self.db.flush()
        return _to_entity(row)

    def get_all(self, paging: Pagination, actor_id: str | None = None) -> PageResult[ActionLog]:
        conditions = []
        if actor_id:
            conditions.append(ActionLogRow.actor_id == actor_id)

        total = self.db.execute(
            select(func.count()).select_from(ActionLogRow).where(*conditions)
        ).scalar_one()
        rows = self.db.execute(
            select(ActionLogRow)
            .where(*conditions)
            .order_by(ActionLogRow.created_at.desc(), ActionLogRow.id)
            .limit(paging.limit)
            .offset(paging.offset)
        ).scalars()

        return PageResult(data=[_to_entity(r) for r in rows], meta=page_meta(total, paging))
