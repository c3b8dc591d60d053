# ============================================================
# DB access layer
# ============================================================
from typing import Protocol

from sqlalchemy import select
from sqlalchemy.orm import Session

from fleetfuel.db.models import AttachmentRow
from fleetfuel.domain.requests.entities import Attachment


class AttachmentRepositoryProtocol(Protocol):
    def create(self, attachment: Attachment) -> Attachment:
        ...

    def get_for_request(self, request_id: str) -> list[Attachment]:
        ...


def _to_entity(row: AttachmentRow) -> Attachment:
    return Attachment(
        id=row.id,
        request_id=row.request_id,
        url=row.url,
        filename=row.filename,
        content_type=row.content_type,
        size=row.size,
        created_at=row.created_at,
    )


class AttachmentRepository(AttachmentRepositoryProtocol):
    def __init__(self, db: Session):
        self.db = db

    def create(self, attachment: Attachment) -> Attachment:
        row = AttachmentRow(
            id=attachment.id,
            request_id=attachment.request_id,
            url=attachment.url,
            filename=attachment.filename,
            content_type=attachment.content_type,
            size=attachment.size,
            created_at=attachment.created_at,
        )
        self.db.add(row)
        self.db.flush()
        return _to_entity(row)

    def get_for_request(self, request_id: str) -> list[Attachment]:
        rows = self.db.execute(
            select(AttachmentRow)
            .where(AttachmentRow.request_id == request_id)
            .order_by(AttachmentRow.created_at, AttachmentRow.id)
        ).scalars()
        return [_to_entity(r) for r in rows]
