from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class ActionLog:
    id: str
    actor_id: str | None
    action: str
    details: str | None
    created_at: datetime
