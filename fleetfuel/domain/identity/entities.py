from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class Role(str, Enum):
    DRIVER = "driver"
    SUPERVISOR = "supervisor"
    FUELER = "fueler"
    DIRECTOR = "director"
    ADMIN = "admin"


@dataclass(frozen=True)
class Identity:
    id: str
    name: str
    email: str
    role: Role
    active: bool = True
    created_at: datetime | None = None


@dataclass(frozen=True)
class Credentials:
    email: str
    password: str
