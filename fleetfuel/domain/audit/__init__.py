"""Append-only action log written by every mutating operation."""
from .entities import ActionLog
from .repository import ActionLogRepository, ActionLogRepositoryProtocol
