"""Minimal tracing primitives.

Events are single-line JSON documents emitted on the ``fleetfuel`` logger, so
the hosting process decides where they end up (stdout, a file, a collector).
"""

from __future__ import annotations

import json
import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger("fleetfuel")


@dataclass
class Span:
    """Wall-clock timing for one unit of work inside a trace."""

    name: str
    trace_id: str
    span_id: str = field(default_factory=lambda: uuid.uuid4().hex[:16])
    started: float = field(default_factory=time.perf_counter)
    finished: float | None = None

    def __enter__(self) -> "Span":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.end()

    def end(self) -> None:
        if self.finished is None:
            self.finished = time.perf_counter()

    @property
    def duration_ms(self) -> float | None:
        if self.finished is None:
            return None
        return round((self.finished - self.started) * 1000, 3)


def new_trace_id() -> str:
    return uuid.uuid4().hex


def log_event(
    event: str,
    *,
    trace_id: str,
    span: Span | None = None,
    level: int = logging.INFO,
    **fields: Any,
) -> None:
    """Emit one structured event. Non-JSON values (Decimal, datetime) are stringified."""
    payload: dict[str, Any] = {"event": event, "trace_id": trace_id}
    if span is not None:
        payload["span"] = {"name": span.name, "span_id": span.span_id, "duration_ms": span.duration_ms}
    payload.update(fields)
    logger.log(level, json.dumps(payload, ensure_ascii=False, default=str))


def configure_logging(level: str = "INFO") -> None:
    """Attach a plain stream handler so events print as bare JSON lines."""
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(level.upper())
