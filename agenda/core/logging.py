"""Structured logging setup with conversation correlation.

Every record carries the conversation, turn and priority it belongs to, so
one turn's selection, binding and execution logs can be read together.
"""

from __future__ import annotations

import contextvars
import json
import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import asdict, dataclass, fields, replace
from datetime import UTC, datetime


@dataclass(frozen=True, slots=True)
class CorrelationContext:
    conversation_id: str | None = None
    turn_id: str | None = None
    priority_id: str | None = None


_CORRELATION: contextvars.ContextVar[CorrelationContext] = contextvars.ContextVar(
    "agenda_correlation",
    default=CorrelationContext(),
)


def get_correlation_context() -> CorrelationContext:
    """Ids of the conversation turn running in the current context.

    Each asyncio task sees its own value, so sessions evaluated side by side
    never mix ids.
    """
    return _CORRELATION.get()


class CorrelationFilter(logging.Filter):
    """Copy the active correlation ids onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        for field, value in asdict(get_correlation_context()).items():
            setattr(record, field, value)
        return True


class _JsonFormatter(logging.Formatter):
    """One JSON object per line, correlation ids included."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, object | None] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for item in fields(CorrelationContext):
            payload[item.name] = getattr(record, item.name, None)
        if record.exc_info is not None:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=True)


_TEXT_FORMAT = (
    "%(asctime)s %(levelname)s %(name)s "
    "[%(conversation_id)s %(turn_id)s %(priority_id)s] %(message)s"
)


def setup_logging(level: int | str = logging.INFO, json_output: bool = False) -> None:
    """Replace the root handlers with one stderr handler that adds correlation ids."""
    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    root.filters.clear()

    handler = logging.StreamHandler(stream=sys.stderr)
    handler.setFormatter(_JsonFormatter() if json_output else logging.Formatter(_TEXT_FORMAT))
    correlation_filter = CorrelationFilter()
    handler.addFilter(correlation_filter)
    root.addFilter(correlation_filter)
    root.addHandler(handler)


@contextmanager
def correlation_scope(
    *,
    conversation_id: str | None = None,
    turn_id: str | None = None,
    priority_id: str | None = None,
) -> Iterator[None]:
    """Set correlation ids for the block; ids left as None keep the outer value."""
    given = {
        "conversation_id": conversation_id,
        "turn_id": turn_id,
        "priority_id": priority_id,
    }
    updated = replace(
        get_correlation_context(),
        **{field: value for field, value in given.items() if value is not None},
    )
    token = _CORRELATION.set(updated)
    try:
        yield
    finally:
        _CORRELATION.reset(token)


__all__ = [
    "CorrelationContext",
    "CorrelationFilter",
    "correlation_scope",
    "get_correlation_context",
    "setup_logging",
]
