"""
Structured JSON logging for the inventory ledger.

Every line is one JSON object.  Fields come from three places, in order of
precedence:

    1. the fixed envelope (ts, level, logger, message)
    2. LogContext -- store, actor, session, batch and adjustment ids bound
       by the service currently handling a call
    3. ``extra={...}`` passed at the call site

An exception attached to the record adds ``exc_type``, ``exc_message``,
``exc_code`` and one ``exc_<attr>`` per public attribute of ledger errors.
"""

__all__ = [
    "StructuredFormatter",
    "LogContext",
    "get_logger",
    "configure_logging",
    "reset_logging",
]

import json
import logging
import sys
import threading
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Any, Iterator, Mapping
from uuid import UUID

_ROOT_NAME = "inventory_ledger"

_CONTEXT_FIELDS = (
    "correlation_id",
    "store_id",
    "actor_id",
    "session_id",
    "batch_id",
    "adjustment_id",
)

_EMPTY: Mapping[str, str] = MappingProxyType({})
_context: ContextVar[Mapping[str, str]] = ContextVar("inventory_ledger_log_context", default=_EMPTY)


def _merged(fields: dict[str, Any]) -> Mapping[str, str]:
    unknown = set(fields) - set(_CONTEXT_FIELDS)
    if unknown:
        raise ValueError(f"Unknown log context field(s): {', '.join(sorted(unknown))}")
    updated = dict(_context.get())
    updated.update({k: str(v) for k, v in fields.items() if v is not None})
    return MappingProxyType(updated)


class LogContext:
    """
    Request-scoped fields copied onto every log line.

    Backed by a single ContextVar, so concurrent tasks (one per POS device
    on an event loop) each see only their own ids.
    """

    @staticmethod
    def set(**fields: Any) -> None:
        """Set fields for the rest of the current context; None is ignored."""
        _context.set(_merged(fields))

    @staticmethod
    def get_all() -> dict[str, str]:
        return dict(_context.get())

    @staticmethod
    def clear() -> None:
        _context.set(_EMPTY)

    @staticmethod
    @contextmanager
    def bind(**fields: Any) -> Iterator[type["LogContext"]]:
        """Add fields for the duration of a ``with`` block."""
        token = _context.set(_merged(fields))
        try:
            yield LogContext
        finally:
            _context.reset(token)


# Attributes every LogRecord carries; anything else on a record came from
# ``extra``.
_RESERVED = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "taskName"}


def _to_json(value: Any) -> Any:
    if isinstance(value, (UUID, Decimal)):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (tuple, set, frozenset)):
        return list(value)
    return str(value)


class StructuredFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in _context.get().items():
            payload.setdefault(key, value)
        for key, value in vars(record).items():
            if key not in _RESERVED:
                payload.setdefault(key, value)

        exc = record.exc_info[1] if record.exc_info else None
        if exc is not None:
            payload["exc_type"] = type(exc).__name__
            payload["exc_message"] = str(exc)
            code = getattr(exc, "code", None)
            if code is not None:
                payload["exc_code"] = code
            for attr, value in vars(exc).items():
                if not attr.startswith("_") and attr != "code":
                    payload[f"exc_{attr}"] = value
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_to_json)


def get_logger(name: str) -> logging.Logger:
    """``inventory_ledger.<name>``."""
    return logging.getLogger(f"{_ROOT_NAME}.{name}")


_configured = False
_configure_lock = threading.Lock()


def configure_logging(
    *,
    level: int | str = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """
    Attach one JSON handler to the ``inventory_ledger`` logger.

    Only the first call has an effect; later calls (for example from
    ``init_engine_from_url``) leave an application's setup alone.
    """
    global _configured
    with _configure_lock:
        if _configured:
            return
        _configured = True

    if handler is None:
        handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(StructuredFormatter())

    root = logging.getLogger(_ROOT_NAME)
    root.setLevel(level)
    root.propagate = False
    root.addHandler(handler)


def reset_logging() -> None:
    """Undo ``configure_logging``.  Tests only."""
    global _configured
    with _configure_lock:
        _configured = False
    root = logging.getLogger(_ROOT_NAME)
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.setLevel(logging.WARNING)
