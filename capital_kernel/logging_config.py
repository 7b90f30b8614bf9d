"""
capital_kernel.logging_config -- JSON-line logging for the capital engine.

Responsibility:
    Every engine log record is written as one JSON object per line with a
    fixed head (``ts``, ``level``, ``logger``, ``event``), the fields bound
    in ``LogContext`` for the current call, and the record's ``extra``
    values.  A ``CapitalEngineError`` attached to a record is rendered as a
    nested ``error`` object carrying its code, category and public
    attributes.

Context fields:
    ``LogContext`` carries the identifiers a procedure call or a posting is
    about.  Only the names in ``CONTEXT_FIELDS`` may be bound; anything
    else is a programming error and raises ``TypeError``.  The context
    lives in a single ``ContextVar`` holding an immutable mapping, so
    threads and asyncio tasks each see their own copy and ``bind`` restores
    the outer mapping on exit.

Usage::

    logger = get_logger("modules.investment.service")
    with LogContext.bind(project_id=project.id, investor_id=investor.id):
        logger.info("investment_recorded", extra={"amount": str(amount)})
"""

__all__ = [
    "CONTEXT_FIELDS",
    "JsonLineFormatter",
    "LogContext",
    "configure_logging",
    "get_logger",
    "reset_logging",
]

import json
import logging
import sys
import threading
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, date, datetime
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Any, TextIO
from uuid import UUID

LOGGER_NAMESPACE = "capital_kernel"

CONTEXT_FIELDS = (
    "correlation_id",
    "actor_id",
    "procedure",
    "project_id",
    "investor_id",
    "entry_number",
)

_EMPTY: Mapping[str, str] = MappingProxyType({})

_context: ContextVar[Mapping[str, str]] = ContextVar("capital_log_context", default=_EMPTY)


def _merged(fields: Mapping[str, Any]) -> Mapping[str, str]:
    unknown = sorted(set(fields) - set(CONTEXT_FIELDS))
    if unknown:
        raise TypeError(f"Unknown log context field(s): {', '.join(unknown)}")
    merged = dict(_context.get())
    merged.update((k, str(v)) for k, v in fields.items() if v is not None)
    return MappingProxyType(merged)


class LogContext:
    """Identifiers attached to every record logged in the current context."""

    @staticmethod
    def set(**fields: Any) -> None:
        """Bind fields until ``clear``.  ``None`` values leave a field as is."""
        _context.set(_merged(fields))

    @staticmethod
    def get_all() -> dict[str, str]:
        return dict(_context.get())

    @staticmethod
    def clear() -> None:
        _context.set(_EMPTY)

    @staticmethod
    @contextmanager
    def bind(**fields: Any) -> Iterator[None]:
        token = _context.set(_merged(fields))
        try:
            yield
        finally:
            _context.reset(token)


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------

# Attributes every LogRecord has; anything else on a record came from ``extra``.
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


def _jsonable(value: Any) -> Any:
    if isinstance(value, Enum):
        return _jsonable(value.value)
    if isinstance(value, (Decimal, UUID)):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Mapping):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_jsonable(v) for v in value]
    return value


def _describe_error(exc: BaseException) -> dict[str, Any]:
    error: dict[str, Any] = {"type": type(exc).__name__, "message": str(exc)}
    code = getattr(exc, "code", None)
    if code is not None:
        error["code"] = code
        error["category"] = getattr(exc, "category", None)
        for name, value in vars(exc).items():
            if not name.startswith("_") and name not in error:
                error[name] = _jsonable(value)
    return error


class JsonLineFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        line: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "event": record.getMessage(),
        }
        line.update(_context.get())
        for name, value in vars(record).items():
            if name not in _RECORD_ATTRS and name not in line:
                line[name] = _jsonable(value)

        if record.exc_info and record.exc_info[1] is not None:
            line["error"] = _describe_error(record.exc_info[1])
            line["traceback"] = self.formatException(record.exc_info)

        return json.dumps(line, default=str)


# ---------------------------------------------------------------------------
# Setup
# ---------------------------------------------------------------------------


def get_logger(name: str) -> logging.Logger:
    """Logger ``capital_kernel.<name>``."""
    return logging.getLogger(f"{LOGGER_NAMESPACE}.{name}")


_setup_lock = threading.Lock()


def _installed_handlers(root: logging.Logger) -> list[logging.Handler]:
    return [h for h in root.handlers if getattr(h, "_capital_engine", False)]


def configure_logging(
    *,
    level: int | str = logging.INFO,
    stream: TextIO | None = None,
    handler: logging.Handler | None = None,
) -> logging.Handler:
    """
    Install the JSON handler on the ``capital_kernel`` logger.

    Only the first call installs anything; later calls return the handler
    already in place.  Handlers added by others (pytest's capture handlers,
    for one) are left alone.
    """
    root = logging.getLogger(LOGGER_NAMESPACE)
    with _setup_lock:
        existing = _installed_handlers(root)
        if existing:
            return existing[0]

        installed = handler if handler is not None else logging.StreamHandler(stream or sys.stderr)
        installed.setFormatter(JsonLineFormatter())
        installed._capital_engine = True
        root.addHandler(installed)
        root.setLevel(level.upper() if isinstance(level, str) else level)
        root.propagate = False
        return installed


def reset_logging() -> None:
    """Remove the handler ``configure_logging`` installed.  Test support."""
    root = logging.getLogger(LOGGER_NAMESPACE)
    with _setup_lock:
        for installed in _installed_handlers(root):
            root.removeHandler(installed)
        root.setLevel(logging.WARNING)
        root.propagate = True
