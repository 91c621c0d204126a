"""Structured logging configuration for cert-exporter.

Provides JSON and text formatters, a cycle-context filter that injects
the current refresh cycle number into every log record, and a one-call
``configure_logging`` function driven by config settings.
"""

from __future__ import annotations

import json
import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Generator

    from cert_exporter.config.settings import LoggingSettings

ROOT_LOGGER = "cert_exporter"

_current_cycle: ContextVar[int | None] = ContextVar("cert_exporter_cycle", default=None)

# Attributes that are part of the standard LogRecord; everything
# else is considered "extra" and gets included in structured output.
_STANDARD_ATTRS = frozenset(
    {
        "args",
        "created",
        "exc_info",
        "exc_text",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "message",
        "module",
        "msecs",
        "msg",
        "name",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "taskName",
        "thread",
        "threadName",
        "cycle",
    }
)

_LEVEL_ALIASES = {"TRACE": "DEBUG", "WARN": "WARNING"}


@contextmanager
def cycle_context(number: int) -> Generator[None, None, None]:
    """Tag every record logged inside the block with cycle *number*."""
    token = _current_cycle.set(number)
    try:
        yield
    finally:
        _current_cycle.reset(token)


# ---------------------------------------------------------------------------
# Formatters
# ---------------------------------------------------------------------------


class StructuredFormatter(logging.Formatter):
    """JSON-lines formatter for production logging.

    Every record becomes a single JSON object on one line containing
    the standard fields plus any *extra* attributes passed by the
    caller or injected by filters.
    """

    def format(self, record: logging.LogRecord) -> str:
        record.message = record.getMessage()

        data: dict = {
            "timestamp": datetime.fromtimestamp(
                record.created,
                tz=UTC,
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.message,
        }

        cycle = getattr(record, "cycle", None)
        if cycle is not None:
            data["cycle"] = cycle

        # Caller-supplied extra fields
        for key, value in record.__dict__.items():
            if key not in _STANDARD_ATTRS and not key.startswith("_"):
                data.setdefault(key, value)

        if record.exc_info and record.exc_info[0] is not None:
            data["exception"] = self.formatException(record.exc_info)

        if record.stack_info:
            data["stack_info"] = self.formatStack(record.stack_info)

        return json.dumps(data, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable formatter for console use."""

    _FMT = "%(asctime)s %(levelname)-8s [cycle %(cycle)s] %(name)s: %(message)s"

    def __init__(self) -> None:
        super().__init__(fmt=self._FMT, datefmt="%Y-%m-%d %H:%M:%S")


# ---------------------------------------------------------------------------
# Filter
# ---------------------------------------------------------------------------


class CycleContextFilter(logging.Filter):
    """Inject the active refresh cycle number, or ``"-"`` outside a cycle."""

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        if not hasattr(record, "cycle"):
            cycle = _current_cycle.get()
            record.cycle = "-" if cycle is None else cycle  # type: ignore[attr-defined]
        return True


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def resolve_level(name: str) -> int:
    """Map a configured level name (``trace`` and ``warn`` included) to a number."""
    upper = name.upper()
    return getattr(logging, _LEVEL_ALIASES.get(upper, upper), logging.INFO)


def configure_logging(settings: LoggingSettings) -> logging.Logger:
    """Configure the ``cert_exporter`` logger hierarchy from settings.

    Replaces any bootstrap handlers with properly formatted output.
    Returns the root ``cert_exporter`` logger.
    """
    level = resolve_level(settings.level)

    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(level)
    root.handlers.clear()
    root.propagate = False

    formatter: logging.Formatter
    formatter = StructuredFormatter() if settings.format == "json" else TextFormatter()

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(formatter)
    console.addFilter(CycleContextFilter())
    root.addHandler(console)

    # werkzeug logs one line per scrape at INFO
    logging.getLogger("werkzeug").setLevel(logging.WARNING)

    return root
