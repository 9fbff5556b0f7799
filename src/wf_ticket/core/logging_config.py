"""Structured logging configuration with automatic run context injection.

Also provides the diagnostic sink used by tagging runs: a fire-and-forget
callable receiving free-text status messages.

Usage:
    from wf_ticket.core.logging_config import configure_logging, CollectingSink

    configure_logging(level="DEBUG", format="human")

    sink = CollectingSink()
    sink("Fallback project_tasks -> tasks_by_project: HTTP 500")
    sink.messages  # ["Fallback project_tasks -> tasks_by_project: HTTP 500"]
"""

from __future__ import annotations

import json
import logging
import sys
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, TextIO, Union

from wf_ticket.core.context import get_run_id, get_start_time

__all__ = [
    "ContextFilter",
    "StructuredFormatter",
    "HumanReadableFormatter",
    "configure_logging",
    "DiagnosticSink",
    "logging_sink",
    "CollectingSink",
]

ROOT_LOGGER = "wf_ticket"

DiagnosticSink = Callable[[str], None]

_diagnostics_logger = logging.getLogger(f"{ROOT_LOGGER}.diagnostics")


class ContextFilter(logging.Filter):
    """Logging filter that injects ``run_id`` and ``elapsed_ms`` into records."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.run_id = get_run_id() or "-"

        start_time = get_start_time()
        if start_time > 0:
            record.elapsed_ms = round((time.time() - start_time) * 1000, 2)
        else:
            record.elapsed_ms = 0.0

        return True


class StructuredFormatter(logging.Formatter):
    """JSON-structured log formatter for machine-readable output.

    Example output:
        {"timestamp":"2024-01-15T10:30:45.123+00:00","level":"INFO",
         "logger":"wf_ticket.core.assign","message":"Updated task 120",
         "run_id":"run_a1b2c3d4e5f6","elapsed_ms":42.5}
    """

    _STANDARD_ATTRS = frozenset(
        {
            "name",
            "msg",
            "args",
            "levelname",
            "levelno",
            "pathname",
            "filename",
            "module",
            "lineno",
            "funcName",
            "created",
            "msecs",
            "relativeCreated",
            "thread",
            "threadName",
            "processName",
            "process",
            "taskName",
            "message",
            "exc_info",
            "exc_text",
            "stack_info",
            "run_id",
            "elapsed_ms",
        }
    )

    def __init__(self, *, include_extra: bool = True):
        super().__init__()
        self.include_extra = include_extra

    def format(self, record: logging.LogRecord) -> str:
        log_entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "run_id": getattr(record, "run_id", "-"),
            "elapsed_ms": getattr(record, "elapsed_ms", 0.0),
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        if self.include_extra:
            extra = {}
            for key, value in record.__dict__.items():
                if key in self._STANDARD_ATTRS:
                    continue
                try:
                    json.dumps(value)
                    extra[key] = value
                except (TypeError, ValueError):
                    extra[key] = str(value)
            if extra:
                log_entry["extra"] = extra

        return json.dumps(log_entry, default=str)


class HumanReadableFormatter(logging.Formatter):
    """Human-readable formatter with run prefix.

    Example:
        2024-01-15 10:30:45 [INFO] [run_a1b2c3] core.assign: Updated task 120
    """

    def format(self, record: logging.LogRecord) -> str:
        parts = [
            datetime.fromtimestamp(record.created).strftime("%Y-%m-%d %H:%M:%S"),
            f"[{record.levelname}]",
        ]

        run_id = getattr(record, "run_id", "-")
        if run_id and run_id != "-":
            parts.append(f"[{run_id}]")

        logger_name = record.name
        if logger_name.startswith(f"{ROOT_LOGGER}."):
            logger_name = logger_name[len(ROOT_LOGGER) + 1 :]
        parts.append(f"{logger_name}:")
        parts.append(record.getMessage())

        result = " ".join(parts)
        if record.exc_info:
            result += "\n" + self.formatException(record.exc_info)
        return result


def configure_logging(
    *,
    level: Union[int, str] = logging.INFO,
    format: str = "structured",
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """Configure the root wf_ticket logger.

    Args:
        level: Log level (default: INFO)
        format: "structured" for JSON, "human" for readable lines
        stream: Output stream (default: stderr)

    Returns:
        Configured root logger for wf_ticket
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)
    logger.handlers.clear()

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(level)
    if format == "structured":
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(HumanReadableFormatter())
    handler.addFilter(ContextFilter())

    logger.addHandler(handler)
    return logger


# ---------------------------------------------------------------------------
# Diagnostic sinks
# ---------------------------------------------------------------------------


def logging_sink(message: str) -> None:
    """Default diagnostic sink: write the message to the diagnostics logger."""
    _diagnostics_logger.info(message)


class CollectingSink:
    """Diagnostic sink that keeps every message and forwards it to a logger.

    Invokers use it to echo run messages back in their response payload.
    """

    def __init__(self, forward: Optional[DiagnosticSink] = logging_sink):
        self.messages: List[str] = []
        self._forward = forward

    def __call__(self, message: str) -> None:
        self.messages.append(message)
        if self._forward is not None:
            self._forward(message)
