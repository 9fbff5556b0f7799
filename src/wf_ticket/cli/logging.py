"""Structured logging hooks for CLI commands.

Every command runs inside a run context so its log lines and its JSON
envelope share one request id.
"""

import logging
import time
from functools import wraps
from typing import Any, Callable, Optional, TypeVar

from wf_ticket.core.context import get_run_id, run_context

__all__ = [
    "cli_command",
    "get_cli_logger",
    "CLILogger",
]

T = TypeVar("T")

_SENSITIVE_KEYS = {"token", "access_token", "authorization", "api_key", "password"}


def _redact(extra: dict) -> dict:
    return {
        key: ("[REDACTED]" if key.lower() in _SENSITIVE_KEYS else value)
        for key, value in extra.items()
    }


class CLILogger:
    """Structured logger for CLI commands.

    Adds the request id to every record and redacts credential-like keys.
    """

    def __init__(self, name: str = "wf_ticket.cli"):
        self._logger = logging.getLogger(name)

    def _log(self, level: int, message: str, **extra: Any) -> None:
        context = {"request_id": get_run_id(), **_redact(extra)}
        self._logger.log(level, message, extra={"cli_context": context})

    def debug(self, message: str, **extra: Any) -> None:
        self._log(logging.DEBUG, message, **extra)

    def info(self, message: str, **extra: Any) -> None:
        self._log(logging.INFO, message, **extra)

    def warning(self, message: str, **extra: Any) -> None:
        self._log(logging.WARNING, message, **extra)

    def error(self, message: str, **extra: Any) -> None:
        self._log(logging.ERROR, message, **extra)


_cli_logger = CLILogger()


def get_cli_logger() -> CLILogger:
    """Get the global CLI logger."""
    return _cli_logger


def cli_command(
    command_name: Optional[str] = None,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Decorator for CLI commands with a run context and start/end logging.

    Example:
        >>> @cli_command("assign")
        ... def assign_cmd(task_gid: str):
        ...     ...
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        name = command_name or func.__name__

        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            with run_context():
                start = time.perf_counter()
                success = True
                error_msg = None

                _cli_logger.debug(f"CLI command started: {name}", command=name)

                try:
                    return func(*args, **kwargs)
                except SystemExit as e:
                    success = e.code in (0, None)
                    raise
                except Exception as e:
                    success = False
                    error_msg = str(e)
                    raise
                finally:
                    duration_ms = (time.perf_counter() - start) * 1000
                    _cli_logger.debug(
                        f"CLI command completed: {name}",
                        command=name,
                        success=success,
                        duration_ms=round(duration_ms, 2),
                        error=error_msg,
                    )

        return wrapper

    return decorator
