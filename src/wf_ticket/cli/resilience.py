"""Run deadline and Ctrl+C handling for wf-ticket commands.

A tagging run is a chain of blocking Asana calls: the target lookup, every
listing page of every strategy tried, then one update. ``run_deadline`` puts
one wall-clock budget on that whole chain. When it expires, a
``TimeoutException`` unwinds the run from whichever call is blocked. The
enumeration chain re-raises it rather than falling back, so an expired run is
reported and never writes against a late, degraded snapshot.

The deadline uses ``SIGALRM`` and is only armed in the main thread of a Unix
process. Elsewhere the run is unbounded and relies on the HTTP timeout.
"""

import signal
import threading
from contextlib import contextmanager
from functools import wraps
from typing import Any, Callable, Iterator, TypeVar

from wf_ticket.cli.output import emit_error
from wf_ticket.core.resilience import TimeoutException
from wf_ticket.core.responses import ErrorCode, ErrorType

__all__ = [
    "TimeoutException",
    "deadline_supported",
    "run_deadline",
    "handle_keyboard_interrupt",
]

T = TypeVar("T")

#: Exit status for a run stopped with Ctrl+C (128 + SIGINT)
INTERRUPTED_EXIT_CODE = 130


def deadline_supported() -> bool:
    """True when a run deadline can be armed from the calling thread."""
    return (
        hasattr(signal, "setitimer")
        and threading.current_thread() is threading.main_thread()
    )


@contextmanager
def run_deadline(seconds: float, operation: str) -> Iterator[None]:
    """Raise ``TimeoutException`` inside the block once ``seconds`` elapse.

    Fractional budgets are honoured. A budget of 0 or less disables the
    deadline. The previous ``SIGALRM`` handler is restored on exit.

    Example:
        >>> with run_deadline(config.tagging.run_timeout, "Ticket assignment"):
        ...     assign_ticket(client, task_gid, project_gid)
    """
    if seconds <= 0 or not deadline_supported():
        yield
        return

    def _expire(signum: int, frame: Any) -> None:
        raise TimeoutException(
            f"{operation} exceeded its {seconds:g}s deadline",
            timeout_seconds=float(seconds),
            operation=operation,
        )

    previous = signal.signal(signal.SIGALRM, _expire)
    signal.setitimer(signal.ITIMER_REAL, seconds)
    try:
        yield
    finally:
        signal.setitimer(signal.ITIMER_REAL, 0)
        signal.signal(signal.SIGALRM, previous)


def handle_keyboard_interrupt(func: Callable[..., T]) -> Callable[..., T]:
    """Report Ctrl+C as a ``CANCELLED`` envelope on stderr and exit 130.

    Commands close their own clients in ``finally`` blocks, so nothing is
    left to clean up here.
    """

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> T:
        try:
            return func(*args, **kwargs)
        except KeyboardInterrupt:
            emit_error(
                f"{func.__name__} interrupted",
                ErrorCode.CANCELLED.value,
                error_type=ErrorType.CANCELLED.value,
                remediation="Re-run the command; an already tagged task is skipped",
                exit_code=INTERRUPTED_EXIT_CODE,
            )

    return wrapper
