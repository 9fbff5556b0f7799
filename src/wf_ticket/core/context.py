"""Run context for log correlation.

Every tagging run gets a short run id, held in a context variable so log
records emitted anywhere during the run can be correlated.

Usage:
    from wf_ticket.core.context import run_context, get_run_id

    with run_context() as ctx:
        print(ctx.run_id)  # e.g., "run_a1b2c3d4e5f6"
"""

from __future__ import annotations

import secrets
import time
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any, Dict, Generator, Optional

__all__ = [
    "run_id_var",
    "start_time_var",
    "RunContext",
    "generate_run_id",
    "run_context",
    "get_run_id",
    "get_start_time",
]

run_id_var: ContextVar[str] = ContextVar("run_id", default="")
"""Identifier of the current tagging run."""

start_time_var: ContextVar[float] = ContextVar("start_time", default=0.0)
"""Run start time as Unix timestamp."""


def generate_run_id(prefix: str = "run") -> str:
    """Generate a unique run ID.

    Format: {prefix}_{12_hex_chars}
    """
    return f"{prefix}_{secrets.token_hex(6)}"


@dataclass
class RunContext:
    """Snapshot of the current run context."""

    run_id: str = ""
    start_time: float = field(default_factory=time.time)

    @property
    def elapsed_ms(self) -> float:
        if self.start_time <= 0:
            return 0.0
        return (time.time() - self.start_time) * 1000

    def to_dict(self) -> Dict[str, Any]:
        return {
            "run_id": self.run_id,
            "start_time": self.start_time,
            "elapsed_ms": round(self.elapsed_ms, 2),
        }


@contextmanager
def run_context(run_id: Optional[str] = None) -> Generator[RunContext, None, None]:
    """Set the run context for the duration of the with block.

    Args:
        run_id: Explicit run ID (auto-generated if None)

    Yields:
        RunContext snapshot
    """
    rid = run_id or generate_run_id()
    start = time.time()

    token_run = run_id_var.set(rid)
    token_start = start_time_var.set(start)
    try:
        yield RunContext(run_id=rid, start_time=start)
    finally:
        run_id_var.reset(token_run)
        start_time_var.reset(token_start)


def get_run_id() -> str:
    """Get the current run ID, or empty string outside a run."""
    return run_id_var.get()


def get_start_time() -> float:
    """Get the current run start time, or 0.0 outside a run."""
    return start_time_var.get()
