"""wf-ticket CLI - JSON-only command-line interface.

All commands emit a single response-v2 envelope for reliable parsing.
"""

from wf_ticket.cli.config import CLIContext, create_context
from wf_ticket.cli.logging import CLILogger, cli_command, get_cli_logger
from wf_ticket.cli.main import cli
from wf_ticket.cli.output import emit, emit_error, emit_success
from wf_ticket.cli.registry import get_context, set_context
from wf_ticket.cli.resilience import handle_keyboard_interrupt, run_deadline

__all__ = [
    # Entry point
    "cli",
    # Context
    "CLIContext",
    "create_context",
    "get_context",
    "set_context",
    # Output
    "emit",
    "emit_error",
    "emit_success",
    # Logging
    "CLILogger",
    "cli_command",
    "get_cli_logger",
    # Resilience
    "run_deadline",
    "handle_keyboard_interrupt",
]
