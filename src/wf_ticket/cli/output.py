"""JSON output helpers for the wf-ticket CLI.

The CLI is JSON-first: every command prints one minified response-v2
envelope. Success goes to stdout, errors go to stderr with a non-zero exit.
"""

import json
import sys
from dataclasses import asdict
from typing import Any, Mapping, Sequence

from wf_ticket.core.responses import ToolResponse, error_response, success_response


def emit(data: Any) -> None:
    """Emit JSON to stdout (minified)."""
    print(json.dumps(data, separators=(",", ":"), default=str))


def emit_response(response: ToolResponse, *, exit_code: int = 1) -> None:
    """Emit a prepared envelope; error envelopes go to stderr and exit ``exit_code``."""
    payload = json.dumps(asdict(response), separators=(",", ":"), default=str)
    if response.success:
        print(payload)
        return
    print(payload, file=sys.stderr)
    sys.exit(exit_code)


def emit_error(
    message: str,
    code: str = "INTERNAL_ERROR",
    *,
    error_type: str = "internal",
    remediation: str | None = None,
    details: Mapping[str, Any] | None = None,
    exit_code: int = 1,
) -> None:
    """Emit error JSON to stderr and exit.

    Args:
        message: Human-readable error description.
        code: Error code in SCREAMING_SNAKE_CASE (e.g., CANCELLED).
        error_type: Error category for routing (validation, not_found, internal, etc.).
        remediation: Actionable guidance for resolving the error.
        details: Optional additional error context.
        exit_code: Process exit status (130 for Ctrl+C).

    Raises:
        SystemExit: Always.
    """
    emit_response(
        error_response(
            message=message,
            error_code=code,
            error_type=error_type,
            remediation=remediation,
            details=details,
        ),
        exit_code=exit_code,
    )


def emit_success(
    data: Any,
    *,
    warnings: Sequence[str] | None = None,
    telemetry: Mapping[str, Any] | None = None,
) -> None:
    """Emit success response envelope to stdout.

    Non-dict data is wrapped under a ``result`` key.
    """
    payload = data if isinstance(data, dict) else {"result": data}
    emit_response(
        success_response(
            data=payload,
            warnings=warnings,
            telemetry=telemetry,
        )
    )
