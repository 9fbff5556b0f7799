"""
Standard response contracts for wf-ticket invokers.

The CLI and the MCP tool both answer with the same envelope:

    {
        "success": bool,       # Required: operation success/failure
        "data": {...},         # Required: primary payload (error details on failure)
        "error": str | null,   # Required: error message or null on success
        "meta": {              # Required: response metadata
            "version": "response-v2",
            "request_id": "run_abc123"?,
            "warnings": ["..."]?,
            "telemetry": { ... }?
        }
    }

Key Principle:
    - `success=True` means the run completed, including the "already unique" no-op.
    - `success=False` means the run failed; `data.error_code` says why.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Sequence, Union

from wf_ticket.core.context import get_run_id

logger = logging.getLogger(__name__)


class ErrorCode(str, Enum):
    """Machine-readable error codes carried in ``data.error_code``."""

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    MISSING_REQUIRED = "MISSING_REQUIRED"

    # Resource errors
    NOT_FOUND = "NOT_FOUND"

    # Access errors
    UNAUTHORIZED = "UNAUTHORIZED"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"

    # Allocation errors
    ALLOCATION_EXHAUSTED = "ALLOCATION_EXHAUSTED"

    # System errors
    UPSTREAM_ERROR = "UPSTREAM_ERROR"
    TIMEOUT = "TIMEOUT"
    CANCELLED = "CANCELLED"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    UNAVAILABLE = "UNAVAILABLE"


class ErrorType(str, Enum):
    """Error categories for routing and client-side handling."""

    VALIDATION = "validation"  # 400 - No retry, fix input
    AUTHENTICATION = "authentication"  # 401 - No retry, re-authenticate
    NOT_FOUND = "not_found"  # 404 - No retry
    RATE_LIMIT = "rate_limit"  # 429 - Yes, after delay
    ALLOCATION = "allocation"  # Probe bound reached - No retry, investigate
    INTERNAL = "internal"  # 500 - Yes, with backoff
    UNAVAILABLE = "unavailable"  # 503 - Yes, with backoff
    CANCELLED = "cancelled"  # Interrupted by the operator - Re-run


@dataclass
class ToolResponse:
    """Standard response structure for wf-ticket operations."""

    success: bool
    data: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None
    meta: Dict[str, Any] = field(default_factory=lambda: {"version": "response-v2"})


def _build_meta(
    *,
    request_id: Optional[str] = None,
    warnings: Optional[Sequence[str]] = None,
    telemetry: Optional[Mapping[str, Any]] = None,
    extra: Optional[Mapping[str, Any]] = None,
) -> Dict[str, Any]:
    """Construct a metadata payload that always includes the response version.

    The current run id is injected when ``request_id`` is not given.
    """
    meta: Dict[str, Any] = {"version": "response-v2"}

    effective_request_id = request_id or get_run_id() or None
    if effective_request_id:
        meta["request_id"] = effective_request_id
    if warnings:
        meta["warnings"] = list(warnings)
    if telemetry:
        meta["telemetry"] = dict(telemetry)
    if extra:
        meta.update(dict(extra))

    return meta


def success_response(
    data: Optional[Mapping[str, Any]] = None,
    *,
    warnings: Optional[Sequence[str]] = None,
    telemetry: Optional[Mapping[str, Any]] = None,
    request_id: Optional[str] = None,
    meta: Optional[Mapping[str, Any]] = None,
    **fields: Any,
) -> ToolResponse:
    """Create a standardized success response.

    Args:
        data: Optional mapping used as the base payload.
        warnings: Non-fatal issues to surface in ``meta.warnings``.
        telemetry: Timing/performance metadata.
        request_id: Correlation identifier propagated through logs.
        meta: Arbitrary extra metadata to merge into ``meta``.
        **fields: Additional payload fields (shorthand for ``data.update``).
    """
    payload: Dict[str, Any] = {}
    if data:
        payload.update(dict(data))
    if fields:
        payload.update(fields)

    meta_payload = _build_meta(
        request_id=request_id,
        warnings=warnings,
        telemetry=telemetry,
        extra=meta,
    )

    return ToolResponse(success=True, data=payload, error=None, meta=meta_payload)


def error_response(
    message: str,
    *,
    data: Optional[Mapping[str, Any]] = None,
    error_code: Optional[Union[ErrorCode, str]] = None,
    error_type: Optional[Union[ErrorType, str]] = None,
    remediation: Optional[str] = None,
    details: Optional[Mapping[str, Any]] = None,
    request_id: Optional[str] = None,
    telemetry: Optional[Mapping[str, Any]] = None,
    meta: Optional[Mapping[str, Any]] = None,
) -> ToolResponse:
    """Create a standardized error response.

    Example:
        >>> error_response(
        ...     "task_gid is required",
        ...     error_code=ErrorCode.MISSING_REQUIRED,
        ...     error_type=ErrorType.VALIDATION,
        ...     remediation="Pass the gid of the task to tag",
        ... )
    """
    payload: Dict[str, Any] = {}
    if data:
        payload.update(dict(data))

    effective_error_code = error_code if error_code is not None else ErrorCode.INTERNAL_ERROR
    effective_error_type = error_type if error_type is not None else ErrorType.INTERNAL

    if "error_code" not in payload:
        payload["error_code"] = (
            effective_error_code.value
            if isinstance(effective_error_code, Enum)
            else effective_error_code
        )
    if "error_type" not in payload:
        payload["error_type"] = (
            effective_error_type.value
            if isinstance(effective_error_type, Enum)
            else effective_error_type
        )
    if remediation is not None and "remediation" not in payload:
        payload["remediation"] = remediation
    if details and "details" not in payload:
        payload["details"] = dict(details)

    meta_payload = _build_meta(
        request_id=request_id,
        telemetry=telemetry,
        extra=meta,
    )

    return ToolResponse(success=False, data=payload, error=message, meta=meta_payload)


def error_for_exception(exc: Exception, **kwargs: Any) -> ToolResponse:
    """Map a run failure to an error envelope, keeping the original message.

    Uses lazy imports to keep this module free of client dependencies.
    """
    from wf_ticket.clients.asana import (
        AsanaApiError,
        AsanaAuthenticationError,
        AsanaNotFoundError,
        AsanaRateLimitError,
    )
    from wf_ticket.core.allocator import AllocationExhaustedError
    from wf_ticket.core.resilience import TimeoutException

    message = str(exc) or type(exc).__name__

    if isinstance(exc, AllocationExhaustedError):
        return error_response(
            message,
            error_code=ErrorCode.ALLOCATION_EXHAUSTED,
            error_type=ErrorType.ALLOCATION,
            remediation="Raise tagging.max_attempts or inspect the project for duplicate tokens",
            details={"identity": exc.identity, "attempts": exc.attempts},
            **kwargs,
        )
    if isinstance(exc, AsanaAuthenticationError):
        return error_response(
            message,
            error_code=ErrorCode.UNAUTHORIZED,
            error_type=ErrorType.AUTHENTICATION,
            remediation="Check WF_TICKET_ASANA_TOKEN",
            details={"status_code": exc.status_code},
            **kwargs,
        )
    if isinstance(exc, AsanaNotFoundError):
        return error_response(
            message,
            error_code=ErrorCode.NOT_FOUND,
            error_type=ErrorType.NOT_FOUND,
            details={"status_code": exc.status_code},
            **kwargs,
        )
    if isinstance(exc, AsanaRateLimitError):
        return error_response(
            message,
            error_code=ErrorCode.RATE_LIMIT_EXCEEDED,
            error_type=ErrorType.RATE_LIMIT,
            remediation="Retry after the indicated delay",
            details={"status_code": exc.status_code, "retry_after": exc.retry_after},
            **kwargs,
        )
    if isinstance(exc, AsanaApiError):
        return error_response(
            message,
            error_code=ErrorCode.UPSTREAM_ERROR,
            error_type=ErrorType.UNAVAILABLE if exc.retryable else ErrorType.INTERNAL,
            details={"status_code": exc.status_code},
            **kwargs,
        )
    if isinstance(exc, TimeoutException):
        return error_response(
            message,
            error_code=ErrorCode.TIMEOUT,
            error_type=ErrorType.UNAVAILABLE,
            remediation="Re-run the assignment; an already tagged task is skipped",
            details={"timeout_seconds": exc.timeout_seconds, "operation": exc.operation},
            **kwargs,
        )
    if isinstance(exc, ValueError):
        return error_response(
            message,
            error_code=ErrorCode.VALIDATION_ERROR,
            error_type=ErrorType.VALIDATION,
            **kwargs,
        )

    logger.error("Unexpected run failure: %s", message)
    return error_response(
        message,
        error_code=ErrorCode.INTERNAL_ERROR,
        error_type=ErrorType.INTERNAL,
        **kwargs,
    )
