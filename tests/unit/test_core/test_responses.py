"""
Tests for response helper functions and exception mapping.

Verifies the response-v2 envelope shared by the CLI and the MCP tool.
"""

from dataclasses import asdict

import pytest

from wf_ticket.clients.asana import (
    AsanaApiError,
    AsanaAuthenticationError,
    AsanaNotFoundError,
    AsanaRateLimitError,
)
from wf_ticket.core.allocator import AllocationExhaustedError
from wf_ticket.core.context import run_context
from wf_ticket.core.resilience import TimeoutException
from wf_ticket.core.responses import (
    ErrorCode,
    ErrorType,
    ToolResponse,
    error_for_exception,
    error_response,
    success_response,
)


class TestToolResponse:
    def test_default_meta_version(self):
        response = ToolResponse(success=True)
        assert response.data == {}
        assert response.meta == {"version": "response-v2"}


class TestSuccessResponse:
    """Tests for the success_response helper function."""

    def test_data_and_fields_merge(self, assert_response_contract):
        response = success_response({"token": "00041200"}, tag="#WF-00041200")
        payload = assert_response_contract(asdict(response))
        assert payload["data"] == {"token": "00041200", "tag": "#WF-00041200"}

    def test_warnings_and_telemetry_in_meta(self):
        response = success_response(warnings=["Fallback a -> b: x"], telemetry={"duration_ms": 1.5})
        assert response.meta["warnings"] == ["Fallback a -> b: x"]
        assert response.meta["telemetry"] == {"duration_ms": 1.5}

    def test_request_id_from_run_context(self):
        with run_context("run_test123"):
            response = success_response()
        assert response.meta["request_id"] == "run_test123"

    def test_no_request_id_outside_run(self):
        assert "request_id" not in success_response().meta

    def test_explicit_request_id_wins(self):
        with run_context("run_ctx"):
            response = success_response(request_id="req_explicit")
        assert response.meta["request_id"] == "req_explicit"


class TestErrorResponse:
    def test_defaults_to_internal(self, assert_response_contract):
        payload = assert_response_contract(asdict(error_response("boom")))
        assert payload["error"] == "boom"
        assert payload["data"]["error_code"] == "INTERNAL_ERROR"
        assert payload["data"]["error_type"] == "internal"

    def test_enum_and_string_codes(self):
        response = error_response(
            "task_gid is required",
            error_code=ErrorCode.MISSING_REQUIRED,
            error_type="validation",
            remediation="Pass the task gid",
            details={"field": "task_gid"},
        )
        assert response.data == {
            "error_code": "MISSING_REQUIRED",
            "error_type": "validation",
            "remediation": "Pass the task gid",
            "details": {"field": "task_gid"},
        }


class TestErrorForException:
    """Tests for mapping run failures to envelopes."""

    @pytest.mark.parametrize(
        "exc,code,error_type",
        [
            (
                AllocationExhaustedError("No free token", identity="B", attempts=10),
                ErrorCode.ALLOCATION_EXHAUSTED,
                ErrorType.ALLOCATION,
            ),
            (
                AsanaAuthenticationError("bad token", status_code=401),
                ErrorCode.UNAUTHORIZED,
                ErrorType.AUTHENTICATION,
            ),
            (
                AsanaNotFoundError("Not found: /tasks/1", status_code=404),
                ErrorCode.NOT_FOUND,
                ErrorType.NOT_FOUND,
            ),
            (
                AsanaRateLimitError("slow down", retry_after=30.0),
                ErrorCode.RATE_LIMIT_EXCEEDED,
                ErrorType.RATE_LIMIT,
            ),
            (
                AsanaApiError("API error 503", status_code=503, retryable=True),
                ErrorCode.UPSTREAM_ERROR,
                ErrorType.UNAVAILABLE,
            ),
            (
                AsanaApiError("API error 400", status_code=400),
                ErrorCode.UPSTREAM_ERROR,
                ErrorType.INTERNAL,
            ),
            (
                TimeoutException("Ticket assignment timed out", timeout_seconds=120.0),
                ErrorCode.TIMEOUT,
                ErrorType.UNAVAILABLE,
            ),
            (ValueError("token required"), ErrorCode.VALIDATION_ERROR, ErrorType.VALIDATION),
            (RuntimeError("surprise"), ErrorCode.INTERNAL_ERROR, ErrorType.INTERNAL),
        ],
    )
    def test_mapping(self, exc, code, error_type, assert_response_contract):
        payload = assert_response_contract(asdict(error_for_exception(exc)))
        assert payload["error"] == str(exc)
        assert payload["data"]["error_code"] == code.value
        assert payload["data"]["error_type"] == error_type.value

    def test_exhaustion_details(self):
        exc = AllocationExhaustedError("No free token", identity="B", attempts=10)
        response = error_for_exception(exc)
        assert response.data["details"] == {"identity": "B", "attempts": 10}
        assert "remediation" in response.data

    def test_rate_limit_details(self):
        response = error_for_exception(AsanaRateLimitError("slow down", retry_after=30.0))
        assert response.data["details"] == {"status_code": 429, "retry_after": 30.0}

    def test_blank_message_uses_type_name(self):
        response = error_for_exception(RuntimeError())
        assert response.error == "RuntimeError"
