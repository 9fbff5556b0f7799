"""Ticket tagging tool for the MCP server."""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Callable, Optional

from mcp.server.fastmcp import FastMCP

from wf_ticket.config import TicketConfig
from wf_ticket.core.assign import assign_ticket
from wf_ticket.core.context import run_context
from wf_ticket.core.models import TasksApi
from wf_ticket.core.naming import canonical_tool
from wf_ticket.core.responses import (
    ErrorCode,
    ErrorType,
    error_for_exception,
    error_response,
    success_response,
)

logger = logging.getLogger(__name__)

ASSIGN_TOOL_NAME = "wf-ticket-assign"


def perform_assign(
    config: TicketConfig,
    client_factory: Callable[[], TasksApi],
    task_gid: str,
    project_gid: str,
    dry_run: bool = False,
) -> dict:
    """Run one tagging pass and return the serialized envelope."""
    for name, value in (("task_gid", task_gid), ("project_gid", project_gid)):
        if not value or not str(value).strip():
            return asdict(
                error_response(
                    f"{name} is required",
                    error_code=ErrorCode.MISSING_REQUIRED,
                    error_type=ErrorType.VALIDATION,
                    remediation=f"Pass the {name.split('_')[0]} gid",
                    details={"field": name},
                )
            )

    with run_context() as ctx:
        try:
            client = client_factory()
        except ValueError as exc:
            return asdict(error_for_exception(exc))

        try:
            result = assign_ticket(
                client,
                str(task_gid).strip(),
                str(project_gid).strip(),
                page_size=config.asana.page_size,
                field_name=config.tagging.field_name,
                max_attempts=config.tagging.max_attempts,
                dry_run=dry_run,
            )
        except Exception as exc:
            logger.warning("Ticket assignment failed for %s: %s", task_gid, exc)
            return asdict(error_for_exception(exc))
        finally:
            close = getattr(client, "close", None)
            if close is not None:
                close()

        warnings = [m for m in result.messages if m.startswith("Fallback ")]
        return asdict(
            success_response(
                data=result.to_dict(),
                warnings=warnings or None,
                telemetry={"duration_ms": round(ctx.elapsed_ms, 2)},
            )
        )


def register_ticket_tools(
    mcp: FastMCP,
    config: TicketConfig,
    client_factory: Optional[Callable[[], TasksApi]] = None,
) -> None:
    """Register the ticket tagging tool with the FastMCP server."""
    factory = client_factory or config.create_client

    @canonical_tool(mcp, canonical_name=ASSIGN_TOOL_NAME)
    def wf_ticket_assign(task_gid: str, project_gid: str, dry_run: bool = False) -> dict:
        """Ensure a task title ends with a #WF-XXXXXXXX token unique within its project.

        Keeps an existing token when no other task in the project carries it;
        otherwise strips WF-style tags, appends a fresh token, and mirrors its
        numeric value into the "WF Ticket #" custom field when present.

        Args:
            task_gid: Gid of the task to tag
            project_gid: Gid of the project that scopes uniqueness
            dry_run: Compute the new title without writing it
        """
        return perform_assign(config, factory, task_gid, project_gid, dry_run)

    logger.debug("Registered ticket tools")
