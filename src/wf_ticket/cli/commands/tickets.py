"""Ticket token commands for the wf-ticket CLI.

Provides ``assign`` (tag a task in place) plus two offline helpers,
``digest`` and ``scan``, for inspecting how tokens are derived and found.
"""

from typing import Optional

import click

from wf_ticket.cli.logging import cli_command, get_cli_logger
from wf_ticket.cli.output import emit_response, emit_success
from wf_ticket.cli.registry import get_context
from wf_ticket.cli.resilience import handle_keyboard_interrupt, run_deadline
from wf_ticket.core.assign import assign_ticket
from wf_ticket.core.digest import digest, salted_input
from wf_ticket.core.responses import error_for_exception
from wf_ticket.core.scanner import find_loose, format_tag, match_canonical, strip_loose

logger = get_cli_logger()


@click.command("assign")
@click.argument("task_gid")
@click.option("--project", "project_gid", required=True, help="Project gid that scopes uniqueness.")
@click.option("--dry-run", is_flag=True, default=False, help="Compute the new title without writing it.")
@click.pass_context
@cli_command("assign")
@handle_keyboard_interrupt
def assign_cmd(
    ctx: click.Context,
    task_gid: str,
    project_gid: str,
    dry_run: bool,
) -> None:
    """Ensure TASK_GID ends with a #WF-XXXXXXXX token unique in its project."""
    cli_ctx = get_context(ctx)
    config = cli_ctx.config

    try:
        client = cli_ctx.create_client()
    except ValueError as e:
        emit_response(error_for_exception(e))
        return

    try:
        with run_deadline(config.tagging.run_timeout, "Ticket assignment"):
            result = assign_ticket(
                client,
                task_gid,
                project_gid,
                page_size=config.asana.page_size,
                field_name=config.tagging.field_name,
                max_attempts=config.tagging.max_attempts,
                dry_run=dry_run,
            )
    except Exception as e:
        logger.error("Ticket assignment failed", task_gid=task_gid, error=str(e))
        emit_response(error_for_exception(e))
        return
    finally:
        close = getattr(client, "close", None)
        if close is not None:
            close()

    warnings = [m for m in result.messages if m.startswith("Fallback ")]
    emit_success(result.to_dict(), warnings=warnings or None)


@click.command("digest")
@click.argument("identity")
@click.option("--salt", type=click.IntRange(min=0), default=0, show_default=True, help="Probe salt.")
@cli_command("digest")
def digest_cmd(identity: str, salt: int) -> None:
    """Show the token IDENTITY hashes to for a given salt."""
    token = digest(identity, salt)
    emit_success(
        {
            "identity": identity,
            "salt": salt,
            "input": salted_input(identity, salt),
            "token": token,
            "tag": format_tag(token),
        }
    )


@click.command("scan")
@click.argument("text")
@cli_command("scan")
def scan_cmd(text: str) -> None:
    """Report which tokens TEXT carries and what remains once they are removed."""
    canonical: Optional[str] = match_canonical(text)
    emit_success(
        {
            "text": text,
            "canonical": canonical,
            "loose": find_loose(text),
            "stripped": strip_loose(text),
        }
    )
