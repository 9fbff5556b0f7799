"""Command registry for the wf-ticket CLI.

Centralized registration of all commands.
"""

from typing import Optional

import click

from wf_ticket.cli.config import CLIContext

# Module-level storage for CLI context (for testing)
_cli_context: Optional[CLIContext] = None


def set_context(ctx: Optional[CLIContext]) -> None:
    """Set (or clear, with None) the CLI context at module level.

    Primarily used for testing when not using Click's context.
    """
    global _cli_context
    _cli_context = ctx


def get_context(ctx: Optional[click.Context] = None) -> CLIContext:
    """Get CLI context from Click context or module-level storage.

    Args:
        ctx: Optional Click context with cli_context stored in obj.
             If None, returns module-level context.

    Raises:
        RuntimeError: If no context is available.
    """
    if ctx is not None and ctx.obj and "cli_context" in ctx.obj:
        return ctx.obj["cli_context"]

    if _cli_context is not None:
        return _cli_context

    raise RuntimeError("No CLI context available. Call set_context() first.")


def register_all_commands(cli: click.Group) -> None:
    """Register all commands with the CLI.

    Command modules are lazily imported to avoid circular dependencies.
    """
    from wf_ticket.cli.commands import assign_cmd, digest_cmd, scan_cmd

    cli.add_command(assign_cmd)
    cli.add_command(digest_cmd)
    cli.add_command(scan_cmd)

    @cli.command("version")
    @click.pass_context
    def version(ctx: click.Context) -> None:
        """Show CLI version information."""
        from wf_ticket.cli.output import emit

        config = get_context(ctx).config
        emit(
            {
                "version": config.server_version,
                "name": "wf-ticket",
                "json_only": True,
                "field_name": config.tagging.field_name,
            }
        )
