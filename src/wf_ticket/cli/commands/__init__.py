"""CLI commands."""

from wf_ticket.cli.commands.tickets import assign_cmd, digest_cmd, scan_cmd

__all__ = [
    "assign_cmd",
    "digest_cmd",
    "scan_cmd",
]
