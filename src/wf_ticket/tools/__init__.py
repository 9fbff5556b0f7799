"""MCP tools for wf-ticket."""

from wf_ticket.tools.tickets import register_ticket_tools

__all__ = ["register_ticket_tools"]
