"""FastMCP server for wf-ticket.

Exposes the ``wf-ticket-assign`` tool over stdio.
"""

from __future__ import annotations

import logging
import sys
from typing import Callable, Optional

from mcp.server.fastmcp import FastMCP

from wf_ticket.config import TicketConfig, get_config
from wf_ticket.core.models import TasksApi
from wf_ticket.tools import register_ticket_tools

logger = logging.getLogger(__name__)


def create_server(
    config: Optional[TicketConfig] = None,
    client_factory: Optional[Callable[[], TasksApi]] = None,
) -> FastMCP:
    """Create and configure the FastMCP server instance."""

    if config is None:
        config = get_config()

    config.setup_logging()

    mcp = FastMCP(name=config.server_name)
    register_ticket_tools(mcp, config, client_factory)

    logger.info("Server created: %s v%s", config.server_name, config.server_version)
    return mcp


def main() -> None:
    """Main entry point for the wf-ticket MCP server."""

    try:
        config = get_config()
        server = create_server(config)

        logger.info("Starting %s v%s", config.server_name, config.server_version)
        server.run()

    except KeyboardInterrupt:
        logger.info("Server shutdown requested")
        sys.exit(0)
    except Exception as exc:
        logger.error("Server error: %s: %s", type(exc).__name__, exc)
        sys.exit(1)


if __name__ == "__main__":
    main()
