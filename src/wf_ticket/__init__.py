"""wf-ticket - stable #WF-XXXXXXXX ticket tokens for Asana tasks."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("wf-ticket")
except PackageNotFoundError:
    # Package not installed (development mode without editable install)
    __version__ = "0.1.0"

from wf_ticket.server import create_server, main

__all__ = ["__version__", "create_server", "main"]
