"""wf-ticket CLI module entry point.

Enables running the CLI via: python -m wf_ticket.cli
"""

from wf_ticket.cli.main import cli

if __name__ == "__main__":
    cli()
