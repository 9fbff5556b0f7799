"""wf-ticket CLI entry point.

JSON-only output for scripts and AI coding assistants.
"""

import click

from wf_ticket.cli.config import create_context
from wf_ticket.cli.registry import register_all_commands


@click.group()
@click.option(
    "--config",
    "config_file",
    envvar="WF_TICKET_CONFIG_FILE",
    type=click.Path(exists=False),
    help="Path to a wf-ticket.toml config file",
)
@click.pass_context
def cli(ctx: click.Context, config_file: str | None) -> None:
    """wf-ticket - stable #WF-XXXXXXXX ticket tokens for Asana tasks.

    All commands output JSON for reliable parsing.
    """
    ctx.ensure_object(dict)
    if "cli_context" not in ctx.obj:
        ctx.obj["cli_context"] = create_context(config_file=config_file)
    ctx.obj["cli_context"].config.setup_logging()


# Register all commands
register_all_commands(cli)


if __name__ == "__main__":
    cli()
