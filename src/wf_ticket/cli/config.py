"""CLI configuration context.

Holds the effective configuration for a CLI invocation and builds the task
service client on demand.
"""

from typing import Callable, Optional

from wf_ticket.config import TicketConfig, get_config, set_config
from wf_ticket.core.models import TasksApi


class CLIContext:
    """CLI execution context with resolved configuration.

    Args:
        config: Explicit configuration (loaded from env/TOML if not provided).
        client_factory: Builds the task service client; defaults to the
            Asana client described by ``config``.
    """

    def __init__(
        self,
        config: Optional[TicketConfig] = None,
        client_factory: Optional[Callable[[], TasksApi]] = None,
    ):
        self._config = config or get_config()
        self._client_factory = client_factory or self._config.create_client

    @property
    def config(self) -> TicketConfig:
        return self._config

    def create_client(self) -> TasksApi:
        """Build a task service client.

        Raises:
            ValueError: If the client cannot be configured (e.g. missing token).
        """
        return self._client_factory()


def create_context(config_file: Optional[str] = None) -> CLIContext:
    """Create a CLI context, loading configuration from ``config_file`` if given."""
    if config_file:
        config = TicketConfig.from_env(config_file)
        set_config(config)
        return CLIContext(config=config)
    return CLIContext()
