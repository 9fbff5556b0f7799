"""
Configuration for wf-ticket.

Supports configuration via:
1. Environment variables (highest priority)
2. TOML config file (wf-ticket.toml)
3. Default values (lowest priority)

Environment variables:
- WF_TICKET_CONFIG_FILE: Path to TOML config file
- WF_TICKET_ASANA_TOKEN: Asana personal access token (falls back to ASANA_ACCESS_TOKEN)
- WF_TICKET_ASANA_BASE_URL: Asana API base URL
- WF_TICKET_TIMEOUT: HTTP timeout in seconds
- WF_TICKET_PAGE_SIZE: Tasks requested per listing page (1-100)
- WF_TICKET_MAX_RETRIES: Retry attempts for read calls
- WF_TICKET_FIELD_NAME: Numeric custom field mirrored with the token
- WF_TICKET_MAX_ATTEMPTS: Salt probe bound for token allocation (at least 1)
- WF_TICKET_RUN_TIMEOUT: Wall-clock deadline for a CLI tagging run in seconds (0 disables)
- WF_TICKET_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR)
- WF_TICKET_STRUCTURED_LOGGING: JSON log lines (true/false)

Example wf-ticket.toml:

    [asana]
    access_token = "1/1200..."
    page_size = 100

    [tagging]
    field_name = "WF Ticket #"

    [logging]
    level = "DEBUG"
    structured = false
"""

import logging
import os
from dataclasses import dataclass, field
from importlib.metadata import PackageNotFoundError, version as get_package_version
from pathlib import Path
from typing import Any, Dict, Optional

try:
    import tomllib
except ImportError:
    import tomli as tomllib  # Python < 3.11 fallback

from wf_ticket.clients.asana import (
    ASANA_API_BASE_URL,
    DEFAULT_MAX_RETRIES,
    DEFAULT_TIMEOUT,
    AsanaTasksClient,
)
from wf_ticket.core.allocator import MAX_SALT_ATTEMPTS
from wf_ticket.core.logging_config import configure_logging
from wf_ticket.core.pagination import DEFAULT_PAGE_SIZE, normalize_page_size
from wf_ticket.core.resilience import SLOW_TIMEOUT
from wf_ticket.core.updater import DEFAULT_FIELD_NAME

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILES = ("wf-ticket.toml", ".wf-ticket.toml")


def _get_version() -> str:
    """Get package version from metadata (single source of truth: pyproject.toml)."""
    try:
        return get_package_version("wf-ticket")
    except PackageNotFoundError:
        return "0.1.0"


_PACKAGE_VERSION = _get_version()


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"true", "1", "yes", "on"}


def _probe_bound(value: Any) -> int:
    """Clamp the salt probe bound so allocation always tries the bare digest."""
    attempts = int(value)
    if attempts < 1:
        logger.warning("max_attempts=%d is below 1, using 1", attempts)
        return 1
    return attempts


def _env_number(name: str, cast: Any) -> Optional[Any]:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return None
    try:
        return cast(raw)
    except ValueError:
        logger.warning("Ignoring invalid %s=%r", name, raw)
        return None


@dataclass
class AsanaConfig:
    """Connection settings for the Asana API.

    Attributes:
        base_url: API base URL
        access_token: Personal access token (never logged)
        timeout: HTTP timeout in seconds
        page_size: Tasks requested per listing page, 1..100
        max_retries: Retry attempts for read calls
    """

    base_url: str = ASANA_API_BASE_URL
    access_token: Optional[str] = None
    timeout: float = DEFAULT_TIMEOUT
    page_size: int = DEFAULT_PAGE_SIZE
    max_retries: int = DEFAULT_MAX_RETRIES

    @classmethod
    def from_toml_dict(cls, data: Dict[str, Any]) -> "AsanaConfig":
        """Create config from TOML dict (typically [asana] section)."""
        return cls(
            base_url=str(data.get("base_url", ASANA_API_BASE_URL)),
            access_token=data.get("access_token") or None,
            timeout=float(data.get("timeout", DEFAULT_TIMEOUT)),
            page_size=normalize_page_size(int(data.get("page_size", DEFAULT_PAGE_SIZE))),
            max_retries=int(data.get("max_retries", DEFAULT_MAX_RETRIES)),
        )


@dataclass
class TaggingConfig:
    """Token allocation settings.

    Attributes:
        field_name: Numeric custom field mirrored with the token value
        max_attempts: Salt probe bound before allocation gives up (>= 1)
        run_timeout: Deadline for a whole CLI run in seconds, 0 for none
    """

    field_name: str = DEFAULT_FIELD_NAME
    max_attempts: int = MAX_SALT_ATTEMPTS
    run_timeout: float = SLOW_TIMEOUT

    @classmethod
    def from_toml_dict(cls, data: Dict[str, Any]) -> "TaggingConfig":
        """Create config from TOML dict (typically [tagging] section)."""
        return cls(
            field_name=str(data.get("field_name", DEFAULT_FIELD_NAME)),
            max_attempts=_probe_bound(data.get("max_attempts", MAX_SALT_ATTEMPTS)),
            run_timeout=float(data.get("run_timeout", SLOW_TIMEOUT)),
        )


@dataclass
class TicketConfig:
    """wf-ticket configuration with support for env vars and TOML overrides."""

    asana: AsanaConfig = field(default_factory=AsanaConfig)
    tagging: TaggingConfig = field(default_factory=TaggingConfig)

    # Logging configuration
    log_level: str = "INFO"
    structured_logging: bool = True

    # Server configuration
    server_name: str = "wf-ticket"
    server_version: str = field(default_factory=lambda: _PACKAGE_VERSION)

    @classmethod
    def from_env(cls, config_file: Optional[str] = None) -> "TicketConfig":
        """
        Create configuration from environment variables and optional TOML file.

        Priority (highest to lowest):
        1. Environment variables
        2. TOML config file
        3. Default values
        """
        config = cls()

        toml_path = config_file or os.environ.get("WF_TICKET_CONFIG_FILE")
        if toml_path:
            config._load_toml(Path(toml_path))
        else:
            for default_path in DEFAULT_CONFIG_FILES:
                if Path(default_path).exists():
                    config._load_toml(Path(default_path))
                    break

        config._load_env()
        return config

    def _load_toml(self, path: Path) -> None:
        """Load configuration from TOML file."""
        if not path.exists():
            logger.warning(f"Config file not found: {path}")
            return

        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            logger.error(f"Error loading config file {path}: {e}")
            return

        if "asana" in data:
            self.asana = AsanaConfig.from_toml_dict(data["asana"])

        if "tagging" in data:
            self.tagging = TaggingConfig.from_toml_dict(data["tagging"])

        if "logging" in data:
            log = data["logging"]
            if "level" in log:
                self.log_level = str(log["level"]).upper()
            if "structured" in log:
                self.structured_logging = _parse_bool(log["structured"])

        if "server" in data:
            srv = data["server"]
            if "name" in srv:
                self.server_name = srv["name"]
            if "version" in srv:
                self.server_version = srv["version"]

    def _load_env(self) -> None:
        """Load configuration from environment variables."""
        if token := (
            os.environ.get("WF_TICKET_ASANA_TOKEN") or os.environ.get("ASANA_ACCESS_TOKEN")
        ):
            self.asana.access_token = token

        if base_url := os.environ.get("WF_TICKET_ASANA_BASE_URL"):
            self.asana.base_url = base_url

        if (timeout := _env_number("WF_TICKET_TIMEOUT", float)) is not None:
            self.asana.timeout = timeout

        if (page_size := _env_number("WF_TICKET_PAGE_SIZE", int)) is not None:
            self.asana.page_size = normalize_page_size(page_size)

        if (retries := _env_number("WF_TICKET_MAX_RETRIES", int)) is not None:
            self.asana.max_retries = retries

        if field_name := os.environ.get("WF_TICKET_FIELD_NAME"):
            self.tagging.field_name = field_name

        if (attempts := _env_number("WF_TICKET_MAX_ATTEMPTS", int)) is not None:
            self.tagging.max_attempts = _probe_bound(attempts)

        if (run_timeout := _env_number("WF_TICKET_RUN_TIMEOUT", float)) is not None:
            self.tagging.run_timeout = run_timeout

        if level := os.environ.get("WF_TICKET_LOG_LEVEL"):
            self.log_level = level.upper()

        if structured := os.environ.get("WF_TICKET_STRUCTURED_LOGGING"):
            self.structured_logging = _parse_bool(structured)

    def create_client(self) -> AsanaTasksClient:
        """Build an Asana client from the connection settings.

        Raises:
            ValueError: If no access token is configured.
        """
        return AsanaTasksClient(
            access_token=self.asana.access_token,
            base_url=self.asana.base_url,
            timeout=self.asana.timeout,
            max_retries=self.asana.max_retries,
        )

    def setup_logging(self) -> None:
        """Configure logging based on settings."""
        level = getattr(logging, self.log_level, logging.INFO)
        configure_logging(
            level=level,
            format="structured" if self.structured_logging else "human",
        )


# Global configuration instance
_config: Optional[TicketConfig] = None


def get_config() -> TicketConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = TicketConfig.from_env()
    return _config


def set_config(config: Optional[TicketConfig]) -> None:
    """Set (or clear, with None) the global configuration instance."""
    global _config
    _config = config
