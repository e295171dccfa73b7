"""Configuration and logging setup for the Asana client."""

import json
import logging
import os
import pathlib

import pydantic
import structlog

from .client import (
    API_VERSION,
    DEFAULT_BASE_URL,
    DEFAULT_TIMEOUT,
    USER_AGENT,
    AsanaClient,
    ConfigurationError,
)

CONFIG_ENV_VAR = "ASANA_CLIENT_CONFIG_PATH"
logger = structlog.get_logger(__name__)


class ClientConfig(pydantic.BaseModel):
    """Configuration for an Asana API connection."""

    token: str | None = pydantic.Field(None, description="Asana access token")
    token_file: str | None = pydantic.Field(
        None,
        description="Path to file containing the access token",
    )
    base_url: str = pydantic.Field(DEFAULT_BASE_URL, description="Asana host URL")
    api_version: str = pydantic.Field(API_VERSION, description="Asana API version")
    timeout: float = pydantic.Field(
        DEFAULT_TIMEOUT,
        description="Request timeout in seconds",
        gt=0,
    )
    user_agent: str = pydantic.Field(USER_AGENT, description="User-Agent header")
    log_level: str = pydantic.Field("INFO", description="Logging level")

    def resolve_token(self) -> str:
        """Return the configured token, reading token_file if needed.

        Raises:
            ConfigurationError: If no token source is configured or it is empty.
            FileNotFoundError: If token_file does not exist.
        """
        if self.token:
            return self.token
        if not self.token_file:
            msg = "Either token or token_file must be configured"
            raise ConfigurationError(msg)

        token_path = pathlib.Path(self.token_file)
        if not token_path.exists():
            msg = f"Token file not found: {self.token_file}"
            raise FileNotFoundError(msg)
        token = token_path.read_text().strip()
        if not token:
            msg = f"Token file is empty: {self.token_file}"
            raise ConfigurationError(msg)
        return token


def configure_logging(log_level_name: str) -> None:
    """Configure structlog for logfmt output.

    Request events put the method and URL right after the message.
    """
    log_level = getattr(logging, log_level_name.upper(), logging.INFO)
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.EventRenamer("msg"),
            structlog.processors.format_exc_info,
            structlog.processors.LogfmtRenderer(
                key_order=("timestamp", "level", "msg", "method", "url"),
            ),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def load_config(config_path: str) -> ClientConfig:
    """Load configuration from JSON file."""
    path = pathlib.Path(config_path)
    if not path.exists():
        msg = f"Configuration file not found: {config_path}"
        raise FileNotFoundError(msg)

    with path.open("r") as f:
        data = json.load(f)

    return ClientConfig(**data)


def create_client(config_path: str | None = None) -> AsanaClient:
    """Create a client using a config path or the environment default.

    Logging is only configured here when structlog has not been configured
    by the caller already.
    """
    resolved_path = config_path or os.environ.get(CONFIG_ENV_VAR)
    if not resolved_path:
        msg = f"No config path given and {CONFIG_ENV_VAR} is not set"
        raise ConfigurationError(msg)

    config = load_config(resolved_path)
    if not structlog.is_configured():
        configure_logging(config.log_level)
    logger.info("Loaded configuration", path=resolved_path)
    return AsanaClient.connect(
        config.resolve_token(),
        base_url=config.base_url,
        api_version=config.api_version,
        timeout=config.timeout,
        user_agent=config.user_agent,
    )
