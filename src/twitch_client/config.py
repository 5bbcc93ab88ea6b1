"""Configuration loading and client construction."""

import json
import logging
import os
import pathlib
import sys
from typing import Literal

import pydantic
import structlog

from .api.transport import DEFAULT_TIMEOUT, HttpxTransport
from .auth import RefreshConfig
from .client import TwitchClient
from .errors import ConfigError

CONFIG_ENV_VAR = "TWITCH_CLIENT_CONFIG_PATH"
LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")
logger = structlog.get_logger(__name__)


class ClientConfig(pydantic.BaseModel):
    """Configuration for a Twitch API client."""

    client_id: str = pydantic.Field(description="Client ID of the application", min_length=1)
    client_secret: str | None = pydantic.Field(None, description="Client secret of the application")
    access_token: str | None = pydantic.Field(None, description="Access token to call the API with")
    refresh_token: str | None = pydantic.Field(
        None,
        description="Refresh token; enables refreshing the access token",
    )
    scopes: list[str] | None = pydantic.Field(
        None,
        description="Scopes of the access token, looked up when omitted",
    )
    token_type: Literal["user", "app"] = pydantic.Field("user", description="Type of the access token")
    pre_auth: bool = pydantic.Field(False, description="Fetch a token when the client is created")
    initial_scopes: list[str] | None = pydantic.Field(
        None,
        description="Scopes to request with the initial token",
    )
    timeout: float = pydantic.Field(DEFAULT_TIMEOUT, description="Request timeout in seconds", gt=0)
    log_level: str = pydantic.Field("INFO", description="Logging level name")

    @pydantic.field_validator("log_level")
    @classmethod
    def check_log_level(cls, value: str) -> str:
        name = value.upper()
        if name not in LOG_LEVELS:
            msg = f"Unknown log level '{value}', expected one of {', '.join(LOG_LEVELS)}"
            raise ValueError(msg)
        return name


def configure_logging(log_level_name: str) -> None:
    """Configure structlog to write logfmt lines to stderr.

    Each line carries the module that emitted it, since the client logs from
    the transport, the rate limiter and the providers alike.
    """
    log_level = getattr(logging, log_level_name.upper(), logging.INFO)
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.CallsiteParameterAdder(
                [structlog.processors.CallsiteParameter.MODULE],
            ),
            structlog.processors.EventRenamer("msg"),
            structlog.processors.format_exc_info,
            structlog.processors.LogfmtRenderer(
                key_order=("timestamp", "level", "module", "msg"),
                drop_missing=True,
            ),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(sys.stderr),
        cache_logger_on_first_use=True,
    )


def load_config(config_path: str) -> ClientConfig:
    """Load configuration from JSON file.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigError: If the file content is not a valid configuration.
    """
    path = pathlib.Path(config_path)
    if not path.exists():
        msg = f"Configuration file not found: {config_path}"
        raise FileNotFoundError(msg)

    with path.open("r") as f:
        data = json.load(f)

    try:
        return ClientConfig.model_validate(data)
    except pydantic.ValidationError as e:
        msg = f"Invalid configuration in {config_path}: {e}"
        raise ConfigError(msg) from e


def create_client(config: ClientConfig) -> TwitchClient:
    """Construct a client from validated config.

    Picks client credentials when a secret but no access token is given,
    a refreshable provider when a refresh token and secret are given, and
    a static provider otherwise.
    """
    transport = HttpxTransport(timeout=config.timeout)
    options = {"pre_auth": config.pre_auth, "initial_scopes": config.initial_scopes}

    if config.client_secret and not config.access_token:
        logger.info("Using client credentials", client_id=config.client_id)
        return TwitchClient.with_client_credentials(
            config.client_id,
            config.client_secret,
            transport=transport,
            **options,
        )

    refresh_config = None
    if config.refresh_token and config.client_secret:
        refresh_config = RefreshConfig(
            client_secret=config.client_secret,
            refresh_token=config.refresh_token,
        )
    logger.info(
        "Using fixed credentials",
        client_id=config.client_id,
        refreshable=refresh_config is not None,
    )
    return TwitchClient.with_credentials(
        config.client_id,
        config.access_token,
        config.scopes,
        refresh_config,
        config.token_type,
        transport=transport,
        **options,
    )


def create_client_from_env(config_path: str | None = None) -> TwitchClient:
    """Create a client using a config path or the environment default."""
    resolved_path = config_path or os.environ.get(CONFIG_ENV_VAR, "twitch.json")
    config = load_config(resolved_path)
    configure_logging(config.log_level)
    return create_client(config)
