"""Process configuration, loaded once at startup and never mutated."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_PORT = 5000
DEFAULT_API_BASE_URL = "https://api.line.me"
DEFAULT_API_TIMEOUT = 10.0
LINK_TRIGGER = "連携する"
UNLINK_TRIGGER = "連携解除"

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class ConfigError(Exception):
    """Raised when required configuration is missing or invalid."""


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True)

    channel_secret: str = Field(min_length=1)
    channel_token: str = Field(min_length=1)
    login_url: str = ""
    port: int = Field(default=DEFAULT_PORT, ge=1, le=65535)
    api_base_url: str = DEFAULT_API_BASE_URL
    api_timeout: float = Field(default=DEFAULT_API_TIMEOUT, gt=0)
    audit_log_path: str | None = None
    link_trigger: str = LINK_TRIGGER
    unlink_trigger: str = UNLINK_TRIGGER

    @classmethod
    def from_env(
        cls,
        env_file: str | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> Settings:
        """Build Settings from environment variables.

        A .env file is loaded first when present; variables already set in
        the process environment take precedence over it. Passing ``environ``
        skips the process environment and .env loading entirely.
        """
        if environ is None:
            load_dotenv(env_file)
            environ = os.environ

        missing = [
            name for name in ("LINE_CHANNEL_SECRET", "LINE_CHANNEL_TOKEN")
            if not environ.get(name)
        ]
        if missing:
            raise ConfigError(f"Missing required environment variables: {', '.join(missing)}")

        login_url = environ.get("FRONT_END_LOGIN_URL", "")
        if not login_url:
            logger.warning("FRONT_END_LOGIN_URL is not set; link prompts will carry a bare query string")

        try:
            return cls(
                channel_secret=environ["LINE_CHANNEL_SECRET"],
                channel_token=environ["LINE_CHANNEL_TOKEN"],
                login_url=login_url,
                port=int(environ.get("PORT") or DEFAULT_PORT),
                api_base_url=environ.get("LINE_API_BASE_URL") or DEFAULT_API_BASE_URL,
                api_timeout=float(environ.get("LINE_API_TIMEOUT") or DEFAULT_API_TIMEOUT),
                audit_log_path=environ.get("AUDIT_LOG_PATH") or None,
            )
        except (ValueError, ValidationError) as exc:
            raise ConfigError(f"Invalid configuration: {exc}") from exc


def configure_logging(level: str | None = None) -> None:
    """Set up root logging with LOG_LEVEL (default INFO)."""
    level_name = (level or os.environ.get("LOG_LEVEL") or "INFO").upper()
    logging.basicConfig(level=level_name, format=_LOG_FORMAT)
