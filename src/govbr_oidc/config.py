"""Process configuration.

Everything is read from the environment once at startup and handed to
the components that need it. A missing required value stops the process.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field

from govbr_oidc.models.errors import ConfigurationError, ConfigurationMissingError

logger = logging.getLogger(__name__)

_REQUIRED = {
    "provider_url": "GOVBR_URL_PROVIDER",
    "redirect_uri": "GOVBR_REDIRECT_URI",
    "scopes": "GOVBR_SCOPES",
    "client_id": "GOVBR_CLIENT_ID",
    "client_secret": "GOVBR_CLIENT_SECRET",
    "post_logout_redirect_uri": "GOVBR_LOGOUT_URI",
    "session_secret": "SESSION_SECRET",
}

_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


@dataclass(frozen=True)
class ProviderConfig:
    """Static description of the identity provider and this client."""

    provider_url: str
    redirect_uri: str
    scopes: str
    client_id: str
    client_secret: str = field(repr=False)
    post_logout_redirect_uri: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "provider_url", self.provider_url.rstrip("/"))

    @property
    def authorization_endpoint(self) -> str:
        return f"{self.provider_url}/authorize"

    @property
    def token_endpoint(self) -> str:
        return f"{self.provider_url}/token"

    @property
    def userinfo_endpoint(self) -> str:
        return f"{self.provider_url}/userinfo"

    @property
    def end_session_endpoint(self) -> str:
        return f"{self.provider_url}/logout"


@dataclass(frozen=True)
class AppConfig:
    """Configuration for the web application."""

    provider: ProviderConfig
    session_secret: str = field(repr=False)
    session_cookie: str = "session"
    session_max_age: int = 14 * 24 * 60 * 60
    https_only: bool = False
    http_timeout: float = 10.0
    login_attempt_ttl: float = 600.0
    host: str = "127.0.0.1"
    port: int = 3000
    log_level: str = "INFO"


def load_config(environ: Mapping[str, str] | None = None) -> AppConfig:
    """Build the application configuration from environment variables.

    Args:
        environ: Mapping to read from, defaults to os.environ

    Returns:
        AppConfig: Validated configuration

    Raises:
        ConfigurationMissingError: If any required variable is unset or blank
        ConfigurationError: If an optional variable has an invalid value
    """
    env = os.environ if environ is None else environ

    values = {name: env.get(var, "").strip() for name, var in _REQUIRED.items()}
    missing = [_REQUIRED[name] for name, value in values.items() if not value]
    if missing:
        raise ConfigurationMissingError(missing)

    log_level = env.get("LOG_LEVEL", "INFO").strip().upper() or "INFO"
    if log_level not in _LOG_LEVELS:
        raise ConfigurationError(f"Invalid value for LOG_LEVEL: {log_level!r}")

    session_secret = values.pop("session_secret")
    provider = ProviderConfig(**values)

    config = AppConfig(
        provider=provider,
        session_secret=session_secret,
        session_cookie=env.get("SESSION_COOKIE", "session"),
        session_max_age=_parse(env, "SESSION_MAX_AGE", int, 14 * 24 * 60 * 60),
        https_only=_parse_bool(env, "SESSION_HTTPS_ONLY", False),
        http_timeout=_parse(env, "HTTP_TIMEOUT", float, 10.0),
        login_attempt_ttl=_parse(env, "LOGIN_ATTEMPT_TTL", float, 600.0),
        host=env.get("HOST", "127.0.0.1"),
        port=_parse(env, "PORT", int, 3000),
        log_level=log_level,
    )

    logger.debug(
        f"Loaded configuration for provider {provider.provider_url} "
        f"with client {provider.client_id}"
    )
    return config


def _parse(env: Mapping[str, str], var: str, type_: type, default):
    raw = env.get(var)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = type_(raw)
    except ValueError as e:
        raise ConfigurationError(f"Invalid value for {var}: {raw!r}") from e
    if value <= 0:
        raise ConfigurationError(f"{var} must be positive, got {raw!r}")
    return value


def _parse_bool(env: Mapping[str, str], var: str, default: bool) -> bool:
    raw = env.get(var)
    if raw is None or raw.strip() == "":
        return default
    lowered = raw.strip().lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off"):
        return False
    raise ConfigurationError(f"Invalid value for {var}: {raw!r}")
