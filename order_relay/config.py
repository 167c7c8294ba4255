"""
config.py — Process Configuration for the Order Relay

Settings are read once from the environment (and an optional `.env` file) at startup
and are immutable afterwards. Every request shares the same Settings instance.

Environment variables:
    PORT                Listening port (default 3000)
    API_URL             Downstream accounting endpoint (no default)
    APP_ENV             'development' or 'production' (falls back to NODE_ENV, default production)
    API_TIMEOUT         Outbound request timeout in milliseconds (default 5000)
    MAX_BODY_BYTES      Maximum accepted webhook body size (default 10240)
    LOG_LEVEL           Logging level (default INFO)
    LOG_FILE            Log file path, empty disables the file sink (default webhook.log)
    ALLOW_INSECURE_TLS  Disable TLS verification for the downstream call (development only)
"""

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import List, Literal

from dotenv import load_dotenv

Environment = Literal["development", "production"]

DEFAULT_PORT = 3000
DEFAULT_TIMEOUT_MS = 5000
DEFAULT_MAX_BODY_BYTES = 10 * 1024
DEFAULT_LOG_FILE = "webhook.log"

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    """
    Immutable process configuration.

    Attributes:
        port (int): Port the HTTP server listens on.
        api_url (str): URL the Transaction Record is POSTed to. Empty means unconfigured.
        environment (str): Deployment mode. Controls error-detail exposure.
        api_timeout_ms (int): Hard timeout for the outbound call.
        max_body_bytes (int): Largest accepted webhook body.
        log_level (str): Root logging level.
        log_file (str): File sink for logs, or empty for stdout only.
        allow_insecure_tls (bool): Skip certificate verification on the outbound call.
    """
    port: int = DEFAULT_PORT
    api_url: str = ""
    environment: Environment = "production"
    api_timeout_ms: int = DEFAULT_TIMEOUT_MS
    max_body_bytes: int = DEFAULT_MAX_BODY_BYTES
    log_level: str = "INFO"
    log_file: str = DEFAULT_LOG_FILE
    allow_insecure_tls: bool = False

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def verify_tls(self) -> bool:
        return not self.allow_insecure_tls

    @property
    def api_timeout_seconds(self) -> float:
        return self.api_timeout_ms / 1000

    def validate(self) -> List[str]:
        """
        Checks the settings for combinations that must never reach a running process.

        Returns:
            List[str]: Error messages; empty when the settings are usable.
        """
        errors = []
        if self.allow_insecure_tls and not self.is_development:
            errors.append("ALLOW_INSECURE_TLS is only permitted when APP_ENV=development")
        if self.api_timeout_ms <= 0:
            errors.append(f"API_TIMEOUT must be positive, got {self.api_timeout_ms}")
        if self.max_body_bytes <= 0:
            errors.append(f"MAX_BODY_BYTES must be positive, got {self.max_body_bytes}")
        return errors


def _parse_environment(value: str) -> Environment:
    if value.strip().lower() in ("development", "dev"):
        return "development"
    return "production"


def _parse_int(value, default: int) -> int:
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        return default
    return parsed if parsed > 0 else default


def _parse_bool(value) -> bool:
    return str(value or "").strip().lower() in _TRUE_VALUES


def load_settings(environ=None) -> Settings:
    """
    Builds Settings from environment variables.

    Args:
        environ (Mapping[str, str], optional): Source mapping. Defaults to os.environ
            after loading a `.env` file from the working directory.

    Returns:
        Settings: The parsed configuration.
    """
    if environ is None:
        load_dotenv(override=False)
        environ = os.environ

    mode = environ.get("APP_ENV") or environ.get("NODE_ENV") or "production"

    return Settings(
        port=_parse_int(environ.get("PORT"), DEFAULT_PORT),
        api_url=environ.get("API_URL", "").strip(),
        environment=_parse_environment(mode),
        api_timeout_ms=_parse_int(environ.get("API_TIMEOUT"), DEFAULT_TIMEOUT_MS),
        max_body_bytes=_parse_int(environ.get("MAX_BODY_BYTES"), DEFAULT_MAX_BODY_BYTES),
        log_level=environ.get("LOG_LEVEL", "INFO").upper(),
        log_file=environ.get("LOG_FILE", DEFAULT_LOG_FILE),
        allow_insecure_tls=_parse_bool(environ.get("ALLOW_INSECURE_TLS")),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Returns the process-wide Settings, loading them on first use."""
    return load_settings()
