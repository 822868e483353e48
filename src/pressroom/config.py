"""
Gateway configuration.

Settings are read from the environment once, at startup. Provider
credentials are optional; a provider without its credentials is skipped
at search time instead of failing.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from pressroom.errors import ConfigurationError
from pressroom.resilience import RateLimiterConfig, RetryConfig
from pressroom.telemetry import LogLevel, PressroomLogger
from pressroom.transport import resolve_credential


def _env_number(name: str, default: str, kind: type[int] | type[float]) -> int | float:
    raw = os.getenv(name, default)
    try:
        return kind(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}", setting=name) from e


@dataclass
class GatewaySettings:
    """Configuration for the integration gateway.

    Attributes:
        unsplash_access_key: Unsplash API access key
        pexels_api_key: Pexels API key
        pixabay_api_key: Pixabay API key
        openverse_client_id: Openverse OAuth client id
        openverse_client_secret: Openverse OAuth client secret
        http_timeout: Provider request timeout in seconds
        cms_timeout: WordPress request timeout in seconds
        retry: Retry configuration shared by every adapter
        rate_limit: Admission limiter configuration
        log_level: Log level
        log_format: 'text' or 'json'
    """

    unsplash_access_key: str | None = None
    pexels_api_key: str | None = None
    pixabay_api_key: str | None = None
    openverse_client_id: str | None = None
    openverse_client_secret: str | None = None
    http_timeout: float = 30.0
    cms_timeout: float = 120.0
    retry: RetryConfig = field(default_factory=RetryConfig)
    rate_limit: RateLimiterConfig = field(default_factory=RateLimiterConfig)
    log_level: LogLevel = LogLevel.INFO
    log_format: str = "text"

    @classmethod
    def from_env(cls) -> GatewaySettings:
        """Create settings from environment variables.

        Raises:
            ConfigurationError: If a numeric or enumerated variable is malformed
        """
        level_name = os.getenv("PRESSROOM_LOG_LEVEL", "INFO").upper()
        try:
            log_level = LogLevel(level_name)
        except ValueError as e:
            raise ConfigurationError(
                f"Unknown log level {level_name!r}", setting="PRESSROOM_LOG_LEVEL"
            ) from e

        log_format = os.getenv("PRESSROOM_LOG_FORMAT", "text").lower()
        if log_format not in ("text", "json"):
            raise ConfigurationError(
                f"PRESSROOM_LOG_FORMAT must be 'text' or 'json', got {log_format!r}",
                setting="PRESSROOM_LOG_FORMAT",
            )

        return cls(
            unsplash_access_key=resolve_credential("UNSPLASH_ACCESS_KEY"),
            pexels_api_key=resolve_credential("PEXELS_API_KEY"),
            pixabay_api_key=resolve_credential("PIXABAY_API_KEY"),
            openverse_client_id=resolve_credential("OPENVERSE_CLIENT_ID"),
            openverse_client_secret=resolve_credential("OPENVERSE_CLIENT_SECRET"),
            http_timeout=float(_env_number("PRESSROOM_HTTP_TIMEOUT_SECS", "30", float)),
            cms_timeout=float(_env_number("PRESSROOM_CMS_TIMEOUT_SECS", "120", float)),
            retry=RetryConfig(
                max_retries=int(_env_number("PRESSROOM_MAX_RETRIES", "3", int)),
                base_delay_ms=int(_env_number("PRESSROOM_BASE_DELAY_MS", "1000", int)),
            ),
            rate_limit=RateLimiterConfig(
                max_requests=int(_env_number("PRESSROOM_MAX_REQUESTS", "100", int)),
                window_ms=int(_env_number("PRESSROOM_WINDOW_MS", "60000", int)),
            ),
            log_level=log_level,
            log_format=log_format,
        )

    @property
    def openverse_configured(self) -> bool:
        return bool(self.openverse_client_id and self.openverse_client_secret)


def configure_logging(settings: GatewaySettings) -> None:
    """Apply the configured log level and format to every pressroom logger."""
    PressroomLogger.configure(level=settings.log_level, format=settings.log_format)
