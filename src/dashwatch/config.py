"""Application configuration via environment variables and .env file."""

import logging
import math
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path

from pydantic import AliasChoices, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings
from pydantic_settings.sources import DotEnvSettingsSource, PydanticBaseSettingsSource

from dashwatch.device import parse_mac
from dashwatch.errors import ConfigurationError

# Path to .env file (patch in tests to use tmp_path / ".env")
_ENV_FILE: Path = Path(".env")

DEFAULT_DEBOUNCE_SECONDS = 5.0
# Upper bound for any duration setting; keeps timedelta() from overflowing.
_MAX_SECONDS = timedelta(days=365).total_seconds()


@dataclass(frozen=True)
class MonitorConfig:
    """Everything the monitor needs, resolved once at startup."""

    interface: str
    target_mac: bytes
    channel: str
    message: str
    token: str
    debounce_interval: timedelta = timedelta(seconds=DEFAULT_DEBOUNCE_SECONDS)
    notify_timeout: float = 10.0  # seconds
    poll_interval: float = 0.5  # seconds, bounds shutdown latency

    def __post_init__(self) -> None:
        if not self.interface:
            raise ConfigurationError("interface name is required")
        if len(self.target_mac) != 6:
            raise ConfigurationError(
                f"hardware address must be 6 bytes, got {len(self.target_mac)}"
            )
        if not self.channel:
            raise ConfigurationError("destination channel is required")
        if self.debounce_interval <= timedelta(0):
            raise ConfigurationError("debounce interval must be positive")
        if self.notify_timeout <= 0:
            raise ConfigurationError("notify timeout must be positive")
        if self.poll_interval <= 0:
            raise ConfigurationError("poll interval must be positive")


class Settings(BaseSettings):
    model_config = {
        "env_prefix": "DASHWATCH_",
        "env_file_encoding": "utf-8",
    }

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Load .env from _ENV_FILE (patchable in tests)
        return (
            init_settings,
            env_settings,
            DotEnvSettingsSource(
                settings_cls,
                env_file=_ENV_FILE,
                env_file_encoding="utf-8",
            ),
            file_secret_settings,
        )

    # Logging
    log_level: str = "info"

    # Capture
    interface: str | None = None
    poll_interval: float = 0.5

    # Dash button. Unprefixed SLACK_API_TOKEN / DASH_BUTTON_MAC_ADDR are accepted too.
    dash_button_mac_addr: str | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "dash_button_mac_addr",
            "DASHWATCH_DASH_BUTTON_MAC_ADDR",
            "DASH_BUTTON_MAC_ADDR",
        ),
    )
    debounce_interval: float = DEFAULT_DEBOUNCE_SECONDS  # seconds

    # Slack
    slack_api_token: str | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "slack_api_token",
            "DASHWATCH_SLACK_API_TOKEN",
            "SLACK_API_TOKEN",
        ),
    )
    channel: str | None = None
    message: str | None = None
    notify_timeout: float = 10.0

    @field_validator(
        "interface", "dash_button_mac_addr", "slack_api_token", "channel", mode="before"
    )
    @classmethod
    def blank_to_none(cls, v: object) -> object:
        """Treat empty environment variables as unset."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("log_level")
    @classmethod
    def check_log_level(cls, v: str) -> str:
        if v.upper() not in logging.getLevelNamesMapping():
            raise ValueError(f"unknown log level {v!r}")
        return v.lower()

    @field_validator("debounce_interval", "notify_timeout", "poll_interval")
    @classmethod
    def check_duration(cls, v: float) -> float:
        if not math.isfinite(v) or v <= 0:
            raise ValueError("must be a positive number of seconds")
        if v > _MAX_SECONDS:
            raise ValueError(f"must be at most {_MAX_SECONDS:.0f} seconds")
        return v

    def to_monitor_config(self) -> MonitorConfig:
        """Validate the loaded values and build the immutable MonitorConfig."""
        if not self.interface:
            raise ConfigurationError("interface name is required")
        if not self.channel:
            raise ConfigurationError("destination channel is required")
        if self.message is None:
            raise ConfigurationError("message text is required")
        if not self.slack_api_token:
            raise ConfigurationError("Slack API token is required (SLACK_API_TOKEN)")
        return MonitorConfig(
            interface=self.interface,
            target_mac=parse_mac(self.dash_button_mac_addr or ""),
            channel=self.channel,
            message=self.message,
            token=self.slack_api_token,
            debounce_interval=timedelta(seconds=self.debounce_interval),
            notify_timeout=self.notify_timeout,
            poll_interval=self.poll_interval,
        )


def load_config(**overrides: object) -> Settings:
    """Load configuration from .env and environment (env overrides .env).

    Keyword overrides (e.g. parsed command-line flags) take precedence over
    both; None values are ignored so unset flags fall back to the environment.
    Invalid values raise ConfigurationError.
    """
    try:
        return Settings(**{k: v for k, v in overrides.items() if v is not None})
    except ValidationError as e:
        raise ConfigurationError(str(e)) from e
