"""Configuration loading for botid."""

from pathlib import Path
from typing import Optional

import yaml
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .crypto import TIMESTAMP_WINDOW_SECONDS
from .errors import ConfigurationError
from .protocol import DEFAULT_API_URL, normalize_url


class BotIDSettings(BaseSettings):
    """Settings shared by signers, verifiers and the login flow.

    Every field can be overridden with a ``BOTID_``-prefixed environment
    variable, e.g. ``BOTID_API_URL`` or ``BOTID_TOKEN``.
    """

    model_config = SettingsConfigDict(env_prefix="BOTID_", extra="ignore")

    api_url: str = Field(default=DEFAULT_API_URL, description="Registry base URL")
    token: Optional[str] = Field(
        default=None, description="Access token for CI use (skips device login)"
    )
    home: Path = Field(
        default_factory=lambda: Path.home() / ".botid",
        description="Directory holding credentials.json and auth.json",
    )
    enforce: bool = Field(default=True, description="Reject unverified requests")
    timestamp_window: int = Field(default=TIMESTAMP_WINDOW_SECONDS, ge=0)
    request_timeout: float = Field(default=10.0, gt=0)

    @field_validator("api_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return normalize_url(v)

    @field_validator("token")
    @classmethod
    def empty_token_is_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None

    @classmethod
    def from_config(cls, config_path: str | Path) -> "BotIDSettings":
        """Load settings from a YAML configuration file.

        Environment variables still apply to keys the file leaves out.

        Raises:
            ConfigurationError: If the file cannot be loaded or parsed
        """
        config_path = Path(config_path)
        if not config_path.exists():
            raise ConfigurationError(f"Config file not found: {config_path}")

        try:
            with open(config_path, "r") as f:
                data = yaml.safe_load(f) or {}
            if not isinstance(data, dict):
                raise ConfigurationError("Config file must contain a mapping")
            return cls(**data)
        except ConfigurationError:
            raise
        except (OSError, yaml.YAMLError, ValidationError) as e:
            raise ConfigurationError(f"Failed to load config: {e}") from e


def get_settings() -> BotIDSettings:
    """Settings from the environment."""
    return BotIDSettings()
