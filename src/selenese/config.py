"""
Session configuration.

Settings come from (highest priority first) explicit overrides, environment
variables with the SELENESE_ prefix, a YAML config file, and defaults.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Self

import yaml
from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, EnvSettingsSource, SettingsConfigDict

from selenese.log import LogLevel

DEFAULT_PAGE_LOAD_SCRIPT = "selenium.browserbot.getCurrentWindow().document.readyState"

STANDARD_CONFIG_PATHS: tuple[Path, ...] = (
    Path(".selenese.yaml"),
    Path(".selenese.yml"),
    Path("selenese.yaml"),
    Path("selenese.yml"),
)


class SessionSettings(BaseSettings):
    """Session-wide defaults for transport, waits and logging."""

    model_config = SettingsConfigDict(
        env_prefix="SELENESE_",
        case_sensitive=False,
        extra="ignore",
    )

    # Remote endpoint
    base_url: str = Field(
        default="http://localhost:4444",
        description="Address of the remote execution endpoint",
    )
    browser: str = Field(default="*firefox", description="Browser launcher string")
    start_url: str = Field(default="about:blank")
    username: SecretStr | None = None
    password: SecretStr | None = None
    transport_timeout_ms: int = Field(default=30000, gt=0, le=600000)

    # Waits
    wait_timeout_ms: int = Field(default=30000, gt=0, le=3600000)
    poll_interval_ms: int = Field(default=500, gt=0)
    max_consecutive_transport_errors: int = Field(default=5, ge=1, le=1000)
    page_load_script: str = DEFAULT_PAGE_LOAD_SCRIPT

    log_level: LogLevel = LogLevel.INFO

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Ensure base_url is valid and strip trailing slashes."""
        v = v.rstrip("/")
        if not v.startswith(("http://", "https://")):
            raise ValueError("base_url must start with http:// or https://")
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.strip().lower()
            if v == "warning":
                return LogLevel.WARN
        return v

    @model_validator(mode="after")
    def validate_wait_settings(self) -> Self:
        if self.poll_interval_ms > self.wait_timeout_ms:
            raise ValueError("poll_interval_ms cannot exceed wait_timeout_ms")
        return self

    @property
    def credentials(self) -> tuple[str, str] | None:
        """Basic-auth credentials, if both parts are configured."""
        if self.username is None or self.password is None:
            return None
        return self.username.get_secret_value(), self.password.get_secret_value()

    def with_overrides(self, **overrides: Any) -> SessionSettings:
        """Return a copy with explicit overrides applied (None values ignored)."""
        data = self.model_dump()
        data.update({k: v for k, v in overrides.items() if v is not None})
        # Init values rank above the environment.
        return type(self)(**data)


def read_config_file(config_file: Path | str | None = None) -> dict[str, Any]:
    """Read a YAML config file, falling back to the standard locations."""
    candidates = [Path(config_file)] if config_file else list(STANDARD_CONFIG_PATHS)
    for path in candidates:
        if path.exists():
            with path.open(encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
            if not isinstance(data, dict):
                raise ValueError(f"Config file {path} must contain a mapping")
            return data
    if config_file:
        raise FileNotFoundError(f"Config file not found: {config_file}")
    return {}


def load_settings(config_file: Path | str | None = None, **overrides: Any) -> SessionSettings:
    """
    Load session settings.

    Priority (highest to lowest):
    1. Explicit keyword overrides
    2. Environment variables
    3. Config file
    4. Defaults
    """
    data = read_config_file(config_file)
    data.update(EnvSettingsSource(SessionSettings)())
    data.update({k: v for k, v in overrides.items() if v is not None})
    return SessionSettings(**data)
