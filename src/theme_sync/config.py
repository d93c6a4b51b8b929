"""Configuration models for theme sync sessions.

Settings come from (lowest to highest precedence) model defaults, an optional
YAML file, credential environment variables and explicit overrides:

    # theme-sync.yml
    name: my-store
    api_key: abc123
    password: shppa_...
    theme_id: "123456789"
    base_path: theme
    rate:
      policy: position
      burst: 40
      leak_rate: 2
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING, Any, Literal, Self

from pydantic import BaseModel, ConfigDict, Field, SecretStr, ValidationError, field_validator
import yaml

from theme_sync.exceptions import ConfigurationError
from theme_sync.keys import DEFAULT_IGNORE_PATTERNS


if TYPE_CHECKING:
    from collections.abc import Mapping


ENV_API_KEY = "THEME_SYNC_API_KEY"
ENV_PASSWORD = "THEME_SYNC_PASSWORD"
ENV_STORE = "THEME_SYNC_STORE"

RatePolicyName = Literal["telemetry", "position"]


class RateConfig(BaseModel):
    """Configuration for admission delays before remote calls."""

    model_config = ConfigDict(extra="forbid")

    policy: RatePolicyName = Field(
        default="telemetry",
        examples=["telemetry", "position"],
        title="Rate policy",
    )
    """Use live call-budget telemetry or a static leaky bucket model."""

    burst: int = Field(default=40, ge=0, examples=[36, 40], title="Burst bucket size")
    """Number of calls admitted without delay (position policy)."""

    leak_rate: float = Field(default=2.0, gt=0, examples=[2.0, 4.0], title="Leak rate")
    """Sustained calls per second the bucket drains at (position policy)."""

    cooldown: float = Field(default=1.0, ge=0, examples=[0.5, 1.0], title="Cooldown")
    """Seconds to wait once the budget is above the threshold (telemetry policy)."""

    threshold: float = Field(default=0.5, ge=0, le=1, title="Budget threshold")
    """Budget usage ratio above which the cooldown applies (telemetry policy)."""


class SyncConfig(BaseModel):
    """Root configuration for a sync session."""

    model_config = ConfigDict(extra="ignore")

    name: str = Field(default="", examples=["my-store"], title="Store name")
    """Store name, used to derive the host when none is given."""

    api_key: SecretStr | None = Field(default=None, title="API key")
    """Private app API key."""

    password: SecretStr | None = Field(default=None, title="API password")
    """Private app password or access token."""

    host: str | None = Field(default=None, examples=["my-store.myshopify.com"], title="Host")
    """Store host (default: `<name>.myshopify.com`)."""

    api_version: str = Field(default="2024-01", examples=["2024-01"], title="API version")
    """Admin API version segment used in request URLs."""

    theme_id: str | None = Field(default=None, examples=["123456789"], title="Theme id")
    """Target theme. Unknown ids trigger interactive selection in the CLI."""

    theme_name: str = Field(default="", title="Theme name")
    """Name of the target theme, filled in by theme resolution."""

    base_path: str = Field(default="", examples=["theme", "/srv/shop/theme"], title="Base path")
    """Directory asset keys are relative to (default: working directory)."""

    open_browser: bool = Field(default=False, title="Open browser")
    """Open the theme preview in a browser once connected."""

    timeout: float = Field(default=120.0, gt=0, title="Network timeout")
    """Per-call network timeout in seconds."""

    ignore_patterns: list[str] = Field(
        default_factory=lambda: list(DEFAULT_IGNORE_PATTERNS),
        examples=[[".DS_Store", "*.swp"]],
        title="Ignore patterns",
    )
    """Glob patterns for path components that are never synced."""

    rate: RateConfig = Field(default_factory=RateConfig)
    """Admission delay configuration."""

    @field_validator("theme_id", mode="before")
    @classmethod
    def _coerce_theme_id(cls, value: Any) -> str | None:
        if value is None or value == "":
            return None
        return str(value)

    @property
    def resolved_host(self) -> str | None:
        if self.host:
            return self.host
        return f"{self.name}.myshopify.com" if self.name else None

    @property
    def preview_url(self) -> str:
        return f"https://{self.resolved_host}?preview_theme_id={self.theme_id or ''}"

    @property
    def resolved_base_path(self) -> Path:
        """Absolute base path, with symlinks left unresolved."""
        return Path(os.path.abspath(self.base_path)) if self.base_path else Path.cwd()

    @classmethod
    def from_file(cls, path: str | os.PathLike[str]) -> Self:
        """Load configuration from a YAML file.

        Raises:
            ConfigurationError: If the file is unreadable or not a mapping
        """
        try:
            data = yaml.safe_load(Path(path).read_text()) or {}
        except (OSError, yaml.YAMLError) as e:
            msg = f"Could not read config file {os.fspath(path)!r}: {e}"
            raise ConfigurationError(msg) from e
        if not isinstance(data, dict):
            msg = f"Config file {os.fspath(path)!r} must contain a mapping"
            raise ConfigurationError(msg)
        return cls.model_validate(data)

    def with_env(self, environ: Mapping[str, str] | None = None) -> Self:
        """Apply credential environment variables on top of this config."""
        env = os.environ if environ is None else environ
        return self.merged(
            api_key=env.get(ENV_API_KEY) or None,
            password=env.get(ENV_PASSWORD) or None,
            name=env.get(ENV_STORE) or None,
        )

    def merged(self, **overrides: Any) -> Self:
        """Return a copy with overrides applied.

        None values and unknown keys are ignored. A `rate` mapping is merged
        into the current rate settings instead of replacing them.
        """
        data = self.model_dump()
        for key, value in overrides.items():
            if value is None or key not in type(self).model_fields:
                continue
            if key == "rate" and isinstance(value, dict):
                data["rate"] = {**data["rate"], **value}
            else:
                data[key] = value
        for secret in ("api_key", "password"):
            if isinstance(data[secret], SecretStr):
                data[secret] = data[secret].get_secret_value()
        return type(self).model_validate(data)

    def validate_credentials(self) -> None:
        """Check that API key, password and host are present.

        Raises:
            ConfigurationError: Naming the first missing item
        """
        if not self.api_key or not self.api_key.get_secret_value():
            msg = "API key for the store does not exist"
            raise ConfigurationError(msg)
        if not self.password or not self.password.get_secret_value():
            msg = "Password for the store does not exist"
            raise ConfigurationError(msg)
        if not self.resolved_host:
            msg = "Host for the store does not exist"
            raise ConfigurationError(msg)

    def require_theme(self) -> str:
        """Get the theme id, raising if none is configured."""
        if not self.theme_id:
            msg = "No theme id configured"
            raise ConfigurationError(msg)
        return self.theme_id


def load_config(path: str | os.PathLike[str] | None = None, **overrides: Any) -> SyncConfig:
    """Build a config from an optional file, the environment and overrides.

    Raises:
        ConfigurationError: If the file is unreadable or any value is invalid
    """
    try:
        config = SyncConfig.from_file(path) if path else SyncConfig()
        return config.with_env().merged(**overrides)
    except ValidationError as e:
        msg = f"Invalid configuration: {e}"
        raise ConfigurationError(msg) from e
