"""Configuration management.

Loads from TOML config files + environment variables.
Uses pydantic-settings for validation and env var overriding.
"""

from __future__ import annotations

from datetime import tzinfo
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field, ValidationError
from pydantic_settings import BaseSettings

from .errors import ConfigError


# ---------------------------------------------------------------------------
# Sub-configs
# ---------------------------------------------------------------------------

class StorageConfig(BaseModel):
    data_dir: str = "data"  # One JSON blob per key lives here


class RemoteConfig(BaseModel):
    """Optional remote mirror (PostgREST / Supabase style ``user_data`` table)."""

    url: str = ""
    key: str = ""
    table: str = "user_data"
    timeout_seconds: float = Field(default=10.0, gt=0)

    @property
    def enabled(self) -> bool:
        return bool(self.url and self.key)


class StatsConfig(BaseModel):
    balance_skew_seconds: float = Field(default=10.0, ge=0)  # "Current" cutoff = now + skew
    volatility_window: int = Field(default=5, ge=1)  # Trailing days for rolling std dev
    context_display_limit: int = Field(default=10, ge=1)  # Above this, only top/bottom N referees
    context_top_n: int = Field(default=5, ge=0)
    min_band_samples: int = Field(default=5, ge=0)  # Odds bands below this are low-confidence
    calendar_days: int = Field(default=70, ge=1)  # ~10 weeks of daily profit cells
    exclude_void: bool = False  # Drop pushes from performance ratios
    odds_bands: list[float] = Field(
        default_factory=lambda: [1.00, 1.60, 1.75, 1.90, 2.10], min_length=1
    )  # Lower edges; the last band is open-ended


class ObservabilityConfig(BaseModel):
    log_level: str = "INFO"
    log_format: str = "console"  # "json" or "console"


# ---------------------------------------------------------------------------
# Top-level settings
# ---------------------------------------------------------------------------

class Settings(BaseSettings):
    """Top-level application settings.

    Loaded from TOML config files, overridden by environment variables.
    """

    timezone: str = "UTC"  # IANA name; defines "today" for same-day rules
    currency: str = "BRL"

    storage: StorageConfig = Field(default_factory=StorageConfig)
    remote: RemoteConfig = Field(default_factory=RemoteConfig)
    stats: StatsConfig = Field(default_factory=StatsConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)

    model_config = {"env_prefix": "TRACKER_", "env_nested_delimiter": "__"}

    @property
    def tz(self) -> tzinfo:
        try:
            return ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ConfigError(f"Unknown timezone: {self.timezone!r}") from exc

    @property
    def data_path(self) -> Path:
        return Path(self.storage.data_dir)


def load_settings(
    config_path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> Settings:
    """Load settings from TOML file + env vars.

    Args:
        config_path: Path to TOML config file (optional).
        overrides: Dict of overrides to apply on top.

    Raises:
        ConfigError: unreadable TOML or values that fail validation.
    """
    data: dict[str, Any] = {}

    if config_path:
        path = Path(config_path)
        if path.exists():
            import tomli

            with open(path, "rb") as f:
                try:
                    data = tomli.load(f)
                except tomli.TOMLDecodeError as exc:
                    raise ConfigError(f"Invalid config file {path}: {exc}") from exc

    if overrides:
        for key, value in overrides.items():
            if isinstance(value, dict) and isinstance(data.get(key), dict):
                data[key] = {**data[key], **value}
            else:
                data[key] = value

    try:
        return Settings(**data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid settings: {exc}") from exc
