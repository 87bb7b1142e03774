"""Centralized settings for autokernel.

One validated, cached settings object holds every knob of the bridge. All
fields can be set through ``AUTOKERNEL_*`` environment variables (e.g.
``AUTOKERNEL_STRICT_SYMBOLS=false``) or a ``.env`` file.

Fields
──────
kernel_dir              : Kernel source tree the symbol universe belongs to
log_level               : structlog log level
log_format              : ``json``, ``console`` or ``auto``
strict_symbols          : Unknown symbol names abort the whole apply
sandbox                 : Strip file and process access from the Lua runtime
script_timeout_seconds  : Wall-clock deadline per script (None disables)
max_load_depth          : Bound on nested ``load_kconfig`` calls
symbol_prefix           : Prefix of generated symbol bindings

Tags:
    settings, configuration, pydantic, environment, autokernel
"""

from __future__ import annotations

import re
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class AutokernelSettings(BaseSettings):
    """autokernel configuration."""

    model_config = SettingsConfigDict(
        env_prefix="AUTOKERNEL_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Kernel ───────────────────────────────────────────────────
    kernel_dir: Path = Field(default=Path("/usr/src/linux"))

    # ── Logging ──────────────────────────────────────────────────
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="auto", description="json, console or auto")

    # ── Bridge policy ────────────────────────────────────────────
    strict_symbols: bool = Field(default=True, description="Unknown symbols abort the apply")
    sandbox: bool = Field(default=True)
    script_timeout_seconds: float | None = Field(default=None, gt=0)
    max_load_depth: int = Field(default=16, ge=1)
    symbol_prefix: str = Field(default="CONFIG_")

    @field_validator("log_level")
    @classmethod
    def _check_level(cls, value: str) -> str:
        if value.upper() not in _LEVELS:
            raise ValueError(f"log_level must be one of {sorted(_LEVELS)}")
        return value.upper()

    @field_validator("log_format")
    @classmethod
    def _check_format(cls, value: str) -> str:
        if value not in ("json", "console", "auto"):
            raise ValueError("log_format must be json, console or auto")
        return value

    @field_validator("symbol_prefix")
    @classmethod
    def _check_prefix(cls, value: str) -> str:
        if not re.fullmatch(r"[A-Za-z_][A-Za-z0-9_]*", value):
            raise ValueError("symbol_prefix must be a valid identifier")
        return value

    @property
    def json_logs(self) -> bool | None:
        """Renderer choice for ``configure_logging`` (None means auto-detect)."""
        if self.log_format == "auto":
            return None
        return self.log_format == "json"


# ── Settings factory with caching ────────────────────────────────────────

_settings_cache: dict[str, AutokernelSettings] = {}


def get_settings(*, _force_reload: bool = False) -> AutokernelSettings:
    """Load, validate, and cache an :class:`AutokernelSettings` instance."""
    if not _force_reload and "default" in _settings_cache:
        return _settings_cache["default"]
    settings = AutokernelSettings()
    _settings_cache["default"] = settings
    return settings


def clear_settings_cache() -> None:
    """Clear the settings cache (primarily for testing)."""
    _settings_cache.clear()


__all__ = ["AutokernelSettings", "get_settings", "clear_settings_cache"]
