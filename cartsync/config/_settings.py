"""Unified settings — init kwargs, env vars, and a TOML file in one object.

Priority chain (highest to lowest):
  1. Init kwargs  — values passed in code
  2. Env vars     — ``CARTSYNC_*`` prefix, ``__`` for nested sections
  3. TOML file    — ``cartsync.toml`` given to :meth:`CartSyncSettings.load`
  4. Code defaults — baked into the section models
"""

from __future__ import annotations

import threading
import tomllib
from pathlib import Path
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from cartsync.config._models import (
    CartConfig,
    CheckoutConfig,
    DatabaseConfig,
    LoggingConfig,
    PricingConfig,
)

CONFIG_FILENAME = "cartsync.toml"


class ConfigError(Exception):
    """Raised when a configuration file cannot be parsed."""


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Read settings from a ``cartsync.toml`` file."""

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._data: dict[str, Any] = {}
        if toml_path and toml_path.is_file():
            raw = toml_path.read_text(encoding="utf-8")
            try:
                self._data = tomllib.loads(raw)
            except tomllib.TOMLDecodeError as exc:
                raise ConfigError(f"Invalid TOML in {toml_path}: {exc}") from exc

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        val = self._data.get(field_name)
        return val, field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        return self._data


# Thread-local storage for TOML path during construction.
_tls = threading.local()


class CartSyncSettings(BaseSettings):
    """Frozen settings for the cart engine, checkout and stores."""

    model_config = {
        "frozen": True,
        "env_prefix": "CARTSYNC_",
        "env_nested_delimiter": "__",
    }

    config_path: Path | None = None

    pricing: PricingConfig = Field(default_factory=PricingConfig)
    cart: CartConfig = Field(default_factory=CartConfig)
    checkout: CheckoutConfig = Field(default_factory=CheckoutConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Insert TOML source between env vars and defaults."""
        toml_path = getattr(_tls, "toml_path", None)
        return (
            init_settings,
            env_settings,
            TomlSettingsSource(settings_cls, toml_path),
        )

    @classmethod
    def load(cls, config_path: Path | str | None = None, **overrides: Any) -> CartSyncSettings:
        """
        Build settings, reading *config_path* (or ``./cartsync.toml`` if present).

        Keyword *overrides* win over every other source.
        """
        if config_path is not None:
            toml_path: Path | None = Path(config_path)
        else:
            candidate = Path.cwd() / CONFIG_FILENAME
            toml_path = candidate if candidate.is_file() else None

        _tls.toml_path = toml_path
        try:
            return cls(config_path=toml_path, **overrides)
        finally:
            _tls.toml_path = None


__all__ = ("CONFIG_FILENAME", "ConfigError", "TomlSettingsSource", "CartSyncSettings")
