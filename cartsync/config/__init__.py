"""
Config — settings and logging setup.

    from cartsync import config

    settings = config.CartSyncSettings.load("cartsync.toml")
    config.configure_logging(
        verbose=settings.logging.verbose,
        log_json=settings.logging.json_output,
    )
"""

from __future__ import annotations

from cartsync.config._models import (
    StockPolicy,
    PricingConfig,
    CartConfig,
    CheckoutConfig,
    DatabaseConfig,
    LoggingConfig,
)
from cartsync.config._settings import (
    CONFIG_FILENAME,
    ConfigError,
    TomlSettingsSource,
    CartSyncSettings,
)
from cartsync.config._logging import configure_logging

__all__ = (
    "StockPolicy",
    "PricingConfig",
    "CartConfig",
    "CheckoutConfig",
    "DatabaseConfig",
    "LoggingConfig",
    "CONFIG_FILENAME",
    "ConfigError",
    "TomlSettingsSource",
    "CartSyncSettings",
    "configure_logging",
)
