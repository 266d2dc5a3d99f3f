"""
Pydantic configuration sections with code-baked defaults.

Sparse TOML contract: defaults live here, cartsync.toml only holds overrides.
"""

from __future__ import annotations

from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field


class StockPolicy(Enum):
    """What add/update do when the requested quantity exceeds stock."""

    CLAMP = "clamp"
    REJECT = "reject"


class PricingConfig(BaseModel):
    """[pricing] section."""

    model_config = {"frozen": True}

    delivery_fee: Decimal = Decimal("2.99")
    tax_rate: Decimal = Field(default=Decimal("0.08"), ge=0)
    currency: str = "INR"


class CartConfig(BaseModel):
    """[cart] section."""

    model_config = {"frozen": True}

    stock_policy: StockPolicy = StockPolicy.CLAMP


class CheckoutConfig(BaseModel):
    """[checkout] section."""

    model_config = {"frozen": True}

    # Delete the order header when its lines cannot be written.
    compensate_orphan_header: bool = False


class DatabaseConfig(BaseModel):
    """[database] section."""

    model_config = {"frozen": True}

    url: str = "sqlite+aiosqlite:///:memory:"
    echo: bool = False


class LoggingConfig(BaseModel):
    """[logging] section."""

    model_config = {"frozen": True}

    verbose: bool = False
    json_output: bool = False


__all__ = (
    "StockPolicy",
    "PricingConfig",
    "CartConfig",
    "CheckoutConfig",
    "DatabaseConfig",
    "LoggingConfig",
)
