"""
Core types for cartsync.

Re-exports from kungfu + identifier and money aliases.
"""

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP

# Re-export from kungfu
from kungfu import Result, Ok, Error, LazyCoroResult

# ═══════════════════════════════════════════════════════════════════════════════
# Identifiers
# ═══════════════════════════════════════════════════════════════════════════════

type OwnerId = str
"""Identity that owns a cart or an order."""

type ProductId = str
"""Catalog product identity. Unique across the lines of one cart."""

type OrderId = str
"""Remote order identity, assigned by the order store."""

type LineId = str
"""Remote cart row identity."""

# ═══════════════════════════════════════════════════════════════════════════════
# Money
# ═══════════════════════════════════════════════════════════════════════════════

CENT = Decimal("0.01")


def to_money(value: Decimal | int | float | str) -> Decimal:
    """Quantize an amount to cents, rounding half up."""
    if isinstance(value, float):
        value = str(value)
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    # Re-exports from kungfu
    "Result",
    "Ok",
    "Error",
    "LazyCoroResult",
    # Identifiers
    "OwnerId",
    "ProductId",
    "OrderId",
    "LineId",
    # Money
    "CENT",
    "to_money",
)
