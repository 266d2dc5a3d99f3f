"""
Order totals — pure, no I/O.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal

from cartsync._types import to_money
from cartsync.cart import CartLine
from cartsync.checkout._types import OrderSnapshot
from cartsync.config import PricingConfig


def price_snapshot(
    lines: Iterable[CartLine],
    delivery_address: str,
    pricing: PricingConfig,
) -> OrderSnapshot:
    """
    Freeze lines and compute subtotal, tax and grand total in cents.

    Example:
        snap = price_snapshot(lines, "12 MG Road", PricingConfig())
        # [10 x 2, 5 x 1] -> subtotal 25.00, tax 2.00, grand_total 29.99
    """
    frozen = tuple(lines)
    subtotal = to_money(sum((line.total for line in frozen), Decimal(0)))
    delivery_fee = to_money(pricing.delivery_fee)
    tax = to_money(subtotal * pricing.tax_rate)
    return OrderSnapshot(
        lines=frozen,
        subtotal=subtotal,
        delivery_fee=delivery_fee,
        tax=tax,
        grand_total=to_money(subtotal + delivery_fee + tax),
        delivery_address=delivery_address,
    )


__all__ = ("price_snapshot",)
