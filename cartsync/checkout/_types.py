"""
Checkout types.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from cartsync.cart import CartLine
from cartsync.gateway import Order, OrderLine


@dataclass(frozen=True, slots=True)
class OrderSnapshot:
    """
    Cart contents and derived totals, frozen when checkout begins.

    Later cart edits never reach an order in flight.
    """

    lines: tuple[CartLine, ...]
    subtotal: Decimal
    delivery_fee: Decimal
    tax: Decimal
    grand_total: Decimal
    delivery_address: str


@dataclass(frozen=True, slots=True)
class PlacedOrder:
    """
    A persisted order with all of its lines.

    cart_cleared is False when the order stands but the cart could not be
    emptied afterwards.
    """

    order: Order
    lines: tuple[OrderLine, ...]
    cart_cleared: bool = True


__all__ = ("OrderSnapshot", "PlacedOrder")
