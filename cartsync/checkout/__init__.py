"""
Checkout — snapshot, price, and place an order from the cart.

    from cartsync import checkout

    orchestrator = checkout.CheckoutOrchestrator(engine, orders, settings=settings)
    await orchestrator.place_order("12 MG Road, Pune")
"""

from __future__ import annotations

from cartsync.checkout._types import OrderSnapshot, PlacedOrder
from cartsync.checkout._totals import price_snapshot
from cartsync.checkout._orchestrator import HeaderRemovalFailed, CheckoutOrchestrator

__all__ = (
    "OrderSnapshot",
    "PlacedOrder",
    "price_snapshot",
    "HeaderRemovalFailed",
    "CheckoutOrchestrator",
)
