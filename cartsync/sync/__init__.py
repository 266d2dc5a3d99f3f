"""
Sync — the cart sync engine and its session context.

    from cartsync import sync

    engine = sync.CartSyncEngine(carts, catalog, notifier, settings)
    await engine.start(channel)
    await engine.add_item("apple", 2)
"""

from __future__ import annotations

from cartsync.sync._serial import KeyedSerializer
from cartsync.sync._session import SessionState, CartSession
from cartsync.sync._engine import CartSyncEngine

__all__ = (
    "KeyedSerializer",
    "SessionState",
    "CartSession",
    "CartSyncEngine",
)
