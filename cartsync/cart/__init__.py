"""
Cart — local cart state.

    from cartsync import cart

    change = cart.set_quantity(0)      # QuantityChange(new_quantity=0, remove=True)
    projection = cart.CartProjection()
"""

from __future__ import annotations

from cartsync.cart._types import CartLine
from cartsync.cart._merge import QuantityChange, merge_add, set_quantity, clamp_to_stock
from cartsync.cart._projection import CartProjection

__all__ = (
    "CartLine",
    "QuantityChange",
    "merge_add",
    "set_quantity",
    "clamp_to_stock",
    "CartProjection",
)
