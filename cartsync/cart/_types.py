"""
Cart types.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from cartsync._types import LineId, ProductId

@dataclass(frozen=True, slots=True)
class CartLine:
    """
    One product entry in the cart.

    quantity >= 1 while the line exists. A line that would drop to zero
    is deleted, never stored.
    """

    line_id: LineId
    product_id: ProductId
    unit_price: Decimal
    quantity: int
    display_name: str
    image_ref: str | None = None

    @property
    def total(self) -> Decimal:
        return self.unit_price * self.quantity


__all__ = ("CartLine",)
