"""
Cart projection — the local, immediately readable view of the cart.

Only the sync engine writes it. Every mutation recomputes the derived
total; carts hold tens of lines, so O(n) per operation is fine.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal

from cartsync._types import ProductId
from cartsync.cart._types import CartLine


class CartProjection:
    """
    Ordered cart lines keyed by product.

    Example:
        cart = CartProjection()
        cart.upsert(CartLine("l1", "apple", Decimal("10"), 2, "Apple"))
        cart.total        # Decimal("20")
        cart.item_count() # 2
    """

    __slots__ = ("_lines", "_total")

    def __init__(self) -> None:
        self._lines: dict[ProductId, CartLine] = {}
        self._total = Decimal(0)

    # ───────────────────────────────────────────────────────────────────────────
    # Mutations
    # ───────────────────────────────────────────────────────────────────────────

    def hydrate(self, lines: Iterable[CartLine]) -> None:
        """Replace the whole collection. Duplicate products: last one wins."""
        fresh: dict[ProductId, CartLine] = {}
        for line in lines:
            _check(line)
            fresh[line.product_id] = line
        self._lines = fresh
        self._recompute()

    def upsert(self, line: CartLine) -> None:
        """Insert, or overwrite the line for the same product in place."""
        _check(line)
        self._lines[line.product_id] = line
        self._recompute()

    def remove_by_product(self, product_id: ProductId) -> None:
        self._lines.pop(product_id, None)
        self._recompute()

    def clear(self) -> None:
        self._lines = {}
        self._recompute()

    # ───────────────────────────────────────────────────────────────────────────
    # Reads
    # ───────────────────────────────────────────────────────────────────────────

    @property
    def total(self) -> Decimal:
        return self._total

    @property
    def lines(self) -> tuple[CartLine, ...]:
        return tuple(self._lines.values())

    def find_by_product(self, product_id: ProductId) -> CartLine | None:
        return self._lines.get(product_id)

    def line_count(self) -> int:
        return len(self._lines)

    def item_count(self) -> int:
        return sum(line.quantity for line in self._lines.values())

    def is_empty(self) -> bool:
        return not self._lines

    def snapshot(self) -> tuple[CartLine, ...]:
        """Immutable by-value copy of the current lines."""
        return self.lines

    def _recompute(self) -> None:
        self._total = sum((line.total for line in self._lines.values()), Decimal(0))

    def __len__(self) -> int:
        return len(self._lines)

    def __repr__(self) -> str:
        return f"CartProjection(lines={self.line_count()}, total={self._total})"


def _check(line: CartLine) -> None:
    if line.quantity < 1:
        raise ValueError(
            f"cart line for {line.product_id} must have quantity >= 1, got {line.quantity}"
        )


__all__ = ("CartProjection",)
