"""
Quantity merge policy — pure functions, no I/O.

Stock ceilings are not enforced here: stock belongs to the catalog, so the
caller clamps (see clamp_to_stock) before committing.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class QuantityChange:
    """Outcome of an absolute quantity change."""

    new_quantity: int
    remove: bool


def merge_add(existing: int, delta: int) -> int:
    """
    Quantity after adding delta more of a product already in the cart.

    Example:
        merge_add(2, 3)  # 5
    """
    if delta < 1:
        raise ValueError(f"delta must be >= 1, got {delta}")
    return existing + delta


def set_quantity(target: int) -> QuantityChange:
    """
    Quantity after setting an absolute target.

    A target of zero or less means the line goes away.

    Example:
        set_quantity(3)   # QuantityChange(new_quantity=3, remove=False)
        set_quantity(-1)  # QuantityChange(new_quantity=0, remove=True)
    """
    return QuantityChange(new_quantity=max(target, 0), remove=target <= 0)


def clamp_to_stock(quantity: int, available: int) -> int:
    """Cap quantity at the available stock (never below zero)."""
    return max(min(quantity, available), 0)


__all__ = ("QuantityChange", "merge_add", "set_quantity", "clamp_to_stock")
