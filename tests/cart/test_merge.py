"""Tests for the quantity merge policy."""

from __future__ import annotations

import pytest

from cartsync.cart import QuantityChange, clamp_to_stock, merge_add, set_quantity


class TestMergeAdd:
    def test_adds_delta(self) -> None:
        assert merge_add(2, 3) == 5

    def test_from_zero(self) -> None:
        assert merge_add(0, 1) == 1

    @pytest.mark.parametrize("delta", [0, -1, -10])
    def test_rejects_non_positive_delta(self, delta: int) -> None:
        with pytest.raises(ValueError):
            merge_add(2, delta)


class TestSetQuantity:
    def test_positive_target_kept(self) -> None:
        assert set_quantity(3) == QuantityChange(new_quantity=3, remove=False)

    def test_zero_removes(self) -> None:
        assert set_quantity(0) == QuantityChange(new_quantity=0, remove=True)

    def test_negative_removes_and_never_stores_negative(self) -> None:
        change = set_quantity(-4)
        assert change.remove is True
        assert change.new_quantity == 0


class TestClampToStock:
    def test_within_stock(self) -> None:
        assert clamp_to_stock(3, 10) == 3

    def test_capped_at_stock(self) -> None:
        assert clamp_to_stock(12, 10) == 10

    def test_no_stock(self) -> None:
        assert clamp_to_stock(2, 0) == 0
