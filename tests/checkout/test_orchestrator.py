"""Tests for CheckoutOrchestrator."""

from __future__ import annotations

import asyncio
from decimal import Decimal

from cartsync._errors import (
    CheckoutInProgress,
    EmptyCart,
    MissingAddress,
    NoIdentity,
    OrderCreateFailed,
    OrderLinesFailed,
    RemoteUnavailable,
)
from cartsync.checkout import CheckoutOrchestrator
from cartsync.config import CartSyncSettings, CheckoutConfig
from cartsync.gateway import (
    MemoryCartGateway,
    MemoryCatalog,
    MemoryOrderGateway,
    NewOrder,
    OrderStatus,
)
from cartsync.notify import RecordingNotifier
from cartsync.sync import CartSyncEngine

from tests.conftest import OWNER, unwrap, unwrap_err

ADDRESS = "12 MG Road, Pune"


class GatedOrderGateway(MemoryOrderGateway):
    """Order store whose header write waits until released."""

    def __init__(self) -> None:
        super().__init__()
        self.release = asyncio.Event()

    async def create_order(self, order: NewOrder):
        await self.release.wait()
        return await super().create_order(order)


async def _fill(engine: CartSyncEngine) -> None:
    unwrap(await engine.add_item("apple", 2))
    unwrap(await engine.add_item("bread", 1))


class TestPreconditions:
    async def test_no_identity(
        self,
        engine: CartSyncEngine,
        orders: MemoryOrderGateway,
        notifier: RecordingNotifier,
    ) -> None:
        checkout = CheckoutOrchestrator(engine, orders, notifier)
        assert isinstance(unwrap_err(await checkout.place_order(ADDRESS)), NoIdentity)
        assert notifier.titles == ["Please sign in"]

    async def test_empty_cart(
        self, checkout: CheckoutOrchestrator, orders: MemoryOrderGateway
    ) -> None:
        assert isinstance(unwrap_err(await checkout.place_order(ADDRESS)), EmptyCart)
        assert orders.orders == []

    async def test_blank_address(
        self,
        checkout: CheckoutOrchestrator,
        ready_engine: CartSyncEngine,
        orders: MemoryOrderGateway,
        notifier: RecordingNotifier,
    ) -> None:
        await _fill(ready_engine)
        assert isinstance(unwrap_err(await checkout.place_order("   ")), MissingAddress)
        assert notifier.titles[-1] == "Delivery address required"
        assert orders.orders == []


class TestPlaceOrder:
    async def test_success(
        self,
        checkout: CheckoutOrchestrator,
        ready_engine: CartSyncEngine,
        orders: MemoryOrderGateway,
        carts: MemoryCartGateway,
        notifier: RecordingNotifier,
    ) -> None:
        await _fill(ready_engine)
        placed = unwrap(await checkout.place_order(ADDRESS))

        assert placed.order.grand_total == Decimal("29.99")
        assert placed.order.status is OrderStatus.PENDING
        assert placed.order.owner_id == OWNER
        assert placed.order.delivery_address == ADDRESS
        assert placed.cart_cleared
        assert [(l.product_id, l.quantity, l.unit_price_at_order_time) for l in placed.lines] == [
            ("apple", 2, Decimal("10.00")),
            ("bread", 1, Decimal("5.00")),
        ]
        assert orders.lines_of(placed.order.order_id) == list(placed.lines)
        assert ready_engine.projection.is_empty()
        assert carts.stored(OWNER) == {}
        assert notifier.titles[-1] == "Order placed successfully!"
        assert not checkout.in_progress

    async def test_captured_price_survives_catalog_change(
        self,
        checkout: CheckoutOrchestrator,
        ready_engine: CartSyncEngine,
        orders: MemoryOrderGateway,
        catalog: MemoryCatalog,
    ) -> None:
        await _fill(ready_engine)
        placed = unwrap(await checkout.place_order(ADDRESS))
        catalog.set_price("apple", Decimal("99.00"))

        stored = orders.lines_of(placed.order.order_id)
        assert stored[0].unit_price_at_order_time == Decimal("10.00")

    async def test_header_failure_leaves_everything(
        self,
        checkout: CheckoutOrchestrator,
        ready_engine: CartSyncEngine,
        orders: MemoryOrderGateway,
        notifier: RecordingNotifier,
    ) -> None:
        await _fill(ready_engine)
        orders.faults.fail("create_order")

        err = unwrap_err(await checkout.place_order(ADDRESS))
        assert isinstance(err, OrderCreateFailed)
        assert isinstance(err.cause, RemoteUnavailable)
        assert orders.orders == []
        assert ready_engine.projection.line_count() == 2
        assert notifier.titles[-1] == "Error placing order"

    async def test_lines_failure_keeps_header_and_cart(
        self,
        checkout: CheckoutOrchestrator,
        ready_engine: CartSyncEngine,
        orders: MemoryOrderGateway,
        carts: MemoryCartGateway,
    ) -> None:
        await _fill(ready_engine)
        orders.faults.fail("create_lines")

        err = unwrap_err(await checkout.place_order(ADDRESS))
        assert isinstance(err, OrderLinesFailed)
        assert err.header_removed is False

        [header] = orders.orders
        assert header.order_id == err.order_id
        assert orders.lines_of(header.order_id) == []
        assert [o.order_id for o in unwrap(await orders.orders_without_lines())] == [err.order_id]
        assert ready_engine.projection.line_count() == 2
        assert carts.stored(OWNER) == {"apple": 2, "bread": 1}

    async def test_lines_failure_with_compensation_removes_header(
        self,
        ready_engine: CartSyncEngine,
        orders: MemoryOrderGateway,
        notifier: RecordingNotifier,
    ) -> None:
        settings = CartSyncSettings(checkout=CheckoutConfig(compensate_orphan_header=True))
        checkout = CheckoutOrchestrator(ready_engine, orders, notifier, settings)
        await _fill(ready_engine)
        orders.faults.fail("create_lines")

        err = unwrap_err(await checkout.place_order(ADDRESS))
        assert isinstance(err, OrderLinesFailed)
        assert err.header_removed is True
        assert orders.orders == []
        assert ready_engine.projection.line_count() == 2

    async def test_failed_compensation_is_reported(
        self,
        ready_engine: CartSyncEngine,
        orders: MemoryOrderGateway,
        notifier: RecordingNotifier,
    ) -> None:
        settings = CartSyncSettings(checkout=CheckoutConfig(compensate_orphan_header=True))
        checkout = CheckoutOrchestrator(ready_engine, orders, notifier, settings)
        await _fill(ready_engine)
        orders.faults.fail("create_lines")
        orders.faults.fail("delete_order")

        err = unwrap_err(await checkout.place_order(ADDRESS))
        assert isinstance(err, OrderLinesFailed)
        assert err.header_removed is False
        assert len(orders.orders) == 1

    async def test_clear_failure_keeps_order(
        self,
        checkout: CheckoutOrchestrator,
        ready_engine: CartSyncEngine,
        orders: MemoryOrderGateway,
        carts: MemoryCartGateway,
    ) -> None:
        await _fill(ready_engine)
        carts.faults.fail("delete_all")

        placed = unwrap(await checkout.place_order(ADDRESS))
        assert placed.cart_cleared is False
        assert len(orders.lines_of(placed.order.order_id)) == 2
        assert ready_engine.projection.line_count() == 2


class TestConcurrency:
    async def test_second_checkout_rejected_while_first_runs(
        self, ready_engine: CartSyncEngine, notifier: RecordingNotifier
    ) -> None:
        orders = GatedOrderGateway()
        checkout = CheckoutOrchestrator(ready_engine, orders, notifier)
        await _fill(ready_engine)

        first = asyncio.create_task(checkout.place_order(ADDRESS))
        await asyncio.sleep(0)
        assert checkout.in_progress
        assert isinstance(unwrap_err(await checkout.place_order(ADDRESS)), CheckoutInProgress)

        orders.release.set()
        unwrap(await first)
        assert not checkout.in_progress

    async def test_snapshot_ignores_later_cart_edits(
        self,
        ready_engine: CartSyncEngine,
        carts: MemoryCartGateway,
        notifier: RecordingNotifier,
    ) -> None:
        orders = GatedOrderGateway()
        checkout = CheckoutOrchestrator(ready_engine, orders, notifier)
        await _fill(ready_engine)

        pending = asyncio.create_task(checkout.place_order(ADDRESS))
        await asyncio.sleep(0)
        unwrap(await ready_engine.add_item("milk", 1))
        orders.release.set()
        placed = unwrap(await pending)

        assert placed.order.grand_total == Decimal("29.99")
        assert [l.product_id for l in placed.lines] == ["apple", "bread"]
        assert placed.cart_cleared
        assert carts.stored(OWNER) == {"milk": 1}
        assert [l.product_id for l in ready_engine.projection.lines] == ["milk"]

    async def test_line_changed_during_checkout_is_kept(
        self,
        ready_engine: CartSyncEngine,
        carts: MemoryCartGateway,
        notifier: RecordingNotifier,
    ) -> None:
        orders = GatedOrderGateway()
        checkout = CheckoutOrchestrator(ready_engine, orders, notifier)
        await _fill(ready_engine)

        pending = asyncio.create_task(checkout.place_order(ADDRESS))
        await asyncio.sleep(0)
        unwrap(await ready_engine.add_item("apple", 1))
        orders.release.set()
        placed = unwrap(await pending)

        assert [(l.product_id, l.quantity) for l in placed.lines] == [("apple", 2), ("bread", 1)]
        assert carts.stored(OWNER) == {"apple": 3}
        assert ready_engine.projection.find_by_product("apple").quantity == 3
        assert ready_engine.projection.find_by_product("bread") is None


class TestPreview:
    async def test_preview_writes_nothing(
        self,
        checkout: CheckoutOrchestrator,
        ready_engine: CartSyncEngine,
        orders: MemoryOrderGateway,
        notifier: RecordingNotifier,
    ) -> None:
        await _fill(ready_engine)
        notifier.clear()

        snap = unwrap(checkout.preview(ADDRESS))
        assert snap.grand_total == Decimal("29.99")
        assert snap.tax == Decimal("2.00")
        assert orders.orders == []
        assert notifier.sent == []

    async def test_preview_needs_address(
        self, checkout: CheckoutOrchestrator, ready_engine: CartSyncEngine
    ) -> None:
        await _fill(ready_engine)
        assert isinstance(unwrap_err(checkout.preview("")), MissingAddress)
