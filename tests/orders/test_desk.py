"""Tests for the order desk."""

from __future__ import annotations

from decimal import Decimal

from cartsync._errors import OrderNotFound, RemoteUnavailable, Unauthorized
from cartsync.gateway import MemoryOrderGateway, NewOrder, NewOrderLine, Order, OrderStatus
from cartsync.identity import Admin, Customer, Identity, Seller
from cartsync.orders import OrderDesk

from tests.conftest import OWNER, unwrap, unwrap_err

CUSTOMER = Identity(OWNER, Customer())
SELLER = Identity("seller-1", Seller())
ADMIN = Identity("admin-1", Admin())


async def _order(orders: MemoryOrderGateway, owner: str = OWNER, with_lines: bool = True) -> Order:
    order = unwrap(await orders.create_order(NewOrder(owner, Decimal("29.99"), "12 MG Road")))
    if with_lines:
        unwrap(
            await orders.create_lines(
                order.order_id,
                [
                    NewOrderLine("apple", 2, Decimal("10.00")),
                    NewOrderLine("bread", 1, Decimal("5.00")),
                ],
            )
        )
    return order


class TestHistory:
    async def test_own_orders_with_lines_newest_first(self) -> None:
        orders = MemoryOrderGateway()
        older = await _order(orders)
        newer = await _order(orders)
        await _order(orders, owner="someone-else")

        records = unwrap(await OrderDesk(orders).history(CUSTOMER))

        assert [r.order.order_id for r in records] == [newer.order_id, older.order_id]
        assert records[0].item_count == 3
        assert records[0].lines_total == Decimal("25.00")

    async def test_gateway_failure(self) -> None:
        orders = MemoryOrderGateway()
        await _order(orders)
        orders.faults.fail("get_lines")
        assert isinstance(unwrap_err(await OrderDesk(orders).history(CUSTOMER)), RemoteUnavailable)


class TestSetStatus:
    async def test_seller_confirms(self) -> None:
        orders = MemoryOrderGateway()
        order = await _order(orders)

        updated = unwrap(
            await OrderDesk(orders).set_status(SELLER, order.order_id, OrderStatus.CONFIRMED)
        )
        assert updated.status is OrderStatus.CONFIRMED
        assert updated.grand_total == order.grand_total
        assert orders.lines_of(order.order_id) != []

    async def test_admin_allowed(self) -> None:
        orders = MemoryOrderGateway()
        order = await _order(orders)
        updated = unwrap(
            await OrderDesk(orders).set_status(ADMIN, order.order_id, OrderStatus.CANCELLED)
        )
        assert updated.status is OrderStatus.CANCELLED

    async def test_customer_rejected(self) -> None:
        orders = MemoryOrderGateway()
        order = await _order(orders)
        err = unwrap_err(
            await OrderDesk(orders).set_status(CUSTOMER, order.order_id, OrderStatus.DELIVERED)
        )
        assert isinstance(err, Unauthorized)
        [stored] = orders.orders
        assert stored.status is OrderStatus.PENDING

    async def test_unknown_order(self) -> None:
        desk = OrderDesk(MemoryOrderGateway())
        err = unwrap_err(await desk.set_status(SELLER, "ord-9999", OrderStatus.CONFIRMED))
        assert err == OrderNotFound("ord-9999")


class TestIncompleteOrders:
    async def test_admin_sees_headers_without_lines(self) -> None:
        orders = MemoryOrderGateway()
        await _order(orders)
        orphan = await _order(orders, with_lines=False)

        found = unwrap(await OrderDesk(orders).incomplete_orders(ADMIN))
        assert [o.order_id for o in found] == [orphan.order_id]

    async def test_seller_rejected(self) -> None:
        desk = OrderDesk(MemoryOrderGateway())
        assert isinstance(unwrap_err(await desk.incomplete_orders(SELLER)), Unauthorized)
