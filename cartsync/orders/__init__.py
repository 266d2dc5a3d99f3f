"""
Order desk — order history, status changes, and the incomplete-order report.

    from cartsync import orders

    desk = orders.OrderDesk(order_gateway)
    await desk.history(identity)
    await desk.set_status(seller, order_id, OrderStatus.CONFIRMED)
    await desk.incomplete_orders(admin)
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

import structlog
from kungfu import Result, Ok, Error

from cartsync._errors import DeskError, OrderNotFound, Unauthorized
from cartsync._types import OrderId
from cartsync.gateway import Order, OrderGateway, OrderLine, OrderStatus
from cartsync.identity import Identity, can_audit_orders, can_manage_orders, role_name

log = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class OrderRecord:
    """An order header together with its lines."""

    order: Order
    lines: tuple[OrderLine, ...]

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self.lines)

    @property
    def lines_total(self) -> Decimal:
        return sum((line.total for line in self.lines), Decimal(0))


class OrderDesk:
    def __init__(self, orders: OrderGateway) -> None:
        self._orders = orders

    async def history(self, identity: Identity) -> Result[list[OrderRecord], DeskError]:
        """The identity's own orders, newest first, each with its lines."""
        match await self._orders.list_orders(identity.id):
            case Error(e):
                return Error(e)
            case Ok(headers):
                pass

        records: list[OrderRecord] = []
        for order in headers:
            match await self._orders.get_lines(order.order_id):
                case Error(e):
                    return Error(e)
                case Ok(lines):
                    records.append(OrderRecord(order, tuple(lines)))
        return Ok(records)

    async def set_status(
        self, actor: Identity, order_id: OrderId, status: OrderStatus
    ) -> Result[Order, DeskError]:
        """Move an order to a new status. Sellers and admins only."""
        if not can_manage_orders(actor.role):
            return Error(Unauthorized(f"Role {role_name(actor.role)} cannot change order status"))

        match await self._orders.update_status(order_id, status):
            case Error(e):
                return Error(e)
            case Ok(None):
                return Error(OrderNotFound(order_id))
            case Ok(order):
                log.info("order status changed", order_id=order_id, status=status.value, actor=actor.id)
                return Ok(order)

    async def incomplete_orders(self, actor: Identity) -> Result[list[Order], DeskError]:
        """Order headers persisted without any lines. Admins only."""
        if not can_audit_orders(actor.role):
            return Error(Unauthorized(f"Role {role_name(actor.role)} cannot audit orders"))

        match await self._orders.orders_without_lines():
            case Error(e):
                return Error(e)
            case Ok(found):
                if found:
                    log.warning("orders without lines", count=len(found))
                return Ok(found)


__all__ = ("OrderRecord", "OrderDesk")
