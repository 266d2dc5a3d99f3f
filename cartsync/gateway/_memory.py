"""
In-memory gateways.

Note: single-process only. They back tests and previews, and carry a
FaultPlan so a test can make the next N calls of an operation fail.
"""

from __future__ import annotations

import asyncio
import itertools
from collections import defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from decimal import Decimal

import structlog
from kungfu import Result, Ok, Error

from cartsync._errors import (
    CatalogError,
    GatewayError,
    ProductNotFound,
    RemoteUnavailable,
)
from cartsync._types import LineId, OrderId, OwnerId, ProductId
from cartsync.cart import CartLine
from cartsync.gateway._types import (
    CallerFn,
    NewOrder,
    NewOrderLine,
    Order,
    OrderLine,
    OrderStatus,
    Product,
    authorize,
)

log = structlog.get_logger(__name__)

# ═══════════════════════════════════════════════════════════════════════════════
# Fault Injection
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass
class FaultPlan:
    """
    Scripted failures keyed by operation name.

    Example:
        gateway.faults.fail("upsert_quantity")            # next call fails
        gateway.faults.fail("create_lines", times=2)
    """

    _pending: dict[str, list[GatewayError]] = field(default_factory=dict[str, list[GatewayError]])

    def fail(self, op: str, error: GatewayError | None = None, times: int = 1) -> None:
        err = error if error is not None else RemoteUnavailable(f"{op}: connection reset")
        self._pending.setdefault(op, []).extend([err] * times)

    def take(self, op: str) -> GatewayError | None:
        queue = self._pending.get(op)
        if not queue:
            return None
        return queue.pop(0)

    def reset(self) -> None:
        self._pending.clear()


# ═══════════════════════════════════════════════════════════════════════════════
# Catalog
# ═══════════════════════════════════════════════════════════════════════════════


class MemoryCatalog:
    def __init__(self, products: Iterable[Product] = ()) -> None:
        self._products: dict[ProductId, Product] = {p.product_id: p for p in products}
        self.faults = FaultPlan()
        self.calls = 0

    def put(self, product: Product) -> None:
        self._products[product.product_id] = product

    def set_price(self, product_id: ProductId, unit_price: Decimal) -> None:
        self._products[product_id] = replace(self._products[product_id], unit_price=unit_price)

    def set_stock(self, product_id: ProductId, available: int) -> None:
        self._products[product_id] = replace(
            self._products[product_id], available_stock=available
        )

    def lookup(self, product_id: ProductId) -> Product | None:
        return self._products.get(product_id)

    async def get_product(self, product_id: ProductId) -> Result[Product, CatalogError]:
        self.calls += 1
        if (err := self.faults.take("get_product")) is not None:
            return Error(err)
        product = self._products.get(product_id)
        if product is None:
            return Error(ProductNotFound(product_id))
        return Ok(product)


# ═══════════════════════════════════════════════════════════════════════════════
# Cart Gateway
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(slots=True)
class _CartRow:
    line_id: LineId
    product_id: ProductId
    quantity: int


class MemoryCartGateway:
    """
    Cart rows per owner, display fields joined from the catalog on read.

    Rows whose product vanished from the catalog are skipped on read,
    like an inner join.
    """

    def __init__(self, catalog: MemoryCatalog, caller: CallerFn | None = None) -> None:
        self._catalog = catalog
        self._caller = caller
        self._rows: dict[OwnerId, dict[ProductId, _CartRow]] = defaultdict(dict)
        self._ids = itertools.count(1)
        self._lock = asyncio.Lock()
        self.faults = FaultPlan()
        self.writes: list[tuple[str, OwnerId, ProductId | None, int | None]] = []

    def stored_quantity(self, owner_id: OwnerId, product_id: ProductId) -> int | None:
        row = self._rows[owner_id].get(product_id)
        return row.quantity if row is not None else None

    def stored(self, owner_id: OwnerId) -> dict[ProductId, int]:
        return {pid: row.quantity for pid, row in self._rows[owner_id].items()}

    async def fetch_all(self, owner_id: OwnerId) -> Result[list[CartLine], GatewayError]:
        if (err := self._precheck("fetch_all", owner_id)) is not None:
            return Error(err)
        async with self._lock:
            lines: list[CartLine] = []
            for row in self._rows[owner_id].values():
                product = self._catalog.lookup(row.product_id)
                if product is None:
                    log.warning("cart row without product", owner_id=owner_id, product_id=row.product_id)
                    continue
                lines.append(
                    CartLine(
                        line_id=row.line_id,
                        product_id=row.product_id,
                        unit_price=product.unit_price,
                        quantity=row.quantity,
                        display_name=product.name,
                        image_ref=product.image_ref,
                    )
                )
            return Ok(lines)

    async def upsert_quantity(
        self,
        owner_id: OwnerId,
        product_id: ProductId,
        quantity: int,
    ) -> Result[LineId, GatewayError]:
        if (err := self._precheck("upsert_quantity", owner_id)) is not None:
            return Error(err)
        async with self._lock:
            rows = self._rows[owner_id]
            row = rows.get(product_id)
            if row is None:
                row = _CartRow(f"line-{next(self._ids)}", product_id, quantity)
                rows[product_id] = row
            else:
                row.quantity = quantity
            self.writes.append(("upsert_quantity", owner_id, product_id, quantity))
            return Ok(row.line_id)

    async def delete_line(
        self, owner_id: OwnerId, product_id: ProductId
    ) -> Result[None, GatewayError]:
        if (err := self._precheck("delete_line", owner_id)) is not None:
            return Error(err)
        async with self._lock:
            self._rows[owner_id].pop(product_id, None)
            self.writes.append(("delete_line", owner_id, product_id, None))
            return Ok(None)

    async def delete_all(self, owner_id: OwnerId) -> Result[None, GatewayError]:
        if (err := self._precheck("delete_all", owner_id)) is not None:
            return Error(err)
        async with self._lock:
            self._rows[owner_id].clear()
            self.writes.append(("delete_all", owner_id, None, None))
            return Ok(None)

    def _precheck(self, op: str, owner_id: OwnerId) -> GatewayError | None:
        match authorize(self._caller, owner_id):
            case Error(e):
                return e
            case Ok(_):
                return self.faults.take(op)


# ═══════════════════════════════════════════════════════════════════════════════
# Order Gateway
# ═══════════════════════════════════════════════════════════════════════════════


class MemoryOrderGateway:
    def __init__(self, caller: CallerFn | None = None) -> None:
        self._caller = caller
        self._orders: dict[OrderId, Order] = {}
        self._lines: dict[OrderId, list[OrderLine]] = {}
        self._ids = itertools.count(1)
        self._lock = asyncio.Lock()
        self.faults = FaultPlan()

    @property
    def orders(self) -> list[Order]:
        return list(self._orders.values())

    def lines_of(self, order_id: OrderId) -> list[OrderLine]:
        return list(self._lines.get(order_id, ()))

    async def create_order(self, order: NewOrder) -> Result[Order, GatewayError]:
        match authorize(self._caller, order.owner_id):
            case Error(e):
                return Error(e)
            case Ok(_):
                pass
        if (err := self.faults.take("create_order")) is not None:
            return Error(err)
        async with self._lock:
            created = Order(
                order_id=f"ord-{next(self._ids):04d}",
                owner_id=order.owner_id,
                grand_total=order.grand_total,
                delivery_address=order.delivery_address,
                status=OrderStatus.PENDING,
                created_at=datetime.now(UTC),
            )
            self._orders[created.order_id] = created
            self._lines[created.order_id] = []
            return Ok(created)

    async def create_lines(
        self, order_id: OrderId, lines: Sequence[NewOrderLine]
    ) -> Result[list[OrderLine], GatewayError]:
        if (err := self.faults.take("create_lines")) is not None:
            return Error(err)
        async with self._lock:
            if order_id not in self._orders:
                return Error(RemoteUnavailable(f"order {order_id} does not exist"))
            stored = [
                OrderLine(order_id, line.product_id, line.quantity, line.unit_price)
                for line in lines
            ]
            self._lines[order_id].extend(stored)
            return Ok(stored)

    async def delete_order(self, order_id: OrderId) -> Result[bool, GatewayError]:
        if (err := self.faults.take("delete_order")) is not None:
            return Error(err)
        async with self._lock:
            existed = self._orders.pop(order_id, None) is not None
            self._lines.pop(order_id, None)
            return Ok(existed)

    async def get_order(self, order_id: OrderId) -> Result[Order | None, GatewayError]:
        if (err := self.faults.take("get_order")) is not None:
            return Error(err)
        return Ok(self._orders.get(order_id))

    async def list_orders(self, owner_id: OwnerId) -> Result[list[Order], GatewayError]:
        match authorize(self._caller, owner_id):
            case Error(e):
                return Error(e)
            case Ok(_):
                pass
        if (err := self.faults.take("list_orders")) is not None:
            return Error(err)
        owned = [o for o in self._orders.values() if o.owner_id == owner_id]
        return Ok(sorted(owned, key=lambda o: (o.created_at, o.order_id), reverse=True))

    async def get_lines(self, order_id: OrderId) -> Result[list[OrderLine], GatewayError]:
        if (err := self.faults.take("get_lines")) is not None:
            return Error(err)
        return Ok(self.lines_of(order_id))

    async def update_status(
        self, order_id: OrderId, status: OrderStatus
    ) -> Result[Order | None, GatewayError]:
        if (err := self.faults.take("update_status")) is not None:
            return Error(err)
        async with self._lock:
            current = self._orders.get(order_id)
            if current is None:
                return Ok(None)
            updated = replace(current, status=status)
            self._orders[order_id] = updated
            return Ok(updated)

    async def orders_without_lines(self) -> Result[list[Order], GatewayError]:
        if (err := self.faults.take("orders_without_lines")) is not None:
            return Error(err)
        return Ok([o for o in self._orders.values() if not self._lines.get(o.order_id)])


__all__ = ("FaultPlan", "MemoryCatalog", "MemoryCartGateway", "MemoryOrderGateway")
