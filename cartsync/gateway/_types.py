"""
Gateway types — rows and protocols for the remote stores.

Users implement these protocols for their backend. Every method is async
and returns a kungfu Result; transport failures are RemoteUnavailable,
owner mismatches are Unauthorized. Nothing raises.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Protocol

from kungfu import Result, Ok, Error

from cartsync._errors import CatalogError, GatewayError, Unauthorized
from cartsync._types import LineId, OrderId, OwnerId, ProductId
from cartsync.cart import CartLine

# ═══════════════════════════════════════════════════════════════════════════════
# Catalog
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Product:
    product_id: ProductId
    name: str
    unit_price: Decimal
    image_ref: str | None = None
    available_stock: int = 0


class Catalog(Protocol):
    async def get_product(self, product_id: ProductId) -> Result[Product, CatalogError]:
        """Product details. ProductNotFound when the id is unknown."""
        ...


# ═══════════════════════════════════════════════════════════════════════════════
# Orders
# ═══════════════════════════════════════════════════════════════════════════════


class OrderStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


@dataclass(frozen=True, slots=True)
class NewOrder:
    """Order header to persist. Status always starts as pending."""

    owner_id: OwnerId
    grand_total: Decimal
    delivery_address: str


@dataclass(frozen=True, slots=True)
class NewOrderLine:
    product_id: ProductId
    quantity: int
    unit_price: Decimal


@dataclass(frozen=True, slots=True)
class Order:
    order_id: OrderId
    owner_id: OwnerId
    grand_total: Decimal
    delivery_address: str
    status: OrderStatus
    created_at: datetime


@dataclass(frozen=True, slots=True)
class OrderLine:
    """unit_price_at_order_time is captured once and never rewritten."""

    order_id: OrderId
    product_id: ProductId
    quantity: int
    unit_price_at_order_time: Decimal

    @property
    def total(self) -> Decimal:
        return self.unit_price_at_order_time * self.quantity


# ═══════════════════════════════════════════════════════════════════════════════
# Protocols
# ═══════════════════════════════════════════════════════════════════════════════


class CartGateway(Protocol):
    """
    Persisted cart rows for one owner.

    upsert_quantity must be idempotent: writing the same target twice
    leaves the same stored state. Deleting absent rows is not an error.
    """

    async def fetch_all(self, owner_id: OwnerId) -> Result[list[CartLine], GatewayError]: ...

    async def upsert_quantity(
        self,
        owner_id: OwnerId,
        product_id: ProductId,
        quantity: int,
    ) -> Result[LineId, GatewayError]:
        """Set the stored quantity, inserting the row if needed. Returns the row id."""
        ...

    async def delete_line(
        self, owner_id: OwnerId, product_id: ProductId
    ) -> Result[None, GatewayError]: ...

    async def delete_all(self, owner_id: OwnerId) -> Result[None, GatewayError]: ...


class OrderGateway(Protocol):
    """
    Order headers and lines. No multi-document transaction is available:
    header and lines are separate writes.
    """

    async def create_order(self, order: NewOrder) -> Result[Order, GatewayError]: ...

    async def create_lines(
        self, order_id: OrderId, lines: Sequence[NewOrderLine]
    ) -> Result[list[OrderLine], GatewayError]:
        """Insert all lines as one batch: either every line is stored or none."""
        ...

    async def delete_order(self, order_id: OrderId) -> Result[bool, GatewayError]: ...

    async def get_order(self, order_id: OrderId) -> Result[Order | None, GatewayError]: ...

    async def list_orders(self, owner_id: OwnerId) -> Result[list[Order], GatewayError]:
        """Orders for owner, newest first."""
        ...

    async def get_lines(self, order_id: OrderId) -> Result[list[OrderLine], GatewayError]: ...

    async def update_status(
        self, order_id: OrderId, status: OrderStatus
    ) -> Result[Order | None, GatewayError]:
        """Change status only. Ok(None) when the order does not exist."""
        ...

    async def orders_without_lines(self) -> Result[list[Order], GatewayError]: ...


# ═══════════════════════════════════════════════════════════════════════════════
# Authorization
# ═══════════════════════════════════════════════════════════════════════════════

type CallerFn = Callable[[], OwnerId | None]
"""Returns the identity the gateway is acting for, or None."""


def authorize(caller: CallerFn | None, owner_id: OwnerId) -> Result[None, Unauthorized]:
    """
    Check that the caller may touch rows owned by owner_id.

    A gateway built without a caller function does not check ownership.
    """
    if caller is None:
        return Ok(None)
    current = caller()
    if current is None:
        return Error(Unauthorized("No active identity"))
    if current != owner_id:
        return Error(Unauthorized(f"Identity {current} cannot access cart of {owner_id}"))
    return Ok(None)


__all__ = (
    "Product",
    "Catalog",
    "OrderStatus",
    "NewOrder",
    "NewOrderLine",
    "Order",
    "OrderLine",
    "CartGateway",
    "OrderGateway",
    "CallerFn",
    "authorize",
)
