"""
Error values.

Errors travel inside kungfu.Error, never as raised exceptions past an
operation boundary. Each carries a stable ``code`` and a human ``message``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

from cartsync._types import OrderId, ProductId

# ═══════════════════════════════════════════════════════════════════════════════
# Gateway Errors — transport and authorization
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class RemoteUnavailable:
    """Transport failure. The same operation may be retried."""

    message: str
    cause: Exception | None = None

    code: ClassVar[str] = "REMOTE_UNAVAILABLE"


@dataclass(frozen=True, slots=True)
class Unauthorized:
    """Caller identity does not match the resource owner. Fatal for the session."""

    message: str

    code: ClassVar[str] = "UNAUTHORIZED"


@dataclass(frozen=True, slots=True)
class ProductNotFound:
    product_id: ProductId

    code: ClassVar[str] = "PRODUCT_NOT_FOUND"

    @property
    def message(self) -> str:
        return f"Product {self.product_id} not found"


@dataclass(frozen=True, slots=True)
class OrderNotFound:
    order_id: OrderId

    code: ClassVar[str] = "ORDER_NOT_FOUND"

    @property
    def message(self) -> str:
        return f"Order {self.order_id} not found"


# ═══════════════════════════════════════════════════════════════════════════════
# Session Errors
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class NoIdentity:
    """Operation attempted without an active session. Not retried."""

    code: ClassVar[str] = "NO_IDENTITY"

    @property
    def message(self) -> str:
        return "You need to be signed in to use the cart"


@dataclass(frozen=True, slots=True)
class NotReady:
    """Session exists but the cart has not been hydrated yet."""

    state: str

    code: ClassVar[str] = "NOT_READY"

    @property
    def message(self) -> str:
        return f"Cart is not ready (state: {self.state})"


# ═══════════════════════════════════════════════════════════════════════════════
# Cart Errors
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class InvalidQuantity:
    quantity: int

    code: ClassVar[str] = "INVALID_QUANTITY"

    @property
    def message(self) -> str:
        return f"Quantity must be at least 1, got {self.quantity}"


@dataclass(frozen=True, slots=True)
class StockExceeded:
    product_id: ProductId
    requested: int
    available: int

    code: ClassVar[str] = "STOCK_EXCEEDED"

    @property
    def message(self) -> str:
        return (
            f"Only {self.available} of {self.product_id} in stock, "
            f"requested {self.requested}"
        )


@dataclass(frozen=True, slots=True)
class CartWriteFailed:
    """Remote cart write failed; the local projection was left untouched."""

    product_id: ProductId | None
    cause: RemoteUnavailable

    code: ClassVar[str] = "CART_WRITE_FAILED"

    @property
    def message(self) -> str:
        return self.cause.message


# ═══════════════════════════════════════════════════════════════════════════════
# Checkout Errors
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class EmptyCart:
    code: ClassVar[str] = "EMPTY_CART"

    @property
    def message(self) -> str:
        return "Your cart is empty"


@dataclass(frozen=True, slots=True)
class MissingAddress:
    code: ClassVar[str] = "MISSING_ADDRESS"

    @property
    def message(self) -> str:
        return "Please enter your delivery address"


@dataclass(frozen=True, slots=True)
class CheckoutInProgress:
    code: ClassVar[str] = "CHECKOUT_IN_PROGRESS"

    @property
    def message(self) -> str:
        return "An order is already being placed"


@dataclass(frozen=True, slots=True)
class OrderCreateFailed:
    """Order header write failed. Nothing was persisted, cart untouched."""

    cause: RemoteUnavailable | Unauthorized

    code: ClassVar[str] = "ORDER_CREATE_FAILED"

    @property
    def message(self) -> str:
        return self.cause.message


@dataclass(frozen=True, slots=True)
class OrderLinesFailed:
    """
    Order lines write failed after the header was persisted.

    header_removed is True only when the orphan header was compensated.
    """

    order_id: OrderId
    cause: RemoteUnavailable | Unauthorized
    header_removed: bool = False

    code: ClassVar[str] = "ORDER_LINES_FAILED"

    @property
    def message(self) -> str:
        if self.header_removed:
            return f"Order {self.order_id} could not be completed and was withdrawn"
        return (
            f"Order {self.order_id} was created without its items: "
            f"{self.cause.message}"
        )


# ═══════════════════════════════════════════════════════════════════════════════
# Unions
# ═══════════════════════════════════════════════════════════════════════════════

type GatewayError = RemoteUnavailable | Unauthorized
type CatalogError = RemoteUnavailable | Unauthorized | ProductNotFound

type CartError = (
    NoIdentity
    | NotReady
    | InvalidQuantity
    | StockExceeded
    | ProductNotFound
    | RemoteUnavailable
    | Unauthorized
    | CartWriteFailed
)

type CheckoutError = (
    NoIdentity
    | NotReady
    | EmptyCart
    | MissingAddress
    | CheckoutInProgress
    | OrderCreateFailed
    | OrderLinesFailed
)

type DeskError = RemoteUnavailable | Unauthorized | OrderNotFound

# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    "RemoteUnavailable",
    "Unauthorized",
    "ProductNotFound",
    "OrderNotFound",
    "NoIdentity",
    "NotReady",
    "InvalidQuantity",
    "StockExceeded",
    "CartWriteFailed",
    "EmptyCart",
    "MissingAddress",
    "CheckoutInProgress",
    "OrderCreateFailed",
    "OrderLinesFailed",
    "GatewayError",
    "CatalogError",
    "CartError",
    "CheckoutError",
    "DeskError",
)
