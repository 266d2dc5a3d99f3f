"""
Checkout orchestrator — order placement across two independent stores.

Header and lines are separate remote writes with no shared transaction.
They run as a two-step saga: the header step only carries a compensator
when checkout.compensate_orphan_header is on, so by default a header whose
lines failed stays behind (see OrderDesk.incomplete_orders).
"""

from __future__ import annotations

import structlog
from kungfu import Result, Ok, Error, LazyCoroResult

from cartsync import notify as N
from cartsync import saga as S
from cartsync._errors import (
    CheckoutError,
    CheckoutInProgress,
    EmptyCart,
    GatewayError,
    MissingAddress,
    NoIdentity,
    NotReady,
    OrderCreateFailed,
    OrderLinesFailed,
    Unauthorized,
)
from cartsync.checkout._totals import price_snapshot
from cartsync.checkout._types import OrderSnapshot, PlacedOrder
from cartsync.config import CartSyncSettings
from cartsync.gateway import NewOrder, NewOrderLine, Order, OrderGateway, OrderLine
from cartsync.identity import Identity
from cartsync.sync import CartSyncEngine, SessionState

log = structlog.get_logger(__name__)


class HeaderRemovalFailed(Exception):
    """The orphan order header could not be deleted."""


class CheckoutOrchestrator:
    """
    Example:
        checkout = CheckoutOrchestrator(engine, orders, settings=settings)
        match await checkout.place_order("12 MG Road, Pune"):
            case Ok(placed):
                placed.order.order_id
            case Error(OrderLinesFailed(order_id=oid)):
                ...  # header persisted, cart kept
    """

    def __init__(
        self,
        engine: CartSyncEngine,
        orders: OrderGateway,
        notifier: N.Notifier | None = None,
        settings: CartSyncSettings | None = None,
    ) -> None:
        self._engine = engine
        self._orders = orders
        self._notifier = notifier if notifier is not None else engine.notifier
        self._settings = settings if settings is not None else CartSyncSettings()
        self._in_progress = False

    @property
    def in_progress(self) -> bool:
        return self._in_progress

    def preview(self, delivery_address: str) -> Result[OrderSnapshot, CheckoutError]:
        """Totals for the current cart. Writes nothing, notifies nothing."""
        match self._precheck(delivery_address):
            case Error(e):
                return Error(e)
            case Ok(_):
                return Ok(self._snapshot(delivery_address))

    async def place_order(self, delivery_address: str) -> Result[PlacedOrder, CheckoutError]:
        if self._in_progress:
            return self._fail("Error placing order", CheckoutInProgress())

        match self._precheck(delivery_address):
            case Error(MissingAddress() as e):
                return self._fail("Delivery address required", e)
            case Error(NoIdentity() | NotReady() as e):
                return self._fail("Please sign in", e)
            case Error(e):
                return self._fail("Error placing order", e)
            case Ok(identity):
                pass

        self._in_progress = True
        try:
            return await self._place(identity, self._snapshot(delivery_address))
        finally:
            self._in_progress = False

    # ───────────────────────────────────────────────────────────────────────────
    # Placement
    # ───────────────────────────────────────────────────────────────────────────

    async def _place(
        self, identity: Identity, snapshot: OrderSnapshot
    ) -> Result[PlacedOrder, CheckoutError]:
        new_order = NewOrder(
            owner_id=identity.id,
            grand_total=snapshot.grand_total,
            delivery_address=snapshot.delivery_address,
        )
        new_lines = [
            NewOrderLine(line.product_id, line.quantity, line.unit_price)
            for line in snapshot.lines
        ]

        compensate = (
            self._remove_header
            if self._settings.checkout.compensate_orphan_header
            else None
        )
        header: S.SagaStep[Order, GatewayError] = S.step(
            "order_header",
            LazyCoroResult(lambda: self._orders.create_order(new_order)),
            compensate=compensate,
        )

        header_order: Order | None = None

        def lines_step(order: Order) -> S.SagaStep[tuple[Order, list[OrderLine]], GatewayError]:
            nonlocal header_order
            header_order = order

            async def write() -> Result[tuple[Order, list[OrderLine]], GatewayError]:
                match await self._orders.create_lines(order.order_id, new_lines):
                    case Ok(stored):
                        return Ok((order, stored))
                    case Error(e):
                        log.warning(
                            "order lines write failed",
                            order_id=order.order_id,
                            owner_id=order.owner_id,
                            error=e.message,
                        )
                        return Error(e)

            return S.step("order_lines", LazyCoroResult(write))

        match await S.run_chain(header.then(lines_step)):
            case Error(saga_error):
                return self._saga_failed(saga_error, header_order)
            case Ok(done):
                order, stored = done.value

        log.info(
            "order placed",
            order_id=order.order_id,
            owner_id=order.owner_id,
            grand_total=str(order.grand_total),
            lines=len(stored),
        )
        cleared = True
        match await self._engine.clear_ordered(snapshot.lines):
            case Error(e):
                cleared = False
                log.warning("cart not cleared after order", order_id=order.order_id, error=e.message)
            case Ok(_):
                pass

        self._notifier.notify(
            N.success(
                "Order placed successfully!",
                "Your order has been confirmed and will be delivered soon.",
            )
        )
        return Ok(PlacedOrder(order=order, lines=tuple(stored), cart_cleared=cleared))

    def _saga_failed(
        self, saga_error: S.SagaError[GatewayError], header_order: Order | None
    ) -> Error[CheckoutError]:
        cause = saga_error.error
        if saga_error.step_failed == 1:
            log.warning("order header write failed", error=cause.message)
            error: CheckoutError = OrderCreateFailed(cause)
        else:
            assert header_order is not None
            error = OrderLinesFailed(
                order_id=header_order.order_id,
                cause=cause,
                header_removed=saga_error.rolled_back,
            )
        if isinstance(cause, Unauthorized):
            self._engine.deactivate()
        return self._fail("Error placing order", error)

    async def _remove_header(self, order: Order) -> None:
        match await self._orders.delete_order(order.order_id):
            case Ok(_):
                log.info("orphan order header removed", order_id=order.order_id)
            case Error(e):
                raise HeaderRemovalFailed(f"order {order.order_id}: {e.message}")

    # ───────────────────────────────────────────────────────────────────────────
    # Helpers
    # ───────────────────────────────────────────────────────────────────────────

    def _precheck(self, delivery_address: str) -> Result[Identity, CheckoutError]:
        identity = self._engine.identity
        if identity is None:
            return Error(NoIdentity())
        if self._engine.state is not SessionState.READY:
            return Error(NotReady(self._engine.state.value))
        if self._engine.projection.is_empty():
            return Error(EmptyCart())
        if not delivery_address.strip():
            return Error(MissingAddress())
        return Ok(identity)

    def _snapshot(self, delivery_address: str) -> OrderSnapshot:
        return price_snapshot(
            self._engine.projection.snapshot(),
            delivery_address.strip(),
            self._settings.pricing,
        )

    def _fail(self, title: str, error: CheckoutError) -> Error[CheckoutError]:
        self._notifier.notify(N.error(title, error.message))
        return Error(error)


__all__ = ("HeaderRemovalFailed", "CheckoutOrchestrator")
