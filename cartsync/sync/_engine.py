"""
Cart sync engine — confirmed-only commits against the remote cart.

Every user operation writes the remote store first and touches the local
projection only after that write succeeds. A failed write leaves the
projection exactly as it was.
"""

from __future__ import annotations

from typing import assert_never

import structlog
from kungfu import Result, Ok, Error

from cartsync import notify as N
from cartsync._errors import (
    CartError,
    CartWriteFailed,
    CatalogError,
    GatewayError,
    InvalidQuantity,
    NoIdentity,
    NotReady,
    ProductNotFound,
    RemoteUnavailable,
    StockExceeded,
    Unauthorized,
)
from cartsync._types import ProductId
from cartsync.cart import CartLine, CartProjection, clamp_to_stock, merge_add, set_quantity
from cartsync.config import CartSyncSettings, StockPolicy
from cartsync.gateway import CartGateway, Catalog, Product
from cartsync.identity import (
    Activated,
    Deactivated,
    Identity,
    IdentityChannel,
    IdentityEvent,
    Subscription,
)
from cartsync.sync._serial import KeyedSerializer
from cartsync.sync._session import CartSession, SessionState

log = structlog.get_logger(__name__)


class CartSyncEngine:
    """
    Keeps the local cart projection in step with the remote cart store.

    Example:
        engine = CartSyncEngine(carts, catalog, notifier)
        await engine.start(channel)          # hydrates when an identity is active
        await engine.add_item("apple", 2)
        engine.projection.total
    """

    def __init__(
        self,
        carts: CartGateway,
        catalog: Catalog,
        notifier: N.Notifier | None = None,
        settings: CartSyncSettings | None = None,
        session: CartSession | None = None,
    ) -> None:
        self._carts = carts
        self._catalog = catalog
        self._notifier = notifier if notifier is not None else N.LogNotifier()
        self._settings = settings if settings is not None else CartSyncSettings()
        self._session = session if session is not None else CartSession()
        self._serial = KeyedSerializer()
        self._subscription: Subscription | None = None

    # ───────────────────────────────────────────────────────────────────────────
    # Views
    # ───────────────────────────────────────────────────────────────────────────

    @property
    def session(self) -> CartSession:
        return self._session

    @property
    def state(self) -> SessionState:
        return self._session.state

    @property
    def identity(self) -> Identity | None:
        return self._session.identity

    @property
    def projection(self) -> CartProjection:
        """Read-only by convention: only this engine mutates it."""
        return self._session.projection

    @property
    def notifier(self) -> N.Notifier:
        return self._notifier

    # ───────────────────────────────────────────────────────────────────────────
    # Session lifecycle
    # ───────────────────────────────────────────────────────────────────────────

    async def start(self, channel: IdentityChannel) -> None:
        """Subscribe to identity events and hydrate for the current identity."""
        if self._subscription is not None:
            self._subscription.unsubscribe()
        self._subscription = channel.subscribe(self.on_identity_event)
        if channel.current is not None:
            await self.activate(channel.current)

    def stop(self) -> None:
        """Unsubscribe and tear the session down."""
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
        self.deactivate()

    async def on_identity_event(self, event: IdentityEvent) -> None:
        match event:
            case Activated(identity):
                await self.activate(identity)
            case Deactivated():
                self.deactivate()
            case _:
                assert_never(event)

    async def activate(self, identity: Identity) -> Result[CartProjection, GatewayError]:
        """Move to HYDRATING and load the remote cart; READY on success."""
        generation = self._session.init(identity)
        log.debug("hydrating cart", owner_id=identity.id)
        return await self._hydrate(identity, generation)

    async def reload(self) -> Result[CartProjection, GatewayError | NoIdentity]:
        """Retry hydration for the current identity."""
        identity = self._session.identity
        if identity is None:
            return Error(NoIdentity())
        return await self.activate(identity)

    def deactivate(self) -> None:
        if self._session.identity is not None:
            log.debug("cart session closed", owner_id=self._session.identity.id)
        self._session.teardown()

    async def _hydrate(
        self, identity: Identity, generation: int
    ) -> Result[CartProjection, GatewayError]:
        result = await self._carts.fetch_all(identity.id)
        if generation != self._session.generation:
            log.info("discarding stale hydration", owner_id=identity.id)
            match result:
                case Ok(_):
                    return Ok(self.projection)
                case Error(e):
                    log.warning("stale hydration failed", owner_id=identity.id, error=e.message)
                    return Error(e)

        match result:
            case Ok(lines):
                self._session.ready(lines)
                log.info("cart hydrated", owner_id=identity.id, lines=len(lines))
                return Ok(self.projection)
            case Error(e):
                log.warning("cart hydration failed", owner_id=identity.id, error=e.message)
                self._notifier.notify(N.error("Error loading cart", e.message))
                if isinstance(e, Unauthorized):
                    self.deactivate()
                return Error(e)

    def _require_ready(self) -> Result[Identity, NoIdentity | NotReady]:
        identity = self._session.identity
        if identity is None:
            return Error(NoIdentity())
        if self._session.state is not SessionState.READY:
            return Error(NotReady(self._session.state.value))
        return Ok(identity)

    def _still_current(self, generation: int) -> bool:
        return (
            generation == self._session.generation
            and self._session.state is SessionState.READY
        )

    # ───────────────────────────────────────────────────────────────────────────
    # Operations
    # ───────────────────────────────────────────────────────────────────────────

    async def add_item(
        self, product_id: ProductId, quantity: int = 1
    ) -> Result[CartLine, CartError]:
        """Add quantity of a product, merging into an existing line."""
        match self._require_ready():
            case Error(e):
                return self._reject(_session_title(e), e)
            case Ok(identity):
                pass
        if quantity < 1:
            return self._reject("Error adding to cart", InvalidQuantity(quantity))

        generation = self._session.generation
        async with self._serial.hold(product_id):
            if not self._still_current(generation):
                return self._reject("Error adding to cart", NoIdentity())

            match await self._catalog.get_product(product_id):
                case Error(e):
                    return self._catalog_failed("Error adding to cart", e)
                case Ok(product):
                    pass

            existing = self.projection.find_by_product(product_id)
            target = merge_add(existing.quantity, quantity) if existing else quantity

            match self._apply_stock(product, target):
                case Error(e):
                    return self._reject("Error adding to cart", e)
                case Ok(allowed):
                    pass
            # an add never shrinks a line or writes a no-op
            if existing is not None and allowed <= existing.quantity:
                return self._reject(
                    "Error adding to cart",
                    StockExceeded(product_id, target, product.available_stock),
                )
            target = allowed

            match await self._carts.upsert_quantity(identity.id, product_id, target):
                case Error(e):
                    return self._write_failed("Error adding to cart", product_id, e)
                case Ok(line_id):
                    line = CartLine(
                        line_id=line_id,
                        product_id=product_id,
                        unit_price=product.unit_price,
                        quantity=target,
                        display_name=product.name,
                        image_ref=product.image_ref,
                    )
                    self._commit(generation, line)
                    log.info("cart line added", owner_id=identity.id, product_id=product_id, quantity=target)
                    self._notifier.notify(
                        N.success("Added to cart", f"{product.name} has been added to your cart")
                    )
                    return Ok(line)

    async def update_item_quantity(
        self, product_id: ProductId, new_quantity: int
    ) -> Result[CartLine | None, CartError]:
        """Set an absolute quantity. Zero or less removes the line."""
        match self._require_ready():
            case Error(e):
                return self._reject(_session_title(e), e)
            case Ok(identity):
                pass

        change = set_quantity(new_quantity)
        if change.remove:
            match await self.remove_item(product_id):
                case Ok(_):
                    return Ok(None)
                case Error(e):
                    return Error(e)

        generation = self._session.generation
        async with self._serial.hold(product_id):
            if not self._still_current(generation):
                return self._reject("Error updating cart", NoIdentity())

            existing = self.projection.find_by_product(product_id)
            product: Product | None = None
            if existing is None:
                match await self._catalog.get_product(product_id):
                    case Error(e):
                        return self._catalog_failed("Error updating cart", e)
                    case Ok(product):
                        pass

            match await self._carts.upsert_quantity(identity.id, product_id, change.new_quantity):
                case Error(e):
                    return self._write_failed("Error updating cart", product_id, e)
                case Ok(line_id):
                    pass

            if existing is not None:
                line = CartLine(
                    line_id=line_id,
                    product_id=product_id,
                    unit_price=existing.unit_price,
                    quantity=change.new_quantity,
                    display_name=existing.display_name,
                    image_ref=existing.image_ref,
                )
            else:
                assert product is not None
                line = CartLine(
                    line_id=line_id,
                    product_id=product_id,
                    unit_price=product.unit_price,
                    quantity=change.new_quantity,
                    display_name=product.name,
                    image_ref=product.image_ref,
                )
            self._commit(generation, line)
            log.info(
                "cart line updated",
                owner_id=identity.id,
                product_id=product_id,
                quantity=change.new_quantity,
            )
            return Ok(line)

    async def remove_item(self, product_id: ProductId) -> Result[None, CartError]:
        match self._require_ready():
            case Error(e):
                return self._reject(_session_title(e), e)
            case Ok(identity):
                pass

        generation = self._session.generation
        async with self._serial.hold(product_id):
            if not self._still_current(generation):
                return self._reject("Error removing item", NoIdentity())

            match await self._carts.delete_line(identity.id, product_id):
                case Error(e):
                    return self._write_failed("Error removing item", product_id, e)
                case Ok(_):
                    if self._still_current(generation):
                        self.projection.remove_by_product(product_id)
                    log.info("cart line removed", owner_id=identity.id, product_id=product_id)
                    self._notifier.notify(
                        N.success("Item removed", "Item has been removed from your cart")
                    )
                    return Ok(None)

    async def clear_cart(self) -> Result[None, CartError]:
        """Delete every line. Waits for operations issued earlier, holds back later ones."""
        match self._require_ready():
            case Error(e):
                return self._reject(_session_title(e), e)
            case Ok(identity):
                pass

        generation = self._session.generation
        async with self._serial.hold_all():
            if not self._still_current(generation):
                return self._reject("Error clearing cart", NoIdentity())

            match await self._carts.delete_all(identity.id):
                case Error(e):
                    return self._write_failed("Error clearing cart", None, e)
                case Ok(_):
                    if self._still_current(generation):
                        self.projection.clear()
                    log.info("cart cleared", owner_id=identity.id)
                    return Ok(None)

    async def clear_ordered(self, lines: tuple[CartLine, ...]) -> Result[None, CartError]:
        """
        Drop the lines an order was placed for.

        Clears the whole cart when it still matches the ordered lines. Lines
        added or changed since then are kept.
        """
        match self._require_ready():
            case Error(e):
                return self._reject(_session_title(e), e)
            case Ok(identity):
                pass

        generation = self._session.generation
        async with self._serial.hold_all():
            if not self._still_current(generation):
                return self._reject("Error clearing cart", NoIdentity())

            if self.projection.snapshot() == lines:
                match await self._carts.delete_all(identity.id):
                    case Error(e):
                        return self._write_failed("Error clearing cart", None, e)
                    case Ok(_):
                        if self._still_current(generation):
                            self.projection.clear()
                        log.info("cart cleared", owner_id=identity.id)
                        return Ok(None)

            for ordered in lines:
                current = self.projection.find_by_product(ordered.product_id)
                if current is None or current.quantity != ordered.quantity:
                    log.info("keeping line changed after order", product_id=ordered.product_id)
                    continue
                match await self._carts.delete_line(identity.id, ordered.product_id):
                    case Error(e):
                        return self._write_failed("Error clearing cart", ordered.product_id, e)
                    case Ok(_):
                        if self._still_current(generation):
                            self.projection.remove_by_product(ordered.product_id)
            log.info("ordered lines cleared", owner_id=identity.id, lines=len(lines))
            return Ok(None)

    async def guard_quantity(
        self, product_id: ProductId, requested: int
    ) -> Result[int, StockExceeded | CatalogError]:
        """
        Pre-submission stock check for quantity pickers.

        Returns the quantity to submit under the configured stock policy.
        """
        match await self._catalog.get_product(product_id):
            case Error(e):
                return Error(e)
            case Ok(product):
                return self._apply_stock(product, requested)

    # ───────────────────────────────────────────────────────────────────────────
    # Helpers
    # ───────────────────────────────────────────────────────────────────────────

    def _apply_stock(self, product: Product, target: int) -> Result[int, StockExceeded]:
        if target <= product.available_stock:
            return Ok(target)
        exceeded = StockExceeded(product.product_id, target, product.available_stock)
        match self._settings.cart.stock_policy:
            case StockPolicy.REJECT:
                return Error(exceeded)
            case StockPolicy.CLAMP:
                clamped = clamp_to_stock(target, product.available_stock)
                if clamped < 1:
                    return Error(exceeded)
                log.info(
                    "quantity clamped to stock",
                    product_id=product.product_id,
                    requested=target,
                    available=product.available_stock,
                )
                return Ok(clamped)
            case _:
                assert_never(self._settings.cart.stock_policy)

    def _commit(self, generation: int, line: CartLine) -> None:
        if self._still_current(generation):
            self.projection.upsert(line)
        else:
            log.info("session changed during write, projection untouched", product_id=line.product_id)

    def _reject(self, title: str, error: CartError) -> Error[CartError]:
        self._notifier.notify(N.error(title, error.message))
        return Error(error)

    def _catalog_failed(self, title: str, error: CatalogError) -> Error[CatalogError]:
        log.warning("catalog lookup failed", error=error.message)
        self._notifier.notify(N.error(title, error.message))
        if isinstance(error, Unauthorized):
            self._unauthorized(error)
        return Error(error)

    def _write_failed(
        self, title: str, product_id: ProductId | None, error: GatewayError
    ) -> Error[CartWriteFailed | Unauthorized]:
        match error:
            case Unauthorized():
                self._notifier.notify(N.error(title, error.message))
                self._unauthorized(error)
                return Error(error)
            case RemoteUnavailable():
                log.warning("cart write failed", product_id=product_id, error=error.message)
                self._notifier.notify(N.error(title, error.message))
                return Error(CartWriteFailed(product_id, error))
            case _:
                assert_never(error)

    def _unauthorized(self, error: Unauthorized) -> None:
        log.warning("session rejected by remote store", error=error.message)
        self.deactivate()


def _session_title(error: NoIdentity | NotReady) -> str:
    match error:
        case NoIdentity():
            return "Please sign in"
        case NotReady():
            return "Cart is still loading"
        case _:
            assert_never(error)


__all__ = ("CartSyncEngine",)
