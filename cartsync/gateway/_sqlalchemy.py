"""
SQLAlchemy gateways — persisted cart, orders and catalog.

Usage:
    session_factory, engine = await create_database("sqlite+aiosqlite:///shop.db")
    catalog = SQLAlchemyCatalog(session_factory)
    carts = SQLAlchemyCartGateway(session_factory, caller=channel.current_id)
    orders = SQLAlchemyOrderGateway(session_factory, caller=channel.current_id)

Money is stored as integer cents. Every driver exception becomes
RemoteUnavailable via combinators.lift.catching_async.
"""

from __future__ import annotations

import uuid
from collections.abc import Awaitable, Callable, Iterable, Sequence
from datetime import UTC, datetime
from decimal import Decimal

from combinators import lift as L
from kungfu import Result, Ok, Error
from sqlalchemy import (
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    delete,
    exists,
    select,
)
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from cartsync._errors import CatalogError, GatewayError, ProductNotFound, RemoteUnavailable
from cartsync._types import CENT, LineId, OrderId, OwnerId, ProductId, to_money
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

# ═══════════════════════════════════════════════════════════════════════════════
# Tables
# ═══════════════════════════════════════════════════════════════════════════════


class Base(DeclarativeBase):
    pass


class ProductTable(Base):
    __tablename__ = "products"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    price_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    stock: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class CartItemTable(Base):
    __tablename__ = "cart_items"
    __table_args__ = (
        UniqueConstraint("user_id", "product_id", name="uq_cart_items_user_product"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    product_id: Mapped[str] = mapped_column(ForeignKey("products.id"), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class OrderTable(Base):
    __tablename__ = "orders"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    total_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    delivery_address: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class OrderItemTable(Base):
    __tablename__ = "order_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_id: Mapped[str] = mapped_column(
        ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True
    )
    product_id: Mapped[str] = mapped_column(String(64), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price_cents: Mapped[int] = mapped_column(Integer, nullable=False)


# ═══════════════════════════════════════════════════════════════════════════════
# Database Setup
# ═══════════════════════════════════════════════════════════════════════════════


async def create_database(
    url: str = "sqlite+aiosqlite:///:memory:",
    echo: bool = False,
) -> tuple[async_sessionmaker[AsyncSession], AsyncEngine]:
    """Create tables and return (session_factory, engine)."""
    engine = create_async_engine(url, echo=echo)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    return async_sessionmaker(engine, expire_on_commit=False), engine


# ═══════════════════════════════════════════════════════════════════════════════
# Helpers
# ═══════════════════════════════════════════════════════════════════════════════


def _to_cents(amount: Decimal) -> int:
    return int(to_money(amount) * 100)


def _from_cents(cents: int) -> Decimal:
    return (Decimal(cents) / 100).quantize(CENT)


def _unavailable(e: Exception) -> RemoteUnavailable:
    return RemoteUnavailable(f"database error: {e}", e)


async def _guarded[T](fn: Callable[[], Awaitable[T]]) -> Result[T, RemoteUnavailable]:
    return await L.catching_async(fn, on_error=_unavailable)


def _insert_for(session: AsyncSession):
    """INSERT construct with ON CONFLICT support for the bound dialect."""
    match session.get_bind().dialect.name:
        case "postgresql":
            return pg_insert
        case _:
            return sqlite_insert


def _utc(value: datetime) -> datetime:
    # sqlite drops the offset on the way back
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _order_from_row(row: OrderTable) -> Order:
    return Order(
        order_id=row.id,
        owner_id=row.user_id,
        grand_total=_from_cents(row.total_cents),
        delivery_address=row.delivery_address,
        status=OrderStatus(row.status),
        created_at=_utc(row.created_at),
    )


def _line_from_row(row: OrderItemTable) -> OrderLine:
    return OrderLine(
        order_id=row.order_id,
        product_id=row.product_id,
        quantity=row.quantity,
        unit_price_at_order_time=_from_cents(row.unit_price_cents),
    )


# ═══════════════════════════════════════════════════════════════════════════════
# Catalog
# ═══════════════════════════════════════════════════════════════════════════════


class SQLAlchemyCatalog:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def add_products(self, products: Iterable[Product]) -> None:
        """Insert or replace catalog rows."""
        async with self._session_factory() as session:
            for p in products:
                await session.merge(
                    ProductTable(
                        id=p.product_id,
                        name=p.name,
                        price_cents=_to_cents(p.unit_price),
                        image_url=p.image_ref,
                        stock=p.available_stock,
                    )
                )
            await session.commit()

    async def get_product(self, product_id: ProductId) -> Result[Product, CatalogError]:
        async def fetch() -> ProductTable | None:
            async with self._session_factory() as session:
                return await session.get(ProductTable, product_id)

        match await _guarded(fetch):
            case Ok(None):
                return Error(ProductNotFound(product_id))
            case Ok(row):
                return Ok(
                    Product(
                        product_id=row.id,
                        name=row.name,
                        unit_price=_from_cents(row.price_cents),
                        image_ref=row.image_url,
                        available_stock=row.stock,
                    )
                )
            case Error(e):
                return Error(e)


# ═══════════════════════════════════════════════════════════════════════════════
# Cart Gateway
# ═══════════════════════════════════════════════════════════════════════════════


class SQLAlchemyCartGateway:
    """Cart rows unique on (user_id, product_id); display fields joined from products."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        caller: CallerFn | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._caller = caller

    async def fetch_all(self, owner_id: OwnerId) -> Result[list[CartLine], GatewayError]:
        match authorize(self._caller, owner_id):
            case Error(e):
                return Error(e)
            case Ok(_):
                pass

        async def fetch() -> list[CartLine]:
            async with self._session_factory() as session:
                stmt = (
                    select(CartItemTable, ProductTable)
                    .join(ProductTable, CartItemTable.product_id == ProductTable.id)
                    .where(CartItemTable.user_id == owner_id)
                    .order_by(CartItemTable.created_at, CartItemTable.id)
                )
                rows = (await session.execute(stmt)).all()
                return [
                    CartLine(
                        line_id=item.id,
                        product_id=item.product_id,
                        unit_price=_from_cents(product.price_cents),
                        quantity=item.quantity,
                        display_name=product.name,
                        image_ref=product.image_url,
                    )
                    for item, product in rows
                ]

        return await _guarded(fetch)

    async def upsert_quantity(
        self,
        owner_id: OwnerId,
        product_id: ProductId,
        quantity: int,
    ) -> Result[LineId, GatewayError]:
        match authorize(self._caller, owner_id):
            case Error(e):
                return Error(e)
            case Ok(_):
                pass

        async def write() -> LineId:
            async with self._session_factory() as session:
                insert = _insert_for(session)
                stmt = (
                    insert(CartItemTable)
                    .values(
                        id=uuid.uuid4().hex,
                        user_id=owner_id,
                        product_id=product_id,
                        quantity=quantity,
                        created_at=datetime.now(UTC),
                    )
                    .on_conflict_do_update(
                        index_elements=["user_id", "product_id"],
                        set_={"quantity": quantity},
                    )
                )
                await session.execute(stmt)
                line_id = (
                    await session.execute(
                        select(CartItemTable.id).where(
                            CartItemTable.user_id == owner_id,
                            CartItemTable.product_id == product_id,
                        )
                    )
                ).scalar_one()
                await session.commit()
                return line_id

        return await _guarded(write)

    async def delete_line(
        self, owner_id: OwnerId, product_id: ProductId
    ) -> Result[None, GatewayError]:
        match authorize(self._caller, owner_id):
            case Error(e):
                return Error(e)
            case Ok(_):
                pass

        async def write() -> None:
            async with self._session_factory() as session:
                await session.execute(
                    delete(CartItemTable).where(
                        CartItemTable.user_id == owner_id,
                        CartItemTable.product_id == product_id,
                    )
                )
                await session.commit()

        return await _guarded(write)

    async def delete_all(self, owner_id: OwnerId) -> Result[None, GatewayError]:
        match authorize(self._caller, owner_id):
            case Error(e):
                return Error(e)
            case Ok(_):
                pass

        async def write() -> None:
            async with self._session_factory() as session:
                await session.execute(
                    delete(CartItemTable).where(CartItemTable.user_id == owner_id)
                )
                await session.commit()

        return await _guarded(write)


# ═══════════════════════════════════════════════════════════════════════════════
# Order Gateway
# ═══════════════════════════════════════════════════════════════════════════════


class SQLAlchemyOrderGateway:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        caller: CallerFn | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._caller = caller

    async def create_order(self, order: NewOrder) -> Result[Order, GatewayError]:
        match authorize(self._caller, order.owner_id):
            case Error(e):
                return Error(e)
            case Ok(_):
                pass

        async def write() -> Order:
            async with self._session_factory() as session:
                row = OrderTable(
                    id=f"ord_{uuid.uuid4().hex[:12]}",
                    user_id=order.owner_id,
                    total_cents=_to_cents(order.grand_total),
                    delivery_address=order.delivery_address,
                    status=OrderStatus.PENDING.value,
                    created_at=datetime.now(UTC),
                )
                session.add(row)
                await session.commit()
                return _order_from_row(row)

        return await _guarded(write)

    async def create_lines(
        self, order_id: OrderId, lines: Sequence[NewOrderLine]
    ) -> Result[list[OrderLine], GatewayError]:
        async def write() -> list[OrderLine]:
            async with self._session_factory() as session:
                if await session.get(OrderTable, order_id) is None:
                    raise LookupError(f"order {order_id} does not exist")
                rows = [
                    OrderItemTable(
                        order_id=order_id,
                        product_id=line.product_id,
                        quantity=line.quantity,
                        unit_price_cents=_to_cents(line.unit_price),
                    )
                    for line in lines
                ]
                session.add_all(rows)
                await session.commit()
                return [_line_from_row(r) for r in rows]

        return await _guarded(write)

    async def delete_order(self, order_id: OrderId) -> Result[bool, GatewayError]:
        async def write() -> bool:
            async with self._session_factory() as session:
                await session.execute(
                    delete(OrderItemTable).where(OrderItemTable.order_id == order_id)
                )
                result = await session.execute(
                    delete(OrderTable).where(OrderTable.id == order_id)
                )
                await session.commit()
                return result.rowcount > 0

        return await _guarded(write)

    async def get_order(self, order_id: OrderId) -> Result[Order | None, GatewayError]:
        async def fetch() -> Order | None:
            async with self._session_factory() as session:
                row = await session.get(OrderTable, order_id)
                return _order_from_row(row) if row is not None else None

        return await _guarded(fetch)

    async def list_orders(self, owner_id: OwnerId) -> Result[list[Order], GatewayError]:
        match authorize(self._caller, owner_id):
            case Error(e):
                return Error(e)
            case Ok(_):
                pass

        async def fetch() -> list[Order]:
            async with self._session_factory() as session:
                rows = (
                    await session.execute(
                        select(OrderTable)
                        .where(OrderTable.user_id == owner_id)
                        .order_by(OrderTable.created_at.desc(), OrderTable.id.desc())
                    )
                ).scalars()
                return [_order_from_row(r) for r in rows]

        return await _guarded(fetch)

    async def get_lines(self, order_id: OrderId) -> Result[list[OrderLine], GatewayError]:
        async def fetch() -> list[OrderLine]:
            async with self._session_factory() as session:
                rows = (
                    await session.execute(
                        select(OrderItemTable)
                        .where(OrderItemTable.order_id == order_id)
                        .order_by(OrderItemTable.id)
                    )
                ).scalars()
                return [_line_from_row(r) for r in rows]

        return await _guarded(fetch)

    async def update_status(
        self, order_id: OrderId, status: OrderStatus
    ) -> Result[Order | None, GatewayError]:
        async def write() -> Order | None:
            async with self._session_factory() as session:
                row = await session.get(OrderTable, order_id)
                if row is None:
                    return None
                row.status = status.value
                await session.commit()
                return _order_from_row(row)

        return await _guarded(write)

    async def orders_without_lines(self) -> Result[list[Order], GatewayError]:
        async def fetch() -> list[Order]:
            async with self._session_factory() as session:
                has_lines = exists().where(OrderItemTable.order_id == OrderTable.id)
                rows = (
                    await session.execute(
                        select(OrderTable).where(~has_lines).order_by(OrderTable.created_at)
                    )
                ).scalars()
                return [_order_from_row(r) for r in rows]

        return await _guarded(fetch)


__all__ = (
    "Base",
    "ProductTable",
    "CartItemTable",
    "OrderTable",
    "OrderItemTable",
    "create_database",
    "SQLAlchemyCatalog",
    "SQLAlchemyCartGateway",
    "SQLAlchemyOrderGateway",
)
