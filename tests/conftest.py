"""Shared pytest fixtures for cartsync tests."""

from __future__ import annotations

from collections.abc import AsyncIterator
from decimal import Decimal
from pathlib import Path

import pytest
from kungfu import Error, Ok, Result

from cartsync.checkout import CheckoutOrchestrator
from cartsync.config import CartSyncSettings
from cartsync.gateway import (
    MemoryCartGateway,
    MemoryCatalog,
    MemoryOrderGateway,
    Product,
    SQLAlchemyCartGateway,
    SQLAlchemyCatalog,
    SQLAlchemyOrderGateway,
    create_database,
)
from cartsync.identity import Identity, IdentityChannel
from cartsync.notify import RecordingNotifier
from cartsync.sync import CartSyncEngine

OWNER = "user-1"

APPLE = Product("apple", "Apple", Decimal("10.00"), "apple.png", available_stock=50)
BREAD = Product("bread", "Bread", Decimal("5.00"), None, available_stock=50)
MILK = Product("milk", "Milk", Decimal("2.50"), "milk.png", available_stock=3)


@pytest.fixture
def products() -> list[Product]:
    return [APPLE, BREAD, MILK]


@pytest.fixture
def catalog(products: list[Product]) -> MemoryCatalog:
    return MemoryCatalog(products)


@pytest.fixture
def channel() -> IdentityChannel:
    return IdentityChannel()


@pytest.fixture
def carts(catalog: MemoryCatalog, channel: IdentityChannel) -> MemoryCartGateway:
    """Cart store that checks the caller against the row owner."""
    return MemoryCartGateway(catalog, caller=channel.current_id)


@pytest.fixture
def orders(channel: IdentityChannel) -> MemoryOrderGateway:
    return MemoryOrderGateway(caller=channel.current_id)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def settings() -> CartSyncSettings:
    return CartSyncSettings()


@pytest.fixture
def engine(
    carts: MemoryCartGateway,
    catalog: MemoryCatalog,
    notifier: RecordingNotifier,
    settings: CartSyncSettings,
) -> CartSyncEngine:
    """Engine with no identity yet."""
    return CartSyncEngine(carts, catalog, notifier, settings)


@pytest.fixture
async def ready_engine(
    engine: CartSyncEngine,
    channel: IdentityChannel,
    notifier: RecordingNotifier,
) -> AsyncIterator[CartSyncEngine]:
    """Engine subscribed to the channel and hydrated for OWNER."""
    await engine.start(channel)
    await channel.activate(Identity(OWNER))
    notifier.clear()
    try:
        yield engine
    finally:
        engine.stop()


@pytest.fixture
def checkout(
    ready_engine: CartSyncEngine,
    orders: MemoryOrderGateway,
    notifier: RecordingNotifier,
    settings: CartSyncSettings,
) -> CheckoutOrchestrator:
    return CheckoutOrchestrator(ready_engine, orders, notifier, settings)


@pytest.fixture
async def database(tmp_path: Path, products: list[Product]):
    """SQLite file database with tables created and the catalog seeded."""
    session_factory, db_engine = await create_database(
        f"sqlite+aiosqlite:///{tmp_path / 'shop.db'}"
    )
    await SQLAlchemyCatalog(session_factory).add_products(products)
    try:
        yield session_factory
    finally:
        await db_engine.dispose()


@pytest.fixture
def sql_catalog(database) -> SQLAlchemyCatalog:
    return SQLAlchemyCatalog(database)


@pytest.fixture
def sql_carts(database, channel: IdentityChannel) -> SQLAlchemyCartGateway:
    return SQLAlchemyCartGateway(database, caller=channel.current_id)


@pytest.fixture
def sql_orders(database) -> SQLAlchemyOrderGateway:
    return SQLAlchemyOrderGateway(database)


# ═══════════════════════════════════════════════════════════════════════════════
# Result helpers
# ═══════════════════════════════════════════════════════════════════════════════


def unwrap[T](result: Result[T, object]) -> T:
    """Value of an Ok, or fail the test with the error."""
    match result:
        case Ok(value):
            return value
        case Error(e):
            raise AssertionError(f"expected Ok, got Error({e!r})")


def unwrap_err[E](result: Result[object, E]) -> E:
    """Error of an Error, or fail the test with the value."""
    match result:
        case Error(e):
            return e
        case Ok(value):
            raise AssertionError(f"expected Error, got Ok({value!r})")
