"""
Gateway — remote stores behind async, Result-returning protocols.

    from cartsync import gateway as GW

    catalog = GW.MemoryCatalog([GW.Product("apple", "Apple", Decimal("10"), available_stock=5)])
    carts = GW.MemoryCartGateway(catalog, caller=channel.current_id)
    orders = GW.MemoryOrderGateway(caller=channel.current_id)
"""

from __future__ import annotations

from cartsync.gateway._types import (
    Product,
    Catalog,
    OrderStatus,
    NewOrder,
    NewOrderLine,
    Order,
    OrderLine,
    CartGateway,
    OrderGateway,
    CallerFn,
    authorize,
)
from cartsync.gateway._memory import (
    FaultPlan,
    MemoryCatalog,
    MemoryCartGateway,
    MemoryOrderGateway,
)
from cartsync.gateway._sqlalchemy import (
    create_database,
    SQLAlchemyCatalog,
    SQLAlchemyCartGateway,
    SQLAlchemyOrderGateway,
)

__all__ = (
    # Types
    "Product",
    "Catalog",
    "OrderStatus",
    "NewOrder",
    "NewOrderLine",
    "Order",
    "OrderLine",
    # Protocols
    "CartGateway",
    "OrderGateway",
    "CallerFn",
    "authorize",
    # Memory
    "FaultPlan",
    "MemoryCatalog",
    "MemoryCartGateway",
    "MemoryOrderGateway",
    # SQLAlchemy
    "create_database",
    "SQLAlchemyCatalog",
    "SQLAlchemyCartGateway",
    "SQLAlchemyOrderGateway",
)
