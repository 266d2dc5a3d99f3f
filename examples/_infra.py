"""Shared infrastructure for examples."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Coroutine
from decimal import Decimal

from cartsync.gateway import Product

# Catalog
PRODUCTS = [
    Product("apple", "Kashmiri Apple", Decimal("10.00"), "img/apple.png", available_stock=40),
    Product("bread", "Whole Wheat Bread", Decimal("5.00"), "img/bread.png", available_stock=12),
    Product("ghee", "Desi Ghee 500g", Decimal("7.25"), None, available_stock=2),
]


# Helpers
def banner(title: str) -> None:
    print(f"\n{'─' * 50}\n{title}\n{'─' * 50}")


def run(main: Callable[[], Coroutine[object, object, None]]) -> None:
    asyncio.run(main())
