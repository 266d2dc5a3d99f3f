"""
cartsync — cart-and-checkout reconciliation against remote stores.

    from cartsync import sync                   # Cart sync engine
    from cartsync import checkout               # Order placement
    from cartsync import gateway as G           # Remote store protocols + backends
    from cartsync import saga as S              # Sequential writes with compensation
"""

from cartsync import cart
from cartsync import config
from cartsync import gateway
from cartsync import identity
from cartsync import notify
from cartsync import saga
from cartsync import sync
from cartsync import checkout
from cartsync import orders
from cartsync._types import (
    OwnerId,
    ProductId,
    OrderId,
    LineId,
    to_money,
)

__version__ = "0.1.0"

__all__ = (
    "cart",
    "config",
    "gateway",
    "identity",
    "notify",
    "saga",
    "sync",
    "checkout",
    "orders",
    "OwnerId",
    "ProductId",
    "OrderId",
    "LineId",
    "to_money",
)
