"""
Orphan header — what happens when order lines fail after the header landed.

    python -m examples.orphan_header_example
"""

from kungfu import Ok, Error

from cartsync import notify as N
from cartsync.checkout import CheckoutOrchestrator
from cartsync.config import CartSyncSettings, CheckoutConfig
from cartsync.gateway import MemoryCartGateway, MemoryCatalog, MemoryOrderGateway
from cartsync.identity import Admin, Identity, IdentityChannel
from cartsync.orders import OrderDesk
from cartsync.sync import CartSyncEngine
from examples._infra import PRODUCTS, banner, run


async def attempt(compensate: bool) -> None:
    settings = CartSyncSettings(checkout=CheckoutConfig(compensate_orphan_header=compensate))
    channel = IdentityChannel()
    catalog = MemoryCatalog(PRODUCTS)
    orders = MemoryOrderGateway()
    engine = CartSyncEngine(MemoryCartGateway(catalog), catalog, N.LogNotifier(), settings)
    await engine.start(channel)
    await channel.activate(Identity("asha"))
    await engine.add_item("apple", 2)

    orders.faults.fail("create_lines")
    checkout = CheckoutOrchestrator(engine, orders, settings=settings)

    match await checkout.place_order("14 Park Street, Kolkata"):
        case Ok(placed):
            print(f"  unexpected success: {placed.order.order_id}")
        case Error(e):
            print(f"  ✗ {e.code}: {e.message}")

    print(f"  cart lines kept: {engine.projection.line_count()}")
    match await OrderDesk(orders).incomplete_orders(Identity("ops", Admin())):
        case Ok(found):
            print(f"  headers without lines: {[o.order_id for o in found]}")
        case Error(e):
            print(f"  ✗ {e.message}")


async def main() -> None:
    banner("Default: header stays for reconciliation")
    await attempt(compensate=False)

    banner("compensate_orphan_header = true")
    await attempt(compensate=True)


if __name__ == "__main__":
    run(main)
