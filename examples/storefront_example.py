"""
Storefront — cart sync and checkout against a SQLite database.

    python -m examples.storefront_example
"""

from kungfu import Ok, Error

from cartsync import config, notify as N
from cartsync.checkout import CheckoutOrchestrator
from cartsync.gateway import (
    OrderStatus,
    SQLAlchemyCartGateway,
    SQLAlchemyCatalog,
    SQLAlchemyOrderGateway,
    create_database,
)
from cartsync.identity import Identity, IdentityChannel, Seller
from cartsync.orders import OrderDesk
from cartsync.sync import CartSyncEngine
from examples._infra import PRODUCTS, banner, run


async def main() -> None:
    settings = config.CartSyncSettings.load()
    config.configure_logging(
        verbose=settings.logging.verbose,
        log_json=settings.logging.json_output,
    )

    session_factory, db = await create_database(settings.database.url, settings.database.echo)
    catalog = SQLAlchemyCatalog(session_factory)
    await catalog.add_products(PRODUCTS)

    channel = IdentityChannel()
    notifier = N.RecordingNotifier()
    carts = SQLAlchemyCartGateway(session_factory, caller=channel.current_id)
    orders = SQLAlchemyOrderGateway(session_factory, caller=channel.current_id)

    engine = CartSyncEngine(carts, catalog, notifier, settings)
    await engine.start(channel)

    banner("Sign in and fill the cart")
    await channel.activate(Identity("asha"))
    await engine.add_item("apple", 2)
    await engine.add_item("bread")
    await engine.add_item("ghee", 5)  # clamped to stock
    await engine.update_item_quantity("ghee", 1)
    for line in engine.projection.lines:
        print(f"  {line.display_name:<20} x{line.quantity:<3} {line.total:>8}")
    print(f"  {'total':<24} {engine.projection.total:>8}")

    banner("Checkout")
    checkout = CheckoutOrchestrator(engine, orders, settings=settings)
    match checkout.preview("14 Park Street, Kolkata"):
        case Ok(snap):
            print(f"  subtotal {snap.subtotal}  fee {snap.delivery_fee}  tax {snap.tax}")
            print(f"  grand total {snap.grand_total} {settings.pricing.currency}")
        case Error(e):
            print(f"  ✗ {e.message}")

    match await checkout.place_order("14 Park Street, Kolkata"):
        case Ok(placed):
            print(f"  ✓ Order {placed.order.order_id} ({len(placed.lines)} lines)")
            order_id = placed.order.order_id
        case Error(e):
            print(f"  ✗ {e.code}: {e.message}")
            return

    banner("Seller confirms")
    desk = OrderDesk(SQLAlchemyOrderGateway(session_factory))
    match await desk.set_status(Identity("ravi", Seller()), order_id, OrderStatus.CONFIRMED):
        case Ok(order):
            print(f"  {order.order_id} → {order.status.value}")
        case Error(e):
            print(f"  ✗ {e.message}")

    banner("Notifications")
    for n in notifier.sent:
        print(f"  [{n.kind.value}] {n.title}: {n.detail}")

    engine.stop()
    await db.dispose()


if __name__ == "__main__":
    run(main)
