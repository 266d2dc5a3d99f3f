"""
Identity — the signed-in user and its lifecycle events.

    from cartsync import identity as ID

    channel = ID.IdentityChannel()
    sub = channel.subscribe(listener)
    await channel.activate(ID.Identity("user-1", ID.Seller()))
"""

from __future__ import annotations

from cartsync.identity._types import (
    Customer,
    Seller,
    Admin,
    Role,
    parse_role,
    role_name,
    can_manage_orders,
    can_audit_orders,
    Identity,
    Activated,
    Deactivated,
    IdentityEvent,
)
from cartsync.identity._channel import Listener, Subscription, IdentityChannel

__all__ = (
    "Customer",
    "Seller",
    "Admin",
    "Role",
    "parse_role",
    "role_name",
    "can_manage_orders",
    "can_audit_orders",
    "Identity",
    "Activated",
    "Deactivated",
    "IdentityEvent",
    "Listener",
    "Subscription",
    "IdentityChannel",
)
