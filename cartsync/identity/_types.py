"""
Identity types — who is signed in, and what they may do.

Roles are a closed variant. Consumers match exhaustively; a new role is a
type error at every site that forgot it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import assert_never

from cartsync._types import OwnerId

# ═══════════════════════════════════════════════════════════════════════════════
# Roles
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Customer:
    """Shops and places orders."""


@dataclass(frozen=True, slots=True)
class Seller:
    """Manages products and fulfils orders."""


@dataclass(frozen=True, slots=True)
class Admin:
    """Full operator access."""


type Role = Customer | Seller | Admin


def parse_role(value: str) -> Role:
    """Map a stored role name to its variant. Unknown names are rejected."""
    match value:
        case "user" | "customer":
            return Customer()
        case "seller":
            return Seller()
        case "admin":
            return Admin()
        case _:
            raise ValueError(f"unknown role: {value!r}")


def role_name(role: Role) -> str:
    match role:
        case Customer():
            return "user"
        case Seller():
            return "seller"
        case Admin():
            return "admin"
        case _:
            assert_never(role)


def can_manage_orders(role: Role) -> bool:
    """Sellers and admins move orders through their status lifecycle."""
    match role:
        case Customer():
            return False
        case Seller() | Admin():
            return True
        case _:
            assert_never(role)


def can_audit_orders(role: Role) -> bool:
    """Only admins see cross-customer consistency reports."""
    match role:
        case Admin():
            return True
        case Customer() | Seller():
            return False
        case _:
            assert_never(role)


# ═══════════════════════════════════════════════════════════════════════════════
# Identity
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Identity:
    id: OwnerId
    role: Role = field(default_factory=Customer)


# ═══════════════════════════════════════════════════════════════════════════════
# Events
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Activated:
    identity: Identity


@dataclass(frozen=True, slots=True)
class Deactivated:
    previous: Identity | None = None


type IdentityEvent = Activated | Deactivated


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
)
