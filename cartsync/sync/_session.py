"""
Cart session — explicit per-identity context owned by the sync engine.

Lifecycle: init() on identity activation, ready() after hydration,
teardown() on identity loss. Every init/teardown bumps the generation so
late results from a previous session are recognised and dropped.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum

from cartsync.cart import CartLine, CartProjection
from cartsync.identity import Identity


class SessionState(Enum):
    INACTIVE = "inactive"
    HYDRATING = "hydrating"
    READY = "ready"


class CartSession:
    def __init__(self) -> None:
        self.projection = CartProjection()
        self._identity: Identity | None = None
        self._state = SessionState.INACTIVE
        self._generation = 0

    @property
    def identity(self) -> Identity | None:
        return self._identity

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def generation(self) -> int:
        return self._generation

    def init(self, identity: Identity) -> int:
        self._identity = identity
        self._state = SessionState.HYDRATING
        self._generation += 1
        self.projection.clear()
        return self._generation

    def ready(self, lines: Iterable[CartLine]) -> None:
        self.projection.hydrate(lines)
        self._state = SessionState.READY

    def teardown(self) -> None:
        self._identity = None
        self._state = SessionState.INACTIVE
        self._generation += 1
        self.projection.clear()

    def __repr__(self) -> str:
        owner = self._identity.id if self._identity else None
        return f"CartSession(owner={owner!r}, state={self._state.value}, gen={self._generation})"


__all__ = ("SessionState", "CartSession")
