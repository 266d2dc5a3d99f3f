"""
Identity channel — activation/deactivation events with explicit unsubscribe.

Delivery is queued: events are published one at a time and each listener
is awaited in subscription order before the next event goes out.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable

import structlog

from cartsync._types import OwnerId
from cartsync.identity._types import Activated, Deactivated, Identity, IdentityEvent

log = structlog.get_logger(__name__)

type Listener = Callable[[IdentityEvent], Awaitable[None]]


class Subscription:
    """Handle returned by subscribe(). unsubscribe() is idempotent."""

    __slots__ = ("_channel", "_listener", "_active")

    def __init__(self, channel: IdentityChannel, listener: Listener) -> None:
        self._channel = channel
        self._listener = listener
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def unsubscribe(self) -> None:
        if self._active:
            self._channel._remove(self._listener)
            self._active = False


class IdentityChannel:
    """
    Source of truth for the current identity.

    Example:
        channel = IdentityChannel()
        sub = channel.subscribe(engine.on_identity_event)
        await channel.activate(Identity("user-1"))
        ...
        sub.unsubscribe()
    """

    def __init__(self) -> None:
        self._current: Identity | None = None
        self._listeners: list[Listener] = []
        self._publishing = asyncio.Lock()

    @property
    def current(self) -> Identity | None:
        return self._current

    def current_id(self) -> OwnerId | None:
        return self._current.id if self._current is not None else None

    def subscribe(self, listener: Listener) -> Subscription:
        self._listeners.append(listener)
        return Subscription(self, listener)

    async def activate(self, identity: Identity) -> None:
        async with self._publishing:
            self._current = identity
            await self._deliver(Activated(identity))

    async def deactivate(self) -> None:
        async with self._publishing:
            previous = self._current
            if previous is None:
                return
            self._current = None
            await self._deliver(Deactivated(previous))

    async def _deliver(self, event: IdentityEvent) -> None:
        for listener in tuple(self._listeners):
            try:
                await listener(event)
            except Exception:
                log.exception("identity listener failed", event=type(event).__name__)

    def _remove(self, listener: Listener) -> None:
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass


__all__ = ("Listener", "Subscription", "IdentityChannel")
