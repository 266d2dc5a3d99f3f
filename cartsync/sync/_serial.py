"""
Keyed serializer — per-key FIFO with a cart-wide exclusive section.

hold(key) queues behind earlier holders of the same key, in issue order.
hold_all() waits for every hold() issued before it and holds back every
hold() issued after it until it exits.

Issue order is preserved because a holder joins its queue before its first
suspension point: acquiring a free asyncio.Lock does not yield.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Hashable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field


@dataclass(slots=True)
class _KeyEntry:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    users: int = 0


class KeyedSerializer:
    def __init__(self) -> None:
        self._entries: dict[Hashable, _KeyEntry] = {}
        self._exclusive = asyncio.Lock()
        self._idle = asyncio.Event()
        self._idle.set()
        self._pending = 0

    @property
    def pending(self) -> int:
        """Holders registered and not yet released (running or queued)."""
        return self._pending

    def queued(self, key: Hashable) -> int:
        entry = self._entries.get(key)
        return entry.users if entry is not None else 0

    @asynccontextmanager
    async def hold(self, key: Hashable) -> AsyncIterator[None]:
        while self._exclusive.locked():
            async with self._exclusive:
                pass

        entry = self._entries.get(key)
        if entry is None:
            entry = self._entries[key] = _KeyEntry()
        entry.users += 1
        self._pending += 1
        self._idle.clear()
        try:
            async with entry.lock:
                yield
        finally:
            entry.users -= 1
            if entry.users == 0:
                del self._entries[key]
            self._pending -= 1
            if self._pending == 0:
                self._idle.set()

    @asynccontextmanager
    async def hold_all(self) -> AsyncIterator[None]:
        async with self._exclusive:
            await self._idle.wait()
            yield


__all__ = ("KeyedSerializer",)
