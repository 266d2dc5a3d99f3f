"""Tests for KeyedSerializer."""

from __future__ import annotations

import asyncio

from cartsync.sync import KeyedSerializer


async def _settle() -> None:
    for _ in range(5):
        await asyncio.sleep(0)


class TestHold:
    async def test_same_key_runs_in_issue_order(self) -> None:
        serial = KeyedSerializer()
        order: list[str] = []

        async def op(label: str) -> None:
            async with serial.hold("apple"):
                order.append(f"{label}:in")
                await asyncio.sleep(0)
                order.append(f"{label}:out")

        await asyncio.gather(op("a"), op("b"), op("c"))
        assert order == ["a:in", "a:out", "b:in", "b:out", "c:in", "c:out"]

    async def test_different_keys_overlap(self) -> None:
        serial = KeyedSerializer()
        gate = asyncio.Event()
        done: list[str] = []

        async def slow() -> None:
            async with serial.hold("apple"):
                await gate.wait()
                done.append("apple")

        async def fast() -> None:
            async with serial.hold("bread"):
                done.append("bread")

        slow_task = asyncio.create_task(slow())
        await _settle()
        await fast()
        assert done == ["bread"]

        gate.set()
        await slow_task
        assert done == ["bread", "apple"]

    async def test_bookkeeping_released(self) -> None:
        serial = KeyedSerializer()
        async with serial.hold("apple"):
            assert serial.pending == 1
            assert serial.queued("apple") == 1
        assert serial.pending == 0
        assert serial.queued("apple") == 0

    async def test_released_on_exception(self) -> None:
        serial = KeyedSerializer()
        try:
            async with serial.hold("apple"):
                raise RuntimeError("boom")
        except RuntimeError:
            pass
        assert serial.pending == 0


class TestHoldAll:
    async def test_waits_for_earlier_and_blocks_later(self) -> None:
        serial = KeyedSerializer()
        gate = asyncio.Event()
        order: list[str] = []

        async def op(key: str, label: str, wait: asyncio.Event | None = None) -> None:
            async with serial.hold(key):
                order.append(f"{label}:in")
                if wait is not None:
                    await wait.wait()
                order.append(f"{label}:out")

        async def clear() -> None:
            async with serial.hold_all():
                order.append("clear")

        first = asyncio.create_task(op("apple", "first", gate))
        await _settle()
        clearing = asyncio.create_task(clear())
        await _settle()
        late = asyncio.create_task(op("bread", "late"))
        await _settle()
        assert order == ["first:in"]

        gate.set()
        await asyncio.gather(first, clearing, late)
        assert order == ["first:in", "first:out", "clear", "late:in", "late:out"]

    async def test_idle_runs_immediately(self) -> None:
        serial = KeyedSerializer()
        async with serial.hold_all():
            assert serial.pending == 0
