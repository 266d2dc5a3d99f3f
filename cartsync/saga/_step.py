"""
Saga step creation.
"""

from __future__ import annotations

from collections.abc import Callable, Awaitable
from kungfu import LazyCoroResult
from combinators import lift as L

from cartsync.saga._types import SagaStep, Compensator


def step[T, E](
    name: str,
    action: LazyCoroResult[T, E],
    compensate: Compensator[T] | None = None,
) -> SagaStep[T, E]:
    """
    Create a saga step.

    Example:
        from cartsync import saga as S

        header = S.step(
            "order_header",
            LazyCoroResult(lambda: orders.create_order(new_order)),
            compensate=lambda order: discard(order.order_id),
        )
    """
    return SagaStep(name=name, action=action, compensate=compensate)


def from_async[T, E](
    name: str,
    action: Callable[[], Awaitable[T]],
    on_error: Callable[[Exception], E],
    compensate: Compensator[T] | None = None,
) -> SagaStep[T, E]:
    """
    Create step from a raising async callable.

    Example:
        S.from_async(
            "notify_warehouse",
            lambda: warehouse.announce(order_id),
            on_error=lambda e: RemoteUnavailable(str(e), e),
        )
    """
    return SagaStep(
        name=name,
        action=L.catching_async(action, on_error=on_error),
        compensate=compensate,
    )


__all__ = ("step", "from_async")
