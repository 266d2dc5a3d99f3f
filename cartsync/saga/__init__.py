"""
Saga — sequential remote writes with optional compensation.

    from cartsync import saga as S

    placement = S.step("header", create_header, compensate=drop_header).then(
        lambda order: S.step("lines", create_lines(order))
    )
    result = await S.run_chain(placement)
"""

from __future__ import annotations

from cartsync.saga._types import (
    Compensator,
    SagaStep,
    SagaResult,
    SagaError,
    Then,
)
from cartsync.saga._step import step, from_async
from cartsync.saga._run import run, run_chain

__all__ = (
    "Compensator",
    "SagaStep",
    "SagaResult",
    "SagaError",
    "Then",
    "step",
    "from_async",
    "run",
    "run_chain",
)
