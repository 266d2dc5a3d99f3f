"""
Saga execution with rollback of recorded compensators.

Compensator failures are logged and counted, never raised: the caller
learns about them through SagaError.compensators_failed.
"""

from __future__ import annotations

import structlog
from kungfu import Result, Ok, Error

from cartsync.saga._types import SagaStep, SagaResult, SagaError, Then, Compensator

log = structlog.get_logger(__name__)

# ═══════════════════════════════════════════════════════════════════════════════
# Undo log
# ═══════════════════════════════════════════════════════════════════════════════


class _UndoLog:
    """Compensators of completed steps, replayed newest first on failure."""

    __slots__ = ("_entries",)

    def __init__(self) -> None:
        self._entries: list[tuple[str, object, Compensator[object]]] = []

    def __len__(self) -> int:
        return len(self._entries)

    def record[T](self, name: str, value: T, compensate: Compensator[T] | None) -> None:
        if compensate is not None:
            self._entries.append((name, value, compensate))  # type: ignore[arg-type]

    async def replay(self) -> tuple[int, int]:
        """Run every recorded compensator in reverse. Returns (run, failed)."""
        ran = failed = 0
        for name, value, compensate in reversed(self._entries):
            try:
                await compensate(value)
            except Exception:
                failed += 1
                log.exception("saga compensation failed", step=name)
            else:
                ran += 1
                log.info("saga step compensated", step=name)
        self._entries.clear()
        return ran, failed


async def _execute[T, E](step: SagaStep[T, E], undo: _UndoLog) -> Result[T, E]:
    match await step.action:
        case Ok(value):
            log.debug("saga step succeeded", step=step.name)
            undo.record(step.name, value, step.compensate)
            return Ok(value)
        case Error(e):
            log.debug("saga step failed", step=step.name, error=e)
            return Error(e)


async def _abort[E](error: E, position: int, step: SagaStep[object, E], undo: _UndoLog) -> SagaError[E]:
    ran, failed = await undo.replay()
    return SagaError(
        error=error,
        step_failed=position,
        failed_step=step.name,
        compensators_run=ran,
        compensators_failed=failed,
    )


# ═══════════════════════════════════════════════════════════════════════════════
# Entry points
# ═══════════════════════════════════════════════════════════════════════════════


async def run[T, E](saga: SagaStep[T, E]) -> Result[SagaResult[T], SagaError[E]]:
    """
    Execute a single saga step.

    Example:
        match await S.run(header_step):
            case Ok(r):
                order = r.value
            case Error(e):
                print(f"Failed at {e.failed_step}")
    """
    undo = _UndoLog()
    match await _execute(saga, undo):
        case Ok(value):
            return Ok(SagaResult(value, steps_executed=1, compensators_recorded=len(undo)))
        case Error(e):
            return Error(await _abort(e, 1, saga, undo))


async def run_chain[T, U, E, E2](
    chain: Then[T, U, E, E2],
) -> Result[SagaResult[U], SagaError[E | E2]]:
    """
    Execute two chained steps; the second is built from the first's value.

    When the second step fails, the first step's compensator (if any) runs.

    Example:
        placement = header.then(lambda order: lines_step(order))
        result = await S.run_chain(placement)
    """
    undo = _UndoLog()

    match await _execute(chain.inner, undo):
        case Error(e):
            return Error(await _abort(e, 1, chain.inner, undo))
        case Ok(first):
            pass

    follow_up = chain.f(first)
    match await _execute(follow_up, undo):
        case Ok(value):
            return Ok(SagaResult(value, steps_executed=2, compensators_recorded=len(undo)))
        case Error(e):
            return Error(await _abort(e, 2, follow_up, undo))


__all__ = ("run", "run_chain")
