"""Tests for the saga runner."""

from __future__ import annotations

from kungfu import Error, LazyCoroResult, Ok, Result

from cartsync import saga as S


def _ok[T](value: T) -> LazyCoroResult[T, str]:
    async def impl() -> Result[T, str]:
        return Ok(value)

    return LazyCoroResult(impl)


def _fail(error: str) -> LazyCoroResult[int, str]:
    async def impl() -> Result[int, str]:
        return Error(error)

    return LazyCoroResult(impl)


class TestRun:
    async def test_single_step_success(self) -> None:
        match await S.run(S.step("one", _ok(1))):
            case Ok(result):
                assert result.value == 1
                assert result.steps_executed == 1
                assert result.compensators_recorded == 0
            case Error(e):
                raise AssertionError(e)

    async def test_single_step_failure(self) -> None:
        match await S.run(S.step("one", _fail("nope"))):
            case Error(e):
                assert e.error == "nope"
                assert e.step_failed == 1
                assert e.failed_step == "one"
                assert e.compensators_run == 0
                assert not e.rolled_back
            case Ok(_):
                raise AssertionError("expected failure")


class TestRunChain:
    async def test_success_records_compensator(self) -> None:
        async def undo(value: int) -> None:
            raise AssertionError("must not run on success")

        chain = S.step("first", _ok(1), compensate=undo).then(
            lambda v: S.step("second", _ok(v + 1))
        )
        match await S.run_chain(chain):
            case Ok(result):
                assert result.value == 2
                assert result.steps_executed == 2
                assert result.compensators_recorded == 1
            case Error(e):
                raise AssertionError(e)

    async def test_second_failure_runs_first_compensator(self) -> None:
        undone: list[int] = []

        async def undo(value: int) -> None:
            undone.append(value)

        chain = S.step("first", _ok(7), compensate=undo).then(lambda _: S.step("second", _fail("x")))
        match await S.run_chain(chain):
            case Error(e):
                assert e.step_failed == 2
                assert e.failed_step == "second"
                assert e.compensators_run == 1
                assert e.rolled_back
            case Ok(_):
                raise AssertionError("expected failure")
        assert undone == [7]

    async def test_no_compensator_means_no_rollback(self) -> None:
        chain = S.step("first", _ok(7)).then(lambda _: S.step("second", _fail("x")))
        match await S.run_chain(chain):
            case Error(e):
                assert e.compensators_run == 0
                assert not e.rolled_back
            case Ok(_):
                raise AssertionError("expected failure")

    async def test_failing_compensator_is_counted(self) -> None:
        async def undo(value: int) -> None:
            raise RuntimeError("cannot undo")

        chain = S.step("first", _ok(7), compensate=undo).then(lambda _: S.step("second", _fail("x")))
        match await S.run_chain(chain):
            case Error(e):
                assert e.compensators_failed == 1
                assert not e.rollback_complete
                assert not e.rolled_back
            case Ok(_):
                raise AssertionError("expected failure")

    async def test_first_failure_skips_second(self) -> None:
        called: list[int] = []

        def next_step(v: int) -> S.SagaStep[int, str]:
            called.append(v)
            return S.step("second", _ok(v))

        match await S.run_chain(S.step("first", _fail("down")).then(next_step)):
            case Error(e):
                assert e.step_failed == 1
            case Ok(_):
                raise AssertionError("expected failure")
        assert called == []


class TestFromAsync:
    async def test_exception_becomes_error(self) -> None:
        async def explode() -> int:
            raise ConnectionError("reset")

        step = S.from_async("remote", explode, on_error=lambda e: f"wrapped: {e}")
        match await S.run(step):
            case Error(e):
                assert e.error == "wrapped: reset"
            case Ok(_):
                raise AssertionError("expected failure")

    async def test_value_passes_through(self) -> None:
        async def fetch() -> int:
            return 42

        match await S.run(S.from_async("remote", fetch, on_error=str)):
            case Ok(result):
                assert result.value == 42
            case Error(e):
                raise AssertionError(e)
