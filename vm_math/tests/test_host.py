from __future__ import annotations

import sys

import pytest

from vm_math.errors import ComputeBudgetExceeded, Underflow
from vm_math.runtime import ComputeMeter, LocalHost


def _budget_delta(seen):
    def program(ctx, data):
        a = ctx.remaining_compute_units()
        b = ctx.remaining_compute_units()
        seen.append(a - b)

    return program


def test_program_sees_capabilities(host) -> None:
    def program(ctx, data):
        ctx.log("hello")
        ctx.set_return_data(data[::-1])

    result = host.invoke(program, b"abc")
    assert result.ok
    assert result.program_logs == ["hello"]
    assert result.logs[0] == "Program log: hello"
    assert result.return_data == b"cba"
    assert result.compute_units_consumed >= 200


def test_syscalls_charge_their_base_cost_and_run_unmetered() -> None:
    """Two back-to-back budget reads differ by one syscall plus the program's own opcodes."""
    free, priced, tripled = [], [], []
    LocalHost(syscall_base_cost=0, opcode_cost=1).invoke(_budget_delta(free), b"")
    LocalHost(syscall_base_cost=100, opcode_cost=1).invoke(_budget_delta(priced), b"")
    LocalHost(syscall_base_cost=0, opcode_cost=3).invoke(_budget_delta(tripled), b"")

    assert free[0] > 0
    assert priced[0] - free[0] == 100
    assert tripled[0] == 3 * free[0]


def test_previous_tracer_is_restored(host) -> None:
    def outer(frame, event, arg):
        return None

    old = sys.gettrace()
    sys.settrace(outer)
    try:
        host.invoke(lambda ctx, data: ctx.log("x"), b"")
        assert sys.gettrace() is outer
    finally:
        sys.settrace(old)


def test_budget_exhaustion_fails_the_invocation() -> None:
    def spin(ctx, data):
        total = 0
        for i in range(1_000_000):
            total += i
        ctx.log(str(total))

    old = sys.gettrace()
    host = LocalHost(compute_max_units=5_000)
    result = host.invoke(spin, b"")
    assert not result.ok
    assert result.error["code"] == "COMPUTE_BUDGET_EXCEEDED"
    assert result.custom_code is None
    assert result.compute_units_consumed <= 5_000
    assert result.program_logs == []
    assert sys.gettrace() is old


def test_syscall_past_the_budget_fails() -> None:
    host = LocalHost(compute_max_units=150, syscall_base_cost=100)

    def program(ctx, data):
        ctx.log("first")
        ctx.log("second")

    result = host.invoke(program, b"")
    assert not result.ok
    assert result.program_logs == ["first"]


def test_math_errors_become_failed_outcomes(host) -> None:
    def program(ctx, data):
        raise Underflow()

    result = host.invoke(program, b"")
    assert not result.ok
    assert result.custom_code == 1
    assert result.logs[-1] == "Program failed: UNDERFLOW: Calculation underflowed the destination number"
    assert result.to_dict()["custom_code"] == 1


def test_foreign_exceptions_propagate_and_leave_the_host_reusable(host) -> None:
    old = sys.gettrace()

    def program(ctx, data):
        raise ValueError("boom")

    with pytest.raises(ValueError):
        host.invoke(program, b"")
    assert sys.gettrace() is old
    assert host.invoke(lambda ctx, data: None, b"").ok


def test_invocations_do_not_nest(host) -> None:
    def program(ctx, data):
        host.invoke(lambda c, d: None, b"")

    with pytest.raises(RuntimeError):
        host.invoke(program, b"")


def test_capabilities_outside_an_invocation_are_refused(host) -> None:
    with pytest.raises(RuntimeError):
        host.log("x")
    with pytest.raises(RuntimeError):
        host.remaining_compute_units()


def test_each_invocation_gets_a_fresh_budget(host) -> None:
    first = host.invoke(lambda ctx, data: ctx.log("a"), b"")
    second = host.invoke(lambda ctx, data: ctx.log("a"), b"")
    assert first.compute_units_consumed == second.compute_units_consumed
    assert second.program_logs == ["a"]


# ---------------------------------------------------------------------------
# ComputeMeter
# ---------------------------------------------------------------------------


def test_meter_counts_up_to_its_limit() -> None:
    cm = ComputeMeter(limit=1_000)
    cm.consume(100)
    assert (cm.used, cm.remaining) == (100, 900)
    cm.consume(900)
    assert cm.remaining == 0


def test_meter_refuses_overdraft_without_side_effects() -> None:
    cm = ComputeMeter(limit=10)
    cm.consume(4)
    with pytest.raises(ComputeBudgetExceeded) as excinfo:
        cm.consume(7)
    assert excinfo.value.code == "COMPUTE_BUDGET_EXCEEDED"
    assert excinfo.value.data == {"limit": 10, "used": 4, "requested": 7}
    assert cm.used == 4


@pytest.mark.parametrize("bad", [-1, 1.5, True, "3"])
def test_meter_validates_amounts(bad) -> None:
    cm = ComputeMeter(limit=10)
    with pytest.raises((TypeError, ValueError)):
        cm.consume(bad)
