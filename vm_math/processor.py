"""
vm_math.processor — dispatch one instruction and measure its compute cost.

Every invocation runs the same fixed protocol:

    decode → log marker → read budget (before) → run ONE primitive
           → read budget (after) → report before - after - CORRECTION

`CORRECTION` cancels the overhead of the measurement scaffolding itself (the
second budget read and the call into the primitive), so the reported figure
approximates the primitive alone. It is calibrated with the `Noop`
instruction, whose corrected cost is ~0 by definition, and clamps at zero
instead of going negative.

Failures are never absorbed: a decode error or a primitive's Overflow /
Underflow / DivisionByZero escapes `process_instruction` before any cost is
reported, and the host fails the invocation.
"""

from __future__ import annotations

import functools
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, NamedTuple, Optional, Tuple, Type

import cbor2
import numpy as np

from . import approximations, scalar, sqrt
from .config import load_config
from .errors import DecodeError
from .instruction import (
    F32Divide,
    F32Exponentiate,
    F32Multiply,
    F32NaturalLog,
    F32NormalCDF,
    F64Divide,
    F64Multiply,
    F64Pow,
    MathInstruction,
    Noop,
    PreciseMulDiv,
    PreciseSquareRoot,
    SquareRootU64,
    SquareRootU128,
    U64Divide,
    U64Multiply,
    U128Divide,
    U128Multiply,
    noop,
)
from .precise_number import PreciseNumber
from .runtime.host import InvocationContext, InvocationResult, LocalHost

log = logging.getLogger(__name__)

BENCH_PREFIX = "cu_bench_consumed"


@dataclass(frozen=True)
class TransactionTestResult:
    """Structured return payload: the corrected cost of the measured primitive."""

    compute_units_consumed: int

    def encode(self) -> bytes:
        return cbor2.dumps({"compute_units_consumed": self.compute_units_consumed}, canonical=True)

    @classmethod
    def decode(cls, data: bytes) -> "TransactionTestResult":
        payload = cbor2.loads(data)
        return cls(int(payload["compute_units_consumed"]))


def corrected_cost(before: int, after: int, correction: int) -> int:
    """`before - after - correction`, clamped at zero."""
    raw = before - after
    return raw - correction if raw > correction else 0


# ------------------------------------------------------------------ #
# Primitives that need a little glue around the library call
# ------------------------------------------------------------------ #

def _precise_sqrt(radicand: PreciseNumber) -> int:
    return radicand.sqrt().to_imprecise(bits=64)


def _precise_mul_div(val: PreciseNumber, num: PreciseNumber, denom: PreciseNumber) -> int:
    return val.mul_div_floor(num, denom).to_imprecise()


def _noop() -> str:
    return "noop"


def _lift(ix: MathInstruction) -> Tuple[Any, ...]:
    """Setup outside the measured window: lift integer operands into fixed point."""
    return tuple(PreciseNumber.new(v) for v in ix.operands())


def _render(result: Any) -> str:
    if isinstance(result, (float, np.floating)):
        return str(scalar.saturating_u64(result))
    return str(result)


class _Handler(NamedTuple):
    label: str
    primitives: Tuple[Tuple[str, Callable[..., Any]], ...]
    setup: Callable[[MathInstruction], Tuple[Any, ...]] = MathInstruction.operands


def _one(label: str, primitive: Callable[..., Any], **kw: Any) -> _Handler:
    return _Handler(label, (("", primitive),), **kw)


_HANDLERS: Dict[Type[MathInstruction], _Handler] = {
    PreciseSquareRoot: _one("square root using PreciseNumber", _precise_sqrt, setup=_lift),
    PreciseMulDiv: _one("muldiv using PreciseNumber", _precise_mul_div, setup=_lift),
    SquareRootU64: _one("u64 square root", sqrt.sqrt_u64),
    SquareRootU128: _one("u128 square root", sqrt.sqrt_u128),
    U64Multiply: _one("u64 multiply", scalar.u64_multiply),
    U64Divide: _one("u64 divide", scalar.u64_divide),
    U128Multiply: _one("u128 multiply", scalar.u128_multiply),
    U128Divide: _one("u128 divide", scalar.u128_divide),
    F32Multiply: _one("f32 multiply", scalar.f32_multiply),
    F32Divide: _one("f32 divide", scalar.f32_divide),
    F32Exponentiate: _one("f32 exponent", scalar.f32_exponentiate),
    F32NaturalLog: _one("f32 natural log", approximations.f32_natural_log),
    F32NormalCDF: _one("f32 normal CDF", approximations.f32_normal_cdf),
    F64Multiply: _one("f64 multiply", scalar.f64_multiply),
    F64Divide: _one("f64 divide", scalar.f64_divide),
    # integer-exponent and general strategies are benchmarked separately
    F64Pow: _Handler("f64 pow", (("", scalar.f64_powi), ("_powf", scalar.f64_powf))),
    Noop: _one("noop", _noop),
}


def _measure(
    ctx: InvocationContext,
    correction: int,
    primitive: Callable[..., Any],
    operands: Tuple[Any, ...],
) -> Tuple[Any, int]:
    ctx.log_compute_units()
    before = ctx.remaining_compute_units()
    result = primitive(*operands)
    after = ctx.remaining_compute_units()
    ctx.log_compute_units()
    return result, corrected_cost(before, after, correction)


def process_instruction(
    ctx: InvocationContext,
    data: bytes,
    *,
    correction: Optional[int] = None,
) -> TransactionTestResult:
    """
    Decode `data`, run the selected primitive inside a measurement window and
    report its corrected cost through `ctx`.

    Returns the report for the first (primary) primitive; `F64Pow` also logs
    the cost of its general-exponent strategy as `cu_bench_consumed_powf`.
    """
    corr = load_config().cu_correction if correction is None else correction
    try:
        instruction = MathInstruction.decode(data)
    except DecodeError:
        log.debug("rejecting %d bytes of instruction data", len(data))
        raise

    handler = _HANDLERS[type(instruction)]
    ctx.log(f"Calculating {handler.label}")
    operands = handler.setup(instruction)

    costs = []
    for suffix, primitive in handler.primitives:
        result, cost = _measure(ctx, corr, primitive, operands)
        ctx.log(f"{BENCH_PREFIX}{suffix} {cost}")
        ctx.log(_render(result))
        costs.append(cost)

    report = TransactionTestResult(costs[0])
    ctx.set_return_data(report.encode())
    return report


# ------------------------------------------------------------------ #
# Host-side helpers
# ------------------------------------------------------------------ #

def run(data: bytes, *, host: Optional[LocalHost] = None, correction: Optional[int] = None) -> InvocationResult:
    """Invoke `process_instruction` for `data` on `host` (a fresh LocalHost by default)."""
    h = host or LocalHost()
    return h.invoke(functools.partial(process_instruction, correction=correction), data)


def calibrate_correction(host: Optional[LocalHost] = None) -> int:
    """
    Measure the raw scaffolding cost of a no-op on `host`.

    The value is what CORRECTION must be for `Noop` to report exactly zero
    on that host profile.
    """
    result = run(noop(), host=host, correction=0)
    if not result.ok or result.bench_units is None:
        raise RuntimeError(f"calibration invocation failed: {result.error}")
    return result.bench_units


__all__ = [
    "BENCH_PREFIX",
    "TransactionTestResult",
    "corrected_cost",
    "process_instruction",
    "run",
    "calibrate_correction",
]
