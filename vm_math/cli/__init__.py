"""
vm_math.cli
-----------

Command-line front end for the benchmark harness.

Usage:
  python -m vm_math.cli encode sqrt_u64 0xffffffffffffffff
  python -m vm_math.cli bench f64_pow 50 10.5
  python -m vm_math.cli suite
  python -m vm_math.cli calibrate

OP names are the snake_case request names (`sqrt_u64`, `precise_mul_div`, ...).
Integer operands accept any Python integer literal (0x.., 0b.., 1_000);
float operands accept anything `float()` does.

Environment:
  VM_MATH_CU_CORRECTION, VM_MATH_COMPUTE_MAX_UNITS, VM_MATH_SYSCALL_BASE_COST,
  VM_MATH_OPCODE_COST, VM_MATH_LOG_LEVEL  (see vm_math.config)
"""

from __future__ import annotations

import json
import logging
import math
import sys
from typing import Any, List, Optional, Tuple

import typer

from ..config import load_config
from ..errors import MathError
from ..instruction import (
    F32,
    F64,
    by_name,
    f32_divide,
    f32_exponentiate,
    f32_multiply,
    f32_natural_log,
    f32_normal_cdf,
    f64_divide,
    f64_multiply,
    f64_pow,
    noop,
    precise_sqrt,
    sqrt_u64,
    sqrt_u128,
    u64_divide,
    u64_multiply,
    u128_divide,
    u128_multiply,
)
from ..processor import BENCH_PREFIX, calibrate_correction, run
from ..runtime.host import InvocationResult, LocalHost
from ..uint import U32_MAX, U64_MAX, U128_MAX
from ..version import __version__

log = logging.getLogger(__name__)

app = typer.Typer(
    name="vm-math",
    help="Encode and benchmark fixed-point / integer math requests.",
    no_args_is_help=True,
    add_completion=False,
)


def _reference_suite() -> List[Tuple[str, bytes]]:
    return [
        ("precise_sqrt(u64::MAX)", precise_sqrt(U64_MAX)),
        ("precise_sqrt(u32::MAX)", precise_sqrt(U32_MAX)),
        ("sqrt_u64(u64::MAX)", sqrt_u64(U64_MAX)),
        ("sqrt_u128(u64::MAX)", sqrt_u128(U64_MAX)),
        ("sqrt_u128(u128::MAX)", sqrt_u128(U128_MAX)),
        ("u64_multiply(42, 84)", u64_multiply(42, 84)),
        ("u64_divide(3, 1)", u64_divide(3, 1)),
        ("f32_multiply(1.5, 2.0)", f32_multiply(1.5, 2.0)),
        ("f32_divide(3.0, 1.5)", f32_divide(3.0, 1.5)),
        ("f32_exponentiate(4.0, 2.0)", f32_exponentiate(4.0, 2.0)),
        ("f32_natural_log(e)", f32_natural_log(math.e)),
        ("f32_normal_cdf(0.0)", f32_normal_cdf(0.0)),
        ("f64_pow(50.0, 10.5)", f64_pow(50.0, 10.5)),
        ("u128_multiply(u64::MAX, u64::MAX)", u128_multiply(U64_MAX, U64_MAX)),
        ("u128_divide(u128::MAX, u128::MAX / 69)", u128_divide(U128_MAX, U128_MAX // 69)),
        ("f64_multiply(2^42, 1e-4)", f64_multiply(float(2**42), 1e-4)),
        ("f64_divide(2^42, 420420.6969)", f64_divide(float(2**42), 420420.6969)),
        ("noop", noop()),
    ]


def _parse_operands(op: str, raw: List[str]) -> bytes:
    try:
        cls = by_name(op)
    except MathError as e:
        raise SystemExit(f"{e}")
    if len(raw) != len(cls.KINDS):
        raise SystemExit(f"{cls.NAME} takes {len(cls.KINDS)} operand(s), got {len(raw)}")

    values: List[Any] = []
    for kind, text in zip(cls.KINDS, raw):
        try:
            values.append(float(text) if kind in (F32, F64) else int(text, 0))
        except ValueError:
            raise SystemExit(f"Invalid {kind} operand: {text!r}")
    try:
        return cls(*values).encode()
    except MathError as e:
        raise SystemExit(f"{e}")


def _result_line(result: InvocationResult) -> str:
    """The rendered value logged right after the primary cost line."""
    lines = result.program_logs
    for i, line in enumerate(lines):
        if line.startswith(f"{BENCH_PREFIX} ") and i + 1 < len(lines):
            return lines[i + 1]
    return "-"


def _host(max_units: Optional[int]) -> LocalHost:
    return LocalHost(compute_max_units=max_units)


@app.callback()
def _root(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at DEBUG level."),
) -> None:
    level = logging.DEBUG if verbose else load_config().log_level_value
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


@app.command("encode")
def cmd_encode(
    op: str = typer.Argument(..., help="Request name, e.g. sqrt_u64."),
    operands: Optional[List[str]] = typer.Argument(None, help="Operand values."),
) -> None:
    """Print the hex encoding of one request."""
    data = _parse_operands(op, list(operands or []))
    typer.echo("0x" + data.hex())


@app.command("bench")
def cmd_bench(
    op: str = typer.Argument(..., help="Request name, e.g. sqrt_u64."),
    operands: Optional[List[str]] = typer.Argument(None, help="Operand values."),
    correction: Optional[int] = typer.Option(
        None, "--correction", help="Override the CU correction (default: VM_MATH_CU_CORRECTION)."
    ),
    max_units: Optional[int] = typer.Option(
        None, "--max-units", help="Compute budget (default: VM_MATH_COMPUTE_MAX_UNITS)."
    ),
) -> None:
    """
    Run one request on a local metered host.

    Prints the invocation logs followed by a JSON summary; exits with status 1
    when the invocation fails.
    """
    data = _parse_operands(op, list(operands or []))
    result = run(data, host=_host(max_units), correction=correction)
    for line in result.logs:
        typer.echo(line)
    summary = result.to_dict()
    summary.pop("logs")
    typer.echo(json.dumps(summary, indent=2))
    if not result.ok:
        raise typer.Exit(code=1)


@app.command("suite")
def cmd_suite(
    correction: Optional[int] = typer.Option(None, "--correction", help="Override the CU correction."),
) -> None:
    """Run the reference request set and print one row per request."""
    failed = 0
    typer.echo(f"{'op':<40} {'result':>40} {'corrected':>10} {'total':>10}")
    for label, data in _reference_suite():
        result = run(data, host=_host(None), correction=correction)
        if not result.ok:
            failed += 1
            typer.echo(f"{label:<40} {'FAILED':>40} {'-':>10} {result.compute_units_consumed:>10}")
            continue
        typer.echo(
            f"{label:<40} {_result_line(result):>40} {result.bench_units:>10} "
            f"{result.compute_units_consumed:>10}"
        )
    if failed:
        raise typer.Exit(code=1)


@app.command("calibrate")
def cmd_calibrate() -> None:
    """Print the raw no-op delta, i.e. the correction that zeroes Noop on this host."""
    cfg = load_config()
    measured = calibrate_correction(_host(None))
    typer.echo(
        json.dumps(
            {"measured": measured, "configured": cfg.cu_correction, "python": sys.version.split()[0]},
            indent=2,
        )
    )


@app.command("version")
def cmd_version() -> None:
    """Print the package version."""
    typer.echo(__version__)


def main() -> None:  # pragma: no cover
    try:
        app(prog_name="vm-math")
    except KeyboardInterrupt:
        typer.echo("", err=True)
        sys.exit(130)


__all__ = ["app", "main"]
