"""
vm_math.runtime.host — the metered environment a program runs in.

A program is any callable `program(ctx, data)`; it sees the host only through
the `InvocationContext` capabilities:

- remaining_compute_units()  read the remaining compute budget
- log(message)               emit a program log line
- log_compute_units()        log the remaining budget
- set_return_data(data)      publish a structured return payload

`LocalHost` is an in-process implementation. It meters compute units by
counting executed bytecode instructions of the program (a `sys.settrace`
opcode tracer, `opcode_cost` units each). Capability calls are syscalls:
each charges `syscall_base_cost` up front and then runs unmetered, so the
host's own bookkeeping never shows up in the program's budget.

The outcome of `invoke` is an `InvocationResult`; a `MathError` escaping the
program fails the invocation and is reported with its custom code
(Overflow=0, Underflow=1) where it has one.

Design notes
------------
- The budget counter is read-only to the program; only the tracer and the
  syscall prologue debit it.
- `sys.settrace` is per thread. A LocalHost runs one invocation at a time and
  restores whatever tracer was installed before (debuggers, coverage).
- Instruction counts depend on the interpreter version, so absolute costs are
  comparable only on the same Python build.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, field
from types import FrameType
from typing import Any, Callable, Dict, List, Optional, Protocol

import cbor2

from ..config import load_config
from ..errors import ComputeBudgetExceeded, MathError
from . import compute_meter as _compute_meter_mod
from .compute_meter import ComputeMeter

log = logging.getLogger(__name__)

# Frames from these files belong to the host and are never metered.
_HOST_FILES = frozenset({__file__, _compute_meter_mod.__file__})


class InvocationContext(Protocol):
    def remaining_compute_units(self) -> int: ...

    def log(self, message: str) -> None: ...

    def log_compute_units(self) -> None: ...

    def set_return_data(self, data: bytes) -> None: ...


Program = Callable[[InvocationContext, bytes], Any]


@dataclass
class InvocationResult:
    """
    Outcome of one invocation.

    Fields
    ------
    ok:                     True when the program returned normally.
    logs:                   Collected log lines, in emission order.
    compute_units_consumed: Total units metered for the whole invocation.
    return_data:            Payload published via set_return_data, if any.
    error:                  MathError.to_dict() of the failure, if any.
    custom_code:            0 (Overflow) / 1 (Underflow) / None.
    """
    ok: bool
    logs: List[str] = field(default_factory=list)
    compute_units_consumed: int = 0
    return_data: Optional[bytes] = None
    error: Optional[Dict[str, Any]] = None
    custom_code: Optional[int] = None

    @property
    def program_logs(self) -> List[str]:
        """Log lines emitted by the program itself, without the host prefix."""
        prefix = "Program log: "
        return [line[len(prefix):] for line in self.logs if line.startswith(prefix)]

    @property
    def bench_units(self) -> Optional[int]:
        """Corrected cost from the structured return payload, if one was published."""
        if not self.return_data:
            return None
        payload = cbor2.loads(self.return_data)
        return int(payload["compute_units_consumed"])

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ok": self.ok,
            "logs": list(self.logs),
            "compute_units_consumed": self.compute_units_consumed,
            "bench_units": self.bench_units,
            "error": self.error,
            "custom_code": self.custom_code,
        }


class LocalHost:
    """
    In-process metered host.

    Parameters
    ----------
    compute_max_units : int
        Budget of each invocation.
    syscall_base_cost : int
        Units charged on entry to every capability call.
    opcode_cost : int
        Units charged per executed bytecode instruction of the program.

    Defaults come from `vm_math.config.load_config()`.
    """

    def __init__(
        self,
        *,
        compute_max_units: Optional[int] = None,
        syscall_base_cost: Optional[int] = None,
        opcode_cost: Optional[int] = None,
    ) -> None:
        cfg = load_config()
        self.compute_max_units = cfg.compute_max_units if compute_max_units is None else compute_max_units
        self.syscall_base_cost = cfg.syscall_base_cost if syscall_base_cost is None else syscall_base_cost
        self.opcode_cost = cfg.opcode_cost if opcode_cost is None else opcode_cost
        self._meter: Optional[ComputeMeter] = None
        self._logs: List[str] = []
        self._return_data: Optional[bytes] = None
        self._suspended = 0

    # ----------------------------- invocation ----------------------------- #

    def invoke(self, program: Program, data: bytes) -> InvocationResult:
        """Run `program(self, data)` to completion under a fresh compute budget."""
        if self._meter is not None:
            raise RuntimeError("LocalHost is already running an invocation")
        payload = bytes(data)
        meter = ComputeMeter(limit=self.compute_max_units)
        self._meter = meter
        self._logs = []
        self._return_data = None
        self._suspended = 0

        failure: Optional[MathError] = None
        previous = sys.gettrace()
        sys.settrace(self._trace_call)
        try:
            program(self, payload)
        except MathError as e:
            failure = e
        finally:
            sys.settrace(previous)
            self._meter = None

        self._logs.append(f"Program consumed {meter.used} of {meter.limit} compute units")
        if failure is None:
            self._logs.append("Program success")
            return InvocationResult(
                ok=True,
                logs=self._logs,
                compute_units_consumed=meter.used,
                return_data=self._return_data,
            )

        self._logs.append(f"Program failed: {failure}")
        log.debug("invocation failed: %s", failure)
        return InvocationResult(
            ok=False,
            logs=self._logs,
            compute_units_consumed=meter.used,
            error=failure.to_dict(),
            custom_code=failure.custom_code,
        )

    # ---------------------------- capabilities ---------------------------- #

    def remaining_compute_units(self) -> int:
        meter = self._enter_syscall()
        try:
            return meter.remaining
        finally:
            self._suspended -= 1

    def log(self, message: str) -> None:
        self._enter_syscall()
        try:
            self._emit(f"Program log: {message}")
        finally:
            self._suspended -= 1

    def log_compute_units(self) -> None:
        meter = self._enter_syscall()
        try:
            self._emit(f"Program consumption: {meter.remaining} units remaining")
        finally:
            self._suspended -= 1

    def set_return_data(self, data: bytes) -> None:
        self._enter_syscall()
        try:
            self._return_data = bytes(data)
        finally:
            self._suspended -= 1

    # ------------------------------ metering ------------------------------ #

    def _enter_syscall(self) -> ComputeMeter:
        meter = self._meter
        if meter is None:
            raise RuntimeError("host capability used outside of an invocation")
        self._suspended += 1
        try:
            meter.consume(self.syscall_base_cost)
        except ComputeBudgetExceeded:
            self._suspended -= 1
            raise
        return meter

    def _emit(self, line: str) -> None:
        self._logs.append(line)
        log.debug(line)

    def _trace_call(self, frame: FrameType, event: str, arg: Any):
        if self._suspended or frame.f_code.co_filename in _HOST_FILES:
            return None
        frame.f_trace_lines = False
        frame.f_trace_opcodes = True
        return self._trace_opcode

    def _trace_opcode(self, frame: FrameType, event: str, arg: Any):
        meter = self._meter
        if event == "opcode" and meter is not None and not self._suspended:
            # raising here propagates into the program frame and ends tracing
            meter.consume(self.opcode_cost)
        return self._trace_opcode


__all__ = ["InvocationContext", "InvocationResult", "LocalHost", "Program"]
