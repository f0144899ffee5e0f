"""
vm_math.errors — typed failures of the math kernel and its harness.

Every primitive that can fail raises one of these instead of returning a
sentinel; the harness lets the first one escape and the host turns it into a
failed invocation outcome.

Hierarchy
---------
MathError (base)
 ├─ Overflow               : result does not fit the destination width
 ├─ Underflow              : unsigned subtraction would go negative
 ├─ DivisionByZero         : zero divisor / denominator (domain failure)
 ├─ DecodeError            : request bytes do not match the instruction shape
 └─ ComputeBudgetExceeded  : the host's compute budget ran out

Only Overflow and Underflow carry a numeric custom code on the outcome
channel (`MathErrorCode`, 0 and 1). The others surface as a generic failure.

These classes avoid importing anything else from the package so they can be
used from the lowest-level modules (uint, sqrt) without cycles.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Dict, Optional


class MathErrorCode(IntEnum):
    """Custom program error codes reported to the host."""

    OVERFLOW = 0
    UNDERFLOW = 1

    @property
    def message(self) -> str:
        if self is MathErrorCode.OVERFLOW:
            return "Calculation overflowed the destination number"
        return "Calculation underflowed the destination number"


@dataclass(eq=False)
class MathError(Exception):
    """
    Base math-kernel error.

    Attributes:
        message: Human-readable explanation.
        code:    Stable machine code string (e.g., 'OVERFLOW').
        data:    Optional structured details (kept JSON-serializable).
    """
    message: str = "math error"
    code: str = "MATH_ERROR"
    data: Optional[Dict[str, Any]] = field(default=None)

    def __post_init__(self) -> None:
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.data:
            return f"{self.code}: {self.message} ({self.data})"
        return f"{self.code}: {self.message}"

    @property
    def custom_code(self) -> Optional[int]:
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a JSON-safe dict for invocation outcomes and CLI output."""
        out: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.data is not None:
            out["data"] = self.data
        if self.custom_code is not None:
            out["custom_code"] = self.custom_code
        return out


class Overflow(MathError):
    """A computation's result cannot be represented in the destination width."""

    def __init__(self, message: str = MathErrorCode.OVERFLOW.message, *, data: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, code="OVERFLOW", data=data)

    @property
    def custom_code(self) -> Optional[int]:
        return int(MathErrorCode.OVERFLOW)


class Underflow(MathError):
    """An unsigned subtraction would produce a negative value."""

    def __init__(self, message: str = MathErrorCode.UNDERFLOW.message, *, data: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, code="UNDERFLOW", data=data)

    @property
    def custom_code(self) -> Optional[int]:
        return int(MathErrorCode.UNDERFLOW)


class DivisionByZero(MathError):
    def __init__(self, message: str = "division by zero", *, data: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, code="DIVISION_BY_ZERO", data=data)


class DecodeError(MathError):
    """
    The input buffer is not a valid instruction.

    Raised for truncated/malformed CBOR, trailing bytes, unknown tags, wrong
    arity and operands of the wrong type or outside their width.
    """

    def __init__(self, message: str = "invalid instruction data", *, data: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, code="INVALID_INSTRUCTION_DATA", data=data)


class ComputeBudgetExceeded(MathError):
    def __init__(self, message: str = "compute budget exceeded", *, data: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, code="COMPUTE_BUDGET_EXCEEDED", data=data)


def custom_code(exc: BaseException) -> Optional[int]:
    """Map an exception to its numeric custom code (Overflow=0, Underflow=1) or None."""
    if isinstance(exc, MathError):
        return exc.custom_code
    return None


__all__ = [
    "MathErrorCode",
    "MathError",
    "Overflow",
    "Underflow",
    "DivisionByZero",
    "DecodeError",
    "ComputeBudgetExceeded",
    "custom_code",
]
