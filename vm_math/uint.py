"""
vm_math.uint — fixed-width unsigned integer envelopes.

Python ints are unbounded, so every width is enforced explicitly: checked
helpers take the destination width in bits and raise `Overflow`/`Underflow`
the moment a result escapes `[0, 2**bits - 1]` instead of wrapping.
"""

from __future__ import annotations

from typing import Final

from .errors import DivisionByZero, Overflow, Underflow

U32_MAX: Final[int] = (1 << 32) - 1
U64_MAX: Final[int] = (1 << 64) - 1
U128_MAX: Final[int] = (1 << 128) - 1
U256_MAX: Final[int] = (1 << 256) - 1

I32_MIN: Final[int] = -(1 << 31)
I32_MAX: Final[int] = (1 << 31) - 1


def umax(bits: int) -> int:
    """Largest value representable in an unsigned `bits`-wide integer."""
    if bits <= 0:
        raise ValueError(f"bit width must be positive, got {bits}")
    return (1 << bits) - 1


def is_uint(value: object, bits: int) -> bool:
    # bool is an int subclass; it is never a valid operand
    return isinstance(value, int) and not isinstance(value, bool) and 0 <= value <= umax(bits)


def require_uint(value: int, bits: int, name: str = "value") -> int:
    """Return `value` unchanged if it fits `bits`; raise Overflow/Underflow otherwise."""
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be int, got {type(value).__name__}")
    if value < 0:
        raise Underflow(data={"name": name, "value": value, "bits": bits})
    if value > umax(bits):
        raise Overflow(data={"name": name, "bits": bits})
    return value


def checked_add(a: int, b: int, bits: int) -> int:
    s = a + b
    if s > umax(bits):
        raise Overflow(data={"op": "add", "bits": bits})
    return s


def checked_sub(a: int, b: int, bits: int) -> int:
    if b > a:
        raise Underflow(data={"op": "sub", "bits": bits})
    return a - b


def checked_mul(a: int, b: int, bits: int) -> int:
    p = a * b
    if p > umax(bits):
        raise Overflow(data={"op": "mul", "bits": bits})
    return p


def checked_div(a: int, b: int) -> int:
    """Floor division of unsigned operands; a zero divisor is a domain failure."""
    if b == 0:
        raise DivisionByZero()
    return a // b


def checked_shl(a: int, shift: int, bits: int) -> int:
    """Left shift that must not push set bits past the width."""
    if shift >= bits:
        raise Overflow(data={"op": "shl", "shift": shift, "bits": bits})
    return checked_mul(a, 1 << shift, bits)


def narrow(value: int, bits: int) -> int:
    """Re-narrow a wide intermediate to `bits`, with an explicit range check."""
    if value > umax(bits):
        raise Overflow(data={"op": "narrow", "bits": bits})
    return value


__all__ = [
    "U32_MAX",
    "U64_MAX",
    "U128_MAX",
    "U256_MAX",
    "I32_MIN",
    "I32_MAX",
    "umax",
    "is_uint",
    "require_uint",
    "checked_add",
    "checked_sub",
    "checked_mul",
    "checked_div",
    "checked_shl",
    "narrow",
]
