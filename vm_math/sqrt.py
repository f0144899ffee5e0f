"""
vm_math.sqrt — integer floor square root for 64- and 128-bit operands.

Binary digit-by-digit method: walk a single set bit down from the largest
power of four not above the radicand, two positions at a time, and build the
root one bit per step. Everything stays inside the operand width, so results
are bit-exact and the step count (half the radicand's bit length) is a
deterministic function of its magnitude.

    >>> sqrt_u64(0), sqrt_u64(1), sqrt_u64(99)
    (0, 1, 9)
    >>> sqrt_u64((1 << 64) - 1)
    4294967295
"""

from __future__ import annotations

from .uint import checked_add, checked_shl, checked_sub, require_uint


def sqrt(radicand: int, bits: int) -> int:
    """
    Largest integer whose square is <= `radicand`, for an unsigned `bits`-wide radicand.

    Raises Underflow for negative input and Overflow for input wider than `bits`.
    """
    n = require_uint(radicand, bits, "radicand")
    if n == 0:
        return 0

    # bit = largest power of four <= n
    shift = (n.bit_length() - 1) & ~1
    bit = checked_shl(1, shift, bits)

    result = 0
    while bit != 0:
        result_with_bit = checked_add(result, bit, bits)
        if n >= result_with_bit:
            n = checked_sub(n, result_with_bit, bits)
            result = checked_add(result >> 1, bit, bits)
        else:
            result >>= 1
        bit >>= 2
    return result


def sqrt_u64(radicand: int) -> int:
    return sqrt(radicand, 64)


def sqrt_u128(radicand: int) -> int:
    return sqrt(radicand, 128)


__all__ = ["sqrt", "sqrt_u64", "sqrt_u128"]
