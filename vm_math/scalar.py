"""
vm_math.scalar — raw scalar operations used as cost baselines.

These are the cheapest primitives the harness can measure: one multiply,
divide or power per call. Integer variants are checked against their width
(Overflow / DivisionByZero instead of wrapping or trapping); float variants
follow IEEE semantics of their precision and never raise (x/0 is inf, 0/0 is
nan), with numpy's floating-point warnings silenced.
"""

from __future__ import annotations

import math

import numpy as np

from .uint import I32_MAX, I32_MIN, U64_MAX, checked_div, checked_mul

_F32 = np.float32
_F64 = np.float64


# ----------------------------- integers ------------------------------ #

def u64_multiply(multiplicand: int, multiplier: int) -> int:
    return checked_mul(multiplicand, multiplier, 64)


def u64_divide(dividend: int, divisor: int) -> int:
    return checked_div(dividend, divisor)


def u128_multiply(multiplicand: int, multiplier: int) -> int:
    return checked_mul(multiplicand, multiplier, 128)


def u128_divide(dividend: int, divisor: int) -> int:
    return checked_div(dividend, divisor)


# ------------------------------ floats ------------------------------- #

def f32_multiply(multiplicand: float, multiplier: float) -> np.float32:
    with np.errstate(all="ignore"):
        return _F32(multiplicand) * _F32(multiplier)


def f32_divide(dividend: float, divisor: float) -> np.float32:
    with np.errstate(all="ignore"):
        return _F32(dividend) / _F32(divisor)


def f32_exponentiate(base: float, exponent: float) -> np.float32:
    with np.errstate(all="ignore"):
        return np.power(_F32(base), _F32(exponent), dtype=np.float32)


def f64_multiply(multiplicand: float, multiplier: float) -> np.float64:
    with np.errstate(all="ignore"):
        return _F64(multiplicand) * _F64(multiplier)


def f64_divide(dividend: float, divisor: float) -> np.float64:
    with np.errstate(all="ignore"):
        return _F64(dividend) / _F64(divisor)


def f64_powi(base: float, exponent: float) -> np.float64:
    """Power with the exponent cast to a 32-bit integer (truncated, saturated)."""
    if math.isnan(exponent):
        n = 0
    elif exponent >= I32_MAX:
        n = I32_MAX
    elif exponent <= I32_MIN:
        n = I32_MIN
    else:
        n = int(exponent)
    # square-and-multiply, unlike f64_powf which goes through the general pow
    result = _F64(1.0)
    square = _F64(base)
    k = -n if n < 0 else n
    with np.errstate(all="ignore"):
        while k:
            if k & 1:
                result = result * square
            k >>= 1
            if k:
                square = square * square
        return _F64(1.0) / result if n < 0 else result


def f64_powf(base: float, exponent: float) -> np.float64:
    with np.errstate(all="ignore"):
        return np.power(_F64(base), _F64(exponent))


# ----------------------------- rendering ----------------------------- #

def saturating_u64(value: float) -> int:
    """
    Render a float as an unsigned 64-bit integer: truncate toward zero,
    nan and negatives become 0, anything above the range saturates.
    """
    v = float(value)
    if math.isnan(v) or v <= 0.0:
        return 0
    if v >= float(U64_MAX):
        return U64_MAX
    return int(v)


__all__ = [
    "u64_multiply",
    "u64_divide",
    "u128_multiply",
    "u128_divide",
    "f32_multiply",
    "f32_divide",
    "f32_exponentiate",
    "f64_multiply",
    "f64_divide",
    "f64_powi",
    "f64_powf",
    "saturating_u64",
]
