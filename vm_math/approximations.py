"""
vm_math.approximations — single-input transcendental approximations (f32).

Both functions take and return single-precision values (`numpy.float32`);
every intermediate is kept in float32 so results match a host that only has
32-bit float support.

- f32_natural_log(x): the host's native logarithm. The domain (x > 0) is not
  re-validated; 0 gives -inf and negatives give nan, as the host defines.
- f32_normal_cdf(x):  closed-form approximation of the standard normal CDF,
  O(1) float operations, monotonic on each side of zero.
"""

from __future__ import annotations

import numpy as np

_F32 = np.float32

_ONE = _F32(1.0)
_TWO = _F32(2.0)
_THREE = _F32(3.0)
# 1 / sqrt(2 * pi)
_INV_SQRT_TWO_PI = _ONE / np.sqrt(_TWO * _F32(np.pi), dtype=np.float32)
_A = _F32(0.226)
_B = _F32(0.64)
_C = _F32(0.33)


def f32_natural_log(argument: float) -> np.float32:
    with np.errstate(all="ignore"):
        return np.log(_F32(argument), dtype=np.float32)


def f32_normal_cdf(argument: float) -> np.float32:
    """
    Phi(x) ~= 1 - phi(|x|) / (0.226 + 0.64 |x| + 0.33 sqrt(x^2 + 3)), mirrored for x < 0.

    phi is the standard normal density. Absolute error stays below ~1e-3
    over the real line and the function is exact at the tails (0 and 1).

    The mirrored form is not continuous at zero: Phi(0) ~= 0.49984 while
    Phi(-tiny) ~= 0.50016. This matches the reference formula and is kept
    as is; monotonicity holds on each side of zero only.
    """
    x = _F32(argument)
    with np.errstate(all="ignore"):
        mod = -x if x < 0 else x
        mod_sq = mod * mod
        numerator = _INV_SQRT_TWO_PI * np.exp(-mod_sq / _TWO, dtype=np.float32)
        denominator = _A + _B * mod + _C * np.sqrt(mod_sq + _THREE, dtype=np.float32)
        y = _ONE - numerator / denominator
        return _ONE - y if x < 0 else y


__all__ = ["f32_natural_log", "f32_normal_cdf"]
