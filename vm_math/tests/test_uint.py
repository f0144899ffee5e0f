from __future__ import annotations

import pytest

from vm_math.errors import DivisionByZero, Overflow, Underflow
from vm_math.uint import (
    U64_MAX,
    U128_MAX,
    checked_add,
    checked_div,
    checked_mul,
    checked_shl,
    checked_sub,
    is_uint,
    narrow,
    require_uint,
    umax,
)


def test_width_envelopes() -> None:
    assert umax(64) == U64_MAX
    assert umax(128) == U128_MAX
    with pytest.raises(ValueError):
        umax(0)


def test_is_uint_rejects_bools_negatives_and_wide_values() -> None:
    assert is_uint(0, 64)
    assert is_uint(U64_MAX, 64)
    assert not is_uint(U64_MAX + 1, 64)
    assert not is_uint(-1, 64)
    assert not is_uint(True, 64)
    assert not is_uint(1.0, 64)


def test_require_uint_maps_range_errors() -> None:
    assert require_uint(7, 8) == 7
    with pytest.raises(Underflow):
        require_uint(-1, 8)
    with pytest.raises(Overflow):
        require_uint(256, 8)
    with pytest.raises(TypeError):
        require_uint("7", 8)  # type: ignore[arg-type]


def test_checked_helpers_stop_at_the_width() -> None:
    assert checked_add(U64_MAX - 1, 1, 64) == U64_MAX
    with pytest.raises(Overflow):
        checked_add(U64_MAX, 1, 64)

    assert checked_sub(5, 5, 64) == 0
    with pytest.raises(Underflow):
        checked_sub(4, 5, 64)

    assert checked_mul(U64_MAX, U64_MAX, 128) == U64_MAX * U64_MAX
    with pytest.raises(Overflow):
        checked_mul(U64_MAX, 2, 64)

    assert checked_div(7, 2) == 3
    with pytest.raises(DivisionByZero):
        checked_div(7, 0)


def test_checked_shl_and_narrow() -> None:
    assert checked_shl(1, 62, 64) == 1 << 62
    with pytest.raises(Overflow):
        checked_shl(1, 64, 64)
    with pytest.raises(Overflow):
        checked_shl(3, 63, 64)

    assert narrow(U128_MAX, 128) == U128_MAX
    with pytest.raises(Overflow):
        narrow(U128_MAX + 1, 128)
