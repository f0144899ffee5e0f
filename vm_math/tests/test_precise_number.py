from __future__ import annotations

import math

import pytest
from hypothesis import given
from hypothesis import strategies as st

from vm_math.errors import DivisionByZero, Overflow, Underflow
from vm_math.precise_number import PreciseNumber
from vm_math.uint import U64_MAX, U128_MAX

ONE = PreciseNumber.ONE


def pn(n: int) -> PreciseNumber:
    return PreciseNumber.new(n)


def test_new_scales_by_one_and_checks_range() -> None:
    assert pn(0).value == 0
    assert pn(3).value == 3 * ONE
    assert pn(U64_MAX).to_imprecise() == U64_MAX
    with pytest.raises(Overflow):
        pn(U128_MAX // ONE + 1)
    with pytest.raises(Underflow):
        pn(-1)
    with pytest.raises(TypeError):
        pn(1.5)  # type: ignore[arg-type]


def test_mantissa_outside_u128_is_rejected() -> None:
    with pytest.raises(Overflow):
        PreciseNumber(U128_MAX + 1)
    with pytest.raises(Underflow):
        PreciseNumber(-1)


def test_to_imprecise_floors_and_narrows() -> None:
    x = PreciseNumber.from_mantissa(5 * ONE + ONE // 2)
    assert x.to_imprecise() == 5
    assert str(x) == "5.500000000000"
    assert x.floor() == pn(5)
    assert x.ceiling() == pn(6)
    assert pn(6).ceiling() == pn(6)
    with pytest.raises(Overflow):
        pn(U64_MAX + 1).to_imprecise(bits=64)


def test_add_sub() -> None:
    assert pn(2).checked_add(pn(3)) == pn(5)
    assert pn(5).checked_sub(pn(3)) == pn(2)
    with pytest.raises(Underflow):
        pn(3).checked_sub(pn(5))
    with pytest.raises(Overflow):
        PreciseNumber(U128_MAX).checked_add(PreciseNumber.from_mantissa(1))


def test_unsigned_sub_reports_sign() -> None:
    assert pn(5).unsigned_sub(pn(3)) == (pn(2), False)
    assert pn(3).unsigned_sub(pn(5)) == (pn(2), True)
    assert pn(3).unsigned_sub(pn(3)) == (pn(0), False)


def test_mul_div() -> None:
    assert pn(6).checked_mul(pn(7)) == pn(42)
    half = PreciseNumber.from_mantissa(ONE // 2)
    assert pn(3).checked_mul(half) == PreciseNumber.from_mantissa(3 * ONE // 2)
    assert pn(42).checked_div(pn(6)) == pn(7)
    assert pn(1).checked_div(pn(3)).value == ONE // 3
    with pytest.raises(DivisionByZero):
        pn(1).checked_div(pn(0))


def test_mul_overflow_is_detected_after_rescaling() -> None:
    # 10**14 * 10**14 = 10**28, whose mantissa 10**40 exceeds u128
    with pytest.raises(Overflow):
        pn(10**14).checked_mul(pn(10**14))


@given(st.integers(min_value=0, max_value=U128_MAX // ONE))
def test_to_imprecise_inverts_new(n: int) -> None:
    assert pn(n).to_imprecise() == n


@given(st.integers(min_value=0, max_value=U128_MAX), st.integers(min_value=0, max_value=U128_MAX))
def test_checked_mul_is_exact_or_overflows(a: int, b: int) -> None:
    expected = a * b // ONE
    x, y = PreciseNumber.from_mantissa(a), PreciseNumber.from_mantissa(b)
    if expected > U128_MAX:
        with pytest.raises(Overflow):
            x.checked_mul(y)
    else:
        assert x.checked_mul(y).value == expected


@given(
    st.integers(min_value=0, max_value=U64_MAX),
    st.integers(min_value=0, max_value=U64_MAX),
    st.integers(min_value=1, max_value=U64_MAX),
)
def test_mul_div_floor_is_exact_or_overflows(v: int, num: int, denom: int) -> None:
    expected = v * num * ONE // denom
    if expected > U128_MAX:
        with pytest.raises(Overflow):
            pn(v).mul_div_floor(pn(num), pn(denom))
    else:
        assert pn(v).mul_div_floor(pn(num), pn(denom)).value == expected


def test_mul_div_floor_uses_a_wide_intermediate() -> None:
    """The product overflows u128 on its own; the final quotient still fits."""
    big = pn(10**14)
    assert big.mul_div_floor(big, big).to_imprecise() == 10**14


def test_mul_div_rounding_direction() -> None:
    one, three = pn(1), pn(3)
    floor = one.mul_div_floor(one, three)
    ceil = one.mul_div_ceil(one, three)
    assert floor.value == ONE // 3
    assert ceil.value == ONE // 3 + 1
    assert pn(2).mul_div_ceil(pn(3), pn(6)) == pn(1)


def test_mul_div_errors() -> None:
    with pytest.raises(DivisionByZero):
        pn(1).mul_div_floor(pn(1), pn(0))
    with pytest.raises(Overflow):
        # quotient does not fit back into u128
        PreciseNumber(U128_MAX).mul_div_floor(pn(2), pn(1))


def test_checked_pow() -> None:
    assert pn(2).checked_pow(0) == pn(1)
    assert pn(2).checked_pow(10) == pn(1024)
    assert pn(0).checked_pow(3) == pn(0)
    with pytest.raises(Overflow):
        pn(10).checked_pow(30)


def test_almost_eq_uses_precision_in_mantissa_units() -> None:
    a = pn(1)
    assert a.almost_eq(PreciseNumber.from_mantissa(ONE + PreciseNumber.PRECISION))
    assert not a.almost_eq(PreciseNumber.from_mantissa(ONE + PreciseNumber.PRECISION + 1))
    assert a.almost_eq(PreciseNumber.from_mantissa(ONE + 5_000), precision=5_000)


@pytest.mark.parametrize("n, root", [(0, 0), (1, 1), (4, 2), (9, 3), (10_000, 100), (2**62, 2**31)])
def test_sqrt_of_perfect_squares(n: int, root: int) -> None:
    assert pn(n).sqrt().almost_eq(pn(root))


def test_sqrt_of_two() -> None:
    r = pn(2).sqrt()
    assert abs(r.value - 1_414_213_562_373) <= PreciseNumber.PRECISION
    assert r.to_imprecise() == 1


@given(st.integers(min_value=0, max_value=U64_MAX))
def test_sqrt_tracks_the_exact_fixed_point_root(n: int) -> None:
    exact = math.isqrt(n * ONE * ONE)
    assert abs(pn(n).sqrt().value - exact) <= PreciseNumber.PRECISION


@given(st.integers(min_value=1, max_value=10**15))
def test_sqrt_of_fractional_values(mantissa: int) -> None:
    x = PreciseNumber.from_mantissa(mantissa)
    exact = math.isqrt(mantissa * ONE)
    assert abs(x.sqrt().value - exact) <= PreciseNumber.PRECISION


def test_sqrt_of_max_mantissa_overflows_immediately() -> None:
    with pytest.raises(Overflow):
        PreciseNumber(U128_MAX).sqrt()


def test_newtonian_cube_root() -> None:
    root = pn(27).newtonian_root_approximation(pn(3), pn(4), PreciseNumber.MAX_APPROXIMATION_ITERATIONS)
    assert root.almost_eq(pn(3), precision=10_000)
    assert pn(0).newtonian_root_approximation(pn(3), pn(1), 10) == pn(0)


def test_ordering_follows_the_mantissa() -> None:
    assert pn(1) < pn(2)
    assert sorted([pn(3), pn(1), pn(2)]) == [pn(1), pn(2), pn(3)]
