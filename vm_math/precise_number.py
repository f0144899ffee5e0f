"""
vm_math.precise_number — unsigned fixed-point decimal with checked arithmetic.

A `PreciseNumber` stores a u128 mantissa scaled by `ONE = 10**12`, so the
mantissa 1_500_000_000_000 represents 1.5. Values are immutable; every
operation returns a new instance or raises:

- Overflow        when a result does not fit the u128 mantissa
- Underflow       when a subtraction would go negative
- DivisionByZero  when dividing by a zero-valued operand

Products and quotients that need more room are computed in an explicit
256-bit intermediate and re-narrowed with a range check, so `a * b / c`
succeeds whenever the final quotient fits even if `a * b` alone would not.

Examples
--------
    from vm_math.precise_number import PreciseNumber

    two = PreciseNumber.new(2)
    root = two.sqrt()                          # ~1.414213562373
    root.to_imprecise()                        # 1 (floor)

    # 10**13 * 10**13 / 10**12 has a 10**50 mantissa product, quotient fits
    PreciseNumber.new(10**13).mul_div_floor(
        PreciseNumber.new(10**13), PreciseNumber.new(10**12)
    ).to_imprecise()                           # 10**14
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Optional, Tuple

from .errors import DivisionByZero, Overflow, Underflow
from .uint import U128_MAX, U256_MAX, checked_add, checked_sub, narrow, require_uint


@dataclass(frozen=True, order=True)
class PreciseNumber:
    """Non-negative fixed-point number: `value / ONE`."""

    value: int

    # Mantissa of 1.0
    ONE: ClassVar[int] = 10**12
    # Convergence tolerance for root approximations, in mantissa units (1e-10)
    PRECISION: ClassVar[int] = 100
    # Termination bound for Newton iterations; normal inputs converge far earlier
    MAX_APPROXIMATION_ITERATIONS: ClassVar[int] = 100

    def __post_init__(self) -> None:
        require_uint(self.value, 128, "mantissa")

    # ------------------------------------------------------------------ #
    # Construction
    # ------------------------------------------------------------------ #

    @classmethod
    def new(cls, n: int) -> "PreciseNumber":
        """Lift an unsigned integer into fixed point; Overflow if `n * ONE` exceeds u128."""
        if not isinstance(n, int) or isinstance(n, bool):
            raise TypeError(f"PreciseNumber.new expects int, got {type(n).__name__}")
        if n < 0:
            raise Underflow(data={"op": "new", "value": n})
        scaled = n * cls.ONE
        if scaled > U128_MAX:
            raise Overflow(data={"op": "new"})
        return cls(scaled)

    @classmethod
    def from_mantissa(cls, value: int) -> "PreciseNumber":
        return cls(value)

    @classmethod
    def zero(cls) -> "PreciseNumber":
        return cls(0)

    @classmethod
    def one(cls) -> "PreciseNumber":
        return cls(cls.ONE)

    # ------------------------------------------------------------------ #
    # Conversions
    # ------------------------------------------------------------------ #

    def to_imprecise(self, bits: int = 128) -> int:
        """Floor back to a plain integer; Overflow if the integer part does not fit `bits`."""
        return narrow(self.value // self.ONE, bits)

    def floor(self) -> "PreciseNumber":
        return PreciseNumber(self.value - self.value % self.ONE)

    def ceiling(self) -> "PreciseNumber":
        frac = self.value % self.ONE
        if frac == 0:
            return self
        return PreciseNumber(checked_add(self.value - frac, self.ONE, 128))

    # ------------------------------------------------------------------ #
    # Comparisons
    # ------------------------------------------------------------------ #

    def almost_eq(self, other: "PreciseNumber", precision: Optional[int] = None) -> bool:
        """True when the mantissas differ by at most `precision` units."""
        tol = self.PRECISION if precision is None else precision
        return abs(self.value - other.value) <= tol

    def is_zero(self) -> bool:
        return self.value == 0

    # ------------------------------------------------------------------ #
    # Checked arithmetic
    # ------------------------------------------------------------------ #

    def checked_add(self, other: "PreciseNumber") -> "PreciseNumber":
        return PreciseNumber(checked_add(self.value, other.value, 128))

    def checked_sub(self, other: "PreciseNumber") -> "PreciseNumber":
        return PreciseNumber(checked_sub(self.value, other.value, 128))

    def unsigned_sub(self, other: "PreciseNumber") -> Tuple["PreciseNumber", bool]:
        """Absolute difference plus a flag telling whether `self - other` is negative."""
        if other.value > self.value:
            return PreciseNumber(other.value - self.value), True
        return PreciseNumber(self.value - other.value), False

    def checked_mul(self, other: "PreciseNumber") -> "PreciseNumber":
        # both mantissas are u128, so the product always fits the u256 intermediate
        product = self.value * other.value
        return PreciseNumber(narrow(product // self.ONE, 128))

    def checked_div(self, other: "PreciseNumber") -> "PreciseNumber":
        if other.value == 0:
            raise DivisionByZero(data={"op": "div"})
        return PreciseNumber(narrow(self.value * self.ONE // other.value, 128))

    def checked_pow(self, exponent: int) -> "PreciseNumber":
        """Raise to a non-negative integer power by repeated squaring."""
        exp = require_uint(exponent, 128, "exponent")
        result = PreciseNumber.one()
        base = self
        while exp:
            if exp & 1:
                result = result.checked_mul(base)
            exp >>= 1
            if exp:
                base = base.checked_mul(base)
        return result

    def mul_div_floor(self, numerator: "PreciseNumber", denominator: "PreciseNumber") -> "PreciseNumber":
        """
        `self * numerator / denominator` in one step, rounded down.

        The scales cancel, so this works on raw mantissas; the product is held
        in a u256 intermediate before dividing.
        """
        product = self._wide_product(numerator, denominator)
        return PreciseNumber(narrow(product // denominator.value, 128))

    def mul_div_ceil(self, numerator: "PreciseNumber", denominator: "PreciseNumber") -> "PreciseNumber":
        product = self._wide_product(numerator, denominator)
        return PreciseNumber(narrow(-(-product // denominator.value), 128))

    def _wide_product(self, numerator: "PreciseNumber", denominator: "PreciseNumber") -> int:
        if denominator.value == 0:
            raise DivisionByZero(data={"op": "mul_div"})
        product = self.value * numerator.value
        if product > U256_MAX:
            raise Overflow(data={"op": "mul_div", "bits": 256})
        return product

    # ------------------------------------------------------------------ #
    # Roots
    # ------------------------------------------------------------------ #

    def newtonian_root_approximation(
        self,
        root: "PreciseNumber",
        guess: "PreciseNumber",
        iterations: int,
    ) -> "PreciseNumber":
        """
        Approximate the `root`-th root of self with Newton's method:

            x' = ((n - 1) * x + A / x**(n - 1)) / n

        Stops when two iterates are within PRECISION or after `iterations`
        steps. Any checked step that fails aborts the whole approximation.
        """
        if self.value == 0:
            return PreciseNumber.zero()
        if root.value == 0:
            raise DivisionByZero(data={"op": "root"})
        root_minus_one = root.checked_sub(PreciseNumber.one())
        root_minus_one_whole = root_minus_one.to_imprecise()

        last_guess = guess
        for _ in range(iterations):
            first_term = root_minus_one.checked_mul(last_guess)
            power = last_guess.checked_pow(root_minus_one_whole)
            second_term = self.checked_div(power)
            new_guess = first_term.checked_add(second_term).checked_div(root)
            if last_guess.almost_eq(new_guess):
                return new_guess
            last_guess = new_guess
        return last_guess

    def sqrt(self) -> "PreciseNumber":
        """
        Fixed-point square root via `x' = (x + value / x) / 2`.

        Starts from `(value + 1) / 2`, so the largest representable value
        fails with Overflow on the very first step instead of iterating.
        """
        if self.value == 0:
            return PreciseNumber.zero()
        two = PreciseNumber.new(2)
        guess = self.checked_add(PreciseNumber.one()).checked_div(two)
        last_guess = guess
        for _ in range(self.MAX_APPROXIMATION_ITERATIONS):
            quotient = self.checked_div(last_guess)
            new_guess = last_guess.checked_add(quotient).checked_div(two)
            if last_guess.almost_eq(new_guess):
                return new_guess
            last_guess = new_guess
        return last_guess

    # ------------------------------------------------------------------ #
    # Views
    # ------------------------------------------------------------------ #

    def __str__(self) -> str:
        whole, frac = divmod(self.value, self.ONE)
        return f"{whole}.{frac:012d}"


__all__ = ["PreciseNumber"]
