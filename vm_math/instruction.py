"""
vm_math.instruction — the request tagged union and its wire codec.

One frozen dataclass per primitive, each carrying only the operands that
primitive needs. On the wire an instruction is a canonical CBOR array

    [tag, operand0, operand1, ...]

with integers as CBOR unsigned ints (bignums above u64) and floats as CBOR
floats. Decoding is strict: truncated or malformed CBOR, trailing bytes,
unknown tags, wrong arity, wrong operand types, NaN floats and values outside
their declared width all raise `DecodeError`; there is no defaulting.

Builders at the bottom of the module (`sqrt_u64(...)`, `noop()`, ...) return
ready-to-send instruction bytes.

    data = sqrt_u64(2**64 - 1)
    MathInstruction.decode(data)   # SquareRootU64(radicand=18446744073709551615)
"""

from __future__ import annotations

import io
from dataclasses import dataclass, fields
from typing import Any, ClassVar, Dict, List, Tuple, Type

import cbor2
import numpy as np

from .errors import DecodeError
from .uint import is_uint

# Operand kinds
U64 = "u64"
U128 = "u128"
F32 = "f32"
F64 = "f64"

_INT_BITS = {U64: 64, U128: 128}

_BY_TAG: Dict[int, Type["MathInstruction"]] = {}
_BY_NAME: Dict[str, Type["MathInstruction"]] = {}


def _coerce_operand(kind: str, name: str, value: Any) -> Any:
    if kind in _INT_BITS:
        if not is_uint(value, _INT_BITS[kind]):
            raise DecodeError(f"{name} must be {kind}", data={"operand": name, "value": repr(value)})
        return value
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise DecodeError(f"{name} must be {kind}", data={"operand": name, "type": type(value).__name__})
    v = float(value)
    if v != v:
        raise DecodeError(f"{name} is NaN", data={"operand": name})
    if kind == F32:
        with np.errstate(all="ignore"):
            narrowed = np.float32(v)
        if np.isinf(narrowed) and not np.isinf(v):
            raise DecodeError(f"{name} does not fit f32", data={"operand": name, "value": v})
        return float(narrowed)
    return v


def _register(cls: Type["MathInstruction"]) -> Type["MathInstruction"]:
    if cls.TAG in _BY_TAG:
        raise RuntimeError(f"duplicate instruction tag {cls.TAG}")
    if len(cls.KINDS) != len(fields(cls)):
        raise RuntimeError(f"{cls.__name__}: KINDS does not match its fields")
    _BY_TAG[cls.TAG] = cls
    _BY_NAME[cls.NAME] = cls
    return cls


@dataclass(frozen=True)
class MathInstruction:
    """Base of the closed set of benchmarkable requests."""

    TAG: ClassVar[int] = -1
    NAME: ClassVar[str] = ""
    KINDS: ClassVar[Tuple[str, ...]] = ()

    def __post_init__(self) -> None:
        for f, kind in zip(fields(self), self.KINDS):
            object.__setattr__(self, f.name, _coerce_operand(kind, f.name, getattr(self, f.name)))

    def operands(self) -> Tuple[Any, ...]:
        return tuple(getattr(self, f.name) for f in fields(self))

    def encode(self) -> bytes:
        return cbor2.dumps([self.TAG, *self.operands()], canonical=True)

    @staticmethod
    def decode(data: bytes) -> "MathInstruction":
        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise DecodeError(f"instruction data must be bytes, got {type(data).__name__}")
        buf = bytes(data)
        if not buf:
            raise DecodeError("empty instruction data")

        fp = io.BytesIO(buf)
        try:
            obj = cbor2.CBORDecoder(fp).decode()
        except cbor2.CBORDecodeError as e:
            raise DecodeError(f"malformed instruction data: {e}") from e
        if fp.tell() != len(buf):
            raise DecodeError("trailing bytes after instruction", data={"extra": len(buf) - fp.tell()})

        if not isinstance(obj, list) or not obj:
            raise DecodeError("instruction must be a non-empty array")
        tag, *raw = obj
        if isinstance(tag, bool) or not isinstance(tag, int) or tag not in _BY_TAG:
            raise DecodeError("unknown instruction tag", data={"tag": repr(tag)})
        cls = _BY_TAG[tag]
        if len(raw) != len(cls.KINDS):
            raise DecodeError(
                f"{cls.__name__} takes {len(cls.KINDS)} operands, got {len(raw)}",
                data={"tag": tag},
            )
        # wire floats must be CBOR floats; the constructor alone would accept ints
        for f, kind, value in zip(fields(cls), cls.KINDS, raw):
            if kind in (F32, F64) and not isinstance(value, float):
                raise DecodeError(f"{f.name} must be {kind}", data={"operand": f.name})
        return cls(*raw)


# ------------------------------------------------------------------ #
# Variants (tag order is the wire discriminant; append only)
# ------------------------------------------------------------------ #

@_register
@dataclass(frozen=True)
class PreciseSquareRoot(MathInstruction):
    TAG: ClassVar[int] = 0
    NAME: ClassVar[str] = "precise_sqrt"
    KINDS: ClassVar[Tuple[str, ...]] = (U64,)
    radicand: int


@_register
@dataclass(frozen=True)
class SquareRootU64(MathInstruction):
    TAG: ClassVar[int] = 1
    NAME: ClassVar[str] = "sqrt_u64"
    KINDS: ClassVar[Tuple[str, ...]] = (U64,)
    radicand: int


@_register
@dataclass(frozen=True)
class SquareRootU128(MathInstruction):
    TAG: ClassVar[int] = 2
    NAME: ClassVar[str] = "sqrt_u128"
    KINDS: ClassVar[Tuple[str, ...]] = (U128,)
    radicand: int


@_register
@dataclass(frozen=True)
class U64Multiply(MathInstruction):
    TAG: ClassVar[int] = 3
    NAME: ClassVar[str] = "u64_multiply"
    KINDS: ClassVar[Tuple[str, ...]] = (U64, U64)
    multiplicand: int
    multiplier: int


@_register
@dataclass(frozen=True)
class U64Divide(MathInstruction):
    TAG: ClassVar[int] = 4
    NAME: ClassVar[str] = "u64_divide"
    KINDS: ClassVar[Tuple[str, ...]] = (U64, U64)
    dividend: int
    divisor: int


@_register
@dataclass(frozen=True)
class F32Multiply(MathInstruction):
    TAG: ClassVar[int] = 5
    NAME: ClassVar[str] = "f32_multiply"
    KINDS: ClassVar[Tuple[str, ...]] = (F32, F32)
    multiplicand: float
    multiplier: float


@_register
@dataclass(frozen=True)
class F32Divide(MathInstruction):
    TAG: ClassVar[int] = 6
    NAME: ClassVar[str] = "f32_divide"
    KINDS: ClassVar[Tuple[str, ...]] = (F32, F32)
    dividend: float
    divisor: float


@_register
@dataclass(frozen=True)
class F32Exponentiate(MathInstruction):
    TAG: ClassVar[int] = 7
    NAME: ClassVar[str] = "f32_exponentiate"
    KINDS: ClassVar[Tuple[str, ...]] = (F32, F32)
    base: float
    exponent: float


@_register
@dataclass(frozen=True)
class F32NaturalLog(MathInstruction):
    TAG: ClassVar[int] = 8
    NAME: ClassVar[str] = "f32_natural_log"
    KINDS: ClassVar[Tuple[str, ...]] = (F32,)
    argument: float


@_register
@dataclass(frozen=True)
class F32NormalCDF(MathInstruction):
    TAG: ClassVar[int] = 9
    NAME: ClassVar[str] = "f32_normal_cdf"
    KINDS: ClassVar[Tuple[str, ...]] = (F32,)
    argument: float


@_register
@dataclass(frozen=True)
class F64Pow(MathInstruction):
    TAG: ClassVar[int] = 10
    NAME: ClassVar[str] = "f64_pow"
    KINDS: ClassVar[Tuple[str, ...]] = (F64, F64)
    base: float
    exponent: float


@_register
@dataclass(frozen=True)
class U128Multiply(MathInstruction):
    TAG: ClassVar[int] = 11
    NAME: ClassVar[str] = "u128_multiply"
    KINDS: ClassVar[Tuple[str, ...]] = (U128, U128)
    multiplicand: int
    multiplier: int


@_register
@dataclass(frozen=True)
class U128Divide(MathInstruction):
    TAG: ClassVar[int] = 12
    NAME: ClassVar[str] = "u128_divide"
    KINDS: ClassVar[Tuple[str, ...]] = (U128, U128)
    dividend: int
    divisor: int


@_register
@dataclass(frozen=True)
class F64Multiply(MathInstruction):
    TAG: ClassVar[int] = 13
    NAME: ClassVar[str] = "f64_multiply"
    KINDS: ClassVar[Tuple[str, ...]] = (F64, F64)
    multiplicand: float
    multiplier: float


@_register
@dataclass(frozen=True)
class F64Divide(MathInstruction):
    TAG: ClassVar[int] = 14
    NAME: ClassVar[str] = "f64_divide"
    KINDS: ClassVar[Tuple[str, ...]] = (F64, F64)
    dividend: float
    divisor: float


@_register
@dataclass(frozen=True)
class Noop(MathInstruction):
    TAG: ClassVar[int] = 15
    NAME: ClassVar[str] = "noop"


@_register
@dataclass(frozen=True)
class PreciseMulDiv(MathInstruction):
    TAG: ClassVar[int] = 16
    NAME: ClassVar[str] = "precise_mul_div"
    KINDS: ClassVar[Tuple[str, ...]] = (U64, U64, U64)
    val: int
    num: int
    denom: int


def instruction_types() -> List[Type[MathInstruction]]:
    """All variants in tag order."""
    return [_BY_TAG[t] for t in sorted(_BY_TAG)]


def by_name(name: str) -> Type[MathInstruction]:
    try:
        return _BY_NAME[name.replace("-", "_")]
    except KeyError:
        raise DecodeError(f"unknown instruction {name!r}") from None


# ------------------------------------------------------------------ #
# Builders
# ------------------------------------------------------------------ #

def precise_sqrt(radicand: int) -> bytes:
    return PreciseSquareRoot(radicand).encode()


def sqrt_u64(radicand: int) -> bytes:
    return SquareRootU64(radicand).encode()


def sqrt_u128(radicand: int) -> bytes:
    return SquareRootU128(radicand).encode()


def u64_multiply(multiplicand: int, multiplier: int) -> bytes:
    return U64Multiply(multiplicand, multiplier).encode()


def u64_divide(dividend: int, divisor: int) -> bytes:
    return U64Divide(dividend, divisor).encode()


def f32_multiply(multiplicand: float, multiplier: float) -> bytes:
    return F32Multiply(multiplicand, multiplier).encode()


def f32_divide(dividend: float, divisor: float) -> bytes:
    return F32Divide(dividend, divisor).encode()


def f32_exponentiate(base: float, exponent: float) -> bytes:
    return F32Exponentiate(base, exponent).encode()


def f32_natural_log(argument: float) -> bytes:
    return F32NaturalLog(argument).encode()


def f32_normal_cdf(argument: float) -> bytes:
    return F32NormalCDF(argument).encode()


def f64_pow(base: float, exponent: float) -> bytes:
    return F64Pow(base, exponent).encode()


def u128_multiply(multiplicand: int, multiplier: int) -> bytes:
    return U128Multiply(multiplicand, multiplier).encode()


def u128_divide(dividend: int, divisor: int) -> bytes:
    return U128Divide(dividend, divisor).encode()


def f64_multiply(multiplicand: float, multiplier: float) -> bytes:
    return F64Multiply(multiplicand, multiplier).encode()


def f64_divide(dividend: float, divisor: float) -> bytes:
    return F64Divide(dividend, divisor).encode()


def noop() -> bytes:
    return Noop().encode()


def precise_mul_div(val: int, num: int, denom: int) -> bytes:
    return PreciseMulDiv(val, num, denom).encode()


__all__ = [
    "MathInstruction",
    "PreciseSquareRoot",
    "SquareRootU64",
    "SquareRootU128",
    "U64Multiply",
    "U64Divide",
    "F32Multiply",
    "F32Divide",
    "F32Exponentiate",
    "F32NaturalLog",
    "F32NormalCDF",
    "F64Pow",
    "U128Multiply",
    "U128Divide",
    "F64Multiply",
    "F64Divide",
    "Noop",
    "PreciseMulDiv",
    "instruction_types",
    "by_name",
    "precise_sqrt",
    "sqrt_u64",
    "sqrt_u128",
    "u64_multiply",
    "u64_divide",
    "f32_multiply",
    "f32_divide",
    "f32_exponentiate",
    "f32_natural_log",
    "f32_normal_cdf",
    "f64_pow",
    "u128_multiply",
    "u128_divide",
    "f64_multiply",
    "f64_divide",
    "noop",
    "precise_mul_div",
]
