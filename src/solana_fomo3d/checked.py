"""
Checked integer arithmetic over fixed-width unsigned integers.

Python ints never wrap, so every helper validates its result against the
target width and raises a MathError instead of truncating. All monetary
math in the engine goes through here.
"""

from __future__ import annotations

import math

from .errors import ErrorCode, MathError

U8_MAX = 2**8 - 1
U64_MAX = 2**64 - 1
U128_MAX = 2**128 - 1

_MAX_FOR_BITS = {8: U8_MAX, 64: U64_MAX, 128: U128_MAX}


def _bound(bits: int) -> int:
    try:
        return _MAX_FOR_BITS[bits]
    except KeyError:
        raise ValueError(f"Unsupported integer width: {bits}") from None


def _checked(value: int, bits: int, op: str) -> int:
    if value < 0:
        raise MathError(ErrorCode.UNDERFLOW, f"{op} underflow: {value} < 0")
    if value > _bound(bits):
        raise MathError(ErrorCode.OVERFLOW, f"{op} overflow: {value} > u{bits}::MAX")
    return value


def _operand(value: int, bits: int) -> int:
    return _checked(value, bits, "operand")


def try_add(a: int, b: int, bits: int = 128) -> int:
    return _checked(_operand(a, bits) + _operand(b, bits), bits, "add")


def try_sub(a: int, b: int, bits: int = 128) -> int:
    return _checked(_operand(a, bits) - _operand(b, bits), bits, "sub")


def try_mul(a: int, b: int, bits: int = 128) -> int:
    return _checked(_operand(a, bits) * _operand(b, bits), bits, "mul")


def try_floor_div(a: int, b: int, bits: int = 128) -> int:
    if _operand(b, bits) == 0:
        raise MathError(ErrorCode.DIVISION_BY_ZERO, f"floor_div: {a} / 0")
    return _operand(a, bits) // b


def try_ceil_div(a: int, b: int, bits: int = 128) -> int:
    """ceil(a / b) computed as floor((a + b - 1) / b)."""
    if _operand(b, bits) == 0:
        raise MathError(ErrorCode.DIVISION_BY_ZERO, f"ceil_div: {a} / 0")
    return try_floor_div(try_add(a, b - 1, bits), b, bits)


def try_rem(a: int, b: int, bits: int = 128) -> int:
    if _operand(b, bits) == 0:
        raise MathError(ErrorCode.DIVISION_BY_ZERO, f"rem: {a} % 0")
    return _operand(a, bits) % b


def try_pow(base: int, exp: int, bits: int = 128) -> int:
    _operand(base, bits)
    if exp < 0:
        raise MathError(ErrorCode.UNDERFLOW, f"pow: negative exponent {exp}")
    # bail out before building a huge int
    if base > 1 and (base.bit_length() - 1) * exp + 1 > bits:
        raise MathError(ErrorCode.OVERFLOW, f"pow overflow: {base}**{exp}")
    return _checked(base**exp, bits, "pow")


def try_sqrt(a: int, bits: int = 128) -> int:
    """Floor of the square root."""
    return math.isqrt(_operand(a, bits))


def try_cast(value: int, bits: int = 64) -> int:
    """Narrow a value into `bits`, refusing to lose information."""
    if value < 0 or value > _bound(bits):
        raise MathError(ErrorCode.CAST_LOSS, f"{value} does not fit in u{bits}")
    return value


def try_percent(amount: int, percent: int) -> int:
    """floor(amount * percent / 100)."""
    return try_floor_div(try_mul(amount, percent), 100)
