import pytest

from solana_fomo3d.checked import (
    U64_MAX,
    U128_MAX,
    try_add,
    try_cast,
    try_ceil_div,
    try_floor_div,
    try_mul,
    try_percent,
    try_pow,
    try_rem,
    try_sqrt,
    try_sub,
)
from solana_fomo3d.errors import ErrorCode, ErrorKind, MathError


def _code(excinfo) -> ErrorCode:
    return excinfo.value.code


def test_add_overflows_at_width():
    assert try_add(U128_MAX - 1, 1) == U128_MAX
    with pytest.raises(MathError) as e:
        try_add(U128_MAX, 1)
    assert _code(e) == ErrorCode.OVERFLOW
    assert e.value.kind == ErrorKind.ARITHMETIC

    with pytest.raises(MathError) as e:
        try_add(U64_MAX, 1, bits=64)
    assert _code(e) == ErrorCode.OVERFLOW


def test_sub_underflows():
    assert try_sub(5, 5) == 0
    with pytest.raises(MathError) as e:
        try_sub(0, 1)
    assert _code(e) == ErrorCode.UNDERFLOW


def test_negative_operand_is_rejected():
    with pytest.raises(MathError) as e:
        try_add(-1, 1)
    assert _code(e) == ErrorCode.UNDERFLOW


def test_mul_overflow():
    assert try_mul(U64_MAX, U64_MAX) == U64_MAX * U64_MAX
    with pytest.raises(MathError) as e:
        try_mul(U64_MAX, 2, bits=64)
    assert _code(e) == ErrorCode.OVERFLOW


def test_division_by_zero():
    for op in (try_floor_div, try_ceil_div, try_rem):
        with pytest.raises(MathError) as e:
            op(10, 0)
        assert _code(e) == ErrorCode.DIVISION_BY_ZERO


def test_ceil_div_agrees_with_floor_div_and_remainder():
    for a in (0, 1, 2, 7, 99, 100, 101, 12345):
        for b in (1, 2, 3, 7, 100):
            expected = try_floor_div(a, b) + (1 if try_rem(a, b) else 0)
            assert try_ceil_div(a, b) == expected
            assert try_ceil_div(a, b) == (a + b - 1) // b


def test_ceil_div_near_max_overflows_rather_than_wrapping():
    with pytest.raises(MathError):
        try_ceil_div(U128_MAX, 2)


def test_pow():
    assert try_pow(2, 127) == 2**127
    assert try_pow(0, 500) == 0
    assert try_pow(1, 10**6) == 1
    with pytest.raises(MathError) as e:
        try_pow(2, 128)
    assert _code(e) == ErrorCode.OVERFLOW
    with pytest.raises(MathError):
        try_pow(2, 8, bits=8)


def test_sqrt_is_floored():
    assert try_sqrt(0) == 0
    assert try_sqrt(99) == 9
    assert try_sqrt(100) == 10
    assert try_sqrt(U128_MAX) == 2**64 - 1


def test_cast_refuses_to_lose_bits():
    assert try_cast(U64_MAX) == U64_MAX
    with pytest.raises(MathError) as e:
        try_cast(U64_MAX + 1)
    assert _code(e) == ErrorCode.CAST_LOSS
    with pytest.raises(MathError):
        try_cast(-1)
    with pytest.raises(MathError):
        try_cast(256, bits=8)


def test_percent_floors():
    assert try_percent(999, 50) == 499
    assert try_percent(1_000_000, 43) == 430_000
