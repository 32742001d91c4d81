from __future__ import annotations

import pytest

from merkledrop.ledger.arith import (
    I64_MAX,
    I64_MIN,
    U64_MAX,
    U128_MAX,
    check_uint,
    checked_add,
    checked_div,
    checked_mul,
    checked_sub,
    narrow_u64,
    saturating_sub_i64,
)
from merkledrop.runtime.errors import OVERFLOW, ApplyError


def test_checked_add_at_u64_boundary() -> None:
    assert checked_add(U64_MAX - 1, 1) == U64_MAX
    with pytest.raises(ApplyError) as ei:
        checked_add(U64_MAX, 1)
    assert ei.value.code == OVERFLOW
    assert ei.value.reason == "add_overflow"


def test_checked_sub_never_goes_negative() -> None:
    assert checked_sub(5, 5) == 0
    with pytest.raises(ApplyError) as ei:
        checked_sub(4, 5)
    assert ei.value.code == OVERFLOW


def test_checked_mul_respects_width() -> None:
    assert checked_mul(U64_MAX, U64_MAX, bits=128) == U64_MAX * U64_MAX
    with pytest.raises(ApplyError):
        checked_mul(U64_MAX, 2)
    with pytest.raises(ApplyError):
        checked_mul(U128_MAX, 2, bits=128)


def test_checked_div_floors_and_rejects_zero_divisor() -> None:
    assert checked_div(7, 2) == 3
    with pytest.raises(ApplyError) as ei:
        checked_div(1, 0)
    assert ei.value.code == OVERFLOW


def test_operands_out_of_range_are_overflow() -> None:
    with pytest.raises(ApplyError):
        checked_add(-1, 1)
    with pytest.raises(ApplyError):
        check_uint(1 << 16, 16)
    with pytest.raises(TypeError):
        check_uint(True, 64)  # type: ignore[arg-type]


def test_saturating_sub_clamps_to_i64() -> None:
    assert saturating_sub_i64(10, 3) == 7
    assert saturating_sub_i64(I64_MAX, I64_MIN) == I64_MAX
    assert saturating_sub_i64(I64_MIN, I64_MAX) == I64_MIN


def test_narrow_u64() -> None:
    assert narrow_u64(U64_MAX) == U64_MAX
    with pytest.raises(ApplyError):
        narrow_u64(U64_MAX + 1)
