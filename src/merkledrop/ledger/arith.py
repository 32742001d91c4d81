# src/merkledrop/ledger/arith.py
from __future__ import annotations

"""Exact, overflow-checked unsigned integer arithmetic.

Python ints never wrap, so every helper here checks its operands and result
against the declared width and raises ApplyError("overflow") instead of
producing a value the persisted record could not hold.
"""

from typing import Any

from merkledrop.runtime.errors import OVERFLOW, ApplyError

U16_MAX: int = (1 << 16) - 1
U64_MAX: int = (1 << 64) - 1
U128_MAX: int = (1 << 128) - 1
I64_MIN: int = -(1 << 63)
I64_MAX: int = (1 << 63) - 1

_LIMITS = {16: U16_MAX, 64: U64_MAX, 128: U128_MAX}


def _limit(bits: int) -> int:
    try:
        return _LIMITS[int(bits)]
    except KeyError:
        raise ValueError(f"unsupported width: {bits}") from None


def _overflow(op: str, **details: Any) -> ApplyError:
    return ApplyError(OVERFLOW, f"{op}_overflow", details)


def check_uint(v: int, bits: int = 64) -> int:
    """Return v if it fits in an unsigned `bits`-wide integer."""
    if isinstance(v, bool) or not isinstance(v, int):
        raise TypeError(f"expected int, got {type(v).__name__}")
    if v < 0 or v > _limit(bits):
        raise _overflow("range", value=v, bits=bits)
    return v


def check_i64(v: int) -> int:
    if isinstance(v, bool) or not isinstance(v, int):
        raise TypeError(f"expected int, got {type(v).__name__}")
    if v < I64_MIN or v > I64_MAX:
        raise _overflow("range", value=v, bits=64, signed=True)
    return v


def checked_add(a: int, b: int, *, bits: int = 64) -> int:
    check_uint(a, bits)
    check_uint(b, bits)
    out = a + b
    if out > _limit(bits):
        raise _overflow("add", a=a, b=b, bits=bits)
    return out


def checked_sub(a: int, b: int, *, bits: int = 64) -> int:
    check_uint(a, bits)
    check_uint(b, bits)
    if b > a:
        raise _overflow("sub", a=a, b=b, bits=bits)
    return a - b


def checked_mul(a: int, b: int, *, bits: int = 64) -> int:
    check_uint(a, bits)
    check_uint(b, bits)
    out = a * b
    if out > _limit(bits):
        raise _overflow("mul", a=a, b=b, bits=bits)
    return out


def checked_div(a: int, b: int, *, bits: int = 64) -> int:
    """Floor division; a zero divisor is reported as overflow."""
    check_uint(a, bits)
    check_uint(b, bits)
    if b == 0:
        raise _overflow("div", a=a, b=b, bits=bits)
    return a // b


def saturating_sub_i64(a: int, b: int) -> int:
    """a - b clamped to the signed 64-bit range."""
    out = int(a) - int(b)
    if out > I64_MAX:
        return I64_MAX
    if out < I64_MIN:
        return I64_MIN
    return out


def narrow_u64(v: int) -> int:
    """Narrow a wide intermediate to u64 or fail with overflow."""
    if v < 0 or v > U64_MAX:
        raise _overflow("narrow", value=v, bits=64)
    return v


__all__ = [
    "U16_MAX",
    "U64_MAX",
    "U128_MAX",
    "I64_MIN",
    "I64_MAX",
    "check_uint",
    "check_i64",
    "checked_add",
    "checked_sub",
    "checked_mul",
    "checked_div",
    "saturating_sub_i64",
    "narrow_u64",
]
