# src/merkledrop/runtime/rate_limit.py
from __future__ import annotations

"""Time-prorated allowances for the inflation and distribution schedules.

    inflation    = floor(supply * rate_bps * elapsed / (BPS_DENOMINATOR * SECONDS_PER_YEAR))
    distribution = floor(pool_balance * elapsed / SECONDS_PER_YEAR)

Numerators are computed in 128-bit checked arithmetic. The distribution
numerator is a u64 times a positive i64, so it always fits; its result is
compared with the requested amount at full width and never narrowed.
Inflation narrows to u64 after the division.
"""

from merkledrop.ledger.arith import check_uint, checked_div, checked_mul, narrow_u64, saturating_sub_i64
from merkledrop.ledger.constants import BPS_DENOMINATOR, SECONDS_PER_YEAR
from merkledrop.runtime.errors import INFLATION_NOT_READY, ApplyError

_DENOMINATOR = BPS_DENOMINATOR * SECONDS_PER_YEAR


def elapsed_since(now: int, last: int) -> int:
    return saturating_sub_i64(now, last)


def available(elapsed_seconds: int, base_quantity: int, rate_bps: int) -> int:
    """Prorated allowance; zero for a non-positive elapsed time."""
    if elapsed_seconds <= 0:
        return 0
    check_uint(base_quantity, 64)
    check_uint(rate_bps, 16)
    numerator = checked_mul(checked_mul(base_quantity, rate_bps, bits=128), elapsed_seconds, bits=128)
    return checked_div(numerator, _DENOMINATOR, bits=128)


def distribution_available(*, now: int, last_distribution_time: int, pool_balance: int) -> int:
    """Straight-line share of the live pool released since the last distribution."""
    elapsed = elapsed_since(now, last_distribution_time)
    if elapsed <= 0:
        return 0
    check_uint(pool_balance, 64)
    return checked_div(checked_mul(pool_balance, elapsed, bits=128), SECONDS_PER_YEAR, bits=128)


def inflation_amount(*, now: int, last_inflation_time: int, total_supply: int, rate_bps: int) -> int:
    """Inflation owed since the last mint.

    Raises:
        ApplyError(inflation_not_ready): elapsed time or the computed amount is not positive
        ApplyError(overflow): the intermediate or the result does not fit
    """
    elapsed = elapsed_since(now, last_inflation_time)
    if elapsed <= 0:
        raise ApplyError(INFLATION_NOT_READY, "no_time_elapsed", {"elapsed": elapsed})
    amount = narrow_u64(available(elapsed, total_supply, rate_bps))
    if amount == 0:
        raise ApplyError(INFLATION_NOT_READY, "zero_inflation", {"elapsed": elapsed, "rate_bps": rate_bps})
    return amount


__all__ = ["elapsed_since", "available", "distribution_available", "inflation_amount"]
