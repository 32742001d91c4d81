from __future__ import annotations

import struct

import pytest

from merkledrop.ledger.constants import CLAIM_RECORD_DISCRIMINATOR, LEDGER_STATE_DISCRIMINATOR
from merkledrop.ledger.types import CLAIM_RECORD_LEN, LEDGER_STATE_LEN, LedgerState, RecipientClaimRecord
from merkledrop.runtime.errors import INVALID_ACCOUNT_DATA, INVALID_DISCRIMINATOR, ApplyError


def _cfg(**overrides) -> LedgerState:
    base = dict(
        mint=bytes([1]) * 32,
        undistributed_pool=bytes([2]) * 32,
        pending_pool=bytes([3]) * 32,
        commitment_root=bytes([4]) * 32,
        rate_updater=bytes([5]) * 32,
        total_supply=0x0102030405060708,
        last_inflation_time=-5,
        last_distribution_time=1_700_000_000,
        administrator=bytes([6]) * 32,
        inflation_rate_bps=500,
    )
    base.update(overrides)
    return LedgerState(**base)


def test_ledger_state_field_order_and_endianness() -> None:
    raw = _cfg().to_bytes()
    assert len(raw) == LEDGER_STATE_LEN == 226
    assert raw[:8] == LEDGER_STATE_DISCRIMINATOR
    assert raw[8:40] == bytes([1]) * 32
    assert raw[136:168] == bytes([5]) * 32
    assert raw[168:176] == bytes([8, 7, 6, 5, 4, 3, 2, 1])
    assert struct.unpack("<q", raw[176:184])[0] == -5
    assert struct.unpack("<q", raw[184:192])[0] == 1_700_000_000
    assert raw[192:224] == bytes([6]) * 32
    assert raw[224:226] == struct.pack("<H", 500)
    assert LedgerState.from_bytes(raw) == _cfg()


def test_claim_record_layout() -> None:
    raw = RecipientClaimRecord(cumulative_claimed=250, cumulative_burned=3).to_bytes()
    assert len(raw) == CLAIM_RECORD_LEN == 24
    assert raw[:8] == CLAIM_RECORD_DISCRIMINATOR
    assert struct.unpack("<QQ", raw[8:]) == (250, 3)


def test_wrong_tag_is_invalid_discriminator() -> None:
    claim_raw = RecipientClaimRecord(1, 0).to_bytes()
    with pytest.raises(ApplyError) as ei:
        LedgerState.from_bytes(claim_raw)
    assert ei.value.code == INVALID_DISCRIMINATOR

    with pytest.raises(ApplyError) as ei:
        RecipientClaimRecord.from_bytes(_cfg().to_bytes())
    assert ei.value.code == INVALID_DISCRIMINATOR


def test_wrong_size_is_invalid_account_data() -> None:
    raw = _cfg().to_bytes()
    for bad in (raw[:-1], raw + b"\x00", raw[:4]):
        with pytest.raises(ApplyError) as ei:
            LedgerState.from_bytes(bad)
        assert ei.value.code == INVALID_ACCOUNT_DATA


def test_out_of_range_fields_refuse_to_serialize() -> None:
    with pytest.raises(ValueError):
        _cfg(inflation_rate_bps=10_001).to_bytes()
    with pytest.raises(ValueError):
        _cfg(mint=b"\x01" * 31).to_bytes()
    with pytest.raises(ApplyError):
        _cfg(total_supply=1 << 64).to_bytes()
