from __future__ import annotations

import struct

import pytest

from merkledrop.runtime.errors import INVALID_INSTRUCTION, ApplyError
from merkledrop.runtime.instruction import (
    Burn,
    Claim,
    Distribute,
    Initialize,
    TriggerInflation,
    UpdateInflationRate,
    UpdateRateUpdater,
    decode_instruction,
    encode_instruction,
)


def test_claim_wire_layout() -> None:
    proof = (bytes([1]) * 32, bytes([2]) * 32)
    raw = encode_instruction(Claim(total_entitlement=250, proof=proof))
    assert raw[0] == 3
    assert raw[1:9] == struct.pack("<Q", 250)
    assert raw[9:13] == struct.pack("<I", 2)
    assert raw[13:] == proof[0] + proof[1]
    assert decode_instruction(raw) == Claim(total_entitlement=250, proof=proof)


def test_each_variant_decodes_to_itself() -> None:
    for ix in (
        Initialize(rate_updater=bytes([9]) * 32, inflation_rate_bps=500),
        TriggerInflation(),
        Distribute(amount=123, new_root=bytes([4]) * 32),
        Claim(total_entitlement=1),
        Burn(amount=7),
        UpdateRateUpdater(new_rate_updater=bytes([3]) * 32),
        UpdateInflationRate(new_rate_bps=10_000),
    ):
        assert decode_instruction(encode_instruction(ix)) == ix


@pytest.mark.parametrize(
    "raw, reason",
    [
        (b"", "instruction_truncated"),
        (b"\x07", "unknown_variant_tag"),
        (b"\xff", "unknown_variant_tag"),
        (b"\x04\x01\x00", "instruction_truncated"),
        (b"\x01\x00", "trailing_bytes"),
        (b"\x03" + struct.pack("<QI", 5, 2) + bytes(32), "instruction_truncated"),
    ],
)
def test_malformed_data_is_invalid_instruction(raw: bytes, reason: str) -> None:
    with pytest.raises(ApplyError) as ei:
        decode_instruction(raw)
    assert ei.value.code == INVALID_INSTRUCTION
    assert ei.value.reason == reason


def test_decoder_does_not_enforce_proof_bound() -> None:
    proof = tuple(bytes([i]) * 32 for i in range(40))
    ix = decode_instruction(encode_instruction(Claim(total_entitlement=5, proof=proof)))
    assert isinstance(ix, Claim)
    assert len(ix.proof) == 40


def test_encoder_rejects_out_of_range_fields() -> None:
    with pytest.raises(ApplyError):
        encode_instruction(Burn(amount=1 << 64))
    with pytest.raises(ApplyError):
        encode_instruction(UpdateInflationRate(new_rate_bps=1 << 16))
    with pytest.raises(ApplyError):
        encode_instruction(UpdateRateUpdater(new_rate_updater=b"\x00" * 31))
