from __future__ import annotations

import pytest

from merkledrop.runtime.instruction import TriggerInflation, encode_instruction
from merkledrop.runtime.tx_admission import admit_tx, expected_nonce
from merkledrop.testing.sigtools import deterministic_ed25519_keypair, make_signed_tx, sign_tx_dict

CHAIN = "merkledrop-admission-test"


def _unsigned(label: str = "alice", nonce: int = 1) -> dict:
    pk, _ = deterministic_ed25519_keypair(label=label)
    return {"signer": pk, "nonce": nonce, "data": encode_instruction(TriggerInflation()).hex()}


def test_signed_envelope_at_next_nonce_is_admitted() -> None:
    st: dict = {}
    tx = make_signed_tx(TriggerInflation(), label="alice", nonce=1, chain_id=CHAIN)
    ok, rej = admit_tx(tx, st, chain_id=CHAIN)
    assert ok is True
    assert rej is None


def test_nonce_must_be_exactly_next() -> None:
    pk, _ = deterministic_ed25519_keypair(label="alice")
    st: dict = {"nonces": {pk: 4}}
    assert expected_nonce(st, pk) == 5

    for nonce in (4, 6):
        tx = make_signed_tx(TriggerInflation(), label="alice", nonce=nonce, chain_id=CHAIN)
        verdict = admit_tx(tx, st, chain_id=CHAIN)
        assert verdict.code == "bad_nonce"
        assert verdict.details == {"expected": 5, "got": nonce}

    tx = make_signed_tx(TriggerInflation(), label="alice", nonce=5, chain_id=CHAIN)
    assert admit_tx(tx, st, chain_id=CHAIN).ok is True


def test_signature_from_another_key_is_rejected() -> None:
    forged = sign_tx_dict(_unsigned("alice"), chain_id=CHAIN, label="mallory")
    verdict = admit_tx(forged, {}, chain_id=CHAIN)
    assert (verdict.ok, verdict.code) == (False, "bad_sig")


def test_signature_is_bound_to_chain_id() -> None:
    tx = make_signed_tx(TriggerInflation(), label="alice", nonce=1, chain_id="some-other-chain")
    assert admit_tx(tx, {}, chain_id=CHAIN).code == "bad_sig"


def test_tampered_payload_breaks_signature() -> None:
    tx = make_signed_tx(TriggerInflation(), label="alice", nonce=1, chain_id=CHAIN)
    tx["data"] = "06" + "0000"
    assert admit_tx(tx, {}, chain_id=CHAIN).code == "bad_sig"


def test_unsigned_envelopes_need_explicit_opt_in() -> None:
    assert admit_tx(_unsigned(), {}, chain_id=CHAIN).code == "bad_sig"
    assert admit_tx(_unsigned(), {}, chain_id=CHAIN, allow_unsigned=True).ok is True


@pytest.mark.parametrize(
    "patch, reason",
    [
        ({"signer": ""}, "missing_signer"),
        ({"signer": "ab" * 31}, "signer_must_be_32_byte_hex"),
        ({"data": ""}, "missing_data"),
        ({"data": "zz"}, "data_must_be_hex"),
        ({"nonce": 0}, "nonce_must_be_positive"),
    ],
)
def test_malformed_envelopes_are_bad_shape(patch: dict, reason: str) -> None:
    tx = _unsigned()
    tx.update(patch)
    verdict = admit_tx(tx, {}, chain_id=CHAIN, allow_unsigned=True)
    assert verdict.code == "bad_shape"
    assert verdict.reason == reason


def test_non_mapping_envelope_is_bad_shape() -> None:
    assert admit_tx("not-an-envelope", {}, chain_id=CHAIN).code == "bad_shape"


def test_oversized_envelope_is_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MERKLEDROP_MAX_TX_ENVELOPE_BYTES", "128")
    tx = make_signed_tx(TriggerInflation(), label="alice", nonce=1, chain_id=CHAIN)
    verdict = admit_tx(tx, {}, chain_id=CHAIN)
    assert verdict.code == "tx_too_large"
    assert verdict.details["max_bytes"] == 128
