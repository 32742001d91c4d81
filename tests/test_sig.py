from __future__ import annotations

import base64

import pytest
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.hazmat.primitives.serialization import Encoding, PrivateFormat, NoEncryption, PublicFormat

from merkledrop.crypto.sig import canonical_tx_message, sign_tx_envelope_dict, verify_ed25519_signature
from merkledrop.runtime.tx_admission import admit_tx
from merkledrop.runtime.tx_id import compute_tx_id_from_dict

CHAIN = "merkledrop-sig-test"


def _keypair() -> tuple[str, str]:
    sk = Ed25519PrivateKey.from_private_bytes(bytes(range(32)))
    seed_hex = sk.private_bytes(Encoding.Raw, PrivateFormat.Raw, NoEncryption()).hex()
    pk_hex = sk.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw).hex()
    return seed_hex, pk_hex


def test_canonical_message_is_key_order_independent() -> None:
    a = canonical_tx_message(chain_id=CHAIN, signer="ab", nonce=3, data="01")
    assert a == b'{"chain_id":"merkledrop-sig-test","data":"01","nonce":3,"signer":"ab"}'


def test_operator_signing_helper_produces_admissible_envelope() -> None:
    seed_hex, pk_hex = _keypair()
    tx = sign_tx_envelope_dict(tx={"signer": pk_hex, "nonce": 1, "data": "01"}, chain_id=CHAIN, privkey=seed_hex)
    assert admit_tx(tx, {}, chain_id=CHAIN).ok is True


def test_base64_signatures_verify() -> None:
    seed_hex, pk_hex = _keypair()
    seed_b64 = base64.b64encode(bytes.fromhex(seed_hex)).decode("ascii")
    tx = sign_tx_envelope_dict(
        tx={"signer": pk_hex, "nonce": 1, "data": "01"},
        chain_id=CHAIN,
        privkey=seed_b64,
        encoding="b64",
    )
    msg = canonical_tx_message(chain_id=CHAIN, signer=pk_hex, nonce=1, data="01")
    assert verify_ed25519_signature(message=msg, sig=tx["sig"], pubkey=pk_hex) is True
    assert verify_ed25519_signature(message=msg + b" ", sig=tx["sig"], pubkey=pk_hex) is False


def test_garbage_inputs_do_not_verify() -> None:
    _, pk_hex = _keypair()
    assert verify_ed25519_signature(message=b"m", sig="", pubkey=pk_hex) is False
    assert verify_ed25519_signature(message=b"m", sig="!!", pubkey=pk_hex) is False
    assert verify_ed25519_signature(message=b"m", sig="00" * 64, pubkey="00" * 31) is False


def test_bad_seed_is_refused() -> None:
    with pytest.raises(ValueError):
        sign_tx_envelope_dict(tx={"signer": "", "nonce": 1, "data": "01"}, chain_id=CHAIN, privkey="00" * 31)


def test_tx_id_ignores_signature_and_binds_chain() -> None:
    seed_hex, pk_hex = _keypair()
    tx = sign_tx_envelope_dict(tx={"signer": pk_hex, "nonce": 1, "data": "01"}, chain_id=CHAIN, privkey=seed_hex)
    unsigned = {k: v for k, v in tx.items() if k != "sig"}
    assert compute_tx_id_from_dict(CHAIN, tx) == compute_tx_id_from_dict(CHAIN, unsigned)
    assert compute_tx_id_from_dict(CHAIN, tx) != compute_tx_id_from_dict("other", tx)
