from __future__ import annotations

import hashlib
from typing import Any, Dict, Tuple

from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

from merkledrop.crypto.sig import canonical_tx_message
from merkledrop.runtime.instruction import Instruction, encode_instruction

Json = Dict[str, Any]


def _sha256(b: bytes) -> bytes:
    return hashlib.sha256(b).digest()


def deterministic_ed25519_keypair(*, label: str) -> Tuple[str, Ed25519PrivateKey]:
    """Deterministically derive an Ed25519 keypair from a stable label.

    TEST ONLY.

    Returns:
      (pubkey_hex, private_key)
    """
    seed = _sha256(("merkledrop-test-ed25519:" + (label or "")).encode("utf-8"))
    sk = Ed25519PrivateKey.from_private_bytes(seed)
    pk_hex = sk.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw).hex()
    return pk_hex, sk


def identity(label: str) -> bytes:
    """32-byte caller identity (the raw public key) for a test label."""
    pk_hex, _ = deterministic_ed25519_keypair(label=label)
    return bytes.fromhex(pk_hex)


def sign_tx_dict(tx: Json, *, chain_id: str, label: str) -> Json:
    """Return tx with a real Ed25519 signature (hex) from the label's key."""
    if not isinstance(tx, dict):
        raise TypeError("tx must be a dict")

    _, sk = deterministic_ed25519_keypair(label=label)
    msg = canonical_tx_message(
        chain_id=chain_id,
        signer=str(tx.get("signer") or ""),
        nonce=int(tx.get("nonce") or 0),
        data=str(tx.get("data") or ""),
    )
    out = dict(tx)
    out["sig"] = sk.sign(msg).hex()
    return out


def make_signed_tx(ix: Instruction, *, label: str, nonce: int, chain_id: str) -> Json:
    """Build and sign an envelope carrying `ix` for the label's identity."""
    pk_hex, _ = deterministic_ed25519_keypair(label=label)
    tx = {"signer": pk_hex, "nonce": int(nonce), "data": encode_instruction(ix).hex()}
    return sign_tx_dict(tx, chain_id=chain_id, label=label)
