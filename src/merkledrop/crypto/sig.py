# src/merkledrop/crypto/sig.py
from __future__ import annotations

import base64
import json
from typing import Any, Dict

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey, Ed25519PublicKey

Json = Dict[str, Any]


def _decode_bytes(s: str) -> bytes:
    s = s.strip()
    if not s:
        raise ValueError("empty string")
    # hex
    try:
        return bytes.fromhex(s)
    except ValueError:
        pass
    # base64 / base64url
    try:
        padding = "=" * (-len(s) % 4)
        s2 = (s + padding).replace("-", "+").replace("_", "/")
        return base64.b64decode(s2, validate=True)
    except ValueError as e:
        raise ValueError("not hex or base64") from e


def canonical_tx_message(*, chain_id: str, signer: str, nonce: int, data: str) -> bytes:
    """Bytes an envelope signature covers. Binds the envelope to one chain."""
    obj: Json = {
        "chain_id": str(chain_id),
        "signer": str(signer),
        "nonce": int(nonce),
        "data": str(data),
    }
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def verify_ed25519_signature(*, message: bytes, sig: str, pubkey: str) -> bool:
    try:
        sig_b = _decode_bytes(sig)
        pk_b = _decode_bytes(pubkey)
        key = Ed25519PublicKey.from_public_bytes(pk_b)
        key.verify(sig_b, message)
        return True
    except (InvalidSignature, ValueError):
        return False


def sign_ed25519(*, message: bytes, privkey: str, encoding: str = "hex") -> str:
    """Sign a message with an Ed25519 private key.

    privkey: hex or base64/base64url string of the 32-byte seed.
    encoding: "hex" (default) or "b64".
    """
    pk_b = _decode_bytes(privkey)
    if len(pk_b) != 32:
        raise ValueError("ed25519 privkey must be a 32-byte seed")

    key = Ed25519PrivateKey.from_private_bytes(pk_b)
    sig_b = key.sign(message)
    if encoding == "hex":
        return sig_b.hex()
    if encoding in {"b64", "base64"}:
        return base64.b64encode(sig_b).decode("ascii")
    raise ValueError("unsupported encoding")


def sign_tx_envelope_dict(*, tx: Json, chain_id: str, privkey: str, encoding: str = "hex") -> Json:
    """Return a copy of tx with its 'sig' field populated.

    Expected shape (extra keys allowed): {"signer": str, "nonce": int, "data": str}
    """
    signer = str(tx.get("signer") or "")
    nonce = int(tx.get("nonce") or 0)
    data = str(tx.get("data") or "")

    msg = canonical_tx_message(chain_id=chain_id, signer=signer, nonce=nonce, data=data)
    out = dict(tx)
    out["signer"] = signer
    out["nonce"] = nonce
    out["data"] = data
    out["sig"] = sign_ed25519(message=msg, privkey=privkey, encoding=encoding)
    return out
