from __future__ import annotations

import json
import os
from typing import Any, Dict, Optional

from merkledrop.crypto.sig import canonical_tx_message, verify_ed25519_signature
from merkledrop.ledger.address import parse_address
from merkledrop.runtime.state_invariants import ensure_state
from merkledrop.runtime.tx_admission_types import TxEnvelope, TxVerdict

Json = Dict[str, Any]


def _env_int(name: str, default: int) -> int:
    v = os.getenv(name)
    if v is None:
        return int(default)
    try:
        return int(str(v).strip())
    except ValueError:
        return int(default)


def _normalize_jsonable(obj: Any) -> Any:
    """Return a JSON-serializable representation of obj where possible."""
    if obj is None or isinstance(obj, (dict, list, str, int, float, bool)):
        return obj
    to_json = getattr(obj, "to_json", None)
    if callable(to_json):
        return to_json()
    model_dump = getattr(obj, "model_dump", None)
    if callable(model_dump):
        return model_dump()
    return obj


def _json_size_bytes(obj: Any) -> int:
    """Compute JSON byte size. If not serializable, return -1 (unknown)."""
    try:
        norm = _normalize_jsonable(obj)
        return len(json.dumps(norm, separators=(",", ":"), ensure_ascii=False, sort_keys=True).encode("utf-8"))
    except (TypeError, ValueError):
        return -1


def expected_nonce(state: Json, signer: str) -> int:
    nonces = ensure_state(state)["nonces"]
    try:
        return int(nonces.get(signer, 0)) + 1
    except (TypeError, ValueError):
        return 1


def _check_shape(env: TxEnvelope) -> Optional[TxVerdict]:
    if not env.signer:
        return TxVerdict.reject("bad_shape", "missing_signer", None)
    try:
        parse_address(env.signer, field="signer")
    except ValueError as e:
        return TxVerdict.reject("bad_shape", "signer_must_be_32_byte_hex", {"error": str(e)})
    if not env.data:
        return TxVerdict.reject("bad_shape", "missing_data", None)
    try:
        bytes.fromhex(env.data)
    except ValueError:
        return TxVerdict.reject("bad_shape", "data_must_be_hex", None)
    if int(env.nonce) < 1:
        return TxVerdict.reject("bad_shape", "nonce_must_be_positive", {"nonce": int(env.nonce)})
    return None


def admit_tx(
    tx: Any,
    state: Json,
    *,
    chain_id: str,
    allow_unsigned: bool = False,
) -> TxVerdict:
    """Stateless shape checks plus the two stateful gates: nonce and signature.

    Operation semantics (roles, balances, proofs) are not checked here; they
    are enforced by apply_tx().
    """
    max_tx_bytes = _env_int("MERKLEDROP_MAX_TX_ENVELOPE_BYTES", 16 * 1024)
    env_size = _json_size_bytes(tx)
    if env_size >= 0 and env_size > int(max_tx_bytes):
        return TxVerdict.reject(
            "tx_too_large",
            "tx_envelope_exceeds_size_limit",
            {"bytes": int(env_size), "max_bytes": int(max_tx_bytes)},
        )

    try:
        env = TxEnvelope.from_json(tx)
    except (TypeError, ValueError) as e:
        return TxVerdict.reject("bad_shape", "envelope_malformed", {"error": str(e)})

    shape = _check_shape(env)
    if shape is not None:
        return shape

    expected = expected_nonce(state, env.signer)
    if int(env.nonce) != expected:
        return TxVerdict.reject("bad_nonce", "nonce_must_be_next", {"expected": expected, "got": int(env.nonce)})

    if allow_unsigned and not env.sig.strip():
        return TxVerdict.admit()

    msg = canonical_tx_message(chain_id=chain_id, signer=env.signer, nonce=env.nonce, data=env.data)
    if not verify_ed25519_signature(message=msg, sig=env.sig, pubkey=env.signer):
        return TxVerdict.reject("bad_sig", "signature_verification_failed", {"signer": env.signer})

    return TxVerdict.admit()


__all__ = ["TxEnvelope", "TxVerdict", "admit_tx", "expected_nonce"]
