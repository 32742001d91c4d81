# src/merkledrop/runtime/tx_id.py
from __future__ import annotations

import hashlib
import json
from typing import Any, Dict

from merkledrop.runtime.tx_admission_types import TxEnvelope

Json = Dict[str, Any]


def _json_canonical(obj: Any) -> bytes:
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def compute_tx_id(*, chain_id: str, signer: str, nonce: int, data: str) -> str:
    """Canonical tx_id.

    Contract:
      - Includes chain_id (identical envelopes on two chains never collide)
      - Excludes sig (signature encoding MUST NOT affect tx_id)
    """
    obj: Json = {
        "chain_id": str(chain_id),
        "signer": str(signer),
        "nonce": int(nonce),
        "data": str(data),
    }
    return hashlib.sha256(_json_canonical(obj)).hexdigest()


def compute_tx_id_from_envelope(chain_id: str, env: TxEnvelope) -> str:
    return compute_tx_id(chain_id=str(chain_id), signer=env.signer, nonce=int(env.nonce), data=env.data)


def compute_tx_id_from_dict(chain_id: str, tx: Dict[str, Any]) -> str:
    """Helper for codepaths that still hold a raw dict envelope. Unknown extra keys are ignored."""
    return compute_tx_id_from_envelope(chain_id, TxEnvelope.from_json(tx))
