from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Request

from merkledrop.api.routes_public_parts.common import _executor, _identity
from merkledrop.ledger.types import RecipientClaimRecord

router = APIRouter()

Json = Dict[str, Any]


@router.get("/claims/{identity}")
def claim_status(identity: str, request: Request) -> Json:
    ex = _executor(request)
    who = _identity(identity)
    record = ex.get_claim_record(who)
    return {
        "ok": True,
        "identity": who.hex(),
        "has_record": record is not None,
        "record": (record or RecipientClaimRecord()).to_json(),
        "wallet_balance": ex.wallet_balance(who),
        "next_nonce": ex.next_nonce(who.hex()),
    }
