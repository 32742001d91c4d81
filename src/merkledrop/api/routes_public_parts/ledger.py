from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Request

from merkledrop.api.routes_public_parts.common import _executor

router = APIRouter()

Json = Dict[str, Any]


@router.get("/ledger")
def ledger(request: Request) -> Json:
    """Decoded ledger state plus the two pool balances."""
    ex = _executor(request)
    cfg = ex.get_ledger_state()
    if cfg is None:
        return {"ok": True, "initialized": False, "ledger": None, "pools": None}
    return {
        "ok": True,
        "initialized": True,
        "ledger": cfg.to_json(),
        "pools": {
            "undistributed": ex.token_balance(cfg.undistributed_pool),
            "pending": ex.token_balance(cfg.pending_pool),
        },
    }
