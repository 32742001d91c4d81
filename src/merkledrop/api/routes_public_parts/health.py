from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Request

router = APIRouter()

Json = Dict[str, Any]


@router.get("/health")
def health(request: Request) -> Json:
    """Liveness plus basic node identity. Never raises."""
    ex = getattr(request.app.state, "executor", None)
    if ex is None:
        return {"ok": True, "ready": False}
    st = ex.read_state()
    return {
        "ok": True,
        "ready": True,
        "chain_id": ex.chain_id,
        "node_id": ex.node_id,
        "height": int(st.get("height", 0)),
        "tip": str(st.get("tip") or ""),
    }
