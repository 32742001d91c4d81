from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Request

from merkledrop.api.errors import ApiError
from merkledrop.api.routes_public_parts.common import _executor
from merkledrop.api.schemas import TxSubmitRequest

router = APIRouter()

Json = Dict[str, Any]


@router.post("/tx/submit")
def tx_submit(body: TxSubmitRequest, request: Request) -> Json:
    """Submit a signed envelope and apply it synchronously.

    Returns:
      { ok: true, receipt } on success; a 400 error carrying the rejection
      code (admission or operation) otherwise.
    """
    ex = _executor(request)
    receipt = ex.submit_tx(body.model_dump())
    request.state.tx_id = receipt.get("tx_id")
    if not receipt.get("ok"):
        details = receipt.get("details")
        raise ApiError.bad_request(
            str(receipt.get("code") or "rejected"),
            str(receipt.get("reason") or "rejected"),
            {"tx_id": receipt.get("tx_id"), "details": details if details is not None else {}},
        )
    return {"ok": True, "receipt": receipt}


@router.get("/tx/status/{tx_id}")
def tx_status(tx_id: str, request: Request) -> Json:
    ex = _executor(request)
    receipt = ex.get_receipt(str(tx_id).strip())
    if receipt is None:
        raise ApiError.not_found("tx_not_found", "no receipt for tx_id", {"tx_id": tx_id})
    return {"ok": True, "receipt": receipt}
