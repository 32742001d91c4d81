from __future__ import annotations

from typing import Any, Dict

from fastapi import Request

from merkledrop.api.errors import ApiError
from merkledrop.ledger.address import parse_address

Json = Dict[str, Any]


def _executor(request: Request):
    ex = getattr(request.app.state, "executor", None)
    if ex is None:
        raise ApiError.internal("not_ready", "executor not attached to app.state", {})
    return ex


def _identity(raw: str, *, field: str = "identity") -> bytes:
    try:
        return parse_address(raw, field=field)
    except ValueError as e:
        raise ApiError.bad_request("bad_identity", str(e), {field: raw}) from e
