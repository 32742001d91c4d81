from __future__ import annotations

"""Pydantic request schemas for the public API.

These exist only for HTTP input validation; the envelope is re-checked by
admission and the operation bytes by the instruction decoder.
"""

from pydantic import BaseModel, Field


class TxSubmitRequest(BaseModel):
    signer: str = Field(..., min_length=64, max_length=66, description="Hex Ed25519 public key of the caller")
    nonce: int = Field(..., ge=1, description="Next nonce for the signer")
    data: str = Field(..., min_length=2, description="Hex-encoded operation bytes")
    sig: str = Field(default="", description="Hex Ed25519 signature over the canonical envelope message")

    model_config = {"extra": "forbid"}
