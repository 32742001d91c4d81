from __future__ import annotations

from dataclasses import dataclass
from typing import Any

# Error taxonomy. Every rejected operation raises ApplyError with one of these codes.
UNAUTHORIZED = "unauthorized"
NOT_INITIALIZED = "not_initialized"
ALREADY_INITIALIZED = "already_initialized"
INVALID_DISCRIMINATOR = "invalid_discriminator"
INVALID_ACCOUNT_DATA = "invalid_account_data"
INVALID_INSTRUCTION = "invalid_instruction"
INVALID_PROOF = "invalid_proof"
PROOF_TOO_LONG = "proof_too_long"
ALREADY_CLAIMED = "already_claimed"
EXCEEDS_ALLOCATION = "exceeds_allocation"
INFLATION_NOT_READY = "inflation_not_ready"
INSUFFICIENT_BALANCE = "insufficient_balance"
OVERFLOW = "overflow"
INVALID_MINT = "invalid_mint"
INVALID_OWNER = "invalid_owner"
INVALID_ADDRESS_DERIVATION = "invalid_address_derivation"

# Reasons attached to ALREADY_CLAIMED.
NOTHING_TO_CLAIM = "nothing_to_claim"
STALE_ENTITLEMENT = "stale_entitlement"

ERROR_CODES = frozenset(
    {
        UNAUTHORIZED,
        NOT_INITIALIZED,
        ALREADY_INITIALIZED,
        INVALID_DISCRIMINATOR,
        INVALID_ACCOUNT_DATA,
        INVALID_INSTRUCTION,
        INVALID_PROOF,
        PROOF_TOO_LONG,
        ALREADY_CLAIMED,
        EXCEEDS_ALLOCATION,
        INFLATION_NOT_READY,
        INSUFFICIENT_BALANCE,
        OVERFLOW,
        INVALID_MINT,
        INVALID_OWNER,
        INVALID_ADDRESS_DERIVATION,
    }
)


@dataclass
class ApplyError(Exception):
    """Canonical error type for operation apply and dispatch failures."""

    code: str
    reason: str
    details: Any | None = None

    def __str__(self) -> str:  # pragma: no cover
        if self.details is None:
            return f"{self.code}:{self.reason}"
        return f"{self.code}:{self.reason}:{self.details}"

    def to_json(self) -> dict:
        return {"code": self.code, "reason": self.reason, "details": self.details}
