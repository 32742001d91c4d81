# src/merkledrop/runtime/auth.py
from __future__ import annotations

"""Caller-role checks run before any record is read for mutation."""

from merkledrop.ledger.types import LedgerState
from merkledrop.runtime.errors import UNAUTHORIZED, ApplyError


def require_admin(cfg: LedgerState, caller: bytes) -> None:
    if caller != cfg.administrator:
        raise ApplyError(UNAUTHORIZED, "administrator_required", {"caller": caller.hex()})


def require_rate_updater(cfg: LedgerState, caller: bytes) -> None:
    if caller != cfg.rate_updater:
        raise ApplyError(UNAUTHORIZED, "rate_updater_required", {"caller": caller.hex()})


def require_self(caller: bytes, subject: bytes) -> None:
    """Recipient operations may only touch the caller's own records."""
    if caller != subject:
        raise ApplyError(UNAUTHORIZED, "caller_must_be_subject", {"caller": caller.hex(), "subject": subject.hex()})


__all__ = ["require_admin", "require_rate_updater", "require_self"]
