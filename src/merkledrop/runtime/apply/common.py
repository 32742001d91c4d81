# src/merkledrop/runtime/apply/common.py
from __future__ import annotations

"""Shared context and reference checks for the operation handlers."""

from dataclasses import dataclass
from typing import Any, Dict

from merkledrop.ledger.address import config_address, mint_address, pending_claims_address, vault_address
from merkledrop.ledger.constants import DECIMALS
from merkledrop.ledger.types import LedgerState
from merkledrop.runtime.errors import INVALID_ADDRESS_DERIVATION, INVALID_MINT, INVALID_OWNER, ApplyError
from merkledrop.runtime.records import load_ledger_state
from merkledrop.runtime.token_ledger import TokenLedger

Json = Dict[str, Any]


@dataclass
class ApplyContext:
    """Everything one operation may touch: the host state, who is calling, and when."""

    state: Json
    program_id: bytes
    caller: bytes
    now: int

    @property
    def config_address(self) -> bytes:
        return config_address(self.program_id)

    def tokens(self) -> TokenLedger:
        return TokenLedger(self.state)


def _check_derived(field: str, stored: bytes, expected: bytes) -> None:
    if stored != expected:
        raise ApplyError(
            INVALID_ADDRESS_DERIVATION,
            f"{field}_address_mismatch",
            {"stored": stored.hex(), "expected": expected.hex()},
        )


def _check_pool(tokens: TokenLedger, address: bytes, *, field: str, mint: bytes, owner: bytes) -> None:
    acct = tokens.account(address)
    if acct is None:
        raise ApplyError(INVALID_OWNER, f"{field}_account_missing", {"address": address.hex()})
    if acct.mint != mint:
        raise ApplyError(INVALID_MINT, f"{field}_mint_mismatch", {"address": address.hex(), "mint": acct.mint.hex()})
    if acct.owner != owner:
        raise ApplyError(INVALID_OWNER, f"{field}_owner_mismatch", {"address": address.hex(), "owner": acct.owner.hex()})


def load_checked_ledger_state(ctx: ApplyContext) -> LedgerState:
    """Load the ledger state and re-verify every reference it stores."""
    cfg = load_ledger_state(ctx.state, ctx.program_id)

    _check_derived("mint", cfg.mint, mint_address(ctx.program_id))
    _check_derived("undistributed_pool", cfg.undistributed_pool, vault_address(ctx.program_id))
    _check_derived("pending_pool", cfg.pending_pool, pending_claims_address(ctx.program_id))

    tokens = ctx.tokens()
    if not tokens.mint_exists(cfg.mint):
        raise ApplyError(INVALID_MINT, "mint_not_found", {"mint": cfg.mint.hex()})
    if tokens.decimals(cfg.mint) != DECIMALS:
        raise ApplyError(INVALID_MINT, "mint_decimals_mismatch", {"mint": cfg.mint.hex()})

    owner = ctx.config_address
    _check_pool(tokens, cfg.undistributed_pool, field="undistributed_pool", mint=cfg.mint, owner=owner)
    _check_pool(tokens, cfg.pending_pool, field="pending_pool", mint=cfg.mint, owner=owner)
    return cfg


__all__ = ["ApplyContext", "load_checked_ledger_state"]
