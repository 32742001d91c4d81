# src/merkledrop/runtime/apply/claims.py
from __future__ import annotations

"""Redemption and burning.

Entitlements published in a commitment are cumulative totals to date. A claim
pays out only the difference between the proven total and what the recipient
has already claimed, then records the proven total as the new claimed figure.
Replaying any earlier proof therefore yields a delta <= 0 and is refused.
"""

import logging
from typing import Any, Dict

from merkledrop.crypto.merkle import check_proof_length, verify_entitlement
from merkledrop.ledger.address import wallet_token_address
from merkledrop.ledger.arith import checked_add, checked_sub
from merkledrop.ledger.constants import DECIMALS
from merkledrop.ledger.types import RecipientClaimRecord
from merkledrop.runtime.apply.common import ApplyContext, load_checked_ledger_state
from merkledrop.runtime.auth import require_self
from merkledrop.runtime.errors import (
    ALREADY_CLAIMED,
    INSUFFICIENT_BALANCE,
    INVALID_INSTRUCTION,
    INVALID_PROOF,
    NOT_INITIALIZED,
    NOTHING_TO_CLAIM,
    STALE_ENTITLEMENT,
    ApplyError,
)
from merkledrop.runtime.event_log import log_event
from merkledrop.runtime.instruction import Burn, Claim
from merkledrop.runtime.records import load_claim_record, store_claim_record, store_ledger_state

Json = Dict[str, Any]

log = logging.getLogger("merkledrop.claims")


def claim_delta(total_entitlement: int, cumulative_claimed: int) -> int:
    """Amount still owed against a proven cumulative total.

    Raises ApplyError(already_claimed) when nothing is owed, with reason
    stale_entitlement if the proven total is below what was already claimed.
    """
    if cumulative_claimed > total_entitlement:
        raise ApplyError(
            ALREADY_CLAIMED,
            STALE_ENTITLEMENT,
            {"total_entitlement": total_entitlement, "cumulative_claimed": cumulative_claimed},
        )
    delta = checked_sub(total_entitlement, cumulative_claimed)
    if delta == 0:
        raise ApplyError(ALREADY_CLAIMED, NOTHING_TO_CLAIM, {"cumulative_claimed": cumulative_claimed})
    return delta


def apply_claim(ctx: ApplyContext, ix: Claim) -> Json:
    total = int(ix.total_entitlement)
    if total == 0:
        raise ApplyError(INVALID_INSTRUCTION, "zero_entitlement", None)
    check_proof_length(ix.proof)

    cfg = load_checked_ledger_state(ctx)
    if not cfg.has_commitment:
        raise ApplyError(NOT_INITIALIZED, "no_commitment_published", None)

    recipient = ctx.caller
    if not verify_entitlement(ix.proof, cfg.commitment_root, recipient, total):
        raise ApplyError(INVALID_PROOF, "merkle_proof_mismatch", {"recipient": recipient.hex(), "proof_len": len(ix.proof)})

    record = load_claim_record(ctx.state, ctx.program_id, recipient) or RecipientClaimRecord()
    delta = claim_delta(total, record.cumulative_claimed)

    tokens = ctx.tokens()
    wallet = wallet_token_address(recipient, cfg.mint)
    existing = tokens.account(wallet)
    if existing is not None:
        require_self(recipient, existing.owner)
    tokens.ensure_account(wallet, mint=cfg.mint, owner=recipient)
    tokens.transfer_checked(
        cfg.pending_pool,
        cfg.mint,
        wallet,
        delta,
        authority=ctx.config_address,
        decimals=DECIMALS,
    )

    record.cumulative_claimed = total
    store_claim_record(ctx.state, ctx.program_id, recipient, record)

    log_event(log, "claim_paid", level=logging.DEBUG, recipient=recipient.hex(), delta=delta, cumulative_claimed=total)
    return {"applied": "Claim", "transferred": delta, "cumulative_claimed": total, "wallet": wallet.hex()}


def apply_burn(ctx: ApplyContext, ix: Burn) -> Json:
    amount = int(ix.amount)
    if amount == 0:
        raise ApplyError(INVALID_INSTRUCTION, "zero_burn", None)

    cfg = load_checked_ledger_state(ctx)
    holder = ctx.caller

    tokens = ctx.tokens()
    wallet = wallet_token_address(holder, cfg.mint)
    acct = tokens.account(wallet)
    if acct is None:
        raise ApplyError(INSUFFICIENT_BALANCE, "no_token_account", {"holder": holder.hex()})
    require_self(holder, acct.owner)

    new_supply = checked_sub(cfg.total_supply, amount)
    record = load_claim_record(ctx.state, ctx.program_id, holder)
    if record is not None:
        record.cumulative_burned = checked_add(record.cumulative_burned, amount)

    tokens.burn(wallet, cfg.mint, amount, authority=holder)

    cfg.total_supply = new_supply
    store_ledger_state(ctx.state, ctx.program_id, cfg)
    if record is not None:
        store_claim_record(ctx.state, ctx.program_id, holder, record)

    return {"applied": "Burn", "burned": amount, "total_supply": new_supply}


__all__ = ["claim_delta", "apply_claim", "apply_burn"]
