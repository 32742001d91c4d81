# src/merkledrop/runtime/apply/emission.py
from __future__ import annotations

"""Ledger lifecycle, emission schedules and role administration.

Initialize provisions the shared ledger state once. TriggerInflation mints
new supply into the undistributed pool; Distribute releases part of that pool
into the pending pool and publishes a new commitment root. Both schedules are
stateless beyond their watermark: every call is evaluated against the time
elapsed since the last successful one.
"""

import logging
from typing import Any, Dict

from merkledrop.ledger.address import mint_address, pending_claims_address, vault_address
from merkledrop.ledger.arith import checked_add
from merkledrop.ledger.constants import DECIMALS, INITIAL_SUPPLY, MAX_INFLATION_BPS, ZERO_DIGEST
from merkledrop.ledger.types import LedgerState
from merkledrop.runtime.apply.common import ApplyContext, load_checked_ledger_state
from merkledrop.runtime.auth import require_admin, require_rate_updater
from merkledrop.runtime.errors import (
    ALREADY_INITIALIZED,
    EXCEEDS_ALLOCATION,
    INVALID_INSTRUCTION,
    ApplyError,
)
from merkledrop.runtime.event_log import log_event
from merkledrop.runtime.instruction import (
    Distribute,
    Initialize,
    TriggerInflation,
    UpdateInflationRate,
    UpdateRateUpdater,
)
from merkledrop.runtime.rate_limit import distribution_available, elapsed_since, inflation_amount
from merkledrop.runtime.records import ledger_state_exists, store_ledger_state

Json = Dict[str, Any]

log = logging.getLogger("merkledrop.emission")


def _check_rate(bps: int) -> None:
    if int(bps) > MAX_INFLATION_BPS:
        raise ApplyError(INVALID_INSTRUCTION, "inflation_rate_above_max", {"bps": int(bps), "max": MAX_INFLATION_BPS})


def apply_initialize(ctx: ApplyContext, ix: Initialize) -> Json:
    _check_rate(ix.inflation_rate_bps)
    if ledger_state_exists(ctx.state, ctx.program_id):
        raise ApplyError(ALREADY_INITIALIZED, "ledger_state_exists", {"program_id": ctx.program_id.hex()})

    authority = ctx.config_address
    mint = mint_address(ctx.program_id)
    vault = vault_address(ctx.program_id)
    pending = pending_claims_address(ctx.program_id)

    tokens = ctx.tokens()
    tokens.initialize_mint(mint, authority=authority, decimals=DECIMALS)
    tokens.create_account(vault, mint=mint, owner=authority)
    tokens.create_account(pending, mint=mint, owner=authority)
    tokens.mint_to(mint, vault, INITIAL_SUPPLY, authority=authority, decimals=DECIMALS)

    cfg = LedgerState(
        mint=mint,
        undistributed_pool=vault,
        pending_pool=pending,
        commitment_root=ZERO_DIGEST,
        rate_updater=bytes(ix.rate_updater),
        total_supply=INITIAL_SUPPLY,
        last_inflation_time=ctx.now,
        last_distribution_time=ctx.now,
        administrator=ctx.caller,
        inflation_rate_bps=int(ix.inflation_rate_bps),
    )
    store_ledger_state(ctx.state, ctx.program_id, cfg)

    log_event(log, "ledger_initialized", administrator=ctx.caller.hex(), rate_updater=cfg.rate_updater.hex(), inflation_rate_bps=cfg.inflation_rate_bps)
    return {"applied": "Initialize", "total_supply": cfg.total_supply, "config": ctx.config_address.hex()}


def apply_trigger_inflation(ctx: ApplyContext, ix: TriggerInflation) -> Json:
    cfg = load_checked_ledger_state(ctx)
    require_admin(cfg, ctx.caller)

    amount = inflation_amount(
        now=ctx.now,
        last_inflation_time=cfg.last_inflation_time,
        total_supply=cfg.total_supply,
        rate_bps=cfg.inflation_rate_bps,
    )
    new_supply = checked_add(cfg.total_supply, amount)

    ctx.tokens().mint_to(cfg.mint, cfg.undistributed_pool, amount, authority=ctx.config_address, decimals=DECIMALS)

    cfg.total_supply = new_supply
    cfg.last_inflation_time = ctx.now
    store_ledger_state(ctx.state, ctx.program_id, cfg)

    log_event(log, "inflation_minted", level=logging.DEBUG, amount=amount, total_supply=new_supply)
    return {"applied": "TriggerInflation", "minted": amount, "total_supply": new_supply}


def apply_distribute(ctx: ApplyContext, ix: Distribute) -> Json:
    cfg = load_checked_ledger_state(ctx)
    require_rate_updater(cfg, ctx.caller)

    tokens = ctx.tokens()
    pool_balance = tokens.balance(cfg.undistributed_pool)
    ceiling = distribution_available(
        now=ctx.now,
        last_distribution_time=cfg.last_distribution_time,
        pool_balance=pool_balance,
    )
    log_event(
        log,
        "distribution_ceiling",
        level=logging.DEBUG,
        elapsed=elapsed_since(ctx.now, cfg.last_distribution_time),
        pool_balance=pool_balance,
        available=ceiling,
        requested=int(ix.amount),
    )
    if int(ix.amount) > ceiling:
        raise ApplyError(EXCEEDS_ALLOCATION, "amount_above_prorated_ceiling", {"requested": int(ix.amount), "available": ceiling})

    if ix.amount > 0:
        tokens.transfer_checked(
            cfg.undistributed_pool,
            cfg.mint,
            cfg.pending_pool,
            int(ix.amount),
            authority=ctx.config_address,
            decimals=DECIMALS,
        )

    cfg.commitment_root = bytes(ix.new_root)
    # Watermarks only move forward.
    cfg.last_distribution_time = max(cfg.last_distribution_time, ctx.now)
    store_ledger_state(ctx.state, ctx.program_id, cfg)

    return {"applied": "Distribute", "released": int(ix.amount), "commitment_root": cfg.commitment_root.hex()}


def apply_update_rate_updater(ctx: ApplyContext, ix: UpdateRateUpdater) -> Json:
    cfg = load_checked_ledger_state(ctx)
    require_admin(cfg, ctx.caller)

    previous = cfg.rate_updater
    cfg.rate_updater = bytes(ix.new_rate_updater)
    store_ledger_state(ctx.state, ctx.program_id, cfg)

    log_event(log, "rate_updater_rotated", previous=previous.hex(), current=cfg.rate_updater.hex())
    return {"applied": "UpdateRateUpdater", "rate_updater": cfg.rate_updater.hex()}


def apply_update_inflation_rate(ctx: ApplyContext, ix: UpdateInflationRate) -> Json:
    cfg = load_checked_ledger_state(ctx)
    require_admin(cfg, ctx.caller)
    _check_rate(ix.new_rate_bps)

    cfg.inflation_rate_bps = int(ix.new_rate_bps)
    store_ledger_state(ctx.state, ctx.program_id, cfg)

    log_event(log, "inflation_rate_updated", inflation_rate_bps=cfg.inflation_rate_bps)
    return {"applied": "UpdateInflationRate", "inflation_rate_bps": cfg.inflation_rate_bps}


__all__ = [
    "apply_initialize",
    "apply_trigger_inflation",
    "apply_distribute",
    "apply_update_rate_updater",
    "apply_update_inflation_rate",
]
