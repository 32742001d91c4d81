# src/merkledrop/runtime/domain_dispatch.py

from __future__ import annotations

import copy
from typing import Any, Callable, Dict

from merkledrop.ledger.address import parse_address
from merkledrop.runtime.apply.claims import apply_burn, apply_claim
from merkledrop.runtime.apply.common import ApplyContext
from merkledrop.runtime.apply.emission import (
    apply_distribute,
    apply_initialize,
    apply_trigger_inflation,
    apply_update_inflation_rate,
    apply_update_rate_updater,
)
from merkledrop.runtime.errors import INVALID_INSTRUCTION, UNAUTHORIZED, ApplyError
from merkledrop.runtime.instruction import (
    Burn,
    Claim,
    Distribute,
    Initialize,
    Instruction,
    TriggerInflation,
    UpdateInflationRate,
    UpdateRateUpdater,
    decode_instruction,
    instruction_name,
)
from merkledrop.runtime.state_invariants import ensure_state, program_id_of
from merkledrop.runtime.tx_admission_types import TxEnvelope

Json = Dict[str, Any]
ApplyFn = Callable[[ApplyContext, Any], Json]

# Closed operation set: every variant has exactly one handler.
_HANDLERS: Dict[type, ApplyFn] = {
    Initialize: apply_initialize,
    TriggerInflation: apply_trigger_inflation,
    Distribute: apply_distribute,
    Claim: apply_claim,
    Burn: apply_burn,
    UpdateRateUpdater: apply_update_rate_updater,
    UpdateInflationRate: apply_update_inflation_rate,
}


def _decode_data(env: TxEnvelope) -> Instruction:
    try:
        raw = bytes.fromhex(env.data)
    except ValueError as e:
        raise ApplyError(INVALID_INSTRUCTION, "data_not_hex", None) from e
    return decode_instruction(raw)


def _caller(env: TxEnvelope) -> bytes:
    try:
        return parse_address(env.signer, field="signer")
    except ValueError as e:
        raise ApplyError(UNAUTHORIZED, "signer_not_an_identity", {"signer": env.signer}) from e


def apply_instruction(state: Json, ix: Instruction, *, caller: bytes, now: int) -> Json:
    """Run one decoded operation against `state` in place.

    Callers wanting all-or-nothing semantics should use apply_tx().
    """
    ensure_state(state)
    handler = _HANDLERS.get(type(ix))
    if handler is None:
        raise ApplyError(INVALID_INSTRUCTION, "unsupported_instruction", {"type": instruction_name(ix)})
    ctx = ApplyContext(state=state, program_id=program_id_of(state), caller=bytes(caller), now=int(now))
    return handler(ctx, ix)


def apply_tx(state: Json, env: Any, *, now: int) -> Json:
    """Apply an envelope atomically.

    The operation runs against a deep copy; `state` is replaced with the copy
    only if the operation succeeds, so a rejected operation leaves it untouched.
    """
    ensure_state(state)

    env_norm = env if isinstance(env, TxEnvelope) else TxEnvelope.from_json(env)
    ix = _decode_data(env_norm)
    caller = _caller(env_norm)

    work = copy.deepcopy(state)
    out = apply_instruction(work, ix, caller=caller, now=now)

    state.clear()
    state.update(work)
    return out


__all__ = ["apply_instruction", "apply_tx"]
