# src/merkledrop/runtime/records.py
from __future__ import annotations

"""Load/store of program-owned records in host state.

Records are keyed by derived address and carry an owner. Reads check, in order:
presence, owner, then type tag and size (via the record's from_bytes).
"""

from typing import Any, Dict, Optional

from merkledrop.ledger.address import claim_record_address, config_address
from merkledrop.ledger.types import LedgerState, RecipientClaimRecord
from merkledrop.runtime.errors import INVALID_ACCOUNT_DATA, INVALID_OWNER, NOT_INITIALIZED, ApplyError
from merkledrop.runtime.state_invariants import ensure_state

Json = Dict[str, Any]


def _records(state: Json) -> Json:
    return ensure_state(state)["records"]


def read_raw(state: Json, address: bytes) -> Optional[Json]:
    rec = _records(state).get(address.hex())
    return rec if isinstance(rec, dict) else None


def _owned_data(rec: Json, *, address: bytes, program_id: bytes) -> bytes:
    owner = str(rec.get("owner") or "")
    if owner != program_id.hex():
        raise ApplyError(INVALID_OWNER, "record_not_owned_by_program", {"address": address.hex(), "owner": owner})
    try:
        return bytes.fromhex(str(rec.get("data") or ""))
    except ValueError as e:
        raise ApplyError(INVALID_ACCOUNT_DATA, "record_data_not_hex", {"address": address.hex()}) from e


def write_raw(state: Json, address: bytes, *, owner: bytes, data: bytes) -> None:
    _records(state)[address.hex()] = {"owner": owner.hex(), "data": bytes(data).hex()}


def ledger_state_exists(state: Json, program_id: bytes) -> bool:
    return read_raw(state, config_address(program_id)) is not None


def load_ledger_state(state: Json, program_id: bytes) -> LedgerState:
    address = config_address(program_id)
    rec = read_raw(state, address)
    if rec is None:
        raise ApplyError(NOT_INITIALIZED, "ledger_state_missing", {"address": address.hex()})
    return LedgerState.from_bytes(_owned_data(rec, address=address, program_id=program_id))


def store_ledger_state(state: Json, program_id: bytes, cfg: LedgerState) -> None:
    write_raw(state, config_address(program_id), owner=program_id, data=cfg.to_bytes())


def load_claim_record(state: Json, program_id: bytes, recipient: bytes) -> Optional[RecipientClaimRecord]:
    """Return the recipient's record, or None if they have never redeemed."""
    address = claim_record_address(program_id, recipient)
    rec = read_raw(state, address)
    if rec is None:
        return None
    return RecipientClaimRecord.from_bytes(_owned_data(rec, address=address, program_id=program_id))


def store_claim_record(state: Json, program_id: bytes, recipient: bytes, record: RecipientClaimRecord) -> None:
    write_raw(state, claim_record_address(program_id, recipient), owner=program_id, data=record.to_bytes())


__all__ = [
    "read_raw",
    "write_raw",
    "ledger_state_exists",
    "load_ledger_state",
    "store_ledger_state",
    "load_claim_record",
    "store_claim_record",
]
