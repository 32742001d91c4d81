# src/merkledrop/ledger/address.py
from __future__ import annotations

import hashlib
from typing import Sequence

from merkledrop.ledger.constants import CLAIM_RECORD_SEED, CONFIG_SEED, MINT_SEED, PENDING_CLAIMS_SEED, TOKEN_PROGRAM_ID, VAULT_SEED
from merkledrop.runtime.errors import INVALID_ADDRESS_DERIVATION, ApplyError

MAX_SEEDS = 16
MAX_SEED_LEN = 32
ADDRESS_LEN = 32

_MARKER = b"MerkledropDerivedAddress"


def derive_address(seeds: Sequence[bytes], program_id: bytes) -> bytes:
    """Derive the canonical 32-byte storage key for a record.

    The encoding is the seed count followed by each seed prefixed with its
    length, so two different seed sequences never hash the same preimage.
    """
    if len(seeds) > MAX_SEEDS:
        raise ApplyError(INVALID_ADDRESS_DERIVATION, "too_many_seeds", {"count": len(seeds)})
    if len(program_id) != ADDRESS_LEN:
        raise ApplyError(INVALID_ADDRESS_DERIVATION, "bad_program_id_length", {"len": len(program_id)})

    h = hashlib.sha256()
    h.update(bytes([len(seeds)]))
    for i, seed in enumerate(seeds):
        s = bytes(seed)
        if len(s) > MAX_SEED_LEN:
            raise ApplyError(INVALID_ADDRESS_DERIVATION, "seed_too_long", {"index": i, "len": len(s)})
        h.update(bytes([len(s)]))
        h.update(s)
    h.update(bytes(program_id))
    h.update(_MARKER)
    return h.digest()


def config_address(program_id: bytes) -> bytes:
    return derive_address([CONFIG_SEED], program_id)


def mint_address(program_id: bytes) -> bytes:
    return derive_address([MINT_SEED], program_id)


def vault_address(program_id: bytes) -> bytes:
    return derive_address([VAULT_SEED], program_id)


def pending_claims_address(program_id: bytes) -> bytes:
    return derive_address([PENDING_CLAIMS_SEED], program_id)


def claim_record_address(program_id: bytes, recipient: bytes) -> bytes:
    return derive_address([CLAIM_RECORD_SEED, recipient], program_id)


def wallet_token_address(holder: bytes, mint: bytes) -> bytes:
    """Associated token account of `holder` for `mint`."""
    return derive_address([holder, TOKEN_PROGRAM_ID, mint], TOKEN_PROGRAM_ID)


def parse_address(v: object, *, field: str = "address") -> bytes:
    """Decode a 32-byte address from bytes or a hex string."""
    if isinstance(v, (bytes, bytearray)):
        b = bytes(v)
    else:
        s = str(v or "").strip().lower()
        if s.startswith("0x"):
            s = s[2:]
        try:
            b = bytes.fromhex(s)
        except ValueError as e:
            raise ValueError(f"{field} must be hex") from e
    if len(b) != ADDRESS_LEN:
        raise ValueError(f"{field} must be {ADDRESS_LEN} bytes (got {len(b)})")
    return b


__all__ = [
    "ADDRESS_LEN",
    "derive_address",
    "config_address",
    "mint_address",
    "vault_address",
    "pending_claims_address",
    "claim_record_address",
    "wallet_token_address",
    "parse_address",
]
