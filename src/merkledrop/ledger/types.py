"""merkledrop.ledger.types

Persisted record types and their fixed binary layout.

This module defines:
  - LedgerState: the single shared configuration record
  - RecipientClaimRecord: one cumulative-claim record per recipient

Both are serialized as an 8-byte type tag followed by fixed-width
little-endian fields. The layout is a compatibility surface; do not reorder.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Any, Dict

from merkledrop.ledger.arith import check_i64, check_uint
from merkledrop.ledger.constants import (
    CLAIM_RECORD_DISCRIMINATOR,
    LEDGER_STATE_DISCRIMINATOR,
    MAX_INFLATION_BPS,
    ZERO_DIGEST,
)
from merkledrop.runtime.errors import INVALID_ACCOUNT_DATA, INVALID_DISCRIMINATOR, ApplyError

Json = Dict[str, Any]

# tag, mint, undistributed_pool, pending_pool, commitment_root, rate_updater,
# total_supply, last_inflation_time, last_distribution_time, administrator,
# inflation_rate_bps
_LEDGER_STATE_FMT = struct.Struct("<8s32s32s32s32s32sQqq32sH")
# tag, cumulative_claimed, cumulative_burned
_CLAIM_RECORD_FMT = struct.Struct("<8sQQ")

LEDGER_STATE_LEN: int = _LEDGER_STATE_FMT.size  # 226
CLAIM_RECORD_LEN: int = _CLAIM_RECORD_FMT.size  # 24


def _check_bytes32(v: bytes, *, field: str) -> bytes:
    b = bytes(v)
    if len(b) != 32:
        raise ValueError(f"{field} must be 32 bytes (got {len(b)})")
    return b


def _check_tag(data: bytes, expected: bytes, *, record: str) -> None:
    if bytes(data[:8]) != expected:
        raise ApplyError(
            INVALID_DISCRIMINATOR,
            f"{record}_discriminator_mismatch",
            {"expected": expected.hex(), "got": bytes(data[:8]).hex()},
        )


@dataclass
class LedgerState:
    """Shared configuration record: supply, pools, commitment root, roles, watermarks."""

    mint: bytes
    undistributed_pool: bytes
    pending_pool: bytes
    commitment_root: bytes
    rate_updater: bytes
    total_supply: int
    last_inflation_time: int
    last_distribution_time: int
    administrator: bytes
    inflation_rate_bps: int

    @property
    def has_commitment(self) -> bool:
        return self.commitment_root != ZERO_DIGEST

    def validate(self) -> None:
        for name in ("mint", "undistributed_pool", "pending_pool", "commitment_root", "rate_updater", "administrator"):
            _check_bytes32(getattr(self, name), field=name)
        check_uint(self.total_supply, 64)
        check_i64(self.last_inflation_time)
        check_i64(self.last_distribution_time)
        check_uint(self.inflation_rate_bps, 16)
        if self.inflation_rate_bps > MAX_INFLATION_BPS:
            raise ValueError(f"inflation_rate_bps must be <= {MAX_INFLATION_BPS}")

    def to_bytes(self) -> bytes:
        self.validate()
        return _LEDGER_STATE_FMT.pack(
            LEDGER_STATE_DISCRIMINATOR,
            self.mint,
            self.undistributed_pool,
            self.pending_pool,
            self.commitment_root,
            self.rate_updater,
            self.total_supply,
            self.last_inflation_time,
            self.last_distribution_time,
            self.administrator,
            self.inflation_rate_bps,
        )

    @classmethod
    def from_bytes(cls, data: bytes) -> "LedgerState":
        if len(data) < 8:
            raise ApplyError(INVALID_ACCOUNT_DATA, "ledger_state_too_short", {"len": len(data)})
        _check_tag(data, LEDGER_STATE_DISCRIMINATOR, record="ledger_state")
        if len(data) != LEDGER_STATE_LEN:
            raise ApplyError(INVALID_ACCOUNT_DATA, "ledger_state_bad_length", {"len": len(data), "want": LEDGER_STATE_LEN})
        (
            _tag,
            mint,
            undistributed_pool,
            pending_pool,
            commitment_root,
            rate_updater,
            total_supply,
            last_inflation_time,
            last_distribution_time,
            administrator,
            inflation_rate_bps,
        ) = _LEDGER_STATE_FMT.unpack(bytes(data))
        return cls(
            mint=mint,
            undistributed_pool=undistributed_pool,
            pending_pool=pending_pool,
            commitment_root=commitment_root,
            rate_updater=rate_updater,
            total_supply=total_supply,
            last_inflation_time=last_inflation_time,
            last_distribution_time=last_distribution_time,
            administrator=administrator,
            inflation_rate_bps=inflation_rate_bps,
        )

    def to_json(self) -> Json:
        return {
            "mint": self.mint.hex(),
            "undistributed_pool": self.undistributed_pool.hex(),
            "pending_pool": self.pending_pool.hex(),
            "commitment_root": self.commitment_root.hex(),
            "rate_updater": self.rate_updater.hex(),
            "total_supply": int(self.total_supply),
            "last_inflation_time": int(self.last_inflation_time),
            "last_distribution_time": int(self.last_distribution_time),
            "administrator": self.administrator.hex(),
            "inflation_rate_bps": int(self.inflation_rate_bps),
        }


@dataclass
class RecipientClaimRecord:
    """Per-recipient cumulative claim status. Created on first redemption, never deleted."""

    cumulative_claimed: int = 0
    cumulative_burned: int = 0

    def to_bytes(self) -> bytes:
        check_uint(self.cumulative_claimed, 64)
        check_uint(self.cumulative_burned, 64)
        return _CLAIM_RECORD_FMT.pack(CLAIM_RECORD_DISCRIMINATOR, self.cumulative_claimed, self.cumulative_burned)

    @classmethod
    def from_bytes(cls, data: bytes) -> "RecipientClaimRecord":
        if len(data) < 8:
            raise ApplyError(INVALID_ACCOUNT_DATA, "claim_record_too_short", {"len": len(data)})
        _check_tag(data, CLAIM_RECORD_DISCRIMINATOR, record="claim_record")
        if len(data) != CLAIM_RECORD_LEN:
            raise ApplyError(INVALID_ACCOUNT_DATA, "claim_record_bad_length", {"len": len(data), "want": CLAIM_RECORD_LEN})
        _tag, claimed, burned = _CLAIM_RECORD_FMT.unpack(bytes(data))
        return cls(cumulative_claimed=claimed, cumulative_burned=burned)

    def to_json(self) -> Json:
        return {"cumulative_claimed": int(self.cumulative_claimed), "cumulative_burned": int(self.cumulative_burned)}


__all__ = ["LEDGER_STATE_LEN", "CLAIM_RECORD_LEN", "LedgerState", "RecipientClaimRecord"]
