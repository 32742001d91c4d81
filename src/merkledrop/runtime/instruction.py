# src/merkledrop/runtime/instruction.py
from __future__ import annotations

"""Operation set and its byte codec.

Wire form: one variant tag byte followed by fixed-width little-endian fields.

  0 Initialize           rate_updater[32] inflation_rate_bps:u16
  1 TriggerInflation
  2 Distribute           amount:u64 new_root[32]
  3 Claim                total_entitlement:u64 count:u32 proof[count][32]
  4 Burn                 amount:u64
  5 UpdateRateUpdater    new_rate_updater[32]
  6 UpdateInflationRate  new_rate_bps:u16

Decoding is strict: unknown tag, short buffer or trailing bytes are rejected.
"""

import struct
from dataclasses import dataclass
from typing import Tuple, Union

from merkledrop.ledger.arith import check_uint
from merkledrop.runtime.errors import INVALID_INSTRUCTION, ApplyError


@dataclass(frozen=True)
class Initialize:
    rate_updater: bytes
    inflation_rate_bps: int


@dataclass(frozen=True)
class TriggerInflation:
    pass


@dataclass(frozen=True)
class Distribute:
    amount: int
    new_root: bytes


@dataclass(frozen=True)
class Claim:
    total_entitlement: int
    proof: Tuple[bytes, ...] = ()


@dataclass(frozen=True)
class Burn:
    amount: int


@dataclass(frozen=True)
class UpdateRateUpdater:
    new_rate_updater: bytes


@dataclass(frozen=True)
class UpdateInflationRate:
    new_rate_bps: int


Instruction = Union[
    Initialize,
    TriggerInflation,
    Distribute,
    Claim,
    Burn,
    UpdateRateUpdater,
    UpdateInflationRate,
]

TAG_INITIALIZE = 0
TAG_TRIGGER_INFLATION = 1
TAG_DISTRIBUTE = 2
TAG_CLAIM = 3
TAG_BURN = 4
TAG_UPDATE_RATE_UPDATER = 5
TAG_UPDATE_INFLATION_RATE = 6

_U16 = struct.Struct("<H")
_U32 = struct.Struct("<I")
_U64 = struct.Struct("<Q")


def _bytes32(v: bytes, *, field: str) -> bytes:
    b = bytes(v)
    if len(b) != 32:
        raise ApplyError(INVALID_INSTRUCTION, f"{field}_must_be_32_bytes", {"len": len(b)})
    return b


def _uint(v: int, bits: int, *, field: str) -> int:
    try:
        return check_uint(v, bits)
    except (TypeError, ApplyError) as e:
        raise ApplyError(INVALID_INSTRUCTION, f"{field}_out_of_range", {"value": repr(v), "bits": bits}) from e


def encode_instruction(ix: Instruction) -> bytes:
    if isinstance(ix, Initialize):
        return (
            bytes([TAG_INITIALIZE])
            + _bytes32(ix.rate_updater, field="rate_updater")
            + _U16.pack(_uint(ix.inflation_rate_bps, 16, field="inflation_rate_bps"))
        )
    if isinstance(ix, TriggerInflation):
        return bytes([TAG_TRIGGER_INFLATION])
    if isinstance(ix, Distribute):
        return (
            bytes([TAG_DISTRIBUTE])
            + _U64.pack(_uint(ix.amount, 64, field="amount"))
            + _bytes32(ix.new_root, field="new_root")
        )
    if isinstance(ix, Claim):
        out = bytearray([TAG_CLAIM])
        out += _U64.pack(_uint(ix.total_entitlement, 64, field="total_entitlement"))
        out += _U32.pack(len(ix.proof))
        for node in ix.proof:
            out += _bytes32(node, field="proof_node")
        return bytes(out)
    if isinstance(ix, Burn):
        return bytes([TAG_BURN]) + _U64.pack(_uint(ix.amount, 64, field="amount"))
    if isinstance(ix, UpdateRateUpdater):
        return bytes([TAG_UPDATE_RATE_UPDATER]) + _bytes32(ix.new_rate_updater, field="new_rate_updater")
    if isinstance(ix, UpdateInflationRate):
        return bytes([TAG_UPDATE_INFLATION_RATE]) + _U16.pack(_uint(ix.new_rate_bps, 16, field="new_rate_bps"))
    raise TypeError(f"not an instruction: {type(ix).__name__}")


class _Reader:
    def __init__(self, data: bytes) -> None:
        self._data = bytes(data)
        self._pos = 0

    def take(self, n: int) -> bytes:
        end = self._pos + n
        if end > len(self._data):
            raise ApplyError(
                INVALID_INSTRUCTION,
                "instruction_truncated",
                {"need": n, "offset": self._pos, "len": len(self._data)},
            )
        out = self._data[self._pos : end]
        self._pos = end
        return out

    def u16(self) -> int:
        return _U16.unpack(self.take(2))[0]

    def u32(self) -> int:
        return _U32.unpack(self.take(4))[0]

    def u64(self) -> int:
        return _U64.unpack(self.take(8))[0]

    def finish(self) -> None:
        if self._pos != len(self._data):
            raise ApplyError(
                INVALID_INSTRUCTION,
                "trailing_bytes",
                {"consumed": self._pos, "len": len(self._data)},
            )


def decode_instruction(data: bytes) -> Instruction:
    r = _Reader(data)
    tag = r.take(1)[0]

    ix: Instruction
    if tag == TAG_INITIALIZE:
        ix = Initialize(rate_updater=r.take(32), inflation_rate_bps=r.u16())
    elif tag == TAG_TRIGGER_INFLATION:
        ix = TriggerInflation()
    elif tag == TAG_DISTRIBUTE:
        ix = Distribute(amount=r.u64(), new_root=r.take(32))
    elif tag == TAG_CLAIM:
        total = r.u64()
        count = r.u32()
        ix = Claim(total_entitlement=total, proof=tuple(r.take(32) for _ in range(count)))
    elif tag == TAG_BURN:
        ix = Burn(amount=r.u64())
    elif tag == TAG_UPDATE_RATE_UPDATER:
        ix = UpdateRateUpdater(new_rate_updater=r.take(32))
    elif tag == TAG_UPDATE_INFLATION_RATE:
        ix = UpdateInflationRate(new_rate_bps=r.u16())
    else:
        raise ApplyError(INVALID_INSTRUCTION, "unknown_variant_tag", {"tag": tag})

    r.finish()
    return ix


def instruction_name(ix: Instruction) -> str:
    return type(ix).__name__


__all__ = [
    "Initialize",
    "TriggerInflation",
    "Distribute",
    "Claim",
    "Burn",
    "UpdateRateUpdater",
    "UpdateInflationRate",
    "Instruction",
    "encode_instruction",
    "decode_instruction",
    "instruction_name",
]
