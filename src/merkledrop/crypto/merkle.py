# src/merkledrop/crypto/merkle.py
from __future__ import annotations

"""Commitment verification for cumulative claim entitlements.

Leaf:
  keccak256(LEAF_DOMAIN || recipient(32) || amount as little-endian u64)

Interior node:
  keccak256(min(a, b) || max(a, b))   (unsigned byte-wise ordering)

Sorting each pair makes verification independent of left/right position, so
a proof is just the list of sibling digests from leaf to root. Verification is
pure: no caching, no state.
"""

import struct
from typing import Sequence

from eth_hash.auto import keccak

from merkledrop.ledger.arith import check_uint
from merkledrop.ledger.constants import DIGEST_LEN, LEAF_DOMAIN, MAX_PROOF_DEPTH
from merkledrop.runtime.errors import PROOF_TOO_LONG, ApplyError


def keccak256(data: bytes) -> bytes:
    return keccak(bytes(data))


def compute_leaf(recipient: bytes, amount: int) -> bytes:
    if len(recipient) != 32:
        raise ValueError("recipient identity must be 32 bytes")
    check_uint(int(amount), 64)
    return keccak256(LEAF_DOMAIN + bytes(recipient) + struct.pack("<Q", int(amount)))


def hash_pair(a: bytes, b: bytes) -> bytes:
    if a <= b:
        return keccak256(a + b)
    return keccak256(b + a)


def check_proof_length(proof: Sequence[bytes]) -> None:
    if len(proof) > MAX_PROOF_DEPTH:
        raise ApplyError(PROOF_TOO_LONG, "proof_exceeds_max_depth", {"len": len(proof), "max": MAX_PROOF_DEPTH})


def verify_proof(proof: Sequence[bytes], root: bytes, leaf: bytes) -> bool:
    """Fold `proof` onto `leaf` and compare with `root`.

    Raises ApplyError(proof_too_long) before hashing anything when the proof
    is longer than MAX_PROOF_DEPTH. Malformed digests simply fail to verify.
    """
    check_proof_length(proof)
    if len(root) != DIGEST_LEN or len(leaf) != DIGEST_LEN:
        return False

    computed = bytes(leaf)
    for sibling in proof:
        if len(sibling) != DIGEST_LEN:
            return False
        computed = hash_pair(computed, bytes(sibling))
    return computed == bytes(root)


def verify_entitlement(proof: Sequence[bytes], root: bytes, recipient: bytes, amount: int) -> bool:
    return verify_proof(proof, root, compute_leaf(recipient, amount))


__all__ = [
    "keccak256",
    "compute_leaf",
    "hash_pair",
    "check_proof_length",
    "verify_proof",
    "verify_entitlement",
]
