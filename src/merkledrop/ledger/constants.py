# src/merkledrop/ledger/constants.py
from __future__ import annotations

"""Monetary, schedule and layout constants.

- Token precision: 9 decimals
- Initial supply: 1,000,000,000 tokens minted into the undistributed pool
- Inflation and distribution are prorated over a 365-day year
"""

import hashlib

# Monetary precision (1 token = 1e9 units)
DECIMALS: int = 9
UNIT: int = 10**DECIMALS

INITIAL_SUPPLY_TOKENS: int = 1_000_000_000
INITIAL_SUPPLY: int = INITIAL_SUPPLY_TOKENS * UNIT

# Schedule
SECONDS_PER_YEAR: int = 365 * 24 * 60 * 60  # 31,536,000
BPS_DENOMINATOR: int = 10_000
MAX_INFLATION_BPS: int = 10_000  # 100%

# 2^32 leaves at most
MAX_PROOF_DEPTH: int = 32

DIGEST_LEN: int = 32
ZERO_DIGEST: bytes = bytes(DIGEST_LEN)

# Leaf domain separator
LEAF_DOMAIN: bytes = b"MERKLEDROP_CLAIM_V1"

# Record type tags
LEDGER_STATE_DISCRIMINATOR: bytes = b"mdconfig"
CLAIM_RECORD_DISCRIMINATOR: bytes = b"mdclaim_"

# Address seeds
CONFIG_SEED: bytes = b"config"
MINT_SEED: bytes = b"mint"
VAULT_SEED: bytes = b"vault"
PENDING_CLAIMS_SEED: bytes = b"pending_claims"
CLAIM_RECORD_SEED: bytes = b"user_claim"

# Fixed identity of the token-ledger collaborator. Wallet token accounts are
# derived under it from (holder, TOKEN_PROGRAM_ID, mint).
TOKEN_PROGRAM_ID: bytes = hashlib.sha256(b"merkledrop:token-ledger").digest()
