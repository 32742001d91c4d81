from __future__ import annotations

import pytest

from merkledrop.runtime.errors import (
    ALREADY_INITIALIZED,
    INSUFFICIENT_BALANCE,
    INVALID_MINT,
    INVALID_OWNER,
    ApplyError,
)
from merkledrop.runtime.token_ledger import TokenLedger

MINT = bytes([0xA0]) * 32
OTHER_MINT = bytes([0xA1]) * 32
AUTH = bytes([0xB0]) * 32
ALICE = bytes([0xC0]) * 32
BOB = bytes([0xC1]) * 32
A_ACCT = bytes([0xD0]) * 32
B_ACCT = bytes([0xD1]) * 32


def _ledger() -> tuple[dict, TokenLedger]:
    st: dict = {}
    t = TokenLedger(st)
    t.initialize_mint(MINT, authority=AUTH, decimals=9)
    t.create_account(A_ACCT, mint=MINT, owner=ALICE)
    t.create_account(B_ACCT, mint=MINT, owner=BOB)
    t.mint_to(MINT, A_ACCT, 1_000, authority=AUTH, decimals=9)
    return st, t


def test_mint_and_transfer_move_balances_and_supply() -> None:
    st, t = _ledger()
    assert t.supply(MINT) == 1_000
    t.transfer_checked(A_ACCT, MINT, B_ACCT, 400, authority=ALICE, decimals=9)
    assert (t.balance(A_ACCT), t.balance(B_ACCT)) == (600, 400)
    assert st["token"]["accounts"][B_ACCT.hex()]["amount"] == 400


def test_mint_requires_authority_and_decimals() -> None:
    _, t = _ledger()
    with pytest.raises(ApplyError) as ei:
        t.mint_to(MINT, A_ACCT, 1, authority=ALICE, decimals=9)
    assert ei.value.code == INVALID_OWNER
    with pytest.raises(ApplyError) as ei:
        t.mint_to(MINT, A_ACCT, 1, authority=AUTH, decimals=6)
    assert ei.value.code == INVALID_MINT
    assert t.supply(MINT) == 1_000


def test_transfer_checks_owner_balance_and_mint() -> None:
    _, t = _ledger()
    with pytest.raises(ApplyError) as ei:
        t.transfer_checked(A_ACCT, MINT, B_ACCT, 1, authority=BOB, decimals=9)
    assert ei.value.code == INVALID_OWNER

    with pytest.raises(ApplyError) as ei:
        t.transfer_checked(A_ACCT, MINT, B_ACCT, 1_001, authority=ALICE, decimals=9)
    assert ei.value.code == INSUFFICIENT_BALANCE

    t.initialize_mint(OTHER_MINT, authority=AUTH, decimals=9)
    other = bytes([0xD2]) * 32
    t.create_account(other, mint=OTHER_MINT, owner=BOB)
    with pytest.raises(ApplyError) as ei:
        t.transfer_checked(A_ACCT, MINT, other, 1, authority=ALICE, decimals=9)
    assert ei.value.code == INVALID_MINT

    assert (t.balance(A_ACCT), t.balance(B_ACCT)) == (1_000, 0)


def test_burn_reduces_balance_and_supply() -> None:
    _, t = _ledger()
    t.burn(A_ACCT, MINT, 250, authority=ALICE)
    assert t.balance(A_ACCT) == 750
    assert t.supply(MINT) == 750
    with pytest.raises(ApplyError) as ei:
        t.burn(A_ACCT, MINT, 751, authority=ALICE)
    assert ei.value.code == INSUFFICIENT_BALANCE


def test_duplicate_setup_is_refused_and_ensure_is_idempotent() -> None:
    _, t = _ledger()
    with pytest.raises(ApplyError) as ei:
        t.initialize_mint(MINT, authority=AUTH, decimals=9)
    assert ei.value.code == ALREADY_INITIALIZED
    with pytest.raises(ApplyError) as ei:
        t.create_account(A_ACCT, mint=MINT, owner=ALICE)
    assert ei.value.code == ALREADY_INITIALIZED

    assert t.ensure_account(A_ACCT, mint=MINT, owner=ALICE).amount == 1_000
    with pytest.raises(ApplyError) as ei:
        t.ensure_account(A_ACCT, mint=MINT, owner=BOB)
    assert ei.value.code == INVALID_OWNER


def test_missing_accounts_read_as_zero() -> None:
    _, t = _ledger()
    assert t.account(bytes(32)) is None
    assert t.balance(bytes(32)) == 0
