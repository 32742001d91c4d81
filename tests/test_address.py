from __future__ import annotations

import pytest

from merkledrop.ledger.address import (
    claim_record_address,
    config_address,
    derive_address,
    mint_address,
    parse_address,
    pending_claims_address,
    vault_address,
    wallet_token_address,
)
from merkledrop.runtime.errors import INVALID_ADDRESS_DERIVATION, ApplyError

PROGRAM = bytes([7]) * 32


def test_derivation_is_deterministic_and_program_scoped() -> None:
    assert derive_address([b"config"], PROGRAM) == derive_address([b"config"], PROGRAM)
    assert derive_address([b"config"], PROGRAM) != derive_address([b"config"], bytes([8]) * 32)
    assert len(derive_address([b"config"], PROGRAM)) == 32


def test_seed_boundaries_are_part_of_the_encoding() -> None:
    assert derive_address([b"ab", b"c"], PROGRAM) != derive_address([b"a", b"bc"], PROGRAM)
    assert derive_address([b"abc"], PROGRAM) != derive_address([b"ab", b"c"], PROGRAM)
    assert derive_address([], PROGRAM) != derive_address([b""], PROGRAM)


def test_well_known_addresses_are_distinct() -> None:
    addrs = {
        config_address(PROGRAM),
        mint_address(PROGRAM),
        vault_address(PROGRAM),
        pending_claims_address(PROGRAM),
    }
    addrs |= {claim_record_address(PROGRAM, bytes([i]) * 32) for i in range(50)}
    assert len(addrs) == 54


def test_wallet_address_depends_on_holder_and_mint() -> None:
    a, b = bytes([1]) * 32, bytes([2]) * 32
    m1, m2 = mint_address(PROGRAM), mint_address(bytes([3]) * 32)
    assert wallet_token_address(a, m1) != wallet_token_address(b, m1)
    assert wallet_token_address(a, m1) != wallet_token_address(a, m2)


def test_derivation_limits() -> None:
    with pytest.raises(ApplyError) as ei:
        derive_address([b"x"] * 17, PROGRAM)
    assert ei.value.code == INVALID_ADDRESS_DERIVATION

    with pytest.raises(ApplyError):
        derive_address([b"x" * 33], PROGRAM)

    with pytest.raises(ApplyError):
        derive_address([b"x"], b"short")


def test_parse_address() -> None:
    raw = bytes(range(32))
    assert parse_address(raw.hex()) == raw
    assert parse_address("0x" + raw.hex().upper()) == raw
    with pytest.raises(ValueError):
        parse_address("zz")
    with pytest.raises(ValueError):
        parse_address("00" * 31)
