# src/merkledrop/runtime/token_ledger.py
from __future__ import annotations

"""In-process fungible token ledger.

Stands in for the external token service the emission program instructs:
it moves balances when given an authority, and nothing else. All state lives
under state["token"] so it commits atomically with the program's records:

  state["token"] = {
    "mints":    {"<mint hex>": {"authority": "<hex>", "decimals": 9, "supply": int}},
    "accounts": {"<address hex>": {"mint": "<hex>", "owner": "<hex>", "amount": int}},
  }

Every method validates all preconditions before touching a balance.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from merkledrop.ledger.arith import checked_add, checked_sub
from merkledrop.runtime.errors import (
    ALREADY_INITIALIZED,
    INSUFFICIENT_BALANCE,
    INVALID_ACCOUNT_DATA,
    INVALID_MINT,
    INVALID_OWNER,
    ApplyError,
)
from merkledrop.runtime.state_invariants import ensure_state

Json = Dict[str, Any]


def _as_int(v: Any, default: int = 0) -> int:
    try:
        return int(v)
    except (TypeError, ValueError):
        return int(default)


@dataclass(frozen=True)
class TokenAccount:
    address: bytes
    mint: bytes
    owner: bytes
    amount: int


class TokenLedger:
    """Balance service bound to one host state dict."""

    def __init__(self, state: Json) -> None:
        root = ensure_state(state)["token"]
        root.setdefault("mints", {})
        root.setdefault("accounts", {})
        self._mints: Json = root["mints"]
        self._accounts: Json = root["accounts"]

    # ---- reads ----

    def account(self, address: bytes) -> Optional[TokenAccount]:
        rec = self._accounts.get(address.hex())
        if not isinstance(rec, dict):
            return None
        try:
            return TokenAccount(
                address=address,
                mint=bytes.fromhex(str(rec["mint"])),
                owner=bytes.fromhex(str(rec["owner"])),
                amount=_as_int(rec.get("amount"), 0),
            )
        except (KeyError, ValueError) as e:
            raise ApplyError(INVALID_ACCOUNT_DATA, "token_account_malformed", {"address": address.hex()}) from e

    def balance(self, address: bytes) -> int:
        acct = self.account(address)
        return acct.amount if acct is not None else 0

    def supply(self, mint: bytes) -> int:
        m = self._mint(mint)
        return _as_int(m.get("supply"), 0)

    def decimals(self, mint: bytes) -> int:
        return _as_int(self._mint(mint).get("decimals"), 0)

    def mint_exists(self, mint: bytes) -> bool:
        return isinstance(self._mints.get(mint.hex()), dict)

    def _mint(self, mint: bytes) -> Json:
        m = self._mints.get(mint.hex())
        if not isinstance(m, dict):
            raise ApplyError(INVALID_MINT, "mint_not_found", {"mint": mint.hex()})
        return m

    def _require_account(self, address: bytes, *, mint: bytes) -> TokenAccount:
        acct = self.account(address)
        if acct is None:
            raise ApplyError(INVALID_OWNER, "token_account_not_found", {"address": address.hex()})
        if acct.mint != mint:
            raise ApplyError(INVALID_MINT, "token_account_mint_mismatch", {"address": address.hex(), "mint": acct.mint.hex()})
        return acct

    def _set_amount(self, address: bytes, amount: int) -> None:
        self._accounts[address.hex()]["amount"] = int(amount)

    # ---- setup ----

    def initialize_mint(self, mint: bytes, *, authority: bytes, decimals: int) -> None:
        if self.mint_exists(mint):
            raise ApplyError(ALREADY_INITIALIZED, "mint_exists", {"mint": mint.hex()})
        self._mints[mint.hex()] = {"authority": authority.hex(), "decimals": int(decimals), "supply": 0}

    def create_account(self, address: bytes, *, mint: bytes, owner: bytes) -> TokenAccount:
        self._mint(mint)
        if self.account(address) is not None:
            raise ApplyError(ALREADY_INITIALIZED, "token_account_exists", {"address": address.hex()})
        self._accounts[address.hex()] = {"mint": mint.hex(), "owner": owner.hex(), "amount": 0}
        return TokenAccount(address=address, mint=mint, owner=owner, amount=0)

    def ensure_account(self, address: bytes, *, mint: bytes, owner: bytes) -> TokenAccount:
        """Create-if-missing; an existing account must match mint and owner."""
        acct = self.account(address)
        if acct is None:
            return self.create_account(address, mint=mint, owner=owner)
        if acct.mint != mint:
            raise ApplyError(INVALID_MINT, "token_account_mint_mismatch", {"address": address.hex()})
        if acct.owner != owner:
            raise ApplyError(INVALID_OWNER, "token_account_owner_mismatch", {"address": address.hex()})
        return acct

    # ---- balance movements ----

    def mint_to(self, mint: bytes, dest: bytes, amount: int, *, authority: bytes, decimals: int) -> None:
        m = self._mint(mint)
        if str(m.get("authority") or "") != authority.hex():
            raise ApplyError(INVALID_OWNER, "mint_authority_mismatch", {"mint": mint.hex()})
        if _as_int(m.get("decimals"), -1) != int(decimals):
            raise ApplyError(INVALID_MINT, "decimals_mismatch", {"mint": mint.hex(), "decimals": decimals})
        acct = self._require_account(dest, mint=mint)

        new_supply = checked_add(_as_int(m.get("supply"), 0), amount)
        new_balance = checked_add(acct.amount, amount)

        m["supply"] = new_supply
        self._set_amount(dest, new_balance)

    def transfer_checked(
        self,
        source: bytes,
        mint: bytes,
        dest: bytes,
        amount: int,
        *,
        authority: bytes,
        decimals: int,
    ) -> None:
        if self.decimals(mint) != int(decimals):
            raise ApplyError(INVALID_MINT, "decimals_mismatch", {"mint": mint.hex(), "decimals": decimals})
        src = self._require_account(source, mint=mint)
        dst = self._require_account(dest, mint=mint)
        if src.owner != authority:
            raise ApplyError(INVALID_OWNER, "transfer_authority_mismatch", {"source": source.hex()})
        if src.amount < amount:
            raise ApplyError(
                INSUFFICIENT_BALANCE,
                "source_balance_too_low",
                {"source": source.hex(), "balance": src.amount, "amount": amount},
            )
        if source == dest:
            return

        new_src = checked_sub(src.amount, amount)
        new_dst = checked_add(dst.amount, amount)

        self._set_amount(source, new_src)
        self._set_amount(dest, new_dst)

    def burn(self, account: bytes, mint: bytes, amount: int, *, authority: bytes) -> None:
        m = self._mint(mint)
        acct = self._require_account(account, mint=mint)
        if acct.owner != authority:
            raise ApplyError(INVALID_OWNER, "burn_authority_mismatch", {"account": account.hex()})
        if acct.amount < amount:
            raise ApplyError(
                INSUFFICIENT_BALANCE,
                "burn_exceeds_balance",
                {"account": account.hex(), "balance": acct.amount, "amount": amount},
            )

        new_supply = checked_sub(_as_int(m.get("supply"), 0), amount)
        new_balance = checked_sub(acct.amount, amount)

        m["supply"] = new_supply
        self._set_amount(account, new_balance)


__all__ = ["TokenAccount", "TokenLedger"]
