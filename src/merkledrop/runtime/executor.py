from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from merkledrop.ledger.address import parse_address, wallet_token_address
from merkledrop.ledger.types import LedgerState, RecipientClaimRecord
from merkledrop.runtime import metrics
from merkledrop.runtime.domain_dispatch import apply_tx
from merkledrop.runtime.errors import ERROR_CODES, ApplyError
from merkledrop.runtime.event_log import log_event
from merkledrop.runtime.records import ledger_state_exists, load_claim_record, load_ledger_state
from merkledrop.runtime.sqlite_db import SqliteDB, SqliteLedgerStore
from merkledrop.runtime.state_invariants import ensure_state, program_id_of
from merkledrop.runtime.token_ledger import TokenLedger
from merkledrop.runtime.tx_admission import admit_tx
from merkledrop.runtime.tx_admission_types import TxEnvelope
from merkledrop.runtime.tx_id import compute_tx_id_from_dict

Json = Dict[str, Any]
Clock = Callable[[], int]

log = logging.getLogger("merkledrop.executor")


def _now_ms() -> int:
    return int(time.time() * 1000)


def _unix_now() -> int:
    return int(time.time())


def _ensure_parent(path: str) -> None:
    Path(path).parent.mkdir(parents=True, exist_ok=True)


class ExecutorError(RuntimeError):
    pass


def _receipt(
    *,
    tx_id: str,
    env: Optional[TxEnvelope],
    ok: bool,
    code: str,
    reason: str,
    details: Any = None,
    result: Optional[Json] = None,
    height: int = 0,
) -> Json:
    return {
        "tx_id": tx_id,
        "signer": env.signer if env is not None else "",
        "nonce": int(env.nonce) if env is not None else 0,
        "ok": bool(ok),
        "code": str(code),
        "reason": str(reason),
        "details": details,
        "result": result,
        "height": int(height),
    }


class LedgerExecutor:
    """Single-writer ledger node: admission, atomic apply, snapshot + receipts in SQLite.

    Each submitted envelope is admitted, applied and persisted inside one
    BEGIN IMMEDIATE transaction against the freshest snapshot, so concurrent
    executors on the same DB file serialize on the SQLite writer lock.
    """

    def __init__(
        self,
        *,
        db_path: str,
        node_id: str,
        chain_id: str,
        program_id: str,
        allow_unsigned_txs: bool = False,
        clock: Optional[Clock] = None,
    ) -> None:
        self.node_id = str(node_id)
        self.chain_id = str(chain_id)
        self.program_id = parse_address(program_id, field="program_id")
        self.allow_unsigned_txs = bool(allow_unsigned_txs)
        self._clock: Clock = clock or _unix_now

        self.db_path = str(db_path)
        _ensure_parent(self.db_path)

        self._db = SqliteDB(path=self.db_path)
        self._store = SqliteLedgerStore(db=self._db)

        if self._store.exists():
            self.state = self._store.read()
        else:
            self.state = self._initial_state()
            self._store.write(self.state)

        st_chain_id = str(self.state.get("chain_id") or "").strip()
        if st_chain_id and st_chain_id != self.chain_id:
            raise ExecutorError(f"chain_id mismatch: db={st_chain_id!r} executor={self.chain_id!r}. Refuse to start.")

        st_program = program_id_of(self.state)
        if st_program != self.program_id:
            raise ExecutorError(
                f"program_id mismatch: db={st_program.hex()!r} executor={self.program_id.hex()!r}. Refuse to start."
            )

    def _initial_state(self) -> Json:
        st: Json = {
            "chain_id": self.chain_id,
            "params": {"program_id": self.program_id.hex()},
            "created_ms": _now_ms(),
        }
        return ensure_state(st)

    # ----------------------------
    # Tx submission
    # ----------------------------

    def submit_tx(self, env: Json, *, now: Optional[int] = None) -> Json:
        """Admit, apply and persist one envelope; return its receipt.

        Admission rejections are returned but not stored. Operation
        rejections are stored as a failed receipt; state and nonce are unchanged.
        """
        if not isinstance(env, dict):
            return _receipt(tx_id="", env=None, ok=False, code="bad_env", reason="not_object")

        tx_id = compute_tx_id_from_dict(self.chain_id, env)
        ts = int(self._clock() if now is None else now)

        with self._db.write_tx() as con:
            st = self._store.read_con(con)

            verdict = admit_tx(env, st, chain_id=self.chain_id, allow_unsigned=self.allow_unsigned_txs)
            if not verdict.ok:
                metrics.inc_counter("tx_admission_rejected_total")
                log_event(log, "tx_rejected", tx_id=tx_id, stage="admission", code=verdict.code, reason=verdict.reason)
                self.state = st
                return _receipt(
                    tx_id=tx_id,
                    env=None,
                    ok=False,
                    code=verdict.code,
                    reason=verdict.reason,
                    details=verdict.details,
                    height=int(st.get("height", 0)),
                )

            tx = TxEnvelope.from_json(env)
            try:
                result = apply_tx(st, tx, now=ts)
            except ApplyError as e:
                receipt = _receipt(
                    tx_id=tx_id,
                    env=tx,
                    ok=False,
                    code=e.code,
                    reason=e.reason,
                    details=e.details,
                    height=int(st.get("height", 0)),
                )
                self._store.put_receipt_con(con, receipt)
                metrics.inc_counter("tx_rejected_total")
                if e.code in ERROR_CODES:
                    metrics.inc_counter(f"tx_rejected_{e.code}_total")
                log_event(log, "tx_rejected", tx_id=tx_id, stage="apply", code=e.code, reason=e.reason)
                self.state = st
                return receipt

            st["nonces"][tx.signer] = int(tx.nonce)
            st["height"] = int(st.get("height", 0)) + 1
            st["tip"] = tx_id

            receipt = _receipt(
                tx_id=tx_id,
                env=tx,
                ok=True,
                code="ok",
                reason="applied",
                result=result,
                height=int(st["height"]),
            )
            self._store.write_con(con, st)
            self._store.put_receipt_con(con, receipt)

        self.state = st
        metrics.inc_counter("tx_applied_total")
        metrics.set_gauge("height", int(st["height"]))
        log_event(log, "tx_applied", tx_id=tx_id, signer=tx.signer, nonce=int(tx.nonce), applied=result.get("applied"))
        return receipt

    # ----------------------------
    # Read accessors
    # ----------------------------

    def read_state(self) -> Json:
        self.state = self._store.read()
        return self.state

    def get_receipt(self, tx_id: str) -> Optional[Json]:
        return self._store.get_receipt(tx_id)

    def next_nonce(self, signer: str) -> int:
        nonces = self.read_state().get("nonces") or {}
        return int(nonces.get(str(signer).strip().lower(), 0)) + 1

    def get_ledger_state(self) -> Optional[LedgerState]:
        st = self.read_state()
        if not ledger_state_exists(st, self.program_id):
            return None
        return load_ledger_state(st, self.program_id)

    def get_claim_record(self, recipient: bytes) -> Optional[RecipientClaimRecord]:
        return load_claim_record(self.read_state(), self.program_id, recipient)

    def token_balance(self, address: bytes) -> int:
        return TokenLedger(self.read_state()).balance(address)

    def wallet_balance(self, holder: bytes) -> int:
        cfg = self.get_ledger_state()
        if cfg is None:
            return 0
        return self.token_balance(wallet_token_address(holder, cfg.mint))

    def supply_is_conserved(self) -> bool:
        """Sum of all balances of the mint == mint supply == ledger total_supply."""
        st = self.read_state()
        if not ledger_state_exists(st, self.program_id):
            return True
        cfg = load_ledger_state(st, self.program_id)
        tokens = TokenLedger(st)
        held = 0
        for addr_hex, rec in (st["token"].get("accounts") or {}).items():
            if str(rec.get("mint") or "") == cfg.mint.hex():
                held += tokens.balance(bytes.fromhex(addr_hex))
        return held == tokens.supply(cfg.mint) == cfg.total_supply
