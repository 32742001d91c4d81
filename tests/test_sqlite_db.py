from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

from merkledrop.runtime.sqlite_db import SqliteDB, SqliteLedgerStore


def _pragma(con: sqlite3.Connection, name: str) -> int | str:
    row = con.execute(f"PRAGMA {name};").fetchone()
    if row is None:
        raise AssertionError(f"missing pragma: {name}")
    return row[0]


def test_sqlite_operational_pragmas_are_applied(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MERKLEDROP_MODE", "prod")
    monkeypatch.delenv("MERKLEDROP_SQLITE_SYNCHRONOUS", raising=False)
    monkeypatch.setenv("MERKLEDROP_SQLITE_BUSY_TIMEOUT_MS", "1234")
    monkeypatch.setenv("MERKLEDROP_SQLITE_WAL_AUTOCHECKPOINT", "777")

    db = SqliteDB(path=str(tmp_path / "merkledrop.db"))
    db.init_schema()

    with db.connection() as con:
        assert str(_pragma(con, "journal_mode")).lower() == "wal"
        # FULL is the prod default.
        assert int(_pragma(con, "synchronous")) == 2
        assert int(_pragma(con, "foreign_keys")) == 1
        assert int(_pragma(con, "temp_store")) == 2
        assert int(_pragma(con, "busy_timeout")) == 1234
        assert int(_pragma(con, "wal_autocheckpoint")) == 777


def test_dev_mode_defaults_to_normal_sync(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MERKLEDROP_MODE", "dev")
    monkeypatch.delenv("MERKLEDROP_SQLITE_SYNCHRONOUS", raising=False)
    db = SqliteDB(path=str(tmp_path / "merkledrop.db"))
    with db.connection() as con:
        assert int(_pragma(con, "synchronous")) == 1


def test_exception_inside_write_tx_rolls_back(tmp_path: Path) -> None:
    store = SqliteLedgerStore(db=SqliteDB(path=str(tmp_path / "merkledrop.db")))
    store.write({"height": 1, "tip": "a", "records": {}})

    with pytest.raises(RuntimeError):
        with store.db.write_tx() as con:
            store.write_con(con, {"height": 2, "tip": "b", "records": {}})
            store.put_receipt_con(con, {"tx_id": "b", "signer": "x", "nonce": 1, "ok": True, "code": "ok"})
            raise RuntimeError("boom")

    assert store.read()["height"] == 1
    assert store.get_receipt("b") is None
    assert store.count_receipts() == 0


def test_receipts_round_trip_and_count(tmp_path: Path) -> None:
    store = SqliteLedgerStore(db=SqliteDB(path=str(tmp_path / "merkledrop.db")))
    assert store.exists() is False
    with store.db.write_tx() as con:
        store.put_receipt_con(con, {"tx_id": "t1", "signer": "s", "nonce": 1, "ok": True, "code": "ok"})
        store.put_receipt_con(con, {"tx_id": "t2", "signer": "s", "nonce": 2, "ok": False, "code": "overflow"})

    assert store.get_receipt("t2")["code"] == "overflow"
    assert store.count_receipts() == 2
    assert store.count_receipts(ok=True) == 1
    assert store.count_receipts(ok=False) == 1


def test_non_json_state_fails_the_write(tmp_path: Path) -> None:
    store = SqliteLedgerStore(db=SqliteDB(path=str(tmp_path / "merkledrop.db")))
    with pytest.raises(TypeError):
        store.write({"height": 0, "tip": "", "blob": b"\x00"})
    assert store.exists() is False


def test_schema_version_mismatch_refuses_to_start(tmp_path: Path) -> None:
    path = str(tmp_path / "merkledrop.db")
    db = SqliteDB(path=path)
    db.init_schema()
    with db.write_tx() as con:
        con.execute("UPDATE meta SET value='99' WHERE key='schema_version';")
    with pytest.raises(RuntimeError):
        SqliteDB(path=path).init_schema()
