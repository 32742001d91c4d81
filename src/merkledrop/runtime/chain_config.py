# src/merkledrop/runtime/chain_config.py
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from merkledrop.ledger.address import parse_address

Json = Dict[str, Any]


def _as_int(v: Any, default: int) -> int:
    if v is None:
        return int(default)
    try:
        return int(v)
    except (TypeError, ValueError):
        return int(default)


def _as_str(v: Any, default: str) -> str:
    if v is None:
        return str(default)
    s = str(v)
    return s if s.strip() else str(default)


def _as_bool(v: Any, default: bool) -> bool:
    if v is None:
        return bool(default)
    if isinstance(v, bool):
        return v
    s = str(v).strip().lower()
    if s in {"1", "true", "yes", "y", "on"}:
        return True
    if s in {"0", "false", "no", "n", "off"}:
        return False
    return bool(default)


@dataclass(frozen=True)
class ChainConfig:
    chain_id: str
    node_id: str
    mode: str  # "dev" | "testnet" | "prod"

    # Single SQLite DB file path for all node persistence.
    db_path: str

    # Hex identity the ledger records are owned by.
    program_id: str

    api_host: str
    api_port: int

    allow_unsigned_txs: bool

    log_level: str

    @property
    def unsigned_txs_permitted(self) -> bool:
        """Unsigned envelopes are only ever accepted outside prod."""
        return bool(self.allow_unsigned_txs) and self.mode.strip().lower() != "prod"


_ALLOWED_MODES = {"dev", "testnet", "prod"}


def validate_chain_config(cfg: ChainConfig) -> None:
    """Fail-fast validation for operator config."""

    if not isinstance(cfg.chain_id, str) or not cfg.chain_id.strip():
        raise ValueError("chain_id must be a non-empty string")

    if not isinstance(cfg.node_id, str) or not cfg.node_id.strip():
        raise ValueError("node_id must be a non-empty string")

    mode = str(cfg.mode or "").strip().lower()
    if mode not in _ALLOWED_MODES:
        raise ValueError(f"mode must be one of {_ALLOWED_MODES}; got: {cfg.mode!r}")

    if int(cfg.api_port) <= 0 or int(cfg.api_port) > 65535:
        raise ValueError(f"api_port must be 1..65535; got: {cfg.api_port}")

    if not isinstance(cfg.db_path, str) or not cfg.db_path.strip():
        raise ValueError("db_path must be a non-empty string")

    parse_address(cfg.program_id, field="program_id")

    if mode == "prod" and cfg.allow_unsigned_txs:
        raise ValueError("allow_unsigned_txs is not permitted in prod mode")


def default_chain_config() -> ChainConfig:
    return ChainConfig(
        chain_id="merkledrop-dev",
        node_id="local-node",
        # Production-safe default posture when no config file is given.
        mode="prod",
        db_path="./data/merkledrop.db",
        program_id=("11" * 32),
        api_host="0.0.0.0",
        api_port=8000,
        allow_unsigned_txs=False,
        log_level="INFO",
    )


def read_chain_config_file(path: str) -> ChainConfig:
    """Read a YAML (or JSON, which YAML parses) config file."""
    p = Path(path)
    raw = yaml.safe_load(p.read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        raise ValueError("chain config must be a mapping")

    d = default_chain_config()

    cfg = ChainConfig(
        chain_id=_as_str(raw.get("chain_id"), d.chain_id),
        node_id=_as_str(raw.get("node_id"), d.node_id),
        mode=_as_str(raw.get("mode"), d.mode).strip().lower(),
        db_path=_as_str(raw.get("db_path"), d.db_path),
        program_id=_as_str(raw.get("program_id"), d.program_id).strip().lower(),
        api_host=_as_str(raw.get("api_host"), d.api_host),
        api_port=_as_int(raw.get("api_port"), d.api_port),
        allow_unsigned_txs=_as_bool(raw.get("allow_unsigned_txs"), d.allow_unsigned_txs),
        log_level=_as_str(raw.get("log_level"), d.log_level),
    )

    validate_chain_config(cfg)
    return cfg


def load_chain_config(*, config_path: Optional[str] = None) -> ChainConfig:
    p = config_path or os.environ.get("MERKLEDROP_CHAIN_CONFIG_PATH")
    if p:
        return read_chain_config_file(p)

    cfg = default_chain_config()
    validate_chain_config(cfg)
    return cfg


def apply_chain_config_to_env(cfg: ChainConfig) -> None:
    validate_chain_config(cfg)
    os.environ["MERKLEDROP_CHAIN_ID"] = cfg.chain_id
    os.environ["MERKLEDROP_NODE_ID"] = cfg.node_id
    os.environ["MERKLEDROP_MODE"] = (cfg.mode or "prod").strip().lower()
    os.environ["MERKLEDROP_DB_PATH"] = cfg.db_path
    os.environ["MERKLEDROP_PROGRAM_ID"] = cfg.program_id
    os.environ["MERKLEDROP_LOG_LEVEL"] = cfg.log_level
    os.environ["MERKLEDROP_ALLOW_UNSIGNED_TXS"] = "1" if cfg.allow_unsigned_txs else "0"
