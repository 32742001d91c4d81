# src/merkledrop/runtime/executor_boot.py

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from merkledrop.runtime.chain_config import ChainConfig
from merkledrop.runtime.executor import LedgerExecutor


@dataclass
class ExecutorBootConfig:
    db_path: str
    node_id: str
    chain_id: str
    program_id: str
    allow_unsigned_txs: bool = False

    @classmethod
    def from_chain_config(cls, cfg: ChainConfig) -> "ExecutorBootConfig":
        return cls(
            db_path=cfg.db_path,
            node_id=cfg.node_id,
            chain_id=cfg.chain_id,
            program_id=cfg.program_id,
            allow_unsigned_txs=cfg.unsigned_txs_permitted,
        )


def boot_config_from_env() -> ExecutorBootConfig:
    mode = (os.environ.get("MERKLEDROP_MODE") or "prod").strip().lower()
    allow_unsigned = (os.environ.get("MERKLEDROP_ALLOW_UNSIGNED_TXS") or "").strip() == "1"
    return ExecutorBootConfig(
        db_path=os.environ.get("MERKLEDROP_DB_PATH", "./data/merkledrop.db"),
        node_id=os.environ.get("MERKLEDROP_NODE_ID", "local-node"),
        chain_id=os.environ.get("MERKLEDROP_CHAIN_ID", "merkledrop-dev"),
        program_id=os.environ.get("MERKLEDROP_PROGRAM_ID", "11" * 32),
        allow_unsigned_txs=allow_unsigned and mode != "prod",
    )


def build_executor(cfg: Optional[ExecutorBootConfig] = None) -> LedgerExecutor:
    """
    Build a LedgerExecutor from an explicit boot config or, if omitted,
    from environment variables (see apply_chain_config_to_env).
    """
    c = cfg or boot_config_from_env()
    return LedgerExecutor(
        db_path=c.db_path,
        node_id=c.node_id,
        chain_id=c.chain_id,
        program_id=c.program_id,
        allow_unsigned_txs=c.allow_unsigned_txs,
    )
