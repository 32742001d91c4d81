from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List


@dataclass(frozen=True)
class ApiConfig:
    mode: str  # "dev" | "testnet" | "prod"
    cors_origins: List[str]


def parse_cors_origins(raw: str, *, mode: str) -> List[str]:
    """Parse CORS origins with production-safe defaults.

    Policy:
      - empty -> CORS disabled
      - wildcard "*" is rejected in prod
    """
    origins = [o.strip() for o in (raw or "").split(",") if o.strip()]
    if "*" in origins:
        if mode == "prod":
            raise RuntimeError(
                "Unsafe CORS configuration: wildcard '*' not allowed in production. "
                "Set explicit origins in MERKLEDROP_CORS_ORIGINS."
            )
        return ["*"]
    return origins


def load_api_config() -> ApiConfig:
    mode = os.getenv("MERKLEDROP_MODE", "prod").strip().lower()
    return ApiConfig(mode=mode, cors_origins=parse_cors_origins(os.getenv("MERKLEDROP_CORS_ORIGINS", ""), mode=mode))
