from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from merkledrop.api.config import load_api_config
from merkledrop.api.errors import ApiError, api_error_handler
from merkledrop.api.routes_public import public_router
from merkledrop.api.structured_logging import RequestLogMiddleware, configure_structured_logging
from merkledrop.runtime.chain_config import apply_chain_config_to_env, load_chain_config
from merkledrop.runtime.executor_boot import build_executor as _build_executor


def build_executor():
    """Build a LedgerExecutor for API runtime.

    Tests monkeypatch `merkledrop.api.app.build_executor` to point the app at
    a temporary database.
    """
    return _build_executor()


def create_app(*, boot_runtime: bool = True) -> FastAPI:
    """Create the FastAPI application.

    boot_runtime:
      - True (default): load chain config into the environment + attach executor
      - False: keep lightweight for unit tests / import-time validation
    """
    if boot_runtime:
        apply_chain_config_to_env(load_chain_config())

    configure_structured_logging()
    cfg = load_api_config()

    # Disable docs in production.
    if cfg.mode == "prod":
        app = FastAPI(title="Merkledrop Ledger API", docs_url=None, redoc_url=None, openapi_url=None)
    else:
        app = FastAPI(title="Merkledrop Ledger API")

    app.state.cfg = cfg
    app.state.executor = build_executor() if boot_runtime else None

    app.add_exception_handler(ApiError, api_error_handler)

    # --- Middleware ---
    app.add_middleware(RequestLogMiddleware)
    if cfg.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=cfg.cors_origins,
            allow_credentials=cfg.cors_origins != ["*"],
            allow_methods=["GET", "POST", "OPTIONS"],
            allow_headers=["Authorization", "Content-Type"],
        )

    # --- Routers ---
    app.include_router(public_router)

    return app
