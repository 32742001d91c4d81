from __future__ import annotations

from fastapi import APIRouter, Request, Response

from merkledrop.runtime import metrics as node_metrics

router = APIRouter()


def _refresh_ledger_gauges(request: Request) -> None:
    """Sample supply and pool balances from the attached executor, if any."""
    ex = getattr(request.app.state, "executor", None)
    if ex is None:
        return
    cfg = ex.get_ledger_state()
    if cfg is None:
        node_metrics.set_gauge("ledger_initialized", 0)
        return
    node_metrics.set_gauge("ledger_initialized", 1)
    node_metrics.set_gauge("total_supply", cfg.total_supply)
    node_metrics.set_gauge("undistributed_pool_balance", ex.token_balance(cfg.undistributed_pool))
    node_metrics.set_gauge("pending_pool_balance", ex.token_balance(cfg.pending_pool))
    node_metrics.set_gauge("last_distribution_time", cfg.last_distribution_time)
    node_metrics.set_gauge("last_inflation_time", cfg.last_inflation_time)


@router.get("/metrics")
def metrics(request: Request) -> Response:
    """Prometheus text: node counters plus ledger gauges sampled at scrape time.

    Off unless MERKLEDROP_METRICS_ENABLED=1.
    """
    if not node_metrics.metrics_enabled():
        return Response(status_code=404, content="not_found\n", media_type="text/plain")
    _refresh_ledger_gauges(request)
    return Response(content=node_metrics.format_prometheus(), media_type="text/plain")
