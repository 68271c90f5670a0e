from __future__ import annotations

from typing import Any, Dict, Optional

from core.filters import DashboardFilters
from core.metrics_channels import compute_channels
from core.metrics_detail import compute_detail
from core.metrics_overview import compute_overview
from core.settings import Settings


def compute_dashboard(
    filters: DashboardFilters,
    ctx: Dict[str, Any],
    *,
    settings: Optional[Settings] = None,
) -> Dict[str, Any]:
    """Everything the view renders for one filter state, recomputed from the filtered frames."""
    overview = compute_overview(filters, ctx)
    channels = compute_channels(filters, ctx, settings=settings)
    detail = compute_detail(filters, ctx)
    loaded_at = ctx.get("loaded_at")
    return {
        "filters": overview["filters"],
        "range": overview["range"],
        "loaded_at": loaded_at.isoformat(timespec="seconds") if loaded_at else None,
        "channels": {
            "canonical": list(ctx.get("canonical_channels", [])),
            "in_data": list(ctx.get("channels", [])),
            "default": list(ctx.get("default_channels", [])),
        },
        "totals": overview["totals"],
        "kpis": overview["kpis"],
        "daily": overview["daily"],
        "revenue_by_channel": channels["revenue_by_channel"],
        "orders_by_channel": channels["orders_by_channel"],
        "detail": detail["rows"],
        "charts": {**overview["charts"], **channels["charts"]},
    }
