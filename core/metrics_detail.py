from __future__ import annotations

from typing import Any, Dict

import pandas as pd

from core.aggregations import detail_rows
from core.filters import DashboardFilters
from core.formatting import format_brl, format_int_br
from core.metrics_overview import serialize_filters


def detail_frame(ctx: Dict[str, Any]) -> pd.DataFrame:
    """Filtered sales rows in table order, with the columns used for display and export."""
    rows = detail_rows(ctx.get("filtered_sales", pd.DataFrame()))
    if rows.empty:
        return pd.DataFrame(columns=["data", "canal", "pedidos", "faturamento"])
    return pd.DataFrame(
        {
            "data": rows["date_label"],
            "canal": rows["channel"].astype(str),
            "pedidos": rows["order_count"].astype("int64"),
            "faturamento": rows["revenue"].astype(float),
        }
    )


def compute_detail(filters: DashboardFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    rows = detail_rows(ctx.get("filtered_sales", pd.DataFrame()))
    table = [
        {
            "date": pd.Timestamp(r.date).date().isoformat(),
            "date_key": int(r.date_key),
            "date_label": r.date_label,
            "channel": str(r.channel),
            "order_count": int(r.order_count),
            "revenue": float(r.revenue),
            "order_count_display": format_int_br(r.order_count),
            "revenue_display": format_brl(r.revenue),
        }
        for r in rows.itertuples(index=False)
    ]
    return {"filters": serialize_filters(filters), "rows": table, "row_count": len(table)}
