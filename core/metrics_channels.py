from __future__ import annotations

from typing import Any, Dict, List, Optional

import altair as alt
import pandas as pd

from core.aggregations import Measure, channel_distribution
from core.charts import to_vega_spec
from core.filters import DashboardFilters
from core.metrics_overview import serialize_filters
from core.settings import Settings, load_settings


def _with_shares(dist: pd.DataFrame, settings: Settings) -> pd.DataFrame:
    out = dist.copy()
    total = float(out["value"].sum()) if not out.empty else 0.0
    out["share"] = out["value"] / total if total else 0.0
    out["color"] = [settings.color_for(ch, i) for i, ch in enumerate(out["channel"])]
    return out


def build_donut(dist: pd.DataFrame, *, title: str, value_format: str) -> Optional[Dict[str, Any]]:
    if dist.empty:
        return None
    hover = alt.selection_point(fields=["channel"], on="mouseover", empty="all")
    donut = (
        alt.Chart(dist)
        .mark_arc(innerRadius=60, outerRadius=95, padAngle=0.04)
        .encode(
            theta=alt.Theta("value:Q", stack=True),
            color=alt.Color(
                "channel:N",
                title="Canal",
                scale=alt.Scale(domain=dist["channel"].tolist(), range=dist["color"].tolist()),
            ),
            opacity=alt.condition(hover, alt.value(1), alt.value(0.5)),
            tooltip=[
                alt.Tooltip("channel:N", title="Canal"),
                alt.Tooltip("value:Q", title=title, format=value_format),
                alt.Tooltip("share:Q", title="%", format=".1%"),
            ],
        )
        .add_params(hover)
        .properties(title=title, height=260)
    )
    return to_vega_spec(donut)


def _records(dist: pd.DataFrame, measure: Measure) -> List[Dict[str, Any]]:
    cast = int if measure == "order_count" else float
    return [
        {"channel": str(r.channel), "value": cast(r.value), "share": float(r.share), "color": r.color}
        for r in dist.itertuples(index=False)
    ]


def compute_channels(
    filters: DashboardFilters,
    ctx: Dict[str, Any],
    *,
    settings: Optional[Settings] = None,
) -> Dict[str, Any]:
    settings = settings or load_settings()
    sales: pd.DataFrame = ctx.get("filtered_sales", pd.DataFrame())

    revenue = _with_shares(channel_distribution(sales, filters.selected_channels, "revenue"), settings)
    orders = _with_shares(channel_distribution(sales, filters.selected_channels, "order_count"), settings)

    charts: Dict[str, Any] = {}
    revenue_chart = build_donut(revenue, title="Faturamento por canal", value_format=",.2f")
    orders_chart = build_donut(orders, title="Pedidos por canal", value_format=",")
    if revenue_chart is not None:
        charts["revenue_by_channel"] = revenue_chart
    if orders_chart is not None:
        charts["orders_by_channel"] = orders_chart

    return {
        "filters": serialize_filters(filters),
        "revenue_by_channel": _records(revenue, "revenue"),
        "orders_by_channel": _records(orders, "order_count"),
        "charts": charts,
    }
