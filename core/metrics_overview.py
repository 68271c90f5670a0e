from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List, Optional

import altair as alt
import pandas as pd

from core.aggregations import Totals, compute_totals, daily_series
from core.charts import to_vega_spec
from core.filters import DashboardFilters, DateRange
from core.formatting import format_brl, format_int_br, format_percent_br


def serialize_filters(filters: DashboardFilters) -> Dict[str, Any]:
    out = asdict(filters)
    out["start"] = filters.start.isoformat() if filters.start else None
    out["end"] = filters.end.isoformat() if filters.end else None
    out["selected_channels"] = list(filters.selected_channels)
    return out


def serialize_range(rng: Optional[DateRange]) -> Dict[str, Optional[str]]:
    if rng is None or not rng.bounded:
        return {"start": None, "end": None}
    return {"start": rng.start.isoformat(timespec="milliseconds"), "end": rng.end.isoformat(timespec="milliseconds")}


def build_kpi_cards(totals: Totals) -> List[Dict[str, Any]]:
    # Previous-period comparison is not implemented; "variation" stays None.
    return [
        {"id": "revenue", "label": "Faturamento", "value": totals.total_revenue, "display": format_brl(totals.total_revenue), "variation": None},
        {"id": "orders", "label": "Pedidos", "value": totals.total_orders, "display": format_int_br(totals.total_orders), "variation": None},
        {"id": "ticket", "label": "Ticket Médio", "value": totals.average_ticket, "display": format_brl(totals.average_ticket), "variation": None},
        {"id": "spend", "label": "Investimento", "value": totals.total_spend, "display": format_brl(totals.total_spend), "variation": None},
        {"id": "cac", "label": "CAC", "value": totals.cost_per_acquisition, "display": format_brl(totals.cost_per_acquisition), "variation": None},
        {"id": "cpa", "label": "CPA", "value": totals.cost_per_order, "display": format_brl(totals.cost_per_order), "variation": None},
        {"id": "roi", "label": "ROI", "value": totals.roi_percent, "display": format_percent_br(totals.roi_percent), "variation": None},
    ]


def _series_records(daily: pd.DataFrame) -> List[Dict[str, Any]]:
    records = []
    for row in daily.itertuples(index=False):
        records.append(
            {
                "date_key": int(row.date_key),
                "date": pd.Timestamp(row.date).date().isoformat(),
                "label": row.label,
                "revenue": float(row.revenue),
                "order_count": int(row.order_count),
                "total_spend": float(row.total_spend),
            }
        )
    return records


def build_trend_charts(daily: pd.DataFrame) -> Dict[str, Any]:
    if daily.empty:
        return {}
    chart_df = daily.assign(date=lambda d: pd.to_datetime(d["date"]).dt.strftime("%Y-%m-%d"))

    money = chart_df.melt(
        id_vars=["date", "label"],
        value_vars=["revenue", "total_spend"],
        var_name="metric",
        value_name="value",
    )
    money["metric"] = money["metric"].map({"revenue": "Faturamento", "total_spend": "Investimento"})
    money_hover = alt.selection_point(fields=["metric"], on="mouseover", empty="all")
    line_money = (
        alt.Chart(money)
        .mark_line(point={"filled": True, "size": 60})
        .encode(
            x=alt.X("date:T", title="Data", axis=alt.Axis(format="%d/%m", grid=False)),
            y=alt.Y("value:Q", title="R$", axis=alt.Axis(format="~s", gridDash=[4, 4], domain=False, ticks=False)),
            color=alt.Color("metric:N", title=None, scale=alt.Scale(range=["#22c55e", "#f97316"])),
            opacity=alt.condition(money_hover, alt.value(1), alt.value(0.2)),
            tooltip=["label", "metric", alt.Tooltip("value:Q", format=",.2f")],
        )
        .add_params(money_hover)
        .properties(height=260)
    )

    line_orders = (
        alt.Chart(chart_df)
        .mark_line(point={"filled": True, "size": 60}, color="#22d3ee")
        .encode(
            x=alt.X("date:T", title="Data", axis=alt.Axis(format="%d/%m", grid=False)),
            y=alt.Y("order_count:Q", title="Pedidos", axis=alt.Axis(format="d", gridDash=[4, 4], domain=False, ticks=False)),
            tooltip=["label", alt.Tooltip("order_count:Q", title="Pedidos", format=",")],
        )
        .properties(height=260)
    )
    return {"revenue_vs_spend": to_vega_spec(line_money), "orders_trend": to_vega_spec(line_orders)}


def compute_overview(filters: DashboardFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    sales: pd.DataFrame = ctx.get("filtered_sales", pd.DataFrame())
    investment: pd.DataFrame = ctx.get("filtered_investment", pd.DataFrame())

    totals = compute_totals(sales, investment)
    daily = daily_series(sales, investment)

    return {
        "filters": serialize_filters(filters),
        "range": serialize_range(ctx.get("range")),
        "totals": asdict(totals),
        "kpis": build_kpi_cards(totals),
        "daily": _series_records(daily),
        "charts": build_trend_charts(daily),
    }
