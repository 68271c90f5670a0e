from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Sequence

import pandas as pd

from core.formatting import format_date_br, format_short_br
from core.parsing import safe_div

Measure = Literal["revenue", "order_count"]

DAILY_COLUMNS = ["date_key", "date", "label", "revenue", "order_count", "total_spend"]
DETAIL_COLUMNS = ["date", "date_key", "channel", "order_count", "revenue"]


@dataclass(frozen=True)
class Totals:
    total_revenue: float = 0.0
    total_orders: int = 0
    total_spend: float = 0.0
    total_new_customers: int = 0
    average_ticket: float = 0.0
    cost_per_acquisition: float = 0.0
    cost_per_order: float = 0.0
    roi_percent: float = 0.0


def daily_series(sales: pd.DataFrame, investment: pd.DataFrame) -> pd.DataFrame:
    """One row per day present in either frame, ascending by ``date_key``."""
    frames = []
    if sales is not None and not sales.empty:
        frames.append(
            sales.groupby("date_key")
            .agg(date=("date", "first"), revenue=("revenue", "sum"), order_count=("order_count", "sum"))
            .reset_index()
        )
    if investment is not None and not investment.empty:
        frames.append(
            investment.groupby("date_key")
            .agg(date=("date", "first"), total_spend=("total_spend", "sum"))
            .reset_index()
        )
    if not frames:
        return pd.DataFrame(columns=DAILY_COLUMNS)

    merged = frames[0]
    if len(frames) == 2:
        merged = merged.merge(frames[1], on="date_key", how="outer", suffixes=("", "_inv"))
        merged["date"] = merged["date"].fillna(merged.pop("date_inv"))
    for col in ["revenue", "order_count", "total_spend"]:
        if col not in merged.columns:
            merged[col] = 0
        merged[col] = merged[col].fillna(0)
    merged["revenue"] = merged["revenue"].astype(float)
    merged["total_spend"] = merged["total_spend"].astype(float)
    merged["order_count"] = merged["order_count"].astype("int64")
    merged["label"] = merged["date"].apply(format_short_br)
    return merged.sort_values("date_key").reset_index(drop=True)[DAILY_COLUMNS]


def channel_distribution(sales: pd.DataFrame, channels: Sequence[str], measure: Measure = "revenue") -> pd.DataFrame:
    """Per-channel sum of ``measure``; selected channels are seeded at zero and zero entries dropped."""
    by_channel = {str(ch): 0 for ch in channels}
    if sales is not None and not sales.empty:
        sums = sales.groupby("channel", sort=False)[measure].sum()
        for ch, value in sums.items():
            by_channel[ch] = by_channel.get(ch, 0) + value
    out = pd.DataFrame({"channel": list(by_channel.keys()), "value": list(by_channel.values())})
    out = out[out["value"] > 0].reset_index(drop=True)
    if measure == "order_count":
        out["value"] = out["value"].astype("int64")
    else:
        out["value"] = out["value"].astype(float)
    return out


def compute_totals(sales: pd.DataFrame, investment: pd.DataFrame) -> Totals:
    has_sales = sales is not None and not sales.empty
    has_inv = investment is not None and not investment.empty
    total_revenue = float(sales["revenue"].sum()) if has_sales else 0.0
    total_orders = int(sales["order_count"].sum()) if has_sales else 0
    total_spend = float(investment["total_spend"].sum()) if has_inv else 0.0
    total_new_customers = int(investment["new_customers"].fillna(0).sum()) if has_inv else 0

    return Totals(
        total_revenue=total_revenue,
        total_orders=total_orders,
        total_spend=total_spend,
        total_new_customers=total_new_customers,
        average_ticket=safe_div(total_revenue, total_orders),
        cost_per_acquisition=safe_div(total_spend, total_new_customers),
        cost_per_order=safe_div(total_spend, total_orders),
        roi_percent=((total_revenue - total_spend) / total_spend * 100) if total_spend else 0.0,
    )


def detail_rows(sales: pd.DataFrame) -> pd.DataFrame:
    if sales is None or sales.empty:
        return pd.DataFrame(columns=DETAIL_COLUMNS + ["date_label"])
    out = sales.sort_values(["date_key", "channel"], kind="mergesort").reset_index(drop=True)[DETAIL_COLUMNS].copy()
    out["date_label"] = out["date"].apply(format_date_br)
    return out
