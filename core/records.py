"""Typed sales / investment records built from raw CSV rows.

Raw rows are ``{header: cell}`` string mappings straight from the feed. Column
names are resolved through :func:`core.fields.pick_column`, values through the
scalar parsers. Rows without a usable date (or, for sales, a channel) are
dropped without being reported.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Iterable, List, Mapping, Optional

import pandas as pd

from core.fields import (
    CHANNEL_CANDIDATES,
    DATE_CANDIDATES,
    NEW_CUSTOMER_CANDIDATES,
    ORDER_COUNT_CANDIDATES,
    REVENUE_CANDIDATES,
    SPEND_CANDIDATES,
    pick_column,
)
from core.parsing import day_key, parse_flexible_date, parse_localized_number, round_half_up, start_of_day
from core.settings import REPORTING_YEAR

RawRow = Mapping[str, Optional[str]]

SALES_COLUMNS = ["date", "date_key", "channel", "order_count", "revenue"]
INVESTMENT_COLUMNS = ["date", "date_key", "total_spend", "new_customers"]


@dataclass(frozen=True)
class SalesRecord:
    date: datetime
    date_key: int
    channel: str
    order_count: int
    revenue: float


@dataclass(frozen=True)
class InvestmentRecord:
    date: datetime
    date_key: int
    total_spend: float
    new_customers: int


def _as_count(raw: Optional[str]) -> int:
    return int(round_half_up(parse_localized_number(raw)) or 0)


def normalize_sales_row(row: RawRow, *, default_year: int = REPORTING_YEAR) -> Optional[SalesRecord]:
    parsed = parse_flexible_date(pick_column(row, DATE_CANDIDATES), default_year=default_year)
    channel = str(pick_column(row, CHANNEL_CANDIDATES) or "").strip()
    if parsed is None or not channel:
        return None
    day = start_of_day(parsed)
    return SalesRecord(
        date=day,
        date_key=day_key(day),
        channel=channel,
        order_count=_as_count(pick_column(row, ORDER_COUNT_CANDIDATES)),
        revenue=parse_localized_number(pick_column(row, REVENUE_CANDIDATES)),
    )


def normalize_investment_row(row: RawRow, *, default_year: int = REPORTING_YEAR) -> Optional[InvestmentRecord]:
    parsed = parse_flexible_date(pick_column(row, DATE_CANDIDATES), default_year=default_year)
    if parsed is None:
        return None
    day = start_of_day(parsed)
    return InvestmentRecord(
        date=day,
        date_key=day_key(day),
        total_spend=parse_localized_number(pick_column(row, SPEND_CANDIDATES)),
        new_customers=_as_count(pick_column(row, NEW_CUSTOMER_CANDIDATES)),
    )


def _records_frame(records: List[object], columns: List[str]) -> pd.DataFrame:
    if not records:
        return pd.DataFrame(columns=columns)
    df = pd.DataFrame([asdict(r) for r in records], columns=columns)
    df["date"] = pd.to_datetime(df["date"])
    df["date_key"] = df["date_key"].astype("int64")
    return df


def normalize_sales(rows: Iterable[RawRow], *, default_year: int = REPORTING_YEAR) -> pd.DataFrame:
    records = [r for r in (normalize_sales_row(row, default_year=default_year) for row in rows) if r is not None]
    df = _records_frame(records, SALES_COLUMNS)
    if not df.empty:
        df["order_count"] = df["order_count"].astype("int64")
        df["revenue"] = df["revenue"].astype(float)
    return df


def normalize_investment(rows: Iterable[RawRow], *, default_year: int = REPORTING_YEAR) -> pd.DataFrame:
    records = [r for r in (normalize_investment_row(row, default_year=default_year) for row in rows) if r is not None]
    df = _records_frame(records, INVESTMENT_COLUMNS)
    if not df.empty:
        df["total_spend"] = df["total_spend"].astype(float)
        df["new_customers"] = df["new_customers"].astype("int64")
    return df
