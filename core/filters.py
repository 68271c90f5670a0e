from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable, Literal, Optional, Sequence, Tuple

import pandas as pd

from core.parsing import end_of_day, from_day_key, parse_flexible_date, start_of_day, to_millis
from core.settings import CANONICAL_CHANNELS

Period = Literal["last-7-days", "custom"]
PERIODS: Tuple[str, ...] = ("last-7-days", "custom")


@dataclass(frozen=True)
class DateRange:
    start: Optional[datetime] = None
    end: Optional[datetime] = None

    @property
    def bounded(self) -> bool:
        return self.start is not None and self.end is not None

    @classmethod
    def from_dates(cls, start: Optional[date], end: Optional[date]) -> "DateRange":
        if start is None or end is None:
            return cls()
        start_dt = start if isinstance(start, datetime) else datetime.combine(start, datetime.min.time())
        end_dt = end if isinstance(end, datetime) else datetime.combine(end, datetime.min.time())
        return cls(start=start_of_day(start_dt), end=end_of_day(end_dt))


UNBOUNDED = DateRange()


@dataclass(frozen=True)
class DashboardFilters:
    period: Period = "custom"
    start: Optional[date] = None
    end: Optional[date] = None
    selected_channels: Tuple[str, ...] = CANONICAL_CHANNELS


def in_range(d: datetime, rng: Optional[DateRange]) -> bool:
    if rng is None or not rng.bounded:
        return True
    t = to_millis(d)
    return to_millis(rng.start) <= t <= to_millis(rng.end)


def _max_date_key(df: pd.DataFrame) -> Optional[int]:
    if df is None or df.empty or "date_key" not in df.columns:
        return None
    return int(df["date_key"].max())


def last_7_days_range(sales: pd.DataFrame, investment: pd.DataFrame) -> Optional[DateRange]:
    """Trailing 7-day window ending on the latest sales day (investment if there are no sales)."""
    last = _max_date_key(sales)
    if last is None:
        last = _max_date_key(investment)
    if last is None:
        return None
    last_day = from_day_key(last)
    return DateRange(start=start_of_day(last_day - timedelta(days=6)), end=end_of_day(last_day))


def effective_range(filters: DashboardFilters, sales: pd.DataFrame, investment: pd.DataFrame) -> DateRange:
    custom = DateRange.from_dates(filters.start, filters.end)
    if filters.period == "last-7-days":
        return last_7_days_range(sales, investment) or custom
    return custom


def _range_mask(df: pd.DataFrame, rng: Optional[DateRange]) -> pd.Series:
    if rng is None or not rng.bounded:
        return pd.Series(True, index=df.index)
    keys = df["date_key"].astype("int64")
    return (keys >= to_millis(rng.start)) & (keys <= to_millis(rng.end))


def filter_sales(sales: pd.DataFrame, rng: Optional[DateRange], channels: Optional[Iterable[str]]) -> pd.DataFrame:
    """Sales rows inside ``rng`` whose channel is selected. ``channels=None`` skips the channel test."""
    if sales is None or sales.empty:
        return pd.DataFrame(columns=getattr(sales, "columns", []))
    mask = _range_mask(sales, rng)
    if channels is not None:
        mask &= sales["channel"].isin(set(channels))
    return sales[mask].reset_index(drop=True)


def filter_investment(investment: pd.DataFrame, rng: Optional[DateRange]) -> pd.DataFrame:
    if investment is None or investment.empty:
        return pd.DataFrame(columns=getattr(investment, "columns", []))
    return investment[_range_mask(investment, rng)].reset_index(drop=True)


# ---------------- Channel selection ----------------
def toggle_channel(selection: Sequence[str], channel: str) -> Tuple[str, ...]:
    """Add or remove ``channel``; removing the last selected channel leaves the selection as is."""
    current = tuple(selection)
    if channel in current:
        remaining = tuple(c for c in current if c != channel)
        return remaining if remaining else current
    return current + (channel,)


def set_channels(selection: Sequence[str], requested: Optional[Iterable[str]]) -> Tuple[str, ...]:
    wanted = tuple(dict.fromkeys(str(c) for c in (requested or []) if c is not None and str(c).strip()))
    return wanted if wanted else tuple(selection)


def select_all_channels(canonical: Sequence[str] = CANONICAL_CHANNELS) -> Tuple[str, ...]:
    return tuple(canonical)


def reconcile_channels(sales: pd.DataFrame, canonical: Sequence[str] = CANONICAL_CHANNELS) -> Tuple[str, ...]:
    """Canonical channels that occur (case-insensitively) in the sales data, or all of them if none do."""
    if sales is None or sales.empty or "channel" not in sales.columns:
        return tuple(canonical)
    lookup = {c.lower(): c for c in canonical}
    found = []
    for value in sales["channel"].dropna().astype(str).unique():
        match = lookup.get(value.lower())
        if match is not None and match not in found:
            found.append(match)
    return tuple(found) if found else tuple(canonical)


# ---------------- Raw filter coercion ----------------
def _as_date(value: object) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    parsed = parse_flexible_date(value)
    return parsed.date() if parsed is not None else None


def normalize_filters(
    raw: dict,
    *,
    default_channels: Optional[Sequence[str]] = None,
    default_start: Optional[date] = None,
    default_end: Optional[date] = None,
) -> DashboardFilters:
    default_channels = tuple(default_channels or CANONICAL_CHANNELS)

    period = str(raw.get("period") or "custom").strip().lower()
    if period in {"7d", "last_7_days", "last7"}:
        period = "last-7-days"
    if period not in PERIODS:
        period = "custom"

    start = _as_date(raw.get("start")) if "start" in raw else default_start
    end = _as_date(raw.get("end")) if "end" in raw else default_end
    if start is not None and end is not None and start > end:
        start, end = end, start

    selected_channels = set_channels(default_channels, raw.get("selected_channels"))
    return DashboardFilters(period=period, start=start, end=end, selected_channels=selected_channels)
