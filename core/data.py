from __future__ import annotations

import io
import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd
import requests

from core.filters import (
    DashboardFilters,
    effective_range,
    filter_investment,
    filter_sales,
    normalize_filters,
    reconcile_channels,
)
from core.metrics_dashboard import compute_dashboard
from core.records import INVESTMENT_COLUMNS, SALES_COLUMNS, normalize_investment, normalize_sales
from core.settings import Settings, load_settings

logger = logging.getLogger(__name__)

RawRows = List[Dict[str, str]]


class FeedError(Exception):
    """A feed could not be downloaded or read as CSV."""

    def __init__(self, message: str, *, url: Optional[str] = None):
        super().__init__(message)
        self.url = url


# ---------------- CSV transport ----------------
def read_feed(text: str) -> RawRows:
    """Parse CSV text with a header row into ``{header: cell}`` dicts (all cells as strings)."""
    if not text or not text.strip():
        return []
    try:
        df = pd.read_csv(
            io.StringIO(text),
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
        )
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as exc:
        raise FeedError(f"Could not read CSV: {exc}") from exc
    df = df.loc[:, [c for c in df.columns if not str(c).startswith("Unnamed:")]]
    # rows where every cell is blank
    df = df[~(df.apply(lambda col: col.str.strip()).eq("").all(axis=1))]
    return df.to_dict(orient="records")


def fetch_feed(url: str, *, session: Optional[requests.Session] = None, timeout: float = 30.0) -> RawRows:
    http = session or requests
    try:
        resp = http.get(url, timeout=timeout)
        resp.raise_for_status()
    except requests.RequestException as exc:
        raise FeedError(f"Could not download {url}: {exc}", url=url) from exc
    resp.encoding = resp.encoding or "utf-8"
    try:
        return read_feed(resp.text)
    except FeedError as exc:
        raise FeedError(f"{exc} ({url})", url=url) from exc


def fetch_feeds(settings: Settings, *, session: Optional[requests.Session] = None) -> Tuple[RawRows, RawRows]:
    """Download the sales and investment feeds concurrently; either failure aborts both."""
    with ThreadPoolExecutor(max_workers=2) as executor:
        sales_future = executor.submit(fetch_feed, settings.sales_csv_url, session=session, timeout=settings.fetch_timeout)
        inv_future = executor.submit(fetch_feed, settings.investment_csv_url, session=session, timeout=settings.fetch_timeout)
        return sales_future.result(), inv_future.result()


# ---------------- Public API (Streamlit parity + FastAPI use) ----------------
def build_dashboard_data(sales_rows: RawRows, investment_rows: RawRows, settings: Settings) -> Dict[str, Any]:
    sales = normalize_sales(sales_rows, default_year=settings.reporting_year)
    investment = normalize_investment(investment_rows, default_year=settings.reporting_year)
    channels = sorted(sales["channel"].dropna().astype(str).unique().tolist()) if not sales.empty else []
    return {
        "sales": sales,
        "investment": investment,
        "channels": channels,
        "canonical_channels": list(settings.canonical_channels),
        "default_channels": list(reconcile_channels(sales, settings.canonical_channels)),
        "loaded_at": datetime.now(),
    }


def load_dashboard_data(settings: Optional[Settings] = None, *, session: Optional[requests.Session] = None) -> Dict[str, Any]:
    settings = settings or load_settings()
    sales_rows, investment_rows = fetch_feeds(settings, session=session)
    return build_dashboard_data(sales_rows, investment_rows, settings)


def empty_dashboard_data(settings: Optional[Settings] = None) -> Dict[str, Any]:
    settings = settings or load_settings()
    return {
        "sales": pd.DataFrame(columns=SALES_COLUMNS),
        "investment": pd.DataFrame(columns=INVESTMENT_COLUMNS),
        "channels": [],
        "canonical_channels": list(settings.canonical_channels),
        "default_channels": list(settings.canonical_channels),
        "loaded_at": None,
    }


def prepare_context(filters: dict | DashboardFilters, data_ctx: Dict[str, Any]) -> Dict[str, Any]:
    sales: pd.DataFrame = data_ctx.get("sales", pd.DataFrame(columns=SALES_COLUMNS))
    investment: pd.DataFrame = data_ctx.get("investment", pd.DataFrame(columns=INVESTMENT_COLUMNS))

    filt = (
        filters
        if isinstance(filters, DashboardFilters)
        else normalize_filters(filters, default_channels=data_ctx.get("default_channels"))
    )
    rng = effective_range(filt, sales, investment)
    return {
        "filters": filt,
        "range": rng,
        "filtered_sales": filter_sales(sales, rng, filt.selected_channels),
        "filtered_investment": filter_investment(investment, rng),
        "sales": sales,
        "investment": investment,
        "channels": data_ctx.get("channels", []),
        "canonical_channels": data_ctx.get("canonical_channels", []),
        "default_channels": data_ctx.get("default_channels", []),
        "loaded_at": data_ctx.get("loaded_at"),
    }


class DashboardStore:
    """Last successfully loaded feeds plus the memoized snapshot for the current filters.

    A failed reload leaves the previous data in place. Reloads are not
    serialized; when two overlap, whichever finishes last wins.
    """

    def __init__(self, settings: Optional[Settings] = None, *, session: Optional[requests.Session] = None):
        self.settings = settings or load_settings()
        self.session = session
        self.data: Optional[Dict[str, Any]] = None
        self.last_error: Optional[str] = None
        self.version = 0
        self._memo: Optional[Tuple[int, DashboardFilters, Dict[str, Any]]] = None

    @property
    def loaded(self) -> bool:
        return self.data is not None

    def reload(self) -> Dict[str, Any]:
        logger.info("Reloading feeds")
        try:
            data = load_dashboard_data(self.settings, session=self.session)
        except FeedError as exc:
            self.last_error = str(exc)
            logger.error("Reload failed: %s", exc)
            raise
        self.data = data
        self.last_error = None
        self.version += 1
        logger.info(
            "Reload complete: %d sales records, %d investment records",
            len(data["sales"]),
            len(data["investment"]),
        )
        return data

    def ensure_loaded(self) -> Dict[str, Any]:
        if self.data is None:
            return self.reload()
        return self.data

    def current(self) -> Dict[str, Any]:
        return self.data if self.data is not None else empty_dashboard_data(self.settings)

    def filters_from(self, raw: dict) -> DashboardFilters:
        data = self.current()
        return normalize_filters(
            raw,
            default_channels=data.get("default_channels"),
            default_start=self.settings.default_start,
            default_end=self.settings.default_end,
        )

    def snapshot(self, filters: DashboardFilters) -> Dict[str, Any]:
        if self._memo is not None and self._memo[0] == self.version and self._memo[1] == filters:
            return self._memo[2]
        ctx = prepare_context(filters, self.current())
        payload = compute_dashboard(filters, ctx, settings=self.settings)
        self._memo = (self.version, filters, payload)
        return payload
