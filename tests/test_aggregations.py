"""Tests for daily series, channel distributions, totals and detail rows."""

from datetime import date

import pytest

from core.aggregations import channel_distribution, compute_totals, daily_series, detail_rows
from core.data import build_dashboard_data, prepare_context
from core.filters import DashboardFilters
from core.metrics_dashboard import compute_dashboard
from core.records import normalize_investment, normalize_sales
from core.settings import CANONICAL_CHANNELS


def _sales(rows):
    return normalize_sales(
        [{"Data": d, "Canal": ch, "Pedidos": str(n), "Faturamento": str(v)} for d, ch, n, v in rows]
    )


def _investment(rows):
    return normalize_investment([{"Data": d, "Investimento": str(s), "Clientes Novos": str(c)} for d, s, c in rows])


# ---------------------------------------------------------------------------
# daily_series
# ---------------------------------------------------------------------------

class TestDailySeries:
    def test_days_from_either_feed_are_combined(self):
        sales = _sales([("12/11/2025", "Site", 2, 100), ("12/11/2025", "Social", 1, 50)])
        inv = _investment([("11/11/2025", 20, 0), ("12/11/2025", 30, 1)])
        out = daily_series(sales, inv)
        assert out["label"].tolist() == ["11/11", "12/11"]
        assert out["revenue"].tolist() == pytest.approx([0.0, 150.0])
        assert out["order_count"].tolist() == [0, 3]
        assert out["total_spend"].tolist() == pytest.approx([20.0, 30.0])

    def test_sorted_ascending(self):
        sales = _sales([("15/11/2025", "Site", 1, 1), ("02/11/2025", "Site", 1, 1), ("09/11/2025", "Site", 1, 1)])
        out = daily_series(sales, _investment([]))
        assert out["date_key"].is_monotonic_increasing
        assert out["total_spend"].tolist() == [0.0, 0.0, 0.0]

    def test_empty(self):
        assert daily_series(_sales([]), _investment([])).empty


# ---------------------------------------------------------------------------
# channel_distribution
# ---------------------------------------------------------------------------

class TestChannelDistribution:
    def test_zero_channels_dropped(self):
        sales = _sales([("11/11/2025", "Site", 2, 100), ("11/11/2025", "Social", 1, 50)])
        out = channel_distribution(sales, CANONICAL_CHANNELS, "revenue")
        assert out["channel"].tolist() == ["Site", "Social"]
        assert (out["value"] > 0).all()

    def test_removing_only_record_removes_slice(self):
        sales = _sales([("11/11/2025", "Site", 2, 100), ("11/11/2025", "Social", 1, 50)])
        out = channel_distribution(sales[sales["channel"] != "Social"], CANONICAL_CHANNELS, "order_count")
        assert out.to_dict(orient="records") == [{"channel": "Site", "value": 2}]

    def test_channel_with_zero_revenue_but_orders(self):
        sales = _sales([("11/11/2025", "Marketplace", 4, 0)])
        assert channel_distribution(sales, CANONICAL_CHANNELS, "revenue").empty
        assert channel_distribution(sales, CANONICAL_CHANNELS, "order_count")["value"].tolist() == [4]

    def test_empty_sales(self):
        assert channel_distribution(_sales([]), CANONICAL_CHANNELS).empty


# ---------------------------------------------------------------------------
# compute_totals
# ---------------------------------------------------------------------------

class TestTotals:
    def test_cost_per_acquisition_zero_without_new_customers(self):
        totals = compute_totals(_sales([]), _investment([("11/11/2025", 500, 0)]))
        assert totals.total_spend == pytest.approx(500.0)
        assert totals.cost_per_acquisition == 0

    def test_roi_zero_without_spend(self):
        totals = compute_totals(_sales([("11/11/2025", "Site", 1, 100)]), _investment([]))
        assert totals.roi_percent == 0

    def test_roi_hundred_when_revenue_doubles_spend(self):
        totals = compute_totals(_sales([("11/11/2025", "Site", 1, 200)]), _investment([("11/11/2025", 100, 2)]))
        assert totals.roi_percent == pytest.approx(100.0)

    def test_ratios_never_nan(self):
        totals = compute_totals(_sales([]), _investment([]))
        assert totals.average_ticket == 0
        assert totals.cost_per_order == 0
        assert totals.cost_per_acquisition == 0


# ---------------------------------------------------------------------------
# detail_rows
# ---------------------------------------------------------------------------

class TestDetailRows:
    def test_sorted_by_day_then_channel(self):
        sales = _sales(
            [
                ("12/11/2025", "Site", 1, 1),
                ("11/11/2025", "Social", 1, 1),
                ("11/11/2025", "Dream Team", 1, 1),
            ]
        )
        out = detail_rows(sales)
        assert list(zip(out["date_label"], out["channel"])) == [
            ("11/11/2025", "Dream Team"),
            ("11/11/2025", "Social"),
            ("12/11/2025", "Site"),
        ]


# ---------------------------------------------------------------------------
# End to end
# ---------------------------------------------------------------------------

class TestEndToEnd:
    def test_single_day_snapshot(self, settings, sales_rows, investment_rows):
        data = build_dashboard_data(sales_rows, investment_rows, settings)
        filters = DashboardFilters(
            period="custom",
            start=date(2025, 11, 11),
            end=date(2025, 11, 11),
            selected_channels=CANONICAL_CHANNELS,
        )
        snapshot = compute_dashboard(filters, prepare_context(filters, data), settings=settings)

        assert len(snapshot["daily"]) == 1
        day = snapshot["daily"][0]
        assert day["revenue"] == pytest.approx(150.0)
        assert day["order_count"] == 3
        assert day["total_spend"] == pytest.approx(30.0)

        totals = snapshot["totals"]
        assert totals["average_ticket"] == pytest.approx(50.0)
        assert totals["cost_per_acquisition"] == pytest.approx(30.0)
        assert totals["cost_per_order"] == pytest.approx(10.0)
        assert totals["roi_percent"] == pytest.approx(400.0)

        assert [r["channel"] for r in snapshot["revenue_by_channel"]] == ["Site", "Social"]
        assert [r["channel"] for r in snapshot["detail"]] == ["Site", "Social"]
        assert all(k["variation"] is None for k in snapshot["kpis"])
        assert {"revenue_vs_spend", "orders_trend", "revenue_by_channel", "orders_by_channel"} <= set(snapshot["charts"])

    def test_out_of_range_snapshot_is_empty(self, settings, sales_rows, investment_rows):
        data = build_dashboard_data(sales_rows, investment_rows, settings)
        filters = DashboardFilters(start=date(2025, 12, 1), end=date(2025, 12, 31))
        snapshot = compute_dashboard(filters, prepare_context(filters, data), settings=settings)
        assert snapshot["daily"] == []
        assert snapshot["revenue_by_channel"] == []
        assert snapshot["totals"]["roi_percent"] == 0
        assert snapshot["charts"] == {}
