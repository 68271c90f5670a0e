"""Tests for feed transport and the reload store."""

import pytest

from core.data import DashboardStore, FeedError, fetch_feed, fetch_feeds, load_dashboard_data, read_feed
from core.filters import DashboardFilters

from conftest import INVESTMENT_URL, SALES_URL, FakeSession


# ---------------------------------------------------------------------------
# read_feed
# ---------------------------------------------------------------------------

class TestReadFeed:
    def test_rows_as_strings(self):
        rows = read_feed("Data,Pedidos\n19/11/2025,3\n")
        assert rows == [{"Data": "19/11/2025", "Pedidos": "3"}]

    def test_blank_lines_skipped(self):
        rows = read_feed("Data,Canal\n\n19/11/2025,Site\n,\n")
        assert rows == [{"Data": "19/11/2025", "Canal": "Site"}]

    def test_empty_cells_stay_empty_strings(self):
        rows = read_feed("Data,Canal,Pedidos\n19/11/2025,Site,\n")
        assert rows[0]["Pedidos"] == ""

    def test_empty_text(self):
        assert read_feed("") == []

    def test_malformed(self):
        with pytest.raises(FeedError):
            read_feed('Data,Canal\n"19/11/2025,Site\n')


# ---------------------------------------------------------------------------
# fetch
# ---------------------------------------------------------------------------

class TestFetch:
    def test_fetch_feed(self, session):
        rows = fetch_feed(SALES_URL, session=session)
        assert len(rows) == 3

    def test_http_error_becomes_feed_error(self):
        with pytest.raises(FeedError) as exc_info:
            fetch_feed("http://feeds.test/missing.csv", session=FakeSession({}))
        assert exc_info.value.url == "http://feeds.test/missing.csv"

    def test_both_feeds_requested(self, settings, session):
        sales, investment = fetch_feeds(settings, session=session)
        assert len(sales) == 3
        assert len(investment) == 1
        assert sorted(session.calls) == sorted([SALES_URL, INVESTMENT_URL])

    def test_one_failure_aborts(self, settings):
        session = FakeSession({SALES_URL: "Data\n", INVESTMENT_URL: "Data\n"}, failing={INVESTMENT_URL})
        with pytest.raises(FeedError):
            fetch_feeds(settings, session=session)

    def test_load_dashboard_data(self, settings, session):
        data = load_dashboard_data(settings, session=session)
        assert len(data["sales"]) == 2
        assert len(data["investment"]) == 1
        assert data["channels"] == ["Site", "Social"]
        assert data["default_channels"] == ["Site", "Social"]


# ---------------------------------------------------------------------------
# DashboardStore
# ---------------------------------------------------------------------------

class TestDashboardStore:
    def test_reload_replaces_data(self, settings, session):
        store = DashboardStore(settings, session=session)
        assert not store.loaded
        store.reload()
        assert store.loaded
        assert store.version == 1
        assert store.last_error is None

    def test_failed_reload_keeps_previous_data(self, settings, session):
        store = DashboardStore(settings, session=session)
        first = store.reload()
        session.failing.add(SALES_URL)
        with pytest.raises(FeedError):
            store.reload()
        assert store.data is first
        assert store.version == 1
        assert "consolidado" in store.last_error

    def test_first_load_failure_leaves_empty_state(self, settings):
        store = DashboardStore(settings, session=FakeSession({}, failing={SALES_URL}))
        with pytest.raises(FeedError):
            store.ensure_loaded()
        assert store.data is None
        assert store.current()["sales"].empty

    def test_snapshot_memoized_until_inputs_change(self, settings, session):
        store = DashboardStore(settings, session=session)
        store.reload()
        filters = store.filters_from({})
        first = store.snapshot(filters)
        assert store.snapshot(filters) is first
        other = DashboardFilters(period="last-7-days", selected_channels=("Site",))
        assert store.snapshot(other) is not first
        store.reload()
        assert store.snapshot(filters) is not first

    def test_filters_default_to_reconciled_channels(self, settings):
        session = FakeSession(
            {
                SALES_URL: "Data,Canal,Pedidos,Faturamento\n11/11/2025,site,1,10\n",
                INVESTMENT_URL: "Data,Spend\n11/11/2025,5\n",
            }
        )
        store = DashboardStore(settings, session=session)
        store.reload()
        assert store.filters_from({}).selected_channels == ("Site",)
