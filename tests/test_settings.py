"""Tests for environment-driven settings."""

from core.settings import CANONICAL_CHANNELS, SALES_CSV_URL, load_settings


class TestLoadSettings:
    def test_defaults(self):
        s = load_settings({})
        assert s.sales_csv_url == SALES_CSV_URL
        assert s.canonical_channels == CANONICAL_CHANNELS
        assert s.color_for("Site") == "#22c55e"
        assert s.reporting_year == 2025

    def test_overrides(self):
        s = load_settings(
            {
                "DASHBOARD_SALES_CSV_URL": "http://x/a.csv",
                "DASHBOARD_FETCH_TIMEOUT": "12.5",
                "DASHBOARD_CHANNELS": "Site, Loja Física ,Site",
                "DASHBOARD_LOG_LEVEL": "debug",
            }
        )
        assert s.sales_csv_url == "http://x/a.csv"
        assert s.fetch_timeout == 12.5
        assert s.canonical_channels == ("Site", "Loja Física")
        assert s.color_for("Site") == "#22c55e"
        assert s.color_for("Loja Física") == "#22d3ee"
        assert s.log_level == "DEBUG"

    def test_bad_timeout_falls_back(self):
        assert load_settings({"DASHBOARD_FETCH_TIMEOUT": "soon"}).fetch_timeout == 30.0
