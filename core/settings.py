from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Mapping, Optional, Tuple


SALES_CSV_URL = (
    "https://docs.google.com/spreadsheets/d/e/2PACX-1vSZRl3o2rQ1ksZd237nE_ZO3GDdigVsaHQw18SSCS-h6ozLp_Z57W-beKNqU7ZOJcr184Mdy1RElhLk"
    "/pub?gid=0&single=true&output=csv"
)
INVESTMENT_CSV_URL = (
    "https://docs.google.com/spreadsheets/d/e/2PACX-1vSZRl3o2rQ1ksZd237nE_ZO3GDdigVsaHQw18SSCS-h6ozLp_Z57W-beKNqU7ZOJcr184Mdy1RElhLk"
    "/pub?gid=814167914&single=true&output=csv"
)

CANONICAL_CHANNELS: Tuple[str, ...] = ("Site", "Dream Team", "Marketplace", "Social")
DONUT_COLORS: Tuple[str, ...] = ("#22c55e", "#22d3ee", "#a855f7", "#f97316")
REPORTING_YEAR = 2025


def _default_colors() -> Dict[str, str]:
    return dict(zip(CANONICAL_CHANNELS, DONUT_COLORS))


@dataclass(frozen=True)
class Settings:
    sales_csv_url: str = SALES_CSV_URL
    investment_csv_url: str = INVESTMENT_CSV_URL
    fetch_timeout: float = 30.0
    canonical_channels: Tuple[str, ...] = CANONICAL_CHANNELS
    channel_colors: Dict[str, str] = field(default_factory=_default_colors)
    reporting_year: int = REPORTING_YEAR
    default_start: date = date(2025, 11, 11)
    default_end: date = date(2025, 11, 19)
    log_level: str = "INFO"

    def color_for(self, channel: str, index: int = 0) -> str:
        if channel in self.channel_colors:
            return self.channel_colors[channel]
        return DONUT_COLORS[index % len(DONUT_COLORS)]


def _as_float(value: Optional[str], default: float) -> float:
    if value is None or not str(value).strip():
        return default
    try:
        out = float(value)
    except Exception:
        return default
    return out if out > 0 else default


def _as_channels(value: Optional[str]) -> Tuple[str, ...]:
    if not value:
        return CANONICAL_CHANNELS
    channels = tuple(dict.fromkeys(c.strip() for c in value.split(",") if c.strip()))
    return channels or CANONICAL_CHANNELS


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """Build settings from ``DASHBOARD_*`` environment variables, falling back to defaults."""
    env = os.environ if env is None else env
    channels = _as_channels(env.get("DASHBOARD_CHANNELS"))
    colors = {ch: DONUT_COLORS[i % len(DONUT_COLORS)] for i, ch in enumerate(channels)}
    colors.update({k: v for k, v in _default_colors().items() if k in channels})
    return Settings(
        sales_csv_url=(env.get("DASHBOARD_SALES_CSV_URL") or SALES_CSV_URL).strip(),
        investment_csv_url=(env.get("DASHBOARD_INVESTMENT_CSV_URL") or INVESTMENT_CSV_URL).strip(),
        fetch_timeout=_as_float(env.get("DASHBOARD_FETCH_TIMEOUT"), 30.0),
        canonical_channels=channels,
        channel_colors=colors,
        log_level=(env.get("DASHBOARD_LOG_LEVEL") or "INFO").strip().upper(),
    )


def configure_logging(settings: Optional[Settings] = None) -> None:
    settings = settings or load_settings()
    level = getattr(logging, settings.log_level, logging.INFO)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
