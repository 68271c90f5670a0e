from __future__ import annotations

import math
import re
from datetime import datetime, time, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

import pandas as pd

from core.settings import REPORTING_YEAR


_ISO_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
_DMY_RE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{2}|\d{4})$")
_DM_RE = re.compile(r"^(\d{1,2})/(\d{1,2})$")
_EPOCH = datetime(1970, 1, 1)


def _is_blank(value: object) -> bool:
    if value is None:
        return True
    try:
        if pd.isna(value):
            return True
    except (TypeError, ValueError):
        pass
    return not str(value).strip()


def parse_localized_number(value: object) -> float:
    """Parse ``"R$ 1.234,56"`` style numbers; anything unusable becomes ``0.0``."""
    if _is_blank(value):
        return 0.0
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value) if math.isfinite(value) else 0.0

    s = re.sub(r"[R$\s]", "", str(value).strip())
    has_comma = "," in s
    has_dot = "." in s
    if has_comma and has_dot:
        s = s.replace(".", "").replace(",", ".", 1)
    elif has_comma:
        s = s.replace(",", ".", 1)

    s = re.sub(r"[^0-9.\-]", "", s)
    try:
        out = float(s)
    except ValueError:
        return 0.0
    return out if math.isfinite(out) else 0.0


def _build_date(year: int, month: int, day: int) -> Optional[datetime]:
    try:
        return datetime(year, month, day)
    except ValueError:
        return None


def parse_flexible_date(value: object, *, default_year: int = REPORTING_YEAR) -> Optional[datetime]:
    if _is_blank(value):
        return None
    if isinstance(value, datetime):
        return value
    s = str(value).strip()

    m = _ISO_RE.match(s)
    if m:
        return _build_date(int(m.group(1)), int(m.group(2)), int(m.group(3)))

    m = _DMY_RE.match(s)
    if m:
        year = int(m.group(3))
        year = 2000 + year if year < 100 else year
        return _build_date(year, int(m.group(2)), int(m.group(1)))

    m = _DM_RE.match(s)
    if m:
        return _build_date(default_year, int(m.group(2)), int(m.group(1)))

    try:
        ts = pd.to_datetime(s, errors="coerce")
    except (ValueError, OverflowError, TypeError):
        return None
    if ts is None or pd.isna(ts):
        return None
    if ts.tzinfo is not None:
        ts = ts.tz_localize(None)
    return ts.to_pydatetime()


def start_of_day(d: datetime) -> datetime:
    return datetime.combine(d.date(), time.min)


def end_of_day(d: datetime) -> datetime:
    return datetime.combine(d.date(), time(23, 59, 59, 999000))


def to_millis(d: datetime) -> int:
    """Milliseconds since epoch of a naive calendar datetime (machine timezone is ignored)."""
    delta = d - _EPOCH
    return (delta.days * 86_400 + delta.seconds) * 1000 + delta.microseconds // 1000


def day_key(d: datetime) -> int:
    return to_millis(start_of_day(d))


def from_day_key(key: int) -> datetime:
    return _EPOCH + timedelta(milliseconds=int(key))


def safe_div(numerator: float, denominator: float) -> float:
    if not denominator:
        return 0.0
    return numerator / denominator


def round_half_up(value: object, ndigits: int = 0) -> Optional[float]:
    if value is None or pd.isna(value):
        return None
    q = Decimal(10) ** -ndigits
    return float(Decimal(str(value)).quantize(q, rounding=ROUND_HALF_UP))
