from __future__ import annotations

from datetime import date
from typing import Optional

import pandas as pd


def _is_missing(value: object) -> bool:
    return value is None or (not isinstance(value, str) and pd.isna(value))


def _swap_separators(text: str) -> str:
    # 1,234.56 -> 1.234,56
    return text.replace(",", "\0").replace(".", ",").replace("\0", ".")


def format_date_br(value: Optional[date]) -> str:
    if _is_missing(value):
        return ""
    return pd.Timestamp(value).strftime("%d/%m/%Y")


def format_short_br(value: Optional[date]) -> str:
    if _is_missing(value):
        return ""
    return pd.Timestamp(value).strftime("%d/%m")


def format_number_br(value: object, decimals: int = 2) -> str:
    if _is_missing(value):
        return "N/A"
    return _swap_separators(f"{float(value):,.{decimals}f}")


def format_int_br(value: object) -> str:
    return format_number_br(value, 0)


def format_brl(value: object, decimals: int = 2) -> str:
    if _is_missing(value):
        return "N/A"
    return f"R$ {format_number_br(value, decimals)}"


def format_percent_br(value: object, decimals: int = 2) -> str:
    """``value`` is already a percentage (``400.0`` -> ``"400,00%"``)."""
    if _is_missing(value):
        return "N/A"
    return f"{format_number_br(value, decimals)}%"
