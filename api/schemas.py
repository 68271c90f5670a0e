from __future__ import annotations

from datetime import date
from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class DashboardFiltersModel(BaseModel):
    period: Literal["last-7-days", "custom"] = "custom"
    start: Optional[date] = None
    end: Optional[date] = None
    selected_channels: List[str] = Field(default_factory=list)


class ChannelsResponse(BaseModel):
    canonical: List[str]
    in_data: List[str]
    default: List[str]


class ReloadResponse(BaseModel):
    ok: bool
    sales_records: int
    investment_records: int
    default_channels: List[str]
    loaded_at: Optional[str] = None
