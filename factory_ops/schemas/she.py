from __future__ import annotations

from datetime import date
from typing import List

from pydantic import BaseModel


class SeveritySummaryRead(BaseModel):
    severity: str
    count: int
    lost_time_hours: float

    class Config:
        from_attributes = True


class CapaSummaryRead(BaseModel):
    total: int
    overdue: int
    closed: int

    class Config:
        from_attributes = True


class EnvironmentalPointRead(BaseModel):
    metric_date: date
    energy_kwh: float
    water_m3: float
    waste_kg: float
    recycled_kg: float
    recycling_pct: float


class SheSummaryRead(BaseModel):
    incidents: List[SeveritySummaryRead]
    capa: CapaSummaryRead
    environment: List[EnvironmentalPointRead]
