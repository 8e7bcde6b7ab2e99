from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from sqlalchemy import select

from factory_ops.db.models.she import Capa, EnvironmentalMetric, SheIncident
from .base import BaseRepository


class SheRepository(BaseRepository):
    """Repository for SHE incidents, CAPAs and environmental metrics."""

    async def list_incidents(
        self, *, since: Optional[datetime], limit: int, offset: int
    ) -> List[SheIncident]:
        stmt = select(SheIncident)
        if since:
            stmt = stmt.where(SheIncident.incident_date >= since)
        stmt = stmt.order_by(SheIncident.incident_date.desc()).offset(offset).limit(limit)
        res = await self.scalars(stmt)
        return list(res)

    async def list_capa_statuses(self) -> List[str]:
        res = await self.scalars(select(Capa.status))
        return list(res)

    async def list_environmental_metrics(self, *, limit: int) -> List[EnvironmentalMetric]:
        stmt = select(EnvironmentalMetric).order_by(EnvironmentalMetric.metric_date.desc()).limit(limit)
        res = await self.scalars(stmt)
        return list(res)
