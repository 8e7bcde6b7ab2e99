from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from factory_ops.core.deps import require_roles
from factory_ops.db.session import get_async_session
from factory_ops.repositories.she import SheRepository
from factory_ops.schemas.she import (
    CapaSummaryRead,
    EnvironmentalPointRead,
    SeveritySummaryRead,
    SheSummaryRead,
)
from factory_ops.workflow.she import capa_summary, incident_summary, recycling_percent

router = APIRouter(prefix="/she", tags=["SHE"])


# PUBLIC_INTERFACE
@router.get(
    "/summary",
    response_model=SheSummaryRead,
    summary="SHE summary",
    description="Incidents per severity over the window, CAPA status counts and recent environmental metrics.",
    dependencies=[Depends(require_roles("she:view", "she:manage"))],
)
async def she_summary(
    session: AsyncSession = Depends(get_async_session),
    days: int = Query(30, ge=1, le=366, description="Incident window and number of metric days"),
    as_of: Optional[date] = Query(None, description="End of the window (default: today)"),
) -> SheSummaryRead:
    repo = SheRepository(session)
    since = datetime.combine((as_of or date.today()) - timedelta(days=days), time.min, tzinfo=timezone.utc)
    incidents = await repo.list_incidents(since=since, limit=10000, offset=0)
    capa = capa_summary(await repo.list_capa_statuses())
    metrics = await repo.list_environmental_metrics(limit=days)

    environment = [
        EnvironmentalPointRead(
            metric_date=m.metric_date,
            energy_kwh=float(m.energy_kwh or 0),
            water_m3=round(float(m.water_liters or 0) / 1000, 3),
            waste_kg=float(m.waste_kg or 0),
            recycled_kg=float(m.recycled_waste_kg or 0),
            recycling_pct=recycling_percent(m.waste_kg, m.recycled_waste_kg),
        )
        for m in reversed(metrics)
    ]
    return SheSummaryRead(
        incidents=[SeveritySummaryRead.model_validate(s) for s in incident_summary(incidents)],
        capa=CapaSummaryRead.model_validate(capa),
        environment=environment,
    )
