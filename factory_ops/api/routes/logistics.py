from __future__ import annotations

from dataclasses import asdict
from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from factory_ops.core.deps import require_roles
from factory_ops.core.security import Principal
from factory_ops.db.session import get_async_session
from factory_ops.repositories.logistics import LogisticsRepository
from factory_ops.schemas.logistics import (
    AgeingBucketRead,
    AgeingRead,
    CartonCreate,
    CartonRead,
    DispatchCreate,
    DispatchEligibilityRead,
    DispatchRead,
    PackableRead,
)
from factory_ops.services.logistics import LogisticsService
from factory_ops.workflow.display import format_compact_inr

router = APIRouter(prefix="/logistics", tags=["Logistics"])

VIEW_ROLES = ("logistics:view", "logistics:manage")


# PUBLIC_INTERFACE
@router.get(
    "/batches/{batch_id}/packable",
    response_model=PackableRead,
    summary="Packable quantity of a batch",
    description="QC-approved pieces minus pieces already packed into cartons, floored at zero.",
    dependencies=[Depends(require_roles(*VIEW_ROLES))],
)
async def get_packable(
    batch_id: UUID = Path(...),
    session: AsyncSession = Depends(get_async_session),
) -> PackableRead:
    packable = await LogisticsService(session).packable(batch_id)
    return PackableRead(batch_id=batch_id, **asdict(packable))


# PUBLIC_INTERFACE
@router.post(
    "/cartons",
    response_model=CartonRead,
    status_code=201,
    summary="Pack carton",
    description="Pack QC-approved pieces of a batch. The batch row is locked while the balance is checked.",
)
async def create_carton(
    payload: CartonCreate,
    session: AsyncSession = Depends(get_async_session),
    principal: Principal = Depends(require_roles("logistics:manage")),
) -> CartonRead:
    carton = await LogisticsService(session).create_carton(payload, principal)
    return CartonRead.model_validate(carton)


# PUBLIC_INTERFACE
@router.post(
    "/cartons/{carton_id}/ready",
    response_model=CartonRead,
    summary="Mark carton ready for dispatch",
    description="Move a packed carton to ready_for_dispatch once every QC gate of its batch is complete.",
    dependencies=[Depends(require_roles("logistics:manage"))],
)
async def mark_ready_for_dispatch(
    carton_id: UUID = Path(...),
    session: AsyncSession = Depends(get_async_session),
) -> CartonRead:
    carton = await LogisticsService(session).mark_ready_for_dispatch(carton_id)
    return CartonRead.model_validate(carton)


# PUBLIC_INTERFACE
@router.get(
    "/cartons",
    response_model=List[CartonRead],
    summary="List cartons",
    dependencies=[Depends(require_roles(*VIEW_ROLES))],
)
async def list_cartons(
    session: AsyncSession = Depends(get_async_session),
    wo_id: Optional[UUID] = Query(None, description="Filter by work order"),
    status: Optional[str] = Query(None, description="Filter by status (packed, ready_for_dispatch, dispatched)"),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
) -> List[CartonRead]:
    rows = await LogisticsRepository(session).list_cartons(wo_id=wo_id, status=status, limit=limit, offset=offset)
    return [CartonRead.model_validate(x) for x in rows]


# PUBLIC_INTERFACE
@router.post(
    "/dispatches",
    response_model=DispatchRead,
    status_code=201,
    summary="Dispatch pieces",
    description=(
        "Dispatch pieces of a batch. Every QC gate must be complete and the quantity must fit "
        "the QC-approved balance not yet dispatched."
    ),
)
async def create_dispatch(
    payload: DispatchCreate,
    session: AsyncSession = Depends(get_async_session),
    principal: Principal = Depends(require_roles("logistics:manage")),
) -> DispatchRead:
    dispatch = await LogisticsService(session).create_dispatch(payload, principal)
    return DispatchRead.model_validate(dispatch)


# PUBLIC_INTERFACE
@router.get(
    "/dispatches",
    response_model=List[DispatchRead],
    summary="List dispatches",
    dependencies=[Depends(require_roles(*VIEW_ROLES))],
)
async def list_dispatches(
    session: AsyncSession = Depends(get_async_session),
    wo_id: Optional[UUID] = Query(None, description="Filter by work order"),
    since: Optional[datetime] = Query(None, description="Only dispatches at or after this time"),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
) -> List[DispatchRead]:
    rows = await LogisticsRepository(session).list_dispatches(wo_id=wo_id, since=since, limit=limit, offset=offset)
    return [DispatchRead.model_validate(x) for x in rows]


# PUBLIC_INTERFACE
@router.get(
    "/work-orders/{wo_id}/dispatch-eligibility",
    response_model=DispatchEligibilityRead,
    summary="Dispatch eligibility",
    description="Pieces available to dispatch from ready cartons and finished goods stock.",
    dependencies=[Depends(require_roles(*VIEW_ROLES))],
)
async def get_dispatch_eligibility(
    wo_id: UUID = Path(...),
    session: AsyncSession = Depends(get_async_session),
) -> DispatchEligibilityRead:
    eligibility = await LogisticsService(session).dispatch_eligibility(wo_id)
    return DispatchEligibilityRead(work_order_id=wo_id, **asdict(eligibility))


# PUBLIC_INTERFACE
@router.get(
    "/ageing",
    response_model=AgeingRead,
    summary="Packed goods ageing",
    description="Undispatched packed pieces bucketed by age, with the share of value older than the risk horizon.",
    dependencies=[Depends(require_roles(*VIEW_ROLES))],
)
async def get_ageing(
    session: AsyncSession = Depends(get_async_session),
    as_of: Optional[date] = Query(None, description="Evaluate as of this date (default: today)"),
) -> AgeingRead:
    report = await LogisticsService(session).ageing(as_of or date.today())
    return AgeingRead(
        buckets=[AgeingBucketRead(**asdict(b), value_display=format_compact_inr(b.value)) for b in report.buckets],
        risk_percent=report.risk_percent,
        risk_days=report.risk_days,
    )
