from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from factory_ops.core.deps import require_roles
from factory_ops.core.security import Principal
from factory_ops.db.session import get_async_session
from factory_ops.repositories.production import WorkOrderRepository
from factory_ops.schemas.production import (
    ProductionBatchRead,
    StageChangeRequest,
    StageFlowRead,
    StageHistoryRead,
    StageStepRead,
    WOBatchStatusRead,
    WOQuantitiesRead,
    WorkOrderRead,
)
from factory_ops.services.production import ProductionService
from factory_ops.workflow.stages import progress_percent, stage_flow, stage_label

router = APIRouter(prefix="/production", tags=["Production"])

VIEW_ROLES = ("production:view", "production:manage")


# PUBLIC_INTERFACE
@router.get(
    "/work-orders",
    response_model=List[WorkOrderRead],
    summary="List work orders",
    description="List work orders ordered by created_at desc.",
    dependencies=[Depends(require_roles(*VIEW_ROLES))],
)
async def list_work_orders(
    session: AsyncSession = Depends(get_async_session),
    status: Optional[str] = Query(None, description="Filter by status"),
    stage: Optional[str] = Query(None, description="Filter by current stage key"),
    search: Optional[str] = Query(None, description="Substring of WO number, customer or item code"),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
) -> List[WorkOrderRead]:
    repo = WorkOrderRepository(session)
    items = await repo.list_work_orders(status=status, stage=stage, search=search, limit=limit, offset=offset)
    return [WorkOrderRead.model_validate(x) for x in items]


# PUBLIC_INTERFACE
@router.get(
    "/work-orders/{wo_id}",
    response_model=WorkOrderRead,
    summary="Get work order",
    dependencies=[Depends(require_roles(*VIEW_ROLES))],
)
async def get_work_order(
    wo_id: UUID = Path(...),
    session: AsyncSession = Depends(get_async_session),
) -> WorkOrderRead:
    wo = await ProductionService(session).get_work_order(wo_id)
    return WorkOrderRead.model_validate(wo)


# PUBLIC_INTERFACE
@router.get(
    "/work-orders/{wo_id}/stage-flow",
    response_model=StageFlowRead,
    summary="Stage flow",
    description="Position of the work order in the fixed stage list; each step is done, active or pending.",
    dependencies=[Depends(require_roles(*VIEW_ROLES))],
)
async def get_stage_flow(
    wo_id: UUID = Path(...),
    session: AsyncSession = Depends(get_async_session),
) -> StageFlowRead:
    wo = await ProductionService(session).get_work_order(wo_id)
    return StageFlowRead(
        work_order_id=wo.id,
        current_stage=wo.current_stage,
        current_label=stage_label(wo.current_stage) or None,
        progress_percent=progress_percent(wo.current_stage),
        steps=[StageStepRead.model_validate(s) for s in stage_flow(wo.current_stage)],
    )


# PUBLIC_INTERFACE
@router.post(
    "/work-orders/{wo_id}/stage",
    response_model=StageHistoryRead,
    status_code=201,
    summary="Change stage",
    description="Move a work order to another stage. The change is recorded in the stage history.",
)
async def change_stage(
    payload: StageChangeRequest,
    wo_id: UUID = Path(...),
    session: AsyncSession = Depends(get_async_session),
    principal: Principal = Depends(require_roles("production:manage")),
) -> StageHistoryRead:
    entry = await ProductionService(session).change_stage(wo_id, payload, principal)
    return StageHistoryRead.model_validate(entry)


# PUBLIC_INTERFACE
@router.get(
    "/work-orders/{wo_id}/stage-history",
    response_model=List[StageHistoryRead],
    summary="Stage history",
    dependencies=[Depends(require_roles(*VIEW_ROLES))],
)
async def list_stage_history(
    wo_id: UUID = Path(...),
    session: AsyncSession = Depends(get_async_session),
) -> List[StageHistoryRead]:
    rows = await WorkOrderRepository(session).list_stage_history(wo_id)
    return [StageHistoryRead.model_validate(x) for x in rows]


# PUBLIC_INTERFACE
@router.get(
    "/work-orders/{wo_id}/batches",
    response_model=List[ProductionBatchRead],
    summary="List batches of a work order",
    dependencies=[Depends(require_roles(*VIEW_ROLES, "quality:view", "logistics:view"))],
)
async def list_batches(
    wo_id: UUID = Path(...),
    session: AsyncSession = Depends(get_async_session),
) -> List[ProductionBatchRead]:
    rows = await ProductionService(session).list_batches(wo_id)
    return [ProductionBatchRead.model_validate(x) for x in rows]


# PUBLIC_INTERFACE
@router.get(
    "/work-orders/{wo_id}/quantities",
    response_model=WOQuantitiesRead,
    summary="Quantity breakdown",
    description="In production, at external partners, QC, packed and dispatched pieces of a work order.",
    dependencies=[Depends(require_roles(*VIEW_ROLES))],
)
async def get_quantities(
    wo_id: UUID = Path(...),
    session: AsyncSession = Depends(get_async_session),
) -> WOQuantitiesRead:
    quantities = await ProductionService(session).get_quantities(wo_id)
    return WOQuantitiesRead.model_validate(quantities)


# PUBLIC_INTERFACE
@router.get(
    "/work-orders/{wo_id}/batch-status",
    response_model=WOBatchStatusRead,
    summary="Batch-aware status",
    dependencies=[Depends(require_roles(*VIEW_ROLES))],
)
async def get_batch_status(
    wo_id: UUID = Path(...),
    session: AsyncSession = Depends(get_async_session),
) -> WOBatchStatusRead:
    status = await ProductionService(session).get_batch_status(wo_id)
    return WOBatchStatusRead.model_validate(status)
