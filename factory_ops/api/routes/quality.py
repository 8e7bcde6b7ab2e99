from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from factory_ops.core.deps import require_roles
from factory_ops.core.security import Principal
from factory_ops.db.session import get_async_session
from factory_ops.repositories.quality import QualityRepository
from factory_ops.schemas.quality import (
    FailureReasonRead,
    GateSummaryRead,
    InProcessStatusRead,
    InspectionCreate,
    InspectionResult,
    NCRCreate,
    NCRRead,
    QCRecordRead,
    RejectionExceedanceRead,
)
from factory_ops.services.quality import QualityService
from factory_ops.workflow.ncr import FAILURE_REASONS, category_label

router = APIRouter(prefix="/quality", tags=["Quality"])

VIEW_ROLES = ("quality:view", "quality:manage")


# PUBLIC_INTERFACE
@router.get(
    "/qc-records",
    response_model=List[QCRecordRead],
    summary="List QC records",
    description="List QC records ordered by inspection time desc.",
    dependencies=[Depends(require_roles(*VIEW_ROLES))],
)
async def list_qc_records(
    session: AsyncSession = Depends(get_async_session),
    wo_id: Optional[UUID] = Query(None, description="Filter by work order"),
    qc_type: Optional[str] = Query(None, description="Filter by gate (material, first_piece, final)"),
    result: Optional[str] = Query(None, description="Filter by result"),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
) -> List[QCRecordRead]:
    repo = QualityRepository(session)
    rows = await repo.list_qc_records(wo_id=wo_id, qc_type=qc_type, result=result, limit=limit, offset=offset)
    return [QCRecordRead.model_validate(x) for x in rows]


# PUBLIC_INTERFACE
@router.post(
    "/batches/{batch_id}/inspections",
    response_model=InspectionResult,
    status_code=201,
    summary="Record a QC gate decision",
    description=(
        "Record a material, first-piece or final QC decision for a batch. Final decisions add the "
        "approved and rejected pieces to the batch. The response tells whether an NCR is warranted."
    ),
)
async def record_inspection(
    payload: InspectionCreate,
    batch_id: UUID = Path(...),
    session: AsyncSession = Depends(get_async_session),
    principal: Principal = Depends(require_roles("quality:manage")),
) -> InspectionResult:
    outcome = await QualityService(session).record_inspection(batch_id, payload, principal)
    return InspectionResult(
        record=QCRecordRead.model_validate(outcome.record),
        gate_status=outcome.gate_status,
        rejection_rate=outcome.rejection_rate,
        requires_ncr=outcome.requires_ncr,
        exceedances=[RejectionExceedanceRead.model_validate(e) for e in outcome.exceedances],
    )


# PUBLIC_INTERFACE
@router.get(
    "/ncrs",
    response_model=List[NCRRead],
    summary="List NCRs",
    dependencies=[Depends(require_roles(*VIEW_ROLES))],
)
async def list_ncrs(
    session: AsyncSession = Depends(get_async_session),
    work_order_id: Optional[UUID] = Query(None, description="Filter by work order"),
    status: Optional[str] = Query(None, description="Filter by status"),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
) -> List[NCRRead]:
    repo = QualityRepository(session)
    rows = await repo.list_ncrs(work_order_id=work_order_id, status=status, limit=limit, offset=offset)
    return [NCRRead.model_validate(x) for x in rows]


# PUBLIC_INTERFACE
@router.post(
    "/ncrs",
    response_model=NCRRead,
    status_code=201,
    summary="Raise NCR",
)
async def raise_ncr(
    payload: NCRCreate,
    session: AsyncSession = Depends(get_async_session),
    principal: Principal = Depends(require_roles("quality:manage")),
) -> NCRRead:
    ncr = await QualityService(session).raise_ncr(payload, principal)
    return NCRRead.model_validate(ncr)


# PUBLIC_INTERFACE
@router.get(
    "/work-orders/{wo_id}/gates",
    response_model=List[GateSummaryRead],
    summary="QC gate summary",
    description="Material, first-piece and final gate status of every batch, with the dispatch block reason.",
    dependencies=[Depends(require_roles(*VIEW_ROLES, "logistics:view"))],
)
async def gate_summary(
    wo_id: UUID = Path(...),
    session: AsyncSession = Depends(get_async_session),
) -> List[GateSummaryRead]:
    return await QualityService(session).gate_summary(wo_id)


# PUBLIC_INTERFACE
@router.get(
    "/work-orders/{wo_id}/in-process",
    response_model=InProcessStatusRead,
    summary="In-process (hourly) QC status",
    description="Status of the hourly dimensional checks of a work order; the latest check decides it.",
    dependencies=[Depends(require_roles(*VIEW_ROLES, "production:view"))],
)
async def in_process_status(
    wo_id: UUID = Path(...),
    session: AsyncSession = Depends(get_async_session),
    limit: int = Query(200, ge=1, le=1000, description="Most recent checks to consider"),
) -> InProcessStatusRead:
    return await QualityService(session).in_process_status(wo_id, limit=limit)


# PUBLIC_INTERFACE
@router.get(
    "/failure-reasons",
    response_model=List[FailureReasonRead],
    summary="QC failure reasons",
    dependencies=[Depends(require_roles(*VIEW_ROLES))],
)
def list_failure_reasons() -> List[FailureReasonRead]:
    return [
        FailureReasonRead(id=r.id, label=r.label, category=r.category, category_label=category_label(r.category))
        for r in FAILURE_REASONS
    ]
