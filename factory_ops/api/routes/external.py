from __future__ import annotations

from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from factory_ops.core.deps import require_roles
from factory_ops.core.security import Principal
from factory_ops.db.session import get_async_session
from factory_ops.repositories.external import ExternalRepository
from factory_ops.schemas.external import (
    ExternalMoveCreate,
    ExternalMoveRead,
    ExternalPartnerRead,
    OverdueReturnRead,
    PartnerPendingRead,
    ReceiptCreate,
    ReminderRunResult,
)
from factory_ops.services.external import ExternalService
from factory_ops.workflow.external import group_by_partner

router = APIRouter(prefix="/external", tags=["External Processing"])

VIEW_ROLES = ("logistics:view", "logistics:manage", "production:view")


# PUBLIC_INTERFACE
@router.get(
    "/partners",
    response_model=List[ExternalPartnerRead],
    summary="List external partners",
    dependencies=[Depends(require_roles(*VIEW_ROLES))],
)
async def list_partners(
    session: AsyncSession = Depends(get_async_session),
    process_type: Optional[str] = Query(None, description="Filter by process (plating, buffing...)"),
    active_only: bool = Query(True, description="Only active partners"),
) -> List[ExternalPartnerRead]:
    rows = await ExternalRepository(session).list_partners(process_type=process_type, active_only=active_only)
    return [ExternalPartnerRead.model_validate(x) for x in rows]


# PUBLIC_INTERFACE
@router.get(
    "/moves",
    response_model=List[ExternalMoveRead],
    summary="List external moves",
    dependencies=[Depends(require_roles(*VIEW_ROLES))],
)
async def list_moves(
    session: AsyncSession = Depends(get_async_session),
    work_order_id: Optional[UUID] = Query(None, description="Filter by work order"),
    status: Optional[str] = Query(None, description="Filter by status (sent, partial, received_full)"),
    process: Optional[str] = Query(None, description="Filter by process"),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
) -> List[ExternalMoveRead]:
    rows = await ExternalRepository(session).list_moves(
        work_order_id=work_order_id, status=status, process=process, limit=limit, offset=offset
    )
    return [ExternalMoveRead.model_validate(x) for x in rows]


# PUBLIC_INTERFACE
@router.post(
    "/moves",
    response_model=ExternalMoveRead,
    status_code=201,
    summary="Send to external partner",
    description="Record pieces sent to a partner under a challan.",
)
async def send_to_external(
    payload: ExternalMoveCreate,
    session: AsyncSession = Depends(get_async_session),
    principal: Principal = Depends(require_roles("logistics:manage", "production:manage")),
) -> ExternalMoveRead:
    move = await ExternalService(session).send_to_external(payload, principal)
    return ExternalMoveRead.model_validate(move)


# PUBLIC_INTERFACE
@router.post(
    "/moves/{move_id}/receipts",
    response_model=ExternalMoveRead,
    summary="Receive from external partner",
    description="Record pieces returned by a partner; the move becomes partial or received_full.",
    dependencies=[Depends(require_roles("logistics:manage", "production:manage"))],
)
async def record_receipt(
    payload: ReceiptCreate,
    move_id: UUID = Path(...),
    session: AsyncSession = Depends(get_async_session),
) -> ExternalMoveRead:
    move = await ExternalService(session).record_receipt(move_id, payload)
    return ExternalMoveRead.model_validate(move)


# PUBLIC_INTERFACE
@router.get(
    "/overdue-returns",
    response_model=List[OverdueReturnRead],
    summary="Overdue external returns",
    description="Moves past their expected return date with pieces still at the partner, with severity.",
    dependencies=[Depends(require_roles(*VIEW_ROLES))],
)
async def overdue_returns(
    session: AsyncSession = Depends(get_async_session),
    process: Optional[str] = Query(None, description="Only moves matching this process"),
    as_of: Optional[date] = Query(None, description="Evaluate as of this date (default: today)"),
) -> List[OverdueReturnRead]:
    rows = await ExternalService(session).overdue_returns(as_of or date.today(), process=process)
    return [OverdueReturnRead.model_validate(x) for x in rows]


# PUBLIC_INTERFACE
@router.get(
    "/overdue-returns/by-partner",
    response_model=List[PartnerPendingRead],
    summary="Overdue pieces per partner",
    description="Pending pieces of overdue moves summed per partner, largest first.",
    dependencies=[Depends(require_roles(*VIEW_ROLES))],
)
async def overdue_returns_by_partner(
    session: AsyncSession = Depends(get_async_session),
    process: Optional[str] = Query(None, description="Only moves matching this process"),
    as_of: Optional[date] = Query(None, description="Evaluate as of this date (default: today)"),
) -> List[PartnerPendingRead]:
    rows = await ExternalService(session).overdue_returns(as_of or date.today(), process=process)
    totals = sorted(group_by_partner(rows).items(), key=lambda kv: (-kv[1], kv[0]))
    return [PartnerPendingRead(partner_name=name, pcs_pending=pcs) for name, pcs in totals]


# PUBLIC_INTERFACE
@router.post(
    "/reminders/run",
    response_model=ReminderRunResult,
    summary="Send external return reminders",
    description="Notify logistics users about moves that are overdue or due within the reminder window.",
    dependencies=[Depends(require_roles("logistics:manage"))],
)
async def run_reminders(
    session: AsyncSession = Depends(get_async_session),
    as_of: Optional[date] = Query(None, description="Evaluate as of this date (default: today)"),
) -> ReminderRunResult:
    run = await ExternalService(session).run_reminders(as_of or date.today())
    if run.moves == 0:
        message = "No external moves requiring notification"
    else:
        message = f"Created {run.notifications} notifications for {run.moves} moves"
    return ReminderRunResult(message=message, moves=run.moves, notifications=run.notifications)
