from __future__ import annotations

from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from factory_ops.core.deps import require_roles
from factory_ops.db.session import get_async_session
from factory_ops.repositories.procurement import RawPurchaseOrderRepository
from factory_ops.schemas.procurement import RawPurchaseOrderRead
from factory_ops.workflow.procurement import rpo_progress

router = APIRouter(prefix="/procurement", tags=["Procurement"])


# PUBLIC_INTERFACE
@router.get(
    "/rpos",
    response_model=List[RawPurchaseOrderRead],
    summary="List raw-material purchase orders",
    description="RPOs ordered by expected delivery, with received percentage and past-due flag.",
    dependencies=[Depends(require_roles("procurement:view", "procurement:manage"))],
)
async def list_rpos(
    session: AsyncSession = Depends(get_async_session),
    status: Optional[str] = Query(None, description="Filter by status"),
    wo_id: Optional[UUID] = Query(None, description="Filter by work order"),
    as_of: Optional[date] = Query(None, description="Evaluate past-due as of this date (default: today)"),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
) -> List[RawPurchaseOrderRead]:
    today = as_of or date.today()
    rows = await RawPurchaseOrderRepository(session).list_rpos(status=status, wo_id=wo_id, limit=limit, offset=offset)
    return [
        RawPurchaseOrderRead(
            id=x.id,
            rpo_no=x.rpo_no,
            status=x.status,
            supplier_name=x.supplier_name,
            wo_id=x.wo_id,
            item_code=x.item_code,
            alloy=x.alloy,
            qty_ordered_kg=x.qty_ordered_kg,
            qty_received_kg=x.qty_received_kg or 0,
            rate_per_kg=x.rate_per_kg,
            amount_ordered=x.amount_ordered,
            expected_delivery_date=x.expected_delivery_date,
            **rpo_progress(x, today),
        )
        for x in rows
    ]
