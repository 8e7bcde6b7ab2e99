from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from factory_ops.core.deps import require_roles
from factory_ops.db.session import get_async_session
from factory_ops.repositories.sales import SalesOrderRepository
from factory_ops.schemas.sales import SalesOrderRead
from factory_ops.workflow.sales import order_total, ordered_pieces

router = APIRouter(prefix="/sales", tags=["Sales"])


# PUBLIC_INTERFACE
@router.get(
    "/orders",
    response_model=List[SalesOrderRead],
    summary="List sales orders",
    description="Newest first, with totals. Search matches the SO number, customer or PO number.",
    dependencies=[Depends(require_roles("sales:view", "sales:manage"))],
)
async def list_sales_orders(
    session: AsyncSession = Depends(get_async_session),
    status: Optional[str] = Query(None, description="Filter by status (pending, approved...)"),
    search: Optional[str] = Query(None, description="Search text"),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
) -> List[SalesOrderRead]:
    rows = await SalesOrderRepository(session).list_sales_orders(
        status=status, search=search, limit=limit, offset=offset
    )
    return [
        SalesOrderRead(
            id=x.id,
            so_id=x.so_id,
            customer=x.customer,
            po_number=x.po_number,
            po_date=x.po_date,
            expected_delivery_date=x.expected_delivery_date,
            currency=x.currency,
            status=x.status,
            total_amount=order_total(x.total_amount, x.items),
            line_count=len(x.items or []),
            ordered_pieces=ordered_pieces(x.items),
            created_at=x.created_at,
        )
        for x in rows
    ]
