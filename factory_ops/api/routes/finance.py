from __future__ import annotations

from datetime import date
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from factory_ops.core.deps import require_roles
from factory_ops.db.session import get_async_session
from factory_ops.repositories.finance import InvoiceRepository
from factory_ops.schemas.finance import OverdueInvoiceRead
from factory_ops.workflow.ageing import invoice_days_late, invoice_lateness_tier
from factory_ops.workflow.display import format_compact_inr

router = APIRouter(prefix="/finance", tags=["Finance"])


def overdue_invoice_read(invoice: Any, today: date) -> OverdueInvoiceRead:
    days_late = invoice_days_late(invoice.due_date, today)
    return OverdueInvoiceRead(
        id=invoice.id,
        invoice_no=invoice.invoice_no,
        customer_name=invoice.customer_name,
        invoice_date=invoice.invoice_date,
        due_date=invoice.due_date,
        currency=invoice.currency,
        total_amount=invoice.total_amount,
        balance_amount=invoice.balance_amount,
        days_late=days_late,
        tier=invoice_lateness_tier(days_late),
        balance_display=format_compact_inr(invoice.balance_amount),
    )


# PUBLIC_INTERFACE
@router.get(
    "/overdue-invoices",
    response_model=List[OverdueInvoiceRead],
    summary="Overdue invoices",
    description="Unpaid invoices past their due date, oldest first, with days late and lateness tier.",
    dependencies=[Depends(require_roles("finance:view", "finance:manage"))],
)
async def list_overdue_invoices(
    session: AsyncSession = Depends(get_async_session),
    as_of: Optional[date] = Query(None, description="Evaluate as of this date (default: today)"),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
) -> List[OverdueInvoiceRead]:
    today = as_of or date.today()
    rows = await InvoiceRepository(session).list_overdue_invoices(today=today, limit=limit, offset=offset)
    return [overdue_invoice_read(x, today) for x in rows]
