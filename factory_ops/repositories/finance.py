from __future__ import annotations

from datetime import date
from typing import List

from sqlalchemy import select

from factory_ops.db.models.finance import Invoice
from .base import BaseRepository


class InvoiceRepository(BaseRepository):
    """Repository for invoices."""

    async def list_overdue_invoices(self, *, today: date, limit: int, offset: int) -> List[Invoice]:
        stmt = (
            select(Invoice)
            .where(Invoice.due_date < today)
            .where(Invoice.balance_amount > 0)
            .where(Invoice.status.not_in(["paid", "cancelled", "draft"]))
            .order_by(Invoice.due_date.asc())
            .offset(offset)
            .limit(limit)
        )
        res = await self.scalars(stmt)
        return list(res)
