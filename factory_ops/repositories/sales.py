from __future__ import annotations

from typing import List, Optional

from sqlalchemy import or_, select

from factory_ops.db.models.sales import SalesOrder
from .base import BaseRepository


class SalesOrderRepository(BaseRepository):
    """Repository for customer sales orders."""

    async def list_sales_orders(
        self,
        *,
        status: Optional[str],
        search: Optional[str],
        limit: int,
        offset: int,
    ) -> List[SalesOrder]:
        stmt = select(SalesOrder)
        if status:
            stmt = stmt.where(SalesOrder.status == status)
        if search:
            pattern = f"%{search}%"
            stmt = stmt.where(
                or_(
                    SalesOrder.so_id.ilike(pattern),
                    SalesOrder.customer.ilike(pattern),
                    SalesOrder.po_number.ilike(pattern),
                )
            )
        stmt = stmt.order_by(SalesOrder.created_at.desc()).offset(offset).limit(limit)
        res = await self.scalars(stmt)
        return list(res)
