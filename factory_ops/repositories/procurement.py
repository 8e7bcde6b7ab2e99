from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from sqlalchemy import select

from factory_ops.db.models.procurement import RawPurchaseOrder
from .base import BaseRepository


class RawPurchaseOrderRepository(BaseRepository):
    """Repository for raw-material purchase orders."""

    async def list_rpos(
        self,
        *,
        status: Optional[str],
        wo_id: Optional[UUID],
        limit: int,
        offset: int,
    ) -> List[RawPurchaseOrder]:
        stmt = select(RawPurchaseOrder)
        if status:
            stmt = stmt.where(RawPurchaseOrder.status == status)
        if wo_id:
            stmt = stmt.where(RawPurchaseOrder.wo_id == wo_id)
        stmt = (
            stmt.order_by(RawPurchaseOrder.expected_delivery_date.asc().nullslast())
            .offset(offset)
            .limit(limit)
        )
        res = await self.scalars(stmt)
        return list(res)
