from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func, select

from factory_ops.db.models.logistics import Carton, Dispatch, FinishedGoodsInventory
from factory_ops.db.models.production import WorkOrder
from .base import BaseRepository


class LogisticsRepository(BaseRepository):
    """Repository for cartons, dispatches and finished goods stock."""

    async def packed_quantity_for_batch(self, batch_id: UUID) -> int:
        stmt = select(func.coalesce(func.sum(Carton.quantity), 0)).where(
            Carton.production_batch_id == batch_id
        )
        return int(await self.scalar(stmt) or 0)

    async def list_cartons(
        self,
        *,
        wo_id: Optional[UUID],
        status: Optional[str],
        limit: int,
        offset: int,
    ) -> List[Carton]:
        stmt = select(Carton)
        if wo_id:
            stmt = stmt.where(Carton.wo_id == wo_id)
        if status:
            stmt = stmt.where(Carton.status == status)
        stmt = stmt.order_by(Carton.built_at.desc()).offset(offset).limit(limit)
        res = await self.scalars(stmt)
        return list(res)

    async def carton_quantities_for_work_order(self, wo_id: UUID) -> List[int]:
        res = await self.scalars(select(Carton.quantity).where(Carton.wo_id == wo_id))
        return list(res)

    async def get_cartons_by_ids(self, ids: List[UUID]) -> List[Carton]:
        if not ids:
            return []
        res = await self.scalars(select(Carton).where(Carton.id.in_(ids)))
        return list(res)

    async def get_carton_for_update(self, carton_id: UUID) -> Optional[Carton]:
        return await self.get_locked(Carton, carton_id)

    async def count_cartons_with_prefix(self, prefix: str) -> int:
        stmt = select(func.count()).select_from(Carton).where(Carton.carton_id.startswith(prefix, autoescape=True))
        return int(await self.scalar(stmt) or 0)

    async def list_dispatches(
        self,
        *,
        wo_id: Optional[UUID],
        since: Optional[datetime],
        limit: int,
        offset: int,
    ) -> List[Dispatch]:
        stmt = select(Dispatch)
        if wo_id:
            stmt = stmt.where(Dispatch.wo_id == wo_id)
        if since:
            stmt = stmt.where(Dispatch.dispatched_at >= since)
        stmt = stmt.order_by(Dispatch.dispatched_at.desc()).offset(offset).limit(limit)
        res = await self.scalars(stmt)
        return list(res)

    async def dispatch_quantities_for_work_order(self, wo_id: UUID) -> List[int]:
        res = await self.scalars(select(Dispatch.quantity).where(Dispatch.wo_id == wo_id))
        return list(res)

    async def ready_carton_totals(self, wo_id: UUID) -> Tuple[int, int]:
        """(packed quantity, dispatched quantity) over cartons ready for dispatch."""
        stmt = select(
            func.coalesce(func.sum(Carton.quantity), 0),
            func.coalesce(func.sum(Carton.dispatched_qty), 0),
        ).where(Carton.wo_id == wo_id, Carton.status == "ready_for_dispatch")
        res = await self.execute(stmt)
        packed, dispatched = res.one()
        return int(packed or 0), int(dispatched or 0)

    async def inventory_available_for_item(self, item_code: str) -> int:
        stmt = select(
            func.coalesce(
                func.sum(FinishedGoodsInventory.quantity_available - FinishedGoodsInventory.quantity_reserved),
                0,
            )
        ).where(FinishedGoodsInventory.item_code == item_code)
        return int(await self.scalar(stmt) or 0)

    async def list_open_cartons_with_weight(self) -> List[Tuple[Carton, Optional[float]]]:
        """Cartons still holding undispatched pieces, with the net weight per piece of their WO."""
        stmt = (
            select(Carton, WorkOrder.net_weight_per_pc)
            .join(WorkOrder, WorkOrder.id == Carton.wo_id, isouter=True)
            .where((Carton.status == "packed") | (Carton.dispatched_qty < Carton.quantity))
        )
        res = await self.execute(stmt)
        return [(row[0], row[1]) for row in res.all()]
