from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from sqlalchemy import or_, select

from factory_ops.db.models.production import ProductionBatch, WorkOrder, WorkOrderStageHistory
from .base import BaseRepository


class WorkOrderRepository(BaseRepository):
    """Repository for work orders and their stage history."""

    async def list_work_orders(
        self,
        *,
        status: Optional[str],
        stage: Optional[str],
        search: Optional[str],
        limit: int,
        offset: int,
    ) -> List[WorkOrder]:
        stmt = select(WorkOrder)
        if status:
            stmt = stmt.where(WorkOrder.status == status)
        if stage:
            stmt = stmt.where(WorkOrder.current_stage == stage)
        if search:
            like = f"%{search}%"
            stmt = stmt.where(
                or_(
                    WorkOrder.display_id.ilike(like),
                    WorkOrder.customer.ilike(like),
                    WorkOrder.item_code.ilike(like),
                )
            )
        stmt = stmt.order_by(WorkOrder.created_at.desc()).offset(offset).limit(limit)
        res = await self.scalars(stmt)
        return list(res)

    async def get_work_order(self, wo_id: UUID) -> Optional[WorkOrder]:
        stmt = select(WorkOrder).where(WorkOrder.id == wo_id)
        return await self.scalar_one_or_none(stmt)

    async def get_work_orders_by_ids(self, ids: List[UUID]) -> List[WorkOrder]:
        if not ids:
            return []
        res = await self.scalars(select(WorkOrder).where(WorkOrder.id.in_(ids)))
        return list(res)

    async def add_stage_history(self, entry: WorkOrderStageHistory) -> None:
        await self.add(entry)

    async def list_stage_history(self, wo_id: UUID) -> List[WorkOrderStageHistory]:
        stmt = (
            select(WorkOrderStageHistory)
            .where(WorkOrderStageHistory.wo_id == wo_id)
            .order_by(WorkOrderStageHistory.changed_at.desc())
        )
        res = await self.scalars(stmt)
        return list(res)


class ProductionBatchRepository(BaseRepository):
    """Repository for production batches."""

    async def list_for_work_order(self, wo_id: UUID) -> List[ProductionBatch]:
        stmt = (
            select(ProductionBatch)
            .where(ProductionBatch.wo_id == wo_id)
            .order_by(ProductionBatch.batch_number.asc())
        )
        res = await self.scalars(stmt)
        return list(res)

    async def get_batch(self, batch_id: UUID) -> Optional[ProductionBatch]:
        stmt = select(ProductionBatch).where(ProductionBatch.id == batch_id)
        return await self.scalar_one_or_none(stmt)

    async def get_batch_for_update(self, batch_id: UUID) -> Optional[ProductionBatch]:
        return await self.get_locked(ProductionBatch, batch_id)

    async def get_batches_by_ids(self, ids: List[UUID]) -> List[ProductionBatch]:
        if not ids:
            return []
        res = await self.scalars(select(ProductionBatch).where(ProductionBatch.id.in_(ids)))
        return list(res)
