from __future__ import annotations

import logging
from typing import List
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from factory_ops.core.security import Principal
from factory_ops.db.models.production import ProductionBatch, WorkOrder, WorkOrderStageHistory
from factory_ops.repositories.logistics import LogisticsRepository
from factory_ops.repositories.production import ProductionBatchRepository, WorkOrderRepository
from factory_ops.schemas.production import StageChangeRequest
from factory_ops.services.base import BaseService
from factory_ops.workflow.errors import EntityNotFoundError
from factory_ops.workflow.quantities import (
    WOBatchQuantities,
    WOBatchStatus,
    wo_batch_quantities,
    wo_batch_status,
)
from factory_ops.workflow.stages import require_known_stage, stage_index

logger = logging.getLogger(__name__)


class ProductionService(BaseService):
    """
    Domain service for work orders and production batches.

    Loads the rows a view needs, applies the workflow derivations and publishes
    change notifications after writes.
    """

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.wo_repo = WorkOrderRepository(session)
        self.batch_repo = ProductionBatchRepository(session)
        self.logistics_repo = LogisticsRepository(session)

    async def get_work_order(self, wo_id: UUID) -> WorkOrder:
        wo = await self.wo_repo.get_work_order(wo_id)
        if wo is None:
            raise EntityNotFoundError("Work order not found", details={"work_order_id": str(wo_id)})
        return wo

    # PUBLIC_INTERFACE
    async def change_stage(
        self, wo_id: UUID, request: StageChangeRequest, principal: Principal
    ) -> WorkOrderStageHistory:
        """
        Record a stage change of a work order and notify subscribers.

        Raises:
            UnknownStageError: target stage is not a workflow stage.
            EntityNotFoundError: work order does not exist.
        """
        to_stage = require_known_stage(request.to_stage)
        wo = await self.get_work_order(wo_id)
        from_stage = wo.current_stage

        # Moving backwards is allowed but always recorded as an override
        is_override = request.is_override or stage_index(to_stage) < stage_index(from_stage)
        entry = WorkOrderStageHistory(
            wo_id=wo.id,
            from_stage=from_stage,
            to_stage=to_stage,
            changed_by=principal.user_uuid,
            is_override=is_override,
            remarks=request.remarks,
        )
        wo.current_stage = to_stage
        await self.wo_repo.add_stage_history(entry)
        await self.wo_repo.commit()
        logger.info("Work order %s moved %s -> %s", wo.display_id or wo.id, from_stage, to_stage)

        await self._notify("work_orders", "UPDATE", wo_id=wo.id, row_id=wo.id)
        await self._notify("wo_stage_history", "INSERT", wo_id=wo.id, row_id=entry.id)
        return entry

    async def list_batches(self, wo_id: UUID) -> List[ProductionBatch]:
        await self.get_work_order(wo_id)
        return await self.batch_repo.list_for_work_order(wo_id)

    # PUBLIC_INTERFACE
    async def get_quantities(self, wo_id: UUID) -> WOBatchQuantities:
        """Live quantity breakdown of a work order from its batches, cartons and dispatches."""
        wo = await self.get_work_order(wo_id)
        batches = await self.batch_repo.list_for_work_order(wo_id)
        cartons = await self.logistics_repo.carton_quantities_for_work_order(wo_id)
        dispatches = await self.logistics_repo.dispatch_quantities_for_work_order(wo_id)
        return wo_batch_quantities(wo.quantity, batches, cartons, dispatches)

    # PUBLIC_INTERFACE
    async def get_batch_status(self, wo_id: UUID) -> WOBatchStatus:
        """Batch-aware status of a work order."""
        wo = await self.get_work_order(wo_id)
        batches = await self.batch_repo.list_for_work_order(wo_id)
        return wo_batch_status(wo.quantity, wo.status, batches)

