from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import List
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from factory_ops.core.security import Principal
from factory_ops.core.settings import get_app_settings
from factory_ops.db.models.logistics import Carton, Dispatch
from factory_ops.db.models.production import ProductionBatch
from factory_ops.repositories.logistics import LogisticsRepository
from factory_ops.repositories.production import ProductionBatchRepository, WorkOrderRepository
from factory_ops.schemas.logistics import CartonCreate, DispatchCreate
from factory_ops.services.base import BaseService
from factory_ops.workflow.ageing import AgeingBucket, ageing_buckets, ageing_risk_percent
from factory_ops.workflow.errors import EntityNotFoundError, InvalidQuantityError
from factory_ops.workflow.numeric import WEIGHT_COLUMN, clamp_integer, clamp_weight, would_overflow
from factory_ops.workflow.qc_status import ensure_dispatch_allowed
from factory_ops.workflow.quantities import (
    DispatchEligibility,
    PackableQuantity,
    dispatch_eligibility,
    dispatchable_quantity,
    packable_quantity,
    validate_dispatch_quantity,
    validate_packing_quantity,
)

logger = logging.getLogger(__name__)


@dataclass
class AgeingReport:
    buckets: List[AgeingBucket]
    risk_percent: int
    risk_days: int


class LogisticsService(BaseService):
    """
    Domain service for packing and dispatch.

    Packing and dispatch writes lock the batch row and validate against balances read
    in the same transaction, mirroring the store's triggers.
    """

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.repo = LogisticsRepository(session)
        self.batch_repo = ProductionBatchRepository(session)
        self.wo_repo = WorkOrderRepository(session)

    async def _locked_batch(self, batch_id: UUID) -> ProductionBatch:
        batch = await self.batch_repo.get_batch_for_update(batch_id)
        if batch is None:
            raise EntityNotFoundError("Batch not found", details={"batch_id": str(batch_id)})
        return batch

    # PUBLIC_INTERFACE
    async def packable(self, batch_id: UUID) -> PackableQuantity:
        """QC-approved pieces of a batch not yet packed."""
        batch = await self.batch_repo.get_batch(batch_id)
        if batch is None:
            raise EntityNotFoundError("Batch not found", details={"batch_id": str(batch_id)})
        packed = await self.repo.packed_quantity_for_batch(batch_id)
        return packable_quantity(batch.qc_approved_qty, packed)

    # PUBLIC_INTERFACE
    async def create_carton(self, payload: CartonCreate, principal: Principal) -> Carton:
        """
        Pack pieces of a batch into a new carton.

        Raises:
            InvalidQuantityError: quantity is not positive.
            QuantityExceededError: quantity is above the batch's packable balance.
        """
        batch = await self._locked_batch(payload.batch_id)
        packed = await self.repo.packed_quantity_for_batch(batch.id)
        balance = packable_quantity(batch.qc_approved_qty, packed)
        validate_packing_quantity(payload.quantity, balance)

        carton_id = payload.carton_id
        if not carton_id:
            wo = await self.wo_repo.get_work_order(batch.wo_id)
            prefix = f"{(wo.display_id if wo else None) or 'WO'}-B{batch.batch_number}-C"
            carton_id = f"{prefix}{await self.repo.count_cartons_with_prefix(prefix) + 1:03d}"

        for name in ("net_weight", "gross_weight"):
            value = getattr(payload, name)
            if would_overflow(value, *WEIGHT_COLUMN):
                logger.warning("Carton %s: %s %s clamped to numeric%s", carton_id, name, value, WEIGHT_COLUMN)

        carton = Carton(
            carton_id=carton_id,
            wo_id=batch.wo_id,
            production_batch_id=batch.id,
            quantity=payload.quantity,
            dispatched_qty=0,
            status="packed",
            net_weight=clamp_weight(payload.net_weight),
            gross_weight=clamp_weight(payload.gross_weight),
            heat_nos=list(payload.heat_nos),
            built_by=principal.user_uuid,
        )
        await self.repo.add(carton)
        await self.repo.commit()
        logger.info(
            "Packed carton %s with %d pcs from batch #%s (%d left to pack)",
            carton_id, payload.quantity, batch.batch_number, balance.available - payload.quantity,
        )
        await self._notify("cartons", "INSERT", wo_id=batch.wo_id, row_id=carton.id)
        return carton

    # PUBLIC_INTERFACE
    async def mark_ready_for_dispatch(self, carton_id: UUID) -> Carton:
        """
        Release a packed carton for dispatch once its batch has passed every QC gate.

        Raises:
            DispatchBlockedError: a QC gate of the carton's batch is not complete.
        """
        carton = await self.repo.get_carton_for_update(carton_id)
        if carton is None:
            raise EntityNotFoundError("Carton not found", details={"carton_id": str(carton_id)})
        if carton.production_batch_id is not None:
            batch = await self.batch_repo.get_batch(carton.production_batch_id)
            if batch is not None:
                ensure_dispatch_allowed(batch)
        if carton.status == "packed":
            carton.status = "ready_for_dispatch"
            await self.repo.commit()
            await self._notify("cartons", "UPDATE", wo_id=carton.wo_id, row_id=carton.id)
        return carton

    # PUBLIC_INTERFACE
    async def create_dispatch(self, payload: DispatchCreate, principal: Principal) -> Dispatch:
        """
        Dispatch pieces of a batch.

        All QC gates of the batch must be complete and the quantity must fit the
        dispatchable balance (QC approved minus already dispatched), and the carton's
        remaining pieces when a carton is given.

        Raises:
            DispatchBlockedError: a QC gate is not complete.
            InvalidQuantityError / QuantityExceededError: quantity is invalid.
        """
        batch = await self._locked_batch(payload.batch_id)
        ensure_dispatch_allowed(batch)
        available = dispatchable_quantity(batch.qc_approved_qty, batch.dispatched_qty)

        carton = None
        if payload.carton_id is not None:
            carton = await self.repo.get_carton_for_update(payload.carton_id)
            if carton is None:
                raise EntityNotFoundError("Carton not found", details={"carton_id": str(payload.carton_id)})
            if carton.production_batch_id != batch.id:
                raise InvalidQuantityError(
                    f"Carton {carton.carton_id} does not belong to Batch #{batch.batch_number}"
                )
            available = min(available, carton.quantity - (carton.dispatched_qty or 0))

        validate_dispatch_quantity(payload.quantity, available)

        batch.dispatched_qty = clamp_integer((batch.dispatched_qty or 0) + payload.quantity)
        if carton is not None:
            carton.dispatched_qty = clamp_integer((carton.dispatched_qty or 0) + payload.quantity)
            if carton.dispatched_qty >= carton.quantity:
                carton.status = "dispatched"

        dispatch = Dispatch(
            wo_id=batch.wo_id,
            batch_id=batch.id,
            carton_id=carton.id if carton is not None else None,
            quantity=payload.quantity,
            dispatched_by=principal.user_uuid,
            remarks=payload.remarks,
        )
        await self.repo.add(dispatch)
        await self.repo.commit()
        logger.info("Dispatched %d pcs from batch #%s", payload.quantity, batch.batch_number)

        await self._notify("dispatches", "INSERT", wo_id=batch.wo_id, row_id=dispatch.id)
        await self._notify("production_batches", "UPDATE", wo_id=batch.wo_id, row_id=batch.id)
        if carton is not None:
            await self._notify("cartons", "UPDATE", wo_id=batch.wo_id, row_id=carton.id)
        return dispatch

    # PUBLIC_INTERFACE
    async def dispatch_eligibility(self, wo_id: UUID) -> DispatchEligibility:
        """What can still be dispatched for a work order, from packing and from stock."""
        wo = await self.wo_repo.get_work_order(wo_id)
        if wo is None:
            raise EntityNotFoundError("Work order not found", details={"work_order_id": str(wo_id)})
        packed_ready, dispatched_from_cartons = await self.repo.ready_carton_totals(wo_id)
        inventory = await self.repo.inventory_available_for_item(wo.item_code)
        dispatched_total = sum(await self.repo.dispatch_quantities_for_work_order(wo_id))
        return dispatch_eligibility(packed_ready, dispatched_from_cartons, inventory, dispatched_total, wo.quantity)

    # PUBLIC_INTERFACE
    async def ageing(self, today: date) -> AgeingReport:
        """Packed-but-undispatched goods bucketed by age, with the share at risk."""
        risk_days = get_app_settings().PACKED_AGEING_RISK_DAYS
        rows = await self.repo.list_open_cartons_with_weight()
        cartons = [
            {
                "quantity": c.quantity,
                "dispatched_qty": c.dispatched_qty,
                "status": c.status,
                "built_at": c.built_at,
                "value_per_piece": weight,
            }
            for c, weight in rows
        ]
        buckets = ageing_buckets(cartons, today)
        return AgeingReport(buckets=buckets, risk_percent=ageing_risk_percent(buckets, risk_days), risk_days=risk_days)
