from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from factory_ops.core.security import Principal
from factory_ops.core.settings import get_app_settings
from factory_ops.db.models.external import ExternalMove
from factory_ops.db.models.notifications import Notification
from factory_ops.repositories.external import ExternalRepository
from factory_ops.repositories.production import ProductionBatchRepository, WorkOrderRepository
from factory_ops.schemas.external import ExternalMoveCreate, ReceiptCreate
from factory_ops.services.base import BaseService
from factory_ops.workflow.errors import EntityNotFoundError, InvalidQuantityError
from factory_ops.workflow.external import (
    OverdueReturn,
    build_overdue_returns,
    due_reminders,
    matches_process,
    pending_quantity,
    receipt_status,
    validate_receipt_quantity,
)
from factory_ops.workflow.numeric import clamp_integer

logger = logging.getLogger(__name__)

# Role whose users receive external-return reminders
REMINDER_ROLE = "logistics"


@dataclass(frozen=True)
class ReminderRun:
    moves: int
    notifications: int


class ExternalService(BaseService):
    """Domain service for work sent to external partners."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.repo = ExternalRepository(session)
        self.wo_repo = WorkOrderRepository(session)
        self.batch_repo = ProductionBatchRepository(session)

    # PUBLIC_INTERFACE
    async def send_to_external(self, payload: ExternalMoveCreate, principal: Principal) -> ExternalMove:
        """
        Record pieces leaving for a partner.

        The expected return date defaults to the dispatch date plus the partner's lead time.
        When a batch is given it is marked as being at the external process.
        """
        if payload.quantity_sent <= 0:
            raise InvalidQuantityError("Quantity sent must be greater than 0")
        if await self.wo_repo.get_work_order(payload.work_order_id) is None:
            raise EntityNotFoundError("Work order not found", details={"work_order_id": str(payload.work_order_id)})
        partner = await self.repo.get_partner(payload.partner_id)
        if partner is None:
            raise EntityNotFoundError("External partner not found", details={"partner_id": str(payload.partner_id)})

        sent_on = payload.dispatch_date or date.today()
        expected = payload.expected_return_date or sent_on + timedelta(days=partner.default_lead_time_days or 7)

        if payload.batch_id is not None:
            batch = await self.batch_repo.get_batch_for_update(payload.batch_id)
            if batch is None:
                raise EntityNotFoundError("Batch not found", details={"batch_id": str(payload.batch_id)})
            batch.stage_type = "external"
            batch.external_process_type = payload.process

        move = ExternalMove(
            work_order_id=payload.work_order_id,
            batch_id=payload.batch_id,
            process=payload.process,
            partner_id=partner.id,
            quantity_sent=payload.quantity_sent,
            quantity_returned=0,
            dispatch_date=sent_on,
            expected_return_date=expected,
            challan_no=payload.challan_no,
            status="sent",
            remarks=payload.remarks,
            created_by=principal.user_uuid,
        )
        await self.repo.add(move)
        await self.repo.commit()
        logger.info(
            "Sent %s pcs of WO %s to %s for %s (challan %s)",
            payload.quantity_sent, payload.work_order_id, partner.name, payload.process, payload.challan_no,
        )
        await self._notify("wo_external_moves", "INSERT", wo_id=move.work_order_id, row_id=move.id)
        if payload.batch_id is not None:
            await self._notify("production_batches", "UPDATE", wo_id=move.work_order_id, row_id=payload.batch_id)
        return move

    # PUBLIC_INTERFACE
    async def record_receipt(self, move_id: UUID, payload: ReceiptCreate) -> ExternalMove:
        """
        Record pieces returned by a partner; the move row is locked while it changes.

        When the last open move of a batch comes back in full, the batch returns to production.
        """
        move = await self.repo.get_move_for_update(move_id)
        if move is None:
            raise EntityNotFoundError("External move not found", details={"move_id": str(move_id)})

        pending = pending_quantity(move.quantity_sent, move.quantity_returned)
        validate_receipt_quantity(payload.quantity, pending)

        move.quantity_returned = clamp_integer((move.quantity_returned or 0) + payload.quantity)
        move.status = receipt_status(move.quantity_sent, move.quantity_returned)
        move.returned_date = payload.received_date or date.today()
        if payload.remarks:
            move.remarks = payload.remarks
        batch_released = await self._release_batch_if_returned(move)
        await self.repo.commit()
        logger.info("Received %s pcs on external move %s; status=%s", payload.quantity, move.id, move.status)
        await self._notify("wo_external_moves", "UPDATE", wo_id=move.work_order_id, row_id=move.id)
        if batch_released:
            await self._notify("production_batches", "UPDATE", wo_id=move.work_order_id, row_id=move.batch_id)
        return move

    async def _release_batch_if_returned(self, move: ExternalMove) -> bool:
        if move.batch_id is None or move.status != "received_full":
            return False
        if await self.repo.count_open_moves_for_batch(move.batch_id, exclude_move_id=move.id):
            return False
        batch = await self.batch_repo.get_batch_for_update(move.batch_id)
        if batch is None or batch.stage_type != "external":
            return False
        batch.stage_type = "production"
        batch.external_process_type = None
        logger.info("Batch %s back from %s", batch.id, move.process)
        return True

    # PUBLIC_INTERFACE
    async def overdue_returns(self, today: date, process: Optional[str] = None) -> List[OverdueReturn]:
        """Moves past their expected return date with pieces still out, oldest first."""
        settings = get_app_settings()
        moves = await self.repo.list_overdue_moves(today)
        rows = build_overdue_returns(
            moves,
            today,
            warning_days=settings.OVERDUE_WARNING_DAYS,
            critical_days=settings.OVERDUE_CRITICAL_DAYS,
        )
        if process:
            rows = [r for r in rows if matches_process(r.process, process)]
        return rows

    # PUBLIC_INTERFACE
    async def run_reminders(self, today: date) -> ReminderRun:
        """
        Notify every logistics user about external returns that are overdue or due soon.

        One notification is created per (move, user) pair.
        """
        settings = get_app_settings()
        window = settings.EXTERNAL_DUE_SOON_DAYS
        moves = await self.repo.list_moves_due_by(today + timedelta(days=window))
        if not moves:
            logger.info("No external moves requiring notification")
            return ReminderRun(moves=0, notifications=0)

        wo_ids = list({m.work_order_id for m in moves})
        work_orders = {wo.id: wo for wo in await self.wo_repo.get_work_orders_by_ids(wo_ids)}
        user_ids = await self.repo.list_user_ids_with_role(REMINDER_ROLE)

        notifications = [
            Notification(
                user_id=user_id,
                type=reminder.type,
                title=reminder.title,
                message=reminder.message,
                entity_type=reminder.entity_type,
                entity_id=reminder.move_id,
            )
            for reminder in due_reminders(moves, work_orders, today, window_days=window)
            for user_id in user_ids
        ]
        if notifications:
            await self.repo.add_notifications(notifications)
            await self.repo.commit()
            await self._notify("notifications", "INSERT")
        logger.info("Created %d notifications for %d moves", len(notifications), len(moves))
        return ReminderRun(moves=len(moves), notifications=len(notifications))
