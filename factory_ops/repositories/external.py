from __future__ import annotations

from datetime import date
from typing import List, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import selectinload

from factory_ops.db.models.external import ExternalMove, ExternalPartner
from factory_ops.db.models.notifications import Notification, UserRole
from factory_ops.workflow.external import CLOSED_MOVE_STATUSES
from .base import BaseRepository


class ExternalRepository(BaseRepository):
    """Repository for external partners and moves."""

    async def list_partners(self, *, process_type: Optional[str], active_only: bool) -> List[ExternalPartner]:
        stmt = select(ExternalPartner)
        if process_type:
            stmt = stmt.where(ExternalPartner.process_type == process_type)
        if active_only:
            stmt = stmt.where(ExternalPartner.is_active.is_(True))
        res = await self.scalars(stmt.order_by(ExternalPartner.name.asc()))
        return list(res)

    async def get_partner(self, partner_id: UUID) -> Optional[ExternalPartner]:
        return await self.scalar_one_or_none(select(ExternalPartner).where(ExternalPartner.id == partner_id))

    async def list_moves(
        self,
        *,
        work_order_id: Optional[UUID],
        status: Optional[str],
        process: Optional[str],
        limit: int,
        offset: int,
    ) -> List[ExternalMove]:
        stmt = select(ExternalMove)
        if work_order_id:
            stmt = stmt.where(ExternalMove.work_order_id == work_order_id)
        if status:
            stmt = stmt.where(ExternalMove.status == status)
        if process:
            stmt = stmt.where(ExternalMove.process == process)
        stmt = stmt.order_by(ExternalMove.created_at.desc()).offset(offset).limit(limit)
        res = await self.scalars(stmt)
        return list(res)

    async def get_move_for_update(self, move_id: UUID) -> Optional[ExternalMove]:
        return await self.get_locked(ExternalMove, move_id)

    async def count_open_moves_for_batch(self, batch_id: UUID, *, exclude_move_id: Optional[UUID] = None) -> int:
        """Moves of a batch that still have pieces out with a partner."""
        stmt = (
            select(func.count(ExternalMove.id))
            .where(ExternalMove.batch_id == batch_id)
            .where(ExternalMove.status.not_in(list(CLOSED_MOVE_STATUSES)))
        )
        if exclude_move_id is not None:
            stmt = stmt.where(ExternalMove.id != exclude_move_id)
        return int(await self.scalar(stmt) or 0)

    async def list_overdue_moves(self, today: date) -> List[ExternalMove]:
        """Moves still out with partners past their expected return date, oldest first."""
        stmt = (
            select(ExternalMove)
            .options(selectinload(ExternalMove.work_order), selectinload(ExternalMove.partner))
            .where(ExternalMove.status == "sent")
            .where(ExternalMove.expected_return_date < today)
            .order_by(ExternalMove.expected_return_date.asc())
        )
        res = await self.scalars(stmt)
        return list(res)

    async def list_moves_due_by(self, horizon: date) -> List[ExternalMove]:
        """Open moves expected back on or before the horizon date."""
        stmt = (
            select(ExternalMove)
            .where(ExternalMove.status.not_in(list(CLOSED_MOVE_STATUSES)))
            .where(ExternalMove.expected_return_date.is_not(None))
            .where(ExternalMove.expected_return_date <= horizon)
        )
        res = await self.scalars(stmt)
        return list(res)

    async def list_user_ids_with_role(self, role: str) -> List[UUID]:
        res = await self.scalars(select(UserRole.user_id).where(UserRole.role == role))
        return list(res)

    async def add_notifications(self, notifications: List[Notification]) -> None:
        await self.add_all(notifications)
