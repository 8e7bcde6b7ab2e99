from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from sqlalchemy import Integer, cast, func, select

from factory_ops.db.models.quality import NCR, HourlyQCCheck, QCRecord
from .base import BaseRepository


class QualityRepository(BaseRepository):
    """Repository for QC records and NCRs."""

    async def list_qc_records(
        self,
        *,
        wo_id: Optional[UUID],
        qc_type: Optional[str],
        result: Optional[str],
        limit: int,
        offset: int,
    ) -> List[QCRecord]:
        stmt = select(QCRecord)
        if wo_id:
            stmt = stmt.where(QCRecord.wo_id == wo_id)
        if qc_type:
            stmt = stmt.where(QCRecord.qc_type == qc_type)
        if result:
            stmt = stmt.where(QCRecord.result == result)
        stmt = stmt.order_by(QCRecord.qc_date_time.desc()).offset(offset).limit(limit)
        res = await self.scalars(stmt)
        return list(res)

    async def list_ncrs(
        self, *, work_order_id: Optional[UUID], status: Optional[str], limit: int, offset: int
    ) -> List[NCR]:
        stmt = select(NCR)
        if work_order_id:
            stmt = stmt.where(NCR.work_order_id == work_order_id)
        if status:
            stmt = stmt.where(NCR.status == status)
        stmt = stmt.order_by(NCR.created_at.desc()).offset(offset).limit(limit)
        res = await self.scalars(stmt)
        return list(res)

    async def last_ncr_number(self, year: int) -> Optional[str]:
        """Highest NCR number of the year, compared on its numeric sequence part."""
        prefix = f"NCR-{year}-"
        sequence = cast(func.substr(NCR.ncr_number, len(prefix) + 1), Integer)
        stmt = (
            select(NCR.ncr_number)
            .where(NCR.ncr_number.regexp_match(f"^{prefix}[0-9]+$"))
            .order_by(sequence.desc())
            .limit(1)
        )
        return await self.scalar(stmt)

    async def list_hourly_checks(self, wo_id: UUID, limit: int) -> List[HourlyQCCheck]:
        """In-process checks of a work order, newest first."""
        stmt = (
            select(HourlyQCCheck)
            .where(HourlyQCCheck.wo_id == wo_id)
            .order_by(HourlyQCCheck.check_datetime.desc())
            .limit(limit)
        )
        res = await self.scalars(stmt)
        return list(res)
