from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID, uuid4

from sqlalchemy.ext.asyncio import AsyncSession

from factory_ops.core.security import Principal
from factory_ops.core.settings import get_app_settings
from factory_ops.db.models.quality import NCR, QCRecord
from factory_ops.repositories.production import ProductionBatchRepository
from factory_ops.repositories.quality import QualityRepository
from factory_ops.schemas.quality import (
    GateSummaryRead,
    HourlyQCCheckRead,
    InProcessStatusRead,
    InspectionCreate,
    NCRCreate,
)
from factory_ops.services.base import BaseService
from factory_ops.workflow import qc_status
from factory_ops.workflow.errors import (
    EntityNotFoundError,
    GateBlockedError,
    InvalidQuantityError,
    QuantityExceededError,
)
from factory_ops.workflow.ncr import (
    RejectionExceedance,
    next_ncr_number,
    rejection_exceedances,
    rejection_rate,
    requires_ncr,
)
from factory_ops.workflow.numeric import clamp_integer

logger = logging.getLogger(__name__)

_GATE_COLUMNS = {
    "material": "qc_material_status",
    "first_piece": "qc_first_piece_status",
    "final": "qc_final_status",
}


@dataclass
class InspectionOutcome:
    """Recorded QC record plus the NCR signals derived from it."""
    record: QCRecord
    gate_status: str
    rejection_rate: float
    requires_ncr: bool
    exceedances: List[RejectionExceedance] = field(default_factory=list)


class QualityService(BaseService):
    """Domain service for QC gate decisions and NCRs."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.batch_repo = ProductionBatchRepository(session)
        self.repo = QualityRepository(session)

    # PUBLIC_INTERFACE
    async def record_inspection(
        self, batch_id: UUID, payload: InspectionCreate, principal: Principal
    ) -> InspectionOutcome:
        """
        Record a gate decision for a batch inside one transaction.

        The batch row is locked while its gate status and QC quantities change.
        Final-gate quantities may not exceed the batch's pending-QC balance.

        Raises:
            EntityNotFoundError: batch does not exist.
            GateBlockedError: first-piece decided before material QC is complete.
            InvalidQuantityError / QuantityExceededError: final-gate quantities are invalid.
        """
        settings = get_app_settings()
        batch = await self.batch_repo.get_batch_for_update(batch_id)
        if batch is None:
            raise EntityNotFoundError("Batch not found", details={"batch_id": str(batch_id)})

        if payload.gate == "first_piece" and not qc_status.is_gate_complete(batch.qc_material_status):
            raise GateBlockedError(
                f"First piece QC is blocked for Batch #{batch.batch_number} until material QC is approved",
                details={"material_status": qc_status.normalize_qc_status(batch.qc_material_status)},
            )

        approved = payload.approved_quantity
        rejected = payload.rejected_quantity
        if payload.gate == "final":
            pending = max(
                0, (batch.produced_qty or 0) - (batch.qc_approved_qty or 0) - (batch.qc_rejected_qty or 0)
            )
            inspected = approved + rejected
            if inspected <= 0:
                raise InvalidQuantityError("Inspected quantity must be greater than 0")
            if inspected > pending:
                raise QuantityExceededError(
                    f"Inspected quantity ({inspected}) exceeds pending QC quantity ({pending}) "
                    f"for Batch #{batch.batch_number}",
                    details={"requested": inspected, "pending": pending},
                )
            batch.qc_approved_qty = clamp_integer((batch.qc_approved_qty or 0) + approved)
            batch.qc_rejected_qty = clamp_integer((batch.qc_rejected_qty or 0) + rejected)

        gate_status = qc_status.normalize_qc_status(payload.result)
        setattr(batch, _GATE_COLUMNS[payload.gate], gate_status)

        record = QCRecord(
            qc_id=f"QC-{batch.batch_number}-{uuid4().hex[:8].upper()}",
            wo_id=batch.wo_id,
            batch_id=batch.id,
            qc_type=payload.gate,
            result=gate_status,
            inspected_quantity=approved + rejected,
            approved_quantity=approved,
            rejected_quantity=rejected,
            rejection_breakdown={k: clamp_integer(v) for k, v in payload.rejection_breakdown.items()} or None,
            failure_reason=payload.failure_reason,
            remarks=payload.remarks,
            approved_by=principal.user_uuid,
        )
        await self.repo.add(record)
        await self.repo.commit()
        logger.info(
            "QC %s gate recorded for batch %s: %s (approved=%d rejected=%d)",
            payload.gate, batch.id, gate_status, approved, rejected,
        )

        await self._notify("production_batches", "UPDATE", wo_id=batch.wo_id, row_id=batch.id)
        await self._notify("qc_records", "INSERT", wo_id=batch.wo_id, row_id=record.id)

        rate = rejection_rate(rejected, approved + rejected)
        return InspectionOutcome(
            record=record,
            gate_status=gate_status,
            rejection_rate=rate,
            requires_ncr=requires_ncr(rejected, approved + rejected, settings.NCR_REJECTION_THRESHOLD_PCT),
            exceedances=rejection_exceedances(
                payload.rejection_breakdown, default_threshold=settings.NCR_TYPE_THRESHOLD_PCS
            ),
        )

    # PUBLIC_INTERFACE
    async def raise_ncr(self, payload: NCRCreate, principal: Principal, today: Optional[datetime] = None) -> NCR:
        """Create an NCR numbered in the yearly NCR-YYYY-NNNN sequence."""
        year = (today or datetime.now(timezone.utc)).year
        number = next_ncr_number(await self.repo.last_ncr_number(year), year)
        ncr = NCR(
            ncr_number=number,
            work_order_id=payload.work_order_id,
            qc_record_id=payload.qc_record_id,
            rejection_type=payload.rejection_type,
            quantity_affected=payload.quantity_affected,
            issue_description=payload.issue_description,
            status="open",
            raised_by=principal.user_uuid,
        )
        await self.repo.add(ncr)
        await self.repo.commit()
        logger.info("Raised %s for work order %s", number, payload.work_order_id)
        await self._notify("ncrs", "INSERT", wo_id=payload.work_order_id, row_id=ncr.id)
        return ncr

    # PUBLIC_INTERFACE
    async def gate_summary(self, wo_id: UUID) -> List[GateSummaryRead]:
        """Normalized gate statuses of every batch of a work order."""
        batches = await self.batch_repo.list_for_work_order(wo_id)
        return [
            GateSummaryRead(
                batch_id=b.id,
                batch_number=b.batch_number,
                material=qc_status.normalize_qc_status(b.qc_material_status),
                first_piece=qc_status.first_piece_display_status(b.qc_first_piece_status, b.qc_material_status),
                final=qc_status.normalize_qc_status(b.qc_final_status),
                overall=qc_status.overall_gates_status(b.qc_material_status, b.qc_first_piece_status),
                dispatch_block_reason=qc_status.dispatch_block_reason(b),
            )
            for b in batches
        ]

    # PUBLIC_INTERFACE
    async def in_process_status(self, wo_id: UUID, limit: int = 200) -> InProcessStatusRead:
        """In-process (hourly) QC gate of a work order from its latest checks."""
        checks = await self.repo.list_hourly_checks(wo_id, limit=limit)
        status = qc_status.in_process_status(checks)
        return InProcessStatusRead(
            wo_id=wo_id,
            status=status.status,
            check_count=status.check_count,
            failed_count=status.failed_count,
            last_check_at=status.last_check_at,
            out_of_tolerance=status.out_of_tolerance,
            checks=[HourlyQCCheckRead.model_validate(c) for c in checks],
        )
