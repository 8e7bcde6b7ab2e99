from __future__ import annotations

from dataclasses import asdict
from datetime import date, datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from factory_ops.repositories.finance import InvoiceRepository
from factory_ops.repositories.logistics import LogisticsRepository
from factory_ops.repositories.procurement import RawPurchaseOrderRepository
from factory_ops.repositories.production import ProductionBatchRepository, WorkOrderRepository
from factory_ops.repositories.quality import QualityRepository
from factory_ops.repositories.she import SheRepository
from factory_ops.services.base import BaseService
from factory_ops.services.external import ExternalService
from factory_ops.workflow.ageing import invoice_days_late, invoice_lateness_tier
from factory_ops.workflow.display import format_external_wip, humanize_key
from factory_ops.workflow.ncr import REJECTION_TYPE_LABELS, reason_by_id, rejection_rate
from factory_ops.workflow.procurement import rpo_progress
from factory_ops.workflow.quantities import wo_batch_quantities, wo_batch_status
from factory_ops.workflow.stages import stage_label

Row = Dict[str, Any]

# Upper bound on rows pulled into one export
EXPORT_LIMIT = 5000


class ReportService(BaseService):
    """
    Builds the flat rows behind each export.

    Each method returns mappings keyed by the column keys of the matching report in
    factory_ops.services.exports.
    """

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.wo_repo = WorkOrderRepository(session)
        self.batch_repo = ProductionBatchRepository(session)
        self.logistics_repo = LogisticsRepository(session)

    async def _wo_display_map(self, ids: List[UUID]) -> Dict[UUID, str]:
        work_orders = await self.wo_repo.get_work_orders_by_ids(list(set(ids)))
        return {wo.id: wo.display_id or wo.item_code for wo in work_orders}

    async def _batch_number_map(self, ids: List[UUID]) -> Dict[UUID, int]:
        batches = await self.batch_repo.get_batches_by_ids(list(set(ids)))
        return {b.id: b.batch_number for b in batches}

    # PUBLIC_INTERFACE
    async def work_order_rows(self, status: Optional[str] = None) -> List[Row]:
        """One row per work order with its batch-aware status and dispatch progress."""
        work_orders = await self.wo_repo.list_work_orders(
            status=status, stage=None, search=None, limit=EXPORT_LIMIT, offset=0
        )
        rows: List[Row] = []
        for wo in work_orders:
            batches = await self.batch_repo.list_for_work_order(wo.id)
            dispatches = await self.logistics_repo.dispatch_quantities_for_work_order(wo.id)
            quantities = wo_batch_quantities(wo.quantity, batches, (), dispatches)
            batch_status = wo_batch_status(wo.quantity, wo.status, batches)
            rows.append(
                {
                    "display_id": wo.display_id,
                    "customer": wo.customer,
                    "item_code": wo.item_code,
                    "quantity": wo.quantity,
                    "due_date": wo.due_date,
                    "current_stage": stage_label(wo.current_stage),
                    "batch_status": batch_status.label,
                    "dispatched": quantities.dispatched,
                    "remaining": quantities.remaining,
                    "external_wip": format_external_wip(
                        {b.process: b.quantity for b in quantities.external_breakdown}
                    ),
                }
            )
        return rows

    async def overdue_return_rows(self, today: date, process: Optional[str] = None) -> List[Row]:
        returns = await ExternalService(self.session).overdue_returns(today, process=process)
        return [asdict(r) for r in returns]

    # PUBLIC_INTERFACE
    async def packing_rows(self, wo_id: Optional[UUID] = None, status: Optional[str] = None) -> List[Row]:
        """Cartons with their work order number and batch number."""
        cartons = await self.logistics_repo.list_cartons(wo_id=wo_id, status=status, limit=EXPORT_LIMIT, offset=0)
        wo_display = await self._wo_display_map([c.wo_id for c in cartons])
        batch_numbers = await self._batch_number_map([c.production_batch_id for c in cartons if c.production_batch_id])
        return [
            {
                "carton_id": c.carton_id,
                "wo_display": wo_display.get(c.wo_id, "N/A"),
                "batch_number": batch_numbers.get(c.production_batch_id),
                "quantity": c.quantity,
                "dispatched_qty": c.dispatched_qty,
                "status": c.status,
                "net_weight": c.net_weight,
                "gross_weight": c.gross_weight,
                "heat_nos": c.heat_nos,
                "built_at": c.built_at,
            }
            for c in cartons
        ]

    async def dispatch_rows(self, wo_id: Optional[UUID] = None, since: Optional[datetime] = None) -> List[Row]:
        dispatches = await self.logistics_repo.list_dispatches(wo_id=wo_id, since=since, limit=EXPORT_LIMIT, offset=0)
        wo_display = await self._wo_display_map([d.wo_id for d in dispatches])
        batch_numbers = await self._batch_number_map([d.batch_id for d in dispatches])
        cartons = await self.logistics_repo.get_cartons_by_ids(list({d.carton_id for d in dispatches if d.carton_id}))
        carton_labels = {c.id: c.carton_id for c in cartons}
        return [
            {
                "dispatched_at": d.dispatched_at,
                "wo_display": wo_display.get(d.wo_id, "N/A"),
                "batch_number": batch_numbers.get(d.batch_id),
                "carton": carton_labels.get(d.carton_id),
                "quantity": d.quantity,
                "remarks": d.remarks,
            }
            for d in dispatches
        ]

    async def qc_record_rows(self, wo_id: Optional[UUID] = None, qc_type: Optional[str] = None) -> List[Row]:
        records = await QualityRepository(self.session).list_qc_records(
            wo_id=wo_id, qc_type=qc_type, result=None, limit=EXPORT_LIMIT, offset=0
        )
        rows: List[Row] = []
        for r in records:
            reason = reason_by_id(r.failure_reason) if r.failure_reason else None
            rows.append(
                {
                    "qc_id": r.qc_id,
                    "qc_type": humanize_key(r.qc_type),
                    "result": humanize_key(r.result),
                    "inspected_quantity": r.inspected_quantity,
                    "approved_quantity": r.approved_quantity,
                    "rejected_quantity": r.rejected_quantity,
                    "rejection_rate": rejection_rate(r.rejected_quantity, r.inspected_quantity),
                    "failure_reason": reason.label if reason else r.failure_reason,
                    "qc_date_time": r.qc_date_time,
                }
            )
        return rows

    async def ncr_rows(self, status: Optional[str] = None) -> List[Row]:
        ncrs = await QualityRepository(self.session).list_ncrs(
            work_order_id=None, status=status, limit=EXPORT_LIMIT, offset=0
        )
        return [
            {
                "ncr_number": n.ncr_number,
                "rejection_type": REJECTION_TYPE_LABELS.get(n.rejection_type or "", n.rejection_type),
                "quantity_affected": n.quantity_affected,
                "issue_description": n.issue_description,
                "status": n.status,
                "created_at": n.created_at,
            }
            for n in ncrs
        ]

    async def rpo_rows(self, today: date, status: Optional[str] = None) -> List[Row]:
        rpos = await RawPurchaseOrderRepository(self.session).list_rpos(
            status=status, wo_id=None, limit=EXPORT_LIMIT, offset=0
        )
        return [
            {
                "rpo_no": r.rpo_no,
                "supplier_name": r.supplier_name,
                "item_code": r.item_code,
                "alloy": r.alloy,
                "qty_ordered_kg": r.qty_ordered_kg,
                "qty_received_kg": r.qty_received_kg or 0,
                "expected_delivery_date": r.expected_delivery_date,
                "status": r.status,
                **rpo_progress(r, today),
            }
            for r in rpos
        ]

    async def overdue_invoice_rows(self, today: date) -> List[Row]:
        invoices = await InvoiceRepository(self.session).list_overdue_invoices(
            today=today, limit=EXPORT_LIMIT, offset=0
        )
        rows: List[Row] = []
        for inv in invoices:
            days_late = invoice_days_late(inv.due_date, today)
            rows.append(
                {
                    "invoice_no": inv.invoice_no,
                    "customer_name": inv.customer_name,
                    "invoice_date": inv.invoice_date,
                    "due_date": inv.due_date,
                    "total_amount": inv.total_amount,
                    "balance_amount": inv.balance_amount,
                    "days_late": days_late,
                    "tier": invoice_lateness_tier(days_late),
                }
            )
        return rows

    async def she_incident_rows(self, since: Optional[datetime] = None) -> List[Row]:
        incidents = await SheRepository(self.session).list_incidents(since=since, limit=EXPORT_LIMIT, offset=0)
        return [
            {
                "incident_id": i.incident_id,
                "incident_date": i.incident_date,
                "severity": i.severity,
                "incident_type": i.incident_type,
                "description": i.description,
                "lost_time_hours": i.lost_time_hours,
                "status": i.status,
            }
            for i in incidents
        ]
