from __future__ import annotations

from datetime import date, datetime
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from factory_ops.core.deps import require_roles
from factory_ops.db.session import get_async_session
from factory_ops.services.exports import (
    DISPATCH_COLUMNS,
    INVOICE_COLUMNS,
    NCR_COLUMNS,
    OVERDUE_RETURN_COLUMNS,
    PACKING_COLUMNS,
    QC_RECORD_COLUMNS,
    RPO_COLUMNS,
    SHE_INCIDENT_COLUMNS,
    WORK_ORDER_COLUMNS,
    export_rows,
)
from factory_ops.services.reports import ReportService

router = APIRouter(prefix="/reports", tags=["Reports"])

FORMAT_QUERY = Query("csv", description="Export format: csv | xlsx | pdf")


# PUBLIC_INTERFACE
@router.get(
    "/work-orders",
    summary="Export work order status",
    description="Work orders with stage, batch-aware status and dispatch progress.",
    dependencies=[Depends(require_roles("reports:view", "production:view"))],
)
async def export_work_orders(
    session: AsyncSession = Depends(get_async_session),
    status: Optional[str] = Query(None, description="Filter by work order status"),
    format: str = FORMAT_QUERY,
):
    rows = await ReportService(session).work_order_rows(status=status)
    return export_rows(rows, WORK_ORDER_COLUMNS, "work_orders", format, title="Work Order Status")


# PUBLIC_INTERFACE
@router.get(
    "/overdue-returns",
    summary="Export overdue external returns",
    dependencies=[Depends(require_roles("reports:view", "logistics:view"))],
)
async def export_overdue_returns(
    session: AsyncSession = Depends(get_async_session),
    process: Optional[str] = Query(None, description="Only moves matching this process"),
    as_of: Optional[date] = Query(None, description="Evaluate as of this date (default: today)"),
    format: str = FORMAT_QUERY,
):
    rows = await ReportService(session).overdue_return_rows(as_of or date.today(), process=process)
    return export_rows(rows, OVERDUE_RETURN_COLUMNS, "overdue_returns", format, title="Overdue External Returns")


# PUBLIC_INTERFACE
@router.get(
    "/packing",
    summary="Export packing list",
    description="Cartons with quantities, weights and heat numbers.",
    dependencies=[Depends(require_roles("reports:view", "logistics:view"))],
)
async def export_packing(
    session: AsyncSession = Depends(get_async_session),
    wo_id: Optional[UUID] = Query(None, description="Filter by work order"),
    status: Optional[str] = Query(None, description="Filter by carton status"),
    format: str = FORMAT_QUERY,
):
    rows = await ReportService(session).packing_rows(wo_id=wo_id, status=status)
    return export_rows(rows, PACKING_COLUMNS, "packing", format, title="Packing Report")


# PUBLIC_INTERFACE
@router.get(
    "/dispatches",
    summary="Export dispatch history",
    dependencies=[Depends(require_roles("reports:view", "logistics:view"))],
)
async def export_dispatches(
    session: AsyncSession = Depends(get_async_session),
    wo_id: Optional[UUID] = Query(None, description="Filter by work order"),
    since: Optional[datetime] = Query(None, description="Only dispatches at or after this time"),
    format: str = FORMAT_QUERY,
):
    rows = await ReportService(session).dispatch_rows(wo_id=wo_id, since=since)
    return export_rows(rows, DISPATCH_COLUMNS, "dispatch_history", format, title="Dispatch History")


# PUBLIC_INTERFACE
@router.get(
    "/qc-records",
    summary="Export QC records",
    dependencies=[Depends(require_roles("reports:view", "quality:view"))],
)
async def export_qc_records(
    session: AsyncSession = Depends(get_async_session),
    wo_id: Optional[UUID] = Query(None, description="Filter by work order"),
    qc_type: Optional[str] = Query(None, description="Filter by gate"),
    format: str = FORMAT_QUERY,
):
    rows = await ReportService(session).qc_record_rows(wo_id=wo_id, qc_type=qc_type)
    return export_rows(rows, QC_RECORD_COLUMNS, "qc_records", format, title="QC Records")


# PUBLIC_INTERFACE
@router.get(
    "/ncrs",
    summary="Export NCRs",
    dependencies=[Depends(require_roles("reports:view", "quality:view"))],
)
async def export_ncrs(
    session: AsyncSession = Depends(get_async_session),
    status: Optional[str] = Query(None, description="Filter by status"),
    format: str = FORMAT_QUERY,
):
    rows = await ReportService(session).ncr_rows(status=status)
    return export_rows(rows, NCR_COLUMNS, "ncrs", format, title="Non-Conformance Reports")


# PUBLIC_INTERFACE
@router.get(
    "/rpos",
    summary="Export RPO delivery status",
    dependencies=[Depends(require_roles("reports:view", "procurement:view"))],
)
async def export_rpos(
    session: AsyncSession = Depends(get_async_session),
    status: Optional[str] = Query(None, description="Filter by status"),
    as_of: Optional[date] = Query(None, description="Evaluate past-due as of this date (default: today)"),
    format: str = FORMAT_QUERY,
):
    rows = await ReportService(session).rpo_rows(as_of or date.today(), status=status)
    return export_rows(rows, RPO_COLUMNS, "rpo_delivery", format, title="RPO Delivery Status")


# PUBLIC_INTERFACE
@router.get(
    "/overdue-invoices",
    summary="Export overdue invoices",
    dependencies=[Depends(require_roles("reports:view", "finance:view"))],
)
async def export_overdue_invoices(
    session: AsyncSession = Depends(get_async_session),
    as_of: Optional[date] = Query(None, description="Evaluate as of this date (default: today)"),
    format: str = FORMAT_QUERY,
):
    rows = await ReportService(session).overdue_invoice_rows(as_of or date.today())
    return export_rows(rows, INVOICE_COLUMNS, "overdue_invoices", format, title="Overdue Invoices")


# PUBLIC_INTERFACE
@router.get(
    "/she-incidents",
    summary="Export SHE incidents",
    dependencies=[Depends(require_roles("reports:view", "she:view"))],
)
async def export_she_incidents(
    session: AsyncSession = Depends(get_async_session),
    since: Optional[datetime] = Query(None, description="Only incidents on or after this time"),
    format: str = FORMAT_QUERY,
):
    rows = await ReportService(session).she_incident_rows(since=since)
    return export_rows(rows, SHE_INCIDENT_COLUMNS, "she_incidents", format, title="SHE Incidents")
