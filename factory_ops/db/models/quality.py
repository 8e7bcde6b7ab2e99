from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID as PyUUID

from sqlalchemy import ARRAY, DateTime, ForeignKey, Integer, Text, text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from factory_ops.db.base import Base, CreatedAtMixin, UUIDPkMixin


class QCRecord(UUIDPkMixin, CreatedAtMixin, Base):
    """A QC inspection decision (material, first piece or final) for a batch."""
    __tablename__ = "qc_records"

    qc_id: Mapped[str] = mapped_column(Text, nullable=False)
    wo_id: Mapped[PyUUID] = mapped_column(UUID(as_uuid=True), ForeignKey("work_orders.id"), nullable=False)
    batch_id: Mapped[Optional[PyUUID]] = mapped_column(
        UUID(as_uuid=True), ForeignKey("production_batches.id"), nullable=True
    )
    qc_type: Mapped[str] = mapped_column(Text, nullable=False)
    result: Mapped[str] = mapped_column(Text, nullable=False)
    inspected_quantity: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    approved_quantity: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    rejected_quantity: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    rejection_breakdown: Mapped[Optional[dict]] = mapped_column(JSONB, nullable=True)
    failure_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    remarks: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    approved_by: Mapped[Optional[PyUUID]] = mapped_column(UUID(as_uuid=True), nullable=True)
    qc_date_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=text("now()"), nullable=False
    )


class NCR(UUIDPkMixin, CreatedAtMixin, Base):
    """Non-conformance report."""
    __tablename__ = "ncrs"

    ncr_number: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    work_order_id: Mapped[Optional[PyUUID]] = mapped_column(
        UUID(as_uuid=True), ForeignKey("work_orders.id"), nullable=True
    )
    qc_record_id: Mapped[Optional[PyUUID]] = mapped_column(
        UUID(as_uuid=True), ForeignKey("qc_records.id"), nullable=True
    )
    rejection_type: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    quantity_affected: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    issue_description: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(Text, nullable=False, default="open")
    raised_by: Mapped[Optional[PyUUID]] = mapped_column(UUID(as_uuid=True), nullable=True)


class HourlyQCCheck(UUIDPkMixin, CreatedAtMixin, Base):
    """In-process dimensional check taken at a machine during production."""
    __tablename__ = "hourly_qc_checks"

    wo_id: Mapped[PyUUID] = mapped_column(UUID(as_uuid=True), ForeignKey("work_orders.id"), nullable=False)
    machine_id: Mapped[Optional[PyUUID]] = mapped_column(UUID(as_uuid=True), nullable=True)
    operator_id: Mapped[Optional[PyUUID]] = mapped_column(UUID(as_uuid=True), nullable=True)
    operation: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    dimensions: Mapped[Optional[dict]] = mapped_column(JSONB, nullable=True)
    status: Mapped[str] = mapped_column(Text, nullable=False)
    out_of_tolerance_dimensions: Mapped[Optional[list]] = mapped_column(ARRAY(Text), nullable=True)
    remarks: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    check_datetime: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=text("now()"), nullable=False
    )
