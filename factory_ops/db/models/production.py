from __future__ import annotations

from datetime import date, datetime
from typing import Optional
from uuid import UUID as PyUUID

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Integer, Numeric, Text, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from factory_ops.db.base import Base, TimestampMixin, UUIDPkMixin


class WorkOrder(UUIDPkMixin, TimestampMixin, Base):
    """Manufacturing work order header."""
    __tablename__ = "work_orders"

    display_id: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    customer: Mapped[str] = mapped_column(Text, nullable=False)
    item_code: Mapped[str] = mapped_column(Text, nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    due_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    status: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    current_stage: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    priority: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    net_weight_per_pc: Mapped[Optional[float]] = mapped_column(Numeric(12, 3), nullable=True)
    qc_material_status: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    qc_first_piece_status: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    qc_final_status: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class WorkOrderStageHistory(UUIDPkMixin, Base):
    """One row per recorded stage change of a work order."""
    __tablename__ = "wo_stage_history"

    wo_id: Mapped[PyUUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("work_orders.id", ondelete="CASCADE"), nullable=False
    )
    from_stage: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    to_stage: Mapped[str] = mapped_column(Text, nullable=False)
    changed_by: Mapped[Optional[PyUUID]] = mapped_column(UUID(as_uuid=True), nullable=True)
    changed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=text("now()"), nullable=False
    )
    is_override: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    remarks: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class ProductionBatch(UUIDPkMixin, Base):
    """
    A production run of a work order. Quantities and QC gate statuses are tracked per batch.
    """
    __tablename__ = "production_batches"

    wo_id: Mapped[PyUUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("work_orders.id", ondelete="CASCADE"), nullable=False
    )
    batch_number: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    batch_quantity: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    produced_qty: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    qc_approved_qty: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    qc_rejected_qty: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    dispatched_qty: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    stage_type: Mapped[Optional[str]] = mapped_column(Text, nullable=True)  # production/external/qc/packing
    batch_status: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    external_process_type: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    qc_material_status: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    qc_first_piece_status: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    qc_final_status: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    started_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=text("now()"), nullable=False
    )
    ended_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=text("now()"), nullable=False
    )
