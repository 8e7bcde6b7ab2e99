from __future__ import annotations

from datetime import date
from typing import Optional
from uuid import UUID as PyUUID

from sqlalchemy import Boolean, Date, ForeignKey, Integer, Numeric, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from factory_ops.db.base import Base, TimestampMixin, UUIDPkMixin
from factory_ops.db.models.production import WorkOrder


class ExternalPartner(UUIDPkMixin, TimestampMixin, Base):
    """Vendor that performs an external process (plating, buffing...)."""
    __tablename__ = "external_partners"

    name: Mapped[str] = mapped_column(Text, nullable=False)
    process_type: Mapped[str] = mapped_column(Text, nullable=False)
    default_lead_time_days: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, default=7)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    contact_name: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    contact_phone: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class ExternalMove(UUIDPkMixin, TimestampMixin, Base):
    """Pieces of a work order sent to a partner under a challan."""
    __tablename__ = "wo_external_moves"

    work_order_id: Mapped[PyUUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("work_orders.id", ondelete="CASCADE"), nullable=False
    )
    batch_id: Mapped[Optional[PyUUID]] = mapped_column(
        UUID(as_uuid=True), ForeignKey("production_batches.id"), nullable=True
    )
    process: Mapped[str] = mapped_column(Text, nullable=False)
    partner_id: Mapped[Optional[PyUUID]] = mapped_column(
        UUID(as_uuid=True), ForeignKey("external_partners.id"), nullable=True
    )
    quantity_sent: Mapped[float] = mapped_column(Numeric, nullable=False)
    quantity_returned: Mapped[Optional[float]] = mapped_column(Numeric, nullable=True, default=0)
    dispatch_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    expected_return_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    returned_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    challan_no: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[Optional[str]] = mapped_column(Text, nullable=True, default="sent")
    remarks: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_by: Mapped[Optional[PyUUID]] = mapped_column(UUID(as_uuid=True), nullable=True)

    work_order: Mapped[Optional[WorkOrder]] = relationship(lazy="raise")
    partner: Mapped[Optional[ExternalPartner]] = relationship(lazy="raise")
