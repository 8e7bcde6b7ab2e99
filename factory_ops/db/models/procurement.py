from __future__ import annotations

from datetime import date
from typing import Optional
from uuid import UUID as PyUUID

from sqlalchemy import Date, ForeignKey, Numeric, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from factory_ops.db.base import Base, TimestampMixin, UUIDPkMixin


class RawPurchaseOrder(UUIDPkMixin, TimestampMixin, Base):
    """Raw-material purchase order (RPO), quantities in kg."""
    __tablename__ = "raw_purchase_orders"

    rpo_no: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    status: Mapped[str] = mapped_column(Text, nullable=False, default="draft")
    supplier_name: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    wo_id: Mapped[Optional[PyUUID]] = mapped_column(
        UUID(as_uuid=True), ForeignKey("work_orders.id"), nullable=True
    )
    item_code: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    alloy: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    qty_ordered_kg: Mapped[float] = mapped_column(Numeric(12, 3), nullable=False)
    qty_received_kg: Mapped[Optional[float]] = mapped_column(Numeric(12, 3), nullable=True, default=0)
    rate_per_kg: Mapped[float] = mapped_column(Numeric(12, 3), nullable=False)
    amount_ordered: Mapped[float] = mapped_column(Numeric(14, 2), nullable=False)
    expected_delivery_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
