from __future__ import annotations

from datetime import date
from typing import Optional
from uuid import UUID as PyUUID

from sqlalchemy import Date, ForeignKey, Numeric, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from factory_ops.db.base import Base, TimestampMixin, UUIDPkMixin


class Invoice(UUIDPkMixin, TimestampMixin, Base):
    """Customer invoice."""
    __tablename__ = "invoices"

    invoice_no: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    wo_id: Mapped[Optional[PyUUID]] = mapped_column(
        UUID(as_uuid=True), ForeignKey("work_orders.id"), nullable=True
    )
    customer_name: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    invoice_date: Mapped[date] = mapped_column(Date, nullable=False)
    due_date: Mapped[date] = mapped_column(Date, nullable=False)
    currency: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    total_amount: Mapped[float] = mapped_column(Numeric(14, 2), nullable=False, default=0)
    paid_amount: Mapped[Optional[float]] = mapped_column(Numeric(14, 2), nullable=True, default=0)
    balance_amount: Mapped[float] = mapped_column(Numeric(14, 2), nullable=False, default=0)
    status: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
