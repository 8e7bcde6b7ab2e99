from __future__ import annotations

from datetime import date
from typing import Optional
from uuid import UUID as PyUUID

from sqlalchemy import Date, Numeric, Text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from factory_ops.db.base import Base, TimestampMixin, UUIDPkMixin


class SalesOrder(UUIDPkMixin, TimestampMixin, Base):
    """Customer sales order; line items live in the `items` JSON array."""
    __tablename__ = "sales_orders"

    so_id: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    customer: Mapped[str] = mapped_column(Text, nullable=False)
    customer_id: Mapped[Optional[PyUUID]] = mapped_column(UUID(as_uuid=True), nullable=True)
    po_number: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    po_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    expected_delivery_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    currency: Mapped[str] = mapped_column(Text, nullable=False, default="USD")
    items: Mapped[Optional[list]] = mapped_column(JSONB, nullable=True)
    total_amount: Mapped[Optional[float]] = mapped_column(Numeric(14, 2), nullable=True)
    status: Mapped[str] = mapped_column(Text, nullable=False, default="pending")
