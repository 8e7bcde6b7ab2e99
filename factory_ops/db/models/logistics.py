from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID as PyUUID

from sqlalchemy import ARRAY, DateTime, ForeignKey, Integer, Numeric, Text, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from factory_ops.db.base import Base, CreatedAtMixin, TimestampMixin, UUIDPkMixin


class Carton(UUIDPkMixin, Base):
    """Packed carton of QC-approved pieces from one production batch."""
    __tablename__ = "cartons"

    carton_id: Mapped[str] = mapped_column(Text, nullable=False)
    wo_id: Mapped[PyUUID] = mapped_column(UUID(as_uuid=True), ForeignKey("work_orders.id"), nullable=False)
    production_batch_id: Mapped[Optional[PyUUID]] = mapped_column(
        UUID(as_uuid=True), ForeignKey("production_batches.id"), nullable=True
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    dispatched_qty: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[str] = mapped_column(Text, nullable=False, default="packed")
    net_weight: Mapped[float] = mapped_column(Numeric(12, 3), nullable=False, default=0)
    gross_weight: Mapped[float] = mapped_column(Numeric(12, 3), nullable=False, default=0)
    heat_nos: Mapped[List[str]] = mapped_column(ARRAY(Text), nullable=False, default=list)
    built_by: Mapped[Optional[PyUUID]] = mapped_column(UUID(as_uuid=True), nullable=True)
    built_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=text("now()"), nullable=False
    )


class Dispatch(UUIDPkMixin, CreatedAtMixin, Base):
    """Quantity of a batch shipped to the customer."""
    __tablename__ = "dispatches"

    wo_id: Mapped[PyUUID] = mapped_column(UUID(as_uuid=True), ForeignKey("work_orders.id"), nullable=False)
    batch_id: Mapped[PyUUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("production_batches.id"), nullable=False
    )
    carton_id: Mapped[Optional[PyUUID]] = mapped_column(
        UUID(as_uuid=True), ForeignKey("cartons.id"), nullable=True
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    dispatched_by: Mapped[Optional[PyUUID]] = mapped_column(UUID(as_uuid=True), nullable=True)
    dispatched_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=text("now()"), nullable=False
    )
    remarks: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class FinishedGoodsInventory(UUIDPkMixin, TimestampMixin, Base):
    """Stock of finished pieces (overproduction, returns) available to fulfil orders."""
    __tablename__ = "finished_goods_inventory"

    item_code: Mapped[str] = mapped_column(Text, nullable=False)
    customer_name: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    work_order_id: Mapped[Optional[PyUUID]] = mapped_column(
        UUID(as_uuid=True), ForeignKey("work_orders.id"), nullable=True
    )
    production_batch_id: Mapped[Optional[PyUUID]] = mapped_column(
        UUID(as_uuid=True), ForeignKey("production_batches.id"), nullable=True
    )
    quantity_available: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    quantity_reserved: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    source_type: Mapped[str] = mapped_column(Text, nullable=False, default="overproduction")
