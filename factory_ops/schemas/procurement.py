from __future__ import annotations

from datetime import date
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class RawPurchaseOrderRead(BaseModel):
    """RPO with delivery progress."""
    id: UUID
    rpo_no: str
    status: str
    supplier_name: Optional[str] = None
    wo_id: Optional[UUID] = None
    item_code: Optional[str] = None
    alloy: Optional[str] = None
    qty_ordered_kg: float
    qty_received_kg: float = 0
    rate_per_kg: float
    amount_ordered: float
    expected_delivery_date: Optional[date] = None
    receive_rate_pct: float = Field(..., description="Received kg as a percentage of ordered kg")
    is_past_due: bool
