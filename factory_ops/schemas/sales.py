from __future__ import annotations

from datetime import date, datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class SalesOrderRead(BaseModel):
    """Sales order with its total and line summary."""
    id: UUID
    so_id: str
    customer: str
    po_number: Optional[str] = None
    po_date: Optional[date] = None
    expected_delivery_date: Optional[date] = None
    currency: str
    status: str
    total_amount: float = Field(..., description="Stored total, or the sum of line amounts when none is stored")
    line_count: int
    ordered_pieces: int
    created_at: datetime
