from __future__ import annotations

from datetime import date
from typing import Optional
from uuid import UUID

from pydantic import BaseModel


class OverdueInvoiceRead(BaseModel):
    """Invoice past its due date with a balance outstanding."""
    id: UUID
    invoice_no: str
    customer_name: Optional[str] = None
    invoice_date: date
    due_date: date
    currency: Optional[str] = None
    total_amount: float
    balance_amount: float
    days_late: int
    tier: str
    balance_display: str
