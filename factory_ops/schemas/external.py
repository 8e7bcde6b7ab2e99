from __future__ import annotations

from datetime import date, datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class ExternalPartnerRead(BaseModel):
    id: UUID
    name: str
    process_type: str
    default_lead_time_days: Optional[int] = None
    is_active: bool = True
    contact_name: Optional[str] = None
    contact_phone: Optional[str] = None

    class Config:
        from_attributes = True


class ExternalMoveRead(BaseModel):
    """External move read model."""
    id: UUID
    work_order_id: UUID
    batch_id: Optional[UUID] = None
    process: str
    partner_id: Optional[UUID] = None
    quantity_sent: float
    quantity_returned: Optional[float] = None
    dispatch_date: Optional[date] = None
    expected_return_date: Optional[date] = None
    returned_date: Optional[date] = None
    challan_no: Optional[str] = None
    status: Optional[str] = None
    remarks: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class ExternalMoveCreate(BaseModel):
    """Send pieces of a work order to an external partner."""
    work_order_id: UUID
    batch_id: Optional[UUID] = None
    process: str = Field(..., min_length=1)
    partner_id: UUID
    quantity_sent: int = Field(..., description="Pieces sent")
    challan_no: Optional[str] = None
    dispatch_date: Optional[date] = None
    expected_return_date: Optional[date] = Field(
        None, description="Defaults to dispatch date plus the partner's lead time"
    )
    remarks: Optional[str] = None


class ReceiptCreate(BaseModel):
    """Pieces received back from a partner."""
    quantity: int
    received_date: Optional[date] = None
    remarks: Optional[str] = None


class OverdueReturnRead(BaseModel):
    id: Any
    work_order_id: Any
    work_order_display: str
    process: str
    partner_name: str
    partner_id: Any = None
    sent_date: Optional[date] = None
    expected_return: Optional[date] = None
    pcs_pending: int
    days_overdue: int
    severity: str

    class Config:
        from_attributes = True


class PartnerPendingRead(BaseModel):
    """Overdue pieces still at one partner."""
    partner_name: str
    pcs_pending: int


class ReminderRunResult(BaseModel):
    message: str
    moves: int
    notifications: int
