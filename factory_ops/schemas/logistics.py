from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class PackableRead(BaseModel):
    """Packable balance of a batch."""
    batch_id: UUID
    qc_approved: int
    already_packed: int
    available: int


class CartonCreate(BaseModel):
    """Pack QC-approved pieces of a batch into a carton."""
    batch_id: UUID
    quantity: int
    carton_id: Optional[str] = Field(None, description="Generated from the WO number when omitted")
    net_weight: float = Field(0, ge=0)
    gross_weight: float = Field(0, ge=0)
    heat_nos: List[str] = Field(default_factory=list)


class CartonRead(BaseModel):
    id: UUID
    carton_id: str
    wo_id: UUID
    production_batch_id: Optional[UUID] = None
    quantity: int
    dispatched_qty: int = 0
    status: str
    net_weight: float
    gross_weight: float
    heat_nos: List[str] = Field(default_factory=list)
    built_at: datetime

    class Config:
        from_attributes = True


class DispatchCreate(BaseModel):
    """Dispatch pieces of a batch, optionally from a specific carton."""
    batch_id: UUID
    quantity: int
    carton_id: Optional[UUID] = None
    remarks: Optional[str] = None


class DispatchRead(BaseModel):
    id: UUID
    wo_id: UUID
    batch_id: UUID
    carton_id: Optional[UUID] = None
    quantity: int
    dispatched_at: datetime
    remarks: Optional[str] = None

    class Config:
        from_attributes = True


class DispatchEligibilityRead(BaseModel):
    work_order_id: UUID
    available_from_packing: int
    available_from_inventory: int
    total_available: int
    remaining_to_dispatch: int


class AgeingBucketRead(BaseModel):
    range: str
    min_days: int
    max_days: Optional[int] = None
    quantity: int
    carton_count: int
    value: float
    value_display: str

    class Config:
        from_attributes = True


class AgeingRead(BaseModel):
    buckets: List[AgeingBucketRead]
    risk_percent: int
    risk_days: int
