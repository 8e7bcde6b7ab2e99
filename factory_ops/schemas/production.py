from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class WorkOrderRead(BaseModel):
    """Work order read model."""
    id: UUID = Field(..., description="Work order id")
    display_id: Optional[str] = Field(None, description="Human-facing WO number")
    customer: str = Field(..., description="Customer name")
    item_code: str = Field(..., description="Item code")
    quantity: int = Field(..., description="Ordered quantity")
    due_date: Optional[date] = Field(None)
    status: Optional[str] = Field(None)
    current_stage: Optional[str] = Field(None)
    priority: Optional[int] = Field(None)
    created_at: datetime = Field(..., description="Created at")
    updated_at: datetime = Field(..., description="Updated at")

    class Config:
        from_attributes = True


class StageStepRead(BaseModel):
    """One step of the stage flow."""
    key: str
    label: str
    status: str = Field(..., description="done, active or pending")
    is_current: bool

    class Config:
        from_attributes = True


class StageFlowRead(BaseModel):
    """Stage flow of a work order."""
    work_order_id: UUID
    current_stage: Optional[str] = None
    current_label: Optional[str] = None
    progress_percent: float
    steps: List[StageStepRead]


class StageChangeRequest(BaseModel):
    """Move a work order to another workflow stage."""
    to_stage: str = Field(..., description="Target stage key")
    is_override: bool = Field(False, description="Set when skipping the normal order")
    remarks: Optional[str] = Field(None)


class StageHistoryRead(BaseModel):
    id: UUID
    wo_id: UUID
    from_stage: Optional[str] = None
    to_stage: str
    changed_by: Optional[UUID] = None
    changed_at: datetime
    is_override: bool = False
    remarks: Optional[str] = None

    class Config:
        from_attributes = True


class ProductionBatchRead(BaseModel):
    """Production batch read model."""
    id: UUID
    wo_id: UUID
    batch_number: int
    batch_quantity: Optional[int] = None
    produced_qty: int = 0
    qc_approved_qty: int = 0
    qc_rejected_qty: int = 0
    dispatched_qty: int = 0
    stage_type: Optional[str] = None
    batch_status: Optional[str] = None
    external_process_type: Optional[str] = None
    qc_material_status: Optional[str] = None
    qc_first_piece_status: Optional[str] = None
    qc_final_status: Optional[str] = None
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ExternalBreakdownRead(BaseModel):
    process: str
    quantity: int

    class Config:
        from_attributes = True


class WOQuantitiesRead(BaseModel):
    """Live quantity breakdown of a work order."""
    ordered: int
    in_production: int
    at_external: int
    external_breakdown: List[ExternalBreakdownRead]
    qc_approved: int
    qc_pending: int
    qc_rejected: int
    packed: int
    dispatched: int
    remaining: int
    progress_percent: float

    class Config:
        from_attributes = True


class WOBatchStatusRead(BaseModel):
    """Batch-aware status of a work order."""
    status: str
    label: str
    base_status: Optional[str] = None
    ordered_qty: int
    produced_qty: int
    qc_approved_qty: int
    qc_rejected_qty: int
    qc_pending_qty: int
    dispatched_qty: int
    remaining_qty: int
    active_batches: int
    has_pending_qc: bool

    class Config:
        from_attributes = True
