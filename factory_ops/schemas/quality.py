from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from factory_ops.workflow.ncr import reason_by_id
from factory_ops.workflow.qc_status import DECISION_RESULTS


QCGate = Literal["material", "first_piece", "final"]


class QCRecordRead(BaseModel):
    """QC record read model."""
    id: UUID
    qc_id: str
    wo_id: UUID
    batch_id: Optional[UUID] = None
    qc_type: str
    result: str
    inspected_quantity: Optional[int] = None
    approved_quantity: Optional[int] = None
    rejected_quantity: Optional[int] = None
    rejection_breakdown: Optional[Dict[str, int]] = None
    failure_reason: Optional[str] = None
    remarks: Optional[str] = None
    qc_date_time: datetime

    class Config:
        from_attributes = True


class InspectionCreate(BaseModel):
    """Record a QC gate decision for a batch."""
    gate: QCGate = Field(..., description="Which gate is being decided")
    result: str = Field(..., description="pass, fail, hold or waive (legacy spellings accepted)")
    approved_quantity: int = Field(0, ge=0, description="Pieces approved (final gate)")
    rejected_quantity: int = Field(0, ge=0, description="Pieces rejected (final gate)")
    rejection_breakdown: Dict[str, int] = Field(
        default_factory=dict, description="Rejected pieces per rejection type key"
    )
    failure_reason: Optional[str] = Field(None, description="Failure reason id from the catalogue")
    remarks: Optional[str] = Field(None)

    @field_validator("result")
    @classmethod
    def _known_result(cls, v: str) -> str:
        cleaned = v.strip().lower()
        if cleaned not in DECISION_RESULTS:
            allowed = ", ".join(sorted(DECISION_RESULTS))
            raise ValueError(f"Unknown inspection result '{v}'; expected one of: {allowed}")
        return cleaned

    @field_validator("failure_reason")
    @classmethod
    def _known_reason(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and reason_by_id(v) is None:
            raise ValueError(f"Unknown failure reason '{v}'")
        return v


class RejectionExceedanceRead(BaseModel):
    key: str
    label: str
    count: int
    threshold: int

    class Config:
        from_attributes = True


class InspectionResult(BaseModel):
    """Outcome of a recorded inspection."""
    record: QCRecordRead
    gate_status: str
    rejection_rate: float
    requires_ncr: bool
    exceedances: List[RejectionExceedanceRead] = Field(default_factory=list)


class NCRRead(BaseModel):
    """NCR read model."""
    id: UUID
    ncr_number: str
    work_order_id: Optional[UUID] = None
    qc_record_id: Optional[UUID] = None
    rejection_type: Optional[str] = None
    quantity_affected: Optional[int] = None
    issue_description: str
    status: str
    created_at: datetime

    class Config:
        from_attributes = True


class NCRCreate(BaseModel):
    """Raise an NCR."""
    work_order_id: Optional[UUID] = None
    qc_record_id: Optional[UUID] = None
    rejection_type: Optional[str] = None
    quantity_affected: Optional[int] = Field(None, ge=0)
    issue_description: str = Field(..., min_length=1)


class GateSummaryRead(BaseModel):
    """Gate statuses of one batch, normalized for display."""
    batch_id: UUID
    batch_number: int
    material: str
    first_piece: str
    final: str
    overall: str
    dispatch_block_reason: Optional[str] = None


class FailureReasonRead(BaseModel):
    id: str
    label: str
    category: str
    category_label: str


class HourlyQCCheckRead(BaseModel):
    id: UUID
    wo_id: UUID
    machine_id: Optional[UUID] = None
    operation: Optional[str] = None
    status: str
    dimensions: Optional[Dict[str, float]] = None
    out_of_tolerance_dimensions: Optional[List[str]] = None
    check_datetime: datetime

    class Config:
        from_attributes = True


class InProcessStatusRead(BaseModel):
    """In-process (hourly) QC gate of a work order."""
    wo_id: UUID
    status: str = Field(..., description="Normalized result of the latest check; pending when none")
    check_count: int
    failed_count: int
    last_check_at: Optional[datetime] = None
    out_of_tolerance: List[str] = Field(default_factory=list)
    checks: List[HourlyQCCheckRead] = Field(default_factory=list)
