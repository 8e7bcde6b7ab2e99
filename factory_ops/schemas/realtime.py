from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class WsEnvelope(BaseModel):
    """Envelope for WebSocket messages."""
    type: str = Field(..., description="Message type (e.g., 'table.changed').")
    payload: Dict[str, Any] = Field(default_factory=dict, description="Message payload.")
    at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), description="Timestamp (UTC).")


class TableChange(BaseModel):
    """A row of a watched table was inserted, updated or deleted."""
    table: str = Field(..., description="Table name, e.g. 'production_batches'.")
    event: str = Field(..., description="INSERT, UPDATE or DELETE.")
    wo_id: Optional[str] = Field(default=None, description="Work order the row belongs to, if any.")
    id: Optional[str] = Field(default=None, description="Primary key of the changed row.")
