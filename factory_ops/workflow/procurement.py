"""Delivery progress of raw-material purchase orders (RPOs)."""
from __future__ import annotations

from datetime import date
from typing import Any, Optional

from .numeric import clamp_percentage

CLOSED_RPO_STATUSES = frozenset({"closed", "cancelled", "completed"})


def receive_rate_pct(ordered_kg: Optional[float], received_kg: Optional[float]) -> float:
    ordered = float(ordered_kg or 0)
    if ordered <= 0:
        return 0.0
    return clamp_percentage(float(received_kg or 0) / ordered * 100)


# PUBLIC_INTERFACE
def rpo_is_past_due(
    status: Optional[str],
    expected_delivery_date: Optional[date],
    ordered_kg: Optional[float],
    received_kg: Optional[float],
    today: date,
) -> bool:
    """Expected delivery has passed while kg are still outstanding on an open RPO."""
    if expected_delivery_date is None or status in CLOSED_RPO_STATUSES:
        return False
    outstanding = float(ordered_kg or 0) - float(received_kg or 0)
    return expected_delivery_date < today and outstanding > 0


def rpo_progress(rpo: Any, today: date) -> dict:
    """receive_rate_pct and is_past_due of an RPO row."""
    return {
        "receive_rate_pct": receive_rate_pct(rpo.qty_ordered_kg, rpo.qty_received_kg),
        "is_past_due": rpo_is_past_due(
            rpo.status, rpo.expected_delivery_date, rpo.qty_ordered_kg, rpo.qty_received_kg, today
        ),
    }
