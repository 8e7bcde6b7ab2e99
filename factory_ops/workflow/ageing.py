"""
Ageing of packed goods and lateness of invoices.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Iterable, List, Mapping, Optional, Union


@dataclass
class AgeingBucket:
    range: str
    min_days: int
    max_days: Optional[int]
    quantity: int = 0
    carton_count: int = 0
    value: float = 0.0

    def contains(self, age: int) -> bool:
        return age >= self.min_days and (self.max_days is None or age <= self.max_days)


def _empty_buckets() -> List[AgeingBucket]:
    return [
        AgeingBucket("0-7 days", 0, 7),
        AgeingBucket("8-15 days", 8, 15),
        AgeingBucket("16-30 days", 16, 30),
        AgeingBucket("30+ days", 31, None),
    ]


def _get(obj: Any, name: str) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(name)
    return getattr(obj, name, None)


def _as_date(value: Union[date, datetime]) -> date:
    return value.date() if isinstance(value, datetime) else value


def carton_remaining(carton: Any) -> int:
    return int(_get(carton, "quantity") or 0) - int(_get(carton, "dispatched_qty") or 0)


# PUBLIC_INTERFACE
def ageing_buckets(cartons: Iterable[Any], today: date) -> List[AgeingBucket]:
    """
    Bucket cartons that still hold undispatched pieces by days since `built_at`.

    Each carton may carry `value_per_piece` (net weight per piece of its work order);
    a bucket's value is the sum of remaining pieces times that figure.
    """
    buckets = _empty_buckets()
    for carton in cartons:
        remaining = carton_remaining(carton)
        if remaining <= 0 and _get(carton, "status") != "packed":
            continue
        built_at = _get(carton, "built_at")
        if built_at is None:
            continue
        age = (today - _as_date(built_at)).days
        per_piece = float(_get(carton, "value_per_piece") or 0)
        for bucket in buckets:
            if bucket.contains(age):
                bucket.quantity += remaining
                bucket.carton_count += 1
                bucket.value += remaining * per_piece
                break
    return buckets


def ageing_risk_percent(buckets: Iterable[AgeingBucket], risk_days: int = 15) -> int:
    """Share of bucket value older than risk_days, as a rounded percent."""
    buckets = list(buckets)
    total = sum(b.value for b in buckets)
    if total <= 0:
        return 0
    at_risk = sum(b.value for b in buckets if b.min_days > risk_days)
    return round(at_risk / total * 100)


def invoice_days_late(due_date: Optional[date], today: date) -> int:
    if due_date is None:
        return 0
    return max((today - due_date).days, 0)


# PUBLIC_INTERFACE
def invoice_lateness_tier(days_late: int) -> str:
    """late up to 15 days, serious up to 30, critical beyond."""
    if days_late <= 15:
        return "late"
    if days_late <= 30:
        return "serious"
    return "critical"
