"""Safety, health and environment (SHE) summaries."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional


@dataclass
class SeveritySummary:
    severity: str
    count: int = 0
    lost_time_hours: float = 0.0


@dataclass(frozen=True)
class CapaSummary:
    total: int
    overdue: int
    closed: int


def _get(obj: Any, name: str) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(name)
    return getattr(obj, name, None)


def incident_summary(incidents: Iterable[Any]) -> List[SeveritySummary]:
    """Incident count and lost-time hours per severity, in first-seen order."""
    grouped: Dict[str, SeveritySummary] = {}
    for inc in incidents:
        severity = _get(inc, "severity") or "unknown"
        entry = grouped.setdefault(severity, SeveritySummary(severity=severity))
        entry.count += 1
        entry.lost_time_hours += float(_get(inc, "lost_time_hours") or 0)
    return list(grouped.values())


def capa_summary(statuses: Iterable[Optional[str]]) -> CapaSummary:
    statuses = list(statuses)
    return CapaSummary(
        total=len(statuses),
        overdue=sum(1 for s in statuses if s == "overdue"),
        closed=sum(1 for s in statuses if s == "closed"),
    )


def recycling_percent(waste_kg: Optional[float], recycled_kg: Optional[float]) -> float:
    if not waste_kg:
        return 0.0
    return round(float(recycled_kg or 0) / float(waste_kg) * 100, 1)
