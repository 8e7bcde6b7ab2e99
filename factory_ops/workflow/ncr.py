"""
Rejection analysis and non-conformance report (NCR) helpers.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional


@dataclass(frozen=True)
class FailureReason:
    id: str
    label: str
    category: str


FAILURE_CATEGORIES: Dict[str, str] = {
    "operator": "Operator Error",
    "machine": "Machine Issue",
    "setup": "Setup Fault",
    "material": "Material Defect",
    "tooling": "Tooling Issue",
    "measurement": "Measurement Error",
    "environment": "Environmental",
    "other": "Other",
}

FAILURE_REASONS: List[FailureReason] = [
    FailureReason("operator_handling", "Improper Handling", "operator"),
    FailureReason("operator_procedure", "Procedure Not Followed", "operator"),
    FailureReason("operator_skill", "Skill Gap", "operator"),
    FailureReason("operator_fatigue", "Operator Fatigue", "operator"),
    FailureReason("machine_calibration", "Machine Out of Calibration", "machine"),
    FailureReason("machine_wear", "Machine Wear", "machine"),
    FailureReason("machine_malfunction", "Machine Malfunction", "machine"),
    FailureReason("machine_vibration", "Excessive Vibration", "machine"),
    FailureReason("setup_incorrect", "Incorrect Setup", "setup"),
    FailureReason("setup_first_piece", "First Piece Not Verified", "setup"),
    FailureReason("setup_fixture", "Fixture Issue", "setup"),
    FailureReason("setup_program", "Program Error", "setup"),
    FailureReason("material_defect", "Raw Material Defect", "material"),
    FailureReason("material_grade", "Wrong Material Grade", "material"),
    FailureReason("material_dimension", "Material Dimension Issue", "material"),
    FailureReason("tool_worn", "Tool Wear", "tooling"),
    FailureReason("tool_broken", "Tool Breakage", "tooling"),
    FailureReason("tool_wrong", "Wrong Tool", "tooling"),
    FailureReason("measurement_instrument", "Instrument Error", "measurement"),
    FailureReason("measurement_technique", "Measurement Technique", "measurement"),
    FailureReason("environment_temp", "Temperature Variation", "environment"),
    FailureReason("environment_contamination", "Contamination", "environment"),
    FailureReason("other", "Other", "other"),
]

# Rejection counters recorded by QC inspections, keyed as in the store
REJECTION_TYPE_LABELS: Dict[str, str] = {
    "rejection_dimension": "Dimension",
    "rejection_setting": "Setting",
    "rejection_scratch": "Scratch",
    "rejection_dent": "Dent",
    "rejection_tool_mark": "Tool Mark",
    "rejection_forging_mark": "Forging Mark",
    "rejection_material_not_ok": "Material",
    "rejection_lining": "Lining",
    "rejection_face_not_ok": "Face",
    "rejection_previous_setup_fault": "Previous Setup",
}

_NCR_NUMBER = re.compile(r"^NCR-(\d{4})-(\d+)$")


@dataclass(frozen=True)
class RejectionExceedance:
    key: str
    label: str
    count: int
    threshold: int


def reason_by_id(reason_id: str) -> Optional[FailureReason]:
    return next((r for r in FAILURE_REASONS if r.id == reason_id), None)


def reasons_by_category(category: str) -> List[FailureReason]:
    return [r for r in FAILURE_REASONS if r.category == category]


def category_label(category: str) -> str:
    return FAILURE_CATEGORIES.get(category, category)


def rejection_rate(rejected: Optional[int], inspected: Optional[int]) -> float:
    """Rejected pieces as a percentage of inspected pieces (0 when nothing inspected)."""
    if not inspected:
        return 0.0
    return (rejected or 0) / inspected * 100


def requires_ncr(rejected: Optional[int], inspected: Optional[int], threshold_pct: float) -> bool:
    return rejection_rate(rejected, inspected) > threshold_pct


# PUBLIC_INTERFACE
def rejection_exceedances(
    breakdown: Mapping[str, Optional[int]],
    thresholds: Optional[Mapping[str, int]] = None,
    default_threshold: int = 5,
) -> List[RejectionExceedance]:
    """
    Rejection types whose count is above their threshold, largest first.

    Args:
        breakdown: count per rejection type key (e.g. {"rejection_dent": 7}).
        thresholds: per-type limits; types not listed use default_threshold.
        default_threshold: limit applied when a type has no explicit threshold.
    """
    thresholds = thresholds or {}
    hits: List[RejectionExceedance] = []
    for key, raw in breakdown.items():
        count = int(raw or 0)
        limit = int(thresholds.get(key, default_threshold))
        if count > limit:
            label = REJECTION_TYPE_LABELS.get(key) or key.replace("rejection_", "").replace("_", " ").title()
            hits.append(RejectionExceedance(key=key, label=label, count=count, threshold=limit))
    hits.sort(key=lambda e: e.count, reverse=True)
    return hits


# PUBLIC_INTERFACE
def next_ncr_number(last: Optional[str], year: int) -> str:
    """
    Next number in the yearly NCR sequence, e.g. NCR-2025-0007 -> NCR-2025-0008.

    The sequence restarts at 0001 when the last number is from another year or unparseable.
    """
    seq = 0
    if last:
        m = _NCR_NUMBER.match(last.strip())
        if m and int(m.group(1)) == year:
            seq = int(m.group(2))
    return f"NCR-{year}-{seq + 1:04d}"
