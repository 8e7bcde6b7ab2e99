"""
Fixed work-order stage list and the stage-flow derivation used by the WO views.

The stage list is a lookup, not a state machine: any stage may be recorded and the
flow is recomputed from the position of the current stage.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from .errors import UnknownStageError


WORKFLOW_STAGES: Tuple[Tuple[str, str], ...] = (
    ("production_planning", "Production Planning"),
    ("proforma_sent", "Proforma Sent"),
    ("raw_material_check", "Raw Material Check"),
    ("raw_material_order", "Raw Material Order"),
    ("raw_material_inwards", "Raw Material Inwards"),
    ("raw_material_qc", "Raw Material QC"),
    ("cutting", "Cutting"),
    ("forging", "Forging"),
    ("cnc_production", "CNC Production"),
    ("first_piece_qc", "First Piece QC"),
    ("mass_production", "Mass Production"),
    ("buffing", "Buffing"),
    ("plating", "Plating"),
    ("blasting", "Blasting"),
    ("packing", "Packing"),
    ("dispatch", "Dispatch"),
)

_INDEX: Dict[str, int] = {key: i for i, (key, _label) in enumerate(WORKFLOW_STAGES)}
_LABELS: Dict[str, str] = dict(WORKFLOW_STAGES)

STEP_DONE = "done"
STEP_ACTIVE = "active"
STEP_PENDING = "pending"


@dataclass(frozen=True)
class StageStep:
    key: str
    label: str
    status: str
    is_current: bool


# PUBLIC_INTERFACE
def stage_index(key: Optional[str]) -> int:
    """Return the position of a stage in WORKFLOW_STAGES, or -1 when unknown."""
    if key is None:
        return -1
    return _INDEX.get(key, -1)


def is_known_stage(key: Optional[str]) -> bool:
    return stage_index(key) >= 0


def stage_label(key: Optional[str]) -> str:
    """Display label for a stage key; unknown keys are title-cased."""
    if not key:
        return ""
    return _LABELS.get(key) or key.replace("_", " ").title()


# PUBLIC_INTERFACE
def require_known_stage(key: Optional[str]) -> str:
    """
    Return the key unchanged when it names a workflow stage.

    Raises:
        UnknownStageError: when the key is not one of WORKFLOW_STAGES.
    """
    if not is_known_stage(key):
        raise UnknownStageError(
            f"Unknown stage '{key}'", details={"allowed": [k for k, _ in WORKFLOW_STAGES]}
        )
    return key  # type: ignore[return-value]


# PUBLIC_INTERFACE
def stage_flow(current_stage: Optional[str]) -> List[StageStep]:
    """
    Mark each workflow step as done, active or pending relative to the current stage.

    Steps before the current stage are done, the current one is active and the rest
    are pending. When the current stage is unknown or missing every step is pending.
    """
    current = stage_index(current_stage)
    steps: List[StageStep] = []
    for i, (key, label) in enumerate(WORKFLOW_STAGES):
        if current < 0 or i > current:
            status = STEP_PENDING
        elif i < current:
            status = STEP_DONE
        else:
            status = STEP_ACTIVE
        steps.append(StageStep(key=key, label=label, status=status, is_current=(i == current)))
    return steps


def progress_percent(current_stage: Optional[str]) -> float:
    current = stage_index(current_stage)
    if current < 0:
        return 0.0
    return (current + 1) / len(WORKFLOW_STAGES) * 100
