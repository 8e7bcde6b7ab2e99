"""
QC gate status normalization.

Gate columns in the store hold free-form legacy values ("PASS", "Passed", "waive"...).
Everything is normalized to one vocabulary before any decision is taken.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List, Optional, Sequence

from .errors import DispatchBlockedError


PENDING = "pending"
NOT_STARTED = "not_started"
PASSED = "passed"
FAILED = "failed"
HOLD = "hold"
WAIVED = "waived"
BLOCKED = "blocked"

_ALIASES = {
    "pass": PASSED,
    "passed": PASSED,
    "fail": FAILED,
    "failed": FAILED,
    "hold": HOLD,
    "waive": WAIVED,
    "waived": WAIVED,
    "blocked": BLOCKED,
    "pending": PENDING,
    "not_started": NOT_STARTED,
    "not started": NOT_STARTED,
}

# Spellings an inspector may submit as a gate decision
DECISION_RESULTS = frozenset({"pass", "passed", "fail", "failed", "hold", "waive", "waived"})

# Gates checked before dispatch, in order: (label, attribute on the batch)
DISPATCH_GATES = (
    ("Material", "qc_material_status"),
    ("First Piece", "qc_first_piece_status"),
    ("Final", "qc_final_status"),
)


# PUBLIC_INTERFACE
def normalize_qc_status(status: Optional[str]) -> str:
    """Map a raw gate value onto the normalized vocabulary; unknown values are pending."""
    if status is None:
        return PENDING
    cleaned = str(status).strip().lower()
    if not cleaned:
        return PENDING
    return _ALIASES.get(cleaned, PENDING)


def is_gate_complete(status: Optional[str]) -> bool:
    return normalize_qc_status(status) in (PASSED, WAIVED)


def is_gate_failed(status: Optional[str]) -> bool:
    return normalize_qc_status(status) == FAILED


def is_gate_on_hold(status: Optional[str]) -> bool:
    return normalize_qc_status(status) == HOLD


def is_gate_pending(status: Optional[str]) -> bool:
    return normalize_qc_status(status) in (PENDING, NOT_STARTED)


def resolve_display_status(status: Optional[str], blocked: bool = False) -> str:
    normalized = normalize_qc_status(status)
    if blocked and normalized in (PENDING, NOT_STARTED):
        return BLOCKED
    return normalized


def first_piece_display_status(first_piece: Optional[str], material: Optional[str]) -> str:
    """First-piece QC cannot start until material QC is complete."""
    return resolve_display_status(first_piece, blocked=not is_gate_complete(material))


# PUBLIC_INTERFACE
def overall_gates_status(material: Optional[str], first_piece: Optional[str]) -> str:
    """
    Combined status of the material and first-piece gates.

    Returns one of: failed, complete, blocked, pending.
    """
    if is_gate_failed(material) or is_gate_failed(first_piece):
        return FAILED
    if is_gate_complete(material) and is_gate_complete(first_piece):
        return "complete"
    if not is_gate_complete(material):
        return BLOCKED
    return PENDING


def _get(obj: Any, name: str) -> Any:
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)


# PUBLIC_INTERFACE
def dispatch_block_reason(batch: Any) -> Optional[str]:
    """
    Return why a batch may not be dispatched, or None when every gate is complete.

    Gates are checked in order Material, First Piece, Final; the first incomplete one
    is reported.
    """
    for gate_label, attr in DISPATCH_GATES:
        raw = _get(batch, attr)
        if not is_gate_complete(raw):
            return (
                f"Dispatch blocked: {gate_label} QC not approved for Batch "
                f"#{_get(batch, 'batch_number')}. Current status: {normalize_qc_status(raw)}"
            )
    return None


def ensure_dispatch_allowed(batch: Any) -> None:
    """Raise DispatchBlockedError when a gate blocks dispatch of the batch."""
    reason = dispatch_block_reason(batch)
    if reason:
        raise DispatchBlockedError(reason, details={"batch_number": _get(batch, "batch_number")})


@dataclass
class InProcessStatus:
    status: str
    check_count: int = 0
    failed_count: int = 0
    last_check_at: Optional[datetime] = None
    out_of_tolerance: List[str] = field(default_factory=list)


# PUBLIC_INTERFACE
def in_process_status(checks: Sequence[Any]) -> InProcessStatus:
    """
    Status of the in-process (hourly) QC gate from a work order's checks, newest first.

    The latest check decides the status; no checks yet means pending. This gate has no
    dependency on the other gates.
    """
    if not checks:
        return InProcessStatus(status=PENDING)
    latest = checks[0]
    return InProcessStatus(
        status=normalize_qc_status(_get(latest, "status")),
        check_count=len(checks),
        failed_count=sum(1 for c in checks if is_gate_failed(_get(c, "status"))),
        last_check_at=_get(latest, "check_datetime"),
        out_of_tolerance=list(_get(latest, "out_of_tolerance_dimensions") or []),
    )
