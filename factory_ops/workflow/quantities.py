"""
Quantity derivations over production batches, cartons and dispatches.

Inputs are ORM rows or plain mappings carrying batch columns; missing or null numbers
count as zero. Every function here is pure so the same rules can be checked without
a database and reused inside write transactions.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from .errors import InvalidQuantityError, QuantityExceededError


BATCH_STATUS_LABELS: Dict[str, str] = {
    "pending": "Pending",
    "in_production": "In Production",
    "in_qc": "In QC",
    "packing": "Packing",
    "partially_qc_approved": "Partially QC Approved",
    "ready_to_dispatch": "Ready to Dispatch",
    "partially_dispatched": "Partially Dispatched",
    "awaiting_next_batch": "Awaiting Next Batch",
    "fully_dispatched": "Fully Dispatched",
    "closed": "Closed",
}

# Legacy work_orders.status values mapped when batches carry no activity
_LEGACY_STATUS = {
    "completed": "closed",
    "shipped": "fully_dispatched",
    "packing": "packing",
    "qc": "in_qc",
    "in_progress": "in_production",
}


def _get(obj: Any, name: str) -> Any:
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)


def _num(obj: Any, name: str) -> int:
    value = _get(obj, name)
    return int(value or 0)


@dataclass
class ExternalBreakdown:
    process: str
    quantity: int


@dataclass
class WOBatchQuantities:
    ordered: int = 0
    in_production: int = 0
    at_external: int = 0
    external_breakdown: List[ExternalBreakdown] = field(default_factory=list)
    qc_approved: int = 0
    qc_pending: int = 0
    qc_rejected: int = 0
    packed: int = 0
    dispatched: int = 0
    remaining: int = 0
    progress_percent: float = 0.0


@dataclass
class WOBatchStatus:
    status: str
    label: str
    base_status: Optional[str]
    ordered_qty: int
    produced_qty: int
    qc_approved_qty: int
    qc_rejected_qty: int
    qc_pending_qty: int
    dispatched_qty: int
    remaining_qty: int
    active_batches: int
    has_pending_qc: bool


@dataclass(frozen=True)
class PackableQuantity:
    qc_approved: int
    already_packed: int
    available: int


@dataclass(frozen=True)
class DispatchEligibility:
    available_from_packing: int
    available_from_inventory: int
    total_available: int
    remaining_to_dispatch: int


# PUBLIC_INTERFACE
def wo_batch_quantities(
    ordered: Optional[int],
    batches: Iterable[Any],
    carton_quantities: Iterable[Optional[int]] = (),
    dispatch_quantities: Iterable[Optional[int]] = (),
) -> WOBatchQuantities:
    """
    Derive the live quantity breakdown of a work order from its batches.

    Args:
        ordered: work order quantity.
        batches: production batch rows of the work order.
        carton_quantities: quantity of each carton packed for the work order.
        dispatch_quantities: quantity of each dispatch of the work order.
    """
    ordered_qty = int(ordered or 0)
    result = WOBatchQuantities(ordered=ordered_qty)
    external: Dict[str, int] = {}

    for batch in batches:
        batch_qty = _num(batch, "batch_quantity") or _num(batch, "produced_qty")
        stage_type = _get(batch, "stage_type")
        if stage_type == "external":
            result.at_external += batch_qty
            process = _get(batch, "external_process_type") or "Other"
            external[process] = external.get(process, 0) + batch_qty
        elif stage_type == "production" and _get(batch, "batch_status") != "completed":
            result.in_production += batch_qty

        approved = _num(batch, "qc_approved_qty")
        rejected = _num(batch, "qc_rejected_qty")
        result.qc_approved += approved
        result.qc_rejected += rejected
        result.qc_pending += max(0, _num(batch, "produced_qty") - approved - rejected)

    result.external_breakdown = [
        ExternalBreakdown(process=p, quantity=q)
        for p, q in sorted(external.items(), key=lambda kv: kv[1], reverse=True)
    ]
    result.packed = sum(int(q or 0) for q in carton_quantities)
    result.dispatched = sum(int(q or 0) for q in dispatch_quantities)
    result.remaining = max(0, ordered_qty - result.dispatched)
    if ordered_qty > 0:
        result.progress_percent = min(100.0, result.dispatched / ordered_qty * 100)
    return result


def batch_status_label(status: Optional[str]) -> str:
    if not status:
        return ""
    return BATCH_STATUS_LABELS.get(status, status)


# PUBLIC_INTERFACE
def wo_batch_status(ordered: Optional[int], base_status: Optional[str], batches: Iterable[Any]) -> WOBatchStatus:
    """
    Compute the batch-aware status of a work order.

    Rules are applied in order; the first match wins:
      fully_dispatched, awaiting_next_batch, partially_dispatched, ready_to_dispatch,
      partially_qc_approved, in_production, then the legacy base status mapping,
      else pending.
    """
    ordered_qty = int(ordered or 0)
    produced = approved = rejected = dispatched = active = 0
    for batch in batches:
        produced += _num(batch, "produced_qty")
        approved += _num(batch, "qc_approved_qty")
        rejected += _num(batch, "qc_rejected_qty")
        dispatched += _num(batch, "dispatched_qty")
        if _get(batch, "ended_at") is None:
            active += 1

    has_pending_qc = produced > approved + rejected

    if dispatched >= ordered_qty:
        status = "fully_dispatched"
    elif dispatched > 0 and active == 0:
        status = "awaiting_next_batch"
    elif dispatched > 0:
        status = "partially_dispatched"
    elif approved > dispatched and approved > 0:
        status = "ready_to_dispatch"
    elif approved > 0 and has_pending_qc:
        status = "partially_qc_approved"
    elif produced > 0 or active > 0:
        status = "in_production"
    else:
        status = _LEGACY_STATUS.get(base_status or "", "pending")

    return WOBatchStatus(
        status=status,
        label=batch_status_label(status),
        base_status=base_status,
        ordered_qty=ordered_qty,
        produced_qty=produced,
        qc_approved_qty=approved,
        qc_rejected_qty=rejected,
        qc_pending_qty=max(0, produced - approved - rejected),
        dispatched_qty=dispatched,
        remaining_qty=max(0, ordered_qty - dispatched),
        active_batches=active,
        has_pending_qc=has_pending_qc,
    )


# PUBLIC_INTERFACE
def packable_quantity(qc_approved: Optional[int], already_packed: Optional[int]) -> PackableQuantity:
    """QC-approved pieces of a batch not yet packed into cartons (never negative)."""
    approved = int(qc_approved or 0)
    packed = int(already_packed or 0)
    return PackableQuantity(qc_approved=approved, already_packed=packed, available=max(approved - packed, 0))


def dispatchable_quantity(qc_approved: Optional[int], dispatched: Optional[int]) -> int:
    return max(int(qc_approved or 0) - int(dispatched or 0), 0)


# PUBLIC_INTERFACE
def validate_packing_quantity(quantity: int, packable: PackableQuantity) -> None:
    """
    Check a carton quantity against the packable balance of its batch.

    Raises:
        InvalidQuantityError: quantity is zero or negative.
        QuantityExceededError: quantity is larger than the available balance.
    """
    if quantity is None or quantity <= 0:
        raise InvalidQuantityError("Packing quantity must be greater than 0")
    if quantity > packable.available:
        raise QuantityExceededError(
            f"Packing quantity ({quantity}) exceeds available QC-approved balance "
            f"({packable.available}). Batch has {packable.qc_approved} QC-approved, "
            f"{packable.already_packed} already packed.",
            details={
                "requested": quantity,
                "available": packable.available,
                "qc_approved": packable.qc_approved,
                "already_packed": packable.already_packed,
            },
        )


# PUBLIC_INTERFACE
def validate_dispatch_quantity(quantity: int, available: int) -> None:
    """
    Check a dispatch quantity against the dispatchable balance of its batch.

    Raises:
        InvalidQuantityError: quantity is zero or negative.
        QuantityExceededError: quantity is larger than the available balance.
    """
    if quantity is None or quantity <= 0:
        raise InvalidQuantityError("Dispatch quantity must be greater than 0")
    if quantity > available:
        raise QuantityExceededError(
            f"Cannot dispatch {quantity} pcs. Only {available} pcs available "
            f"(QC approved - already dispatched)",
            details={"requested": quantity, "available": available},
        )


def dispatch_eligibility(
    packed_ready: Optional[int],
    dispatched_from_cartons: Optional[int],
    inventory_qty: Optional[int],
    dispatched_total: Optional[int],
    ordered: Optional[int],
) -> DispatchEligibility:
    """Quantities that can still leave the factory for a work order."""
    from_packing = max(int(packed_ready or 0) - int(dispatched_from_cartons or 0), 0)
    from_inventory = max(int(inventory_qty or 0), 0)
    return DispatchEligibility(
        available_from_packing=from_packing,
        available_from_inventory=from_inventory,
        total_available=from_packing + from_inventory,
        remaining_to_dispatch=max(int(ordered or 0) - int(dispatched_total or 0), 0),
    )
