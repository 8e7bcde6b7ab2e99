"""
External processing: overdue returns, reminder notifications and receipt rules.

A move is a lot of pieces sent to a partner (plating, buffing...) under a challan and
expected back by a date. The same date predicate used in the query is recomputed here
for display.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .errors import InvalidQuantityError, QuantityExceededError


SEVERITY_CRITICAL = "critical"
SEVERITY_WARNING = "warning"
SEVERITY_OVERDUE = "overdue"

# Move statuses that no longer need a reminder
CLOSED_MOVE_STATUSES = frozenset({"received_full", "cancelled"})


def _get(obj: Any, name: str) -> Any:
    if obj is None:
        return None
    if isinstance(obj, Mapping):
        return obj.get(name)
    return getattr(obj, name, None)


@dataclass
class OverdueReturn:
    id: Any
    work_order_id: Any
    work_order_display: str
    process: str
    partner_name: str
    partner_id: Any
    sent_date: Optional[date]
    expected_return: Optional[date]
    pcs_pending: int
    days_overdue: int
    severity: str


@dataclass
class ReturnReminder:
    move_id: Any
    title: str
    message: str
    type: str
    is_overdue: bool
    days_diff: int
    entity_type: str = "wo_external_move"


def pending_quantity(sent: Optional[float], returned: Optional[float]) -> int:
    return int((sent or 0) - (returned or 0))


def days_overdue(expected_return_date: Optional[date], today: date) -> int:
    """Whole days between the expected return date and today (negative when not yet due)."""
    if expected_return_date is None:
        return 0
    return (today - expected_return_date).days


# PUBLIC_INTERFACE
def overdue_severity(days: int, warning_days: int = 3, critical_days: int = 7) -> str:
    """Severity tier for a number of days overdue: critical, warning or overdue."""
    if days > critical_days:
        return SEVERITY_CRITICAL
    if days > warning_days:
        return SEVERITY_WARNING
    return SEVERITY_OVERDUE


# PUBLIC_INTERFACE
def build_overdue_returns(
    moves: Iterable[Any],
    today: date,
    warning_days: int = 3,
    critical_days: int = 7,
) -> List[OverdueReturn]:
    """
    Turn overdue external moves into display rows.

    Each move may carry its work order (`work_order`) and partner (`partner`)
    relations. Moves with nothing left to return are dropped.
    """
    rows: List[OverdueReturn] = []
    for move in moves:
        pending = pending_quantity(_get(move, "quantity_sent"), _get(move, "quantity_returned"))
        if pending <= 0:
            continue
        wo = _get(move, "work_order")
        partner = _get(move, "partner")
        expected = _get(move, "expected_return_date")
        overdue_days = days_overdue(expected, today) if expected else 0
        rows.append(
            OverdueReturn(
                id=_get(move, "id"),
                work_order_id=_get(move, "work_order_id"),
                work_order_display=_get(wo, "display_id") or _get(wo, "item_code") or "N/A",
                process=_get(move, "process") or "Unknown",
                partner_name=_get(partner, "name") or "Unknown Partner",
                partner_id=_get(move, "partner_id"),
                sent_date=_get(move, "dispatch_date"),
                expected_return=expected,
                pcs_pending=pending,
                days_overdue=overdue_days,
                severity=overdue_severity(overdue_days, warning_days, critical_days),
            )
        )
    return rows


def matches_process(process: Optional[str], selected: Optional[str]) -> bool:
    """Loose match between a move's process name and a dashboard process key (e.g. 'plating_ext')."""
    if not selected:
        return True
    proc = (process or "").lower()
    wanted = selected.replace("_ext", "", 1).replace("_", " ", 1).lower()
    return wanted in proc or selected.lower() in proc.replace(" ", "_", 1)


def _plural_days(n: int) -> str:
    return f"{n} Day" if n == 1 else f"{n} Days"


# PUBLIC_INTERFACE
def due_reminders(
    moves: Iterable[Any],
    work_orders: Mapping[Any, Any],
    today: date,
    window_days: int = 2,
) -> List[ReturnReminder]:
    """
    Build reminder notifications for external moves that are overdue or due soon.

    Args:
        moves: external moves (already filtered by the query, re-checked here).
        work_orders: work orders keyed by id, used for display fields.
        today: the reference date.
        window_days: moves expected back within this many days get a reminder.

    Moves whose work order is not in `work_orders` are skipped.
    """
    horizon = today + timedelta(days=window_days)
    reminders: List[ReturnReminder] = []
    for move in moves:
        expected = _get(move, "expected_return_date")
        if expected is None or expected > horizon:
            continue
        if (_get(move, "status") or "") in CLOSED_MOVE_STATUSES:
            continue
        wo = work_orders.get(_get(move, "work_order_id"))
        if wo is None:
            continue

        is_overdue = expected < today
        days_diff = abs((expected - today).days)
        if is_overdue:
            title = f"Overdue External Return - {_get(wo, 'display_id')}"
            tail = "is overdue"
        else:
            title = f"External Return Due in {_plural_days(days_diff)}"
            tail = f"due on {expected.isoformat()}"
        process = (_get(move, "process") or "").replace("_", " ", 1).upper()
        message = (
            f"{process} process for {_get(wo, 'customer')} - {_get(wo, 'item_code')} "
            f"(Challan: {_get(move, 'challan_no')}) {tail}"
        )
        reminders.append(
            ReturnReminder(
                move_id=_get(move, "id"),
                title=title,
                message=message,
                type="alert" if is_overdue else "reminder",
                is_overdue=is_overdue,
                days_diff=days_diff,
            )
        )
    return reminders


def receipt_status(sent: Optional[float], returned: Optional[float]) -> str:
    """Move status after a receipt: sent, partial or received_full."""
    sent_qty = sent or 0
    returned_qty = returned or 0
    if returned_qty <= 0:
        return "sent"
    if returned_qty >= sent_qty:
        return "received_full"
    return "partial"


# PUBLIC_INTERFACE
def validate_receipt_quantity(quantity: float, pending: float) -> None:
    """
    Raises:
        InvalidQuantityError: quantity is zero or negative.
        QuantityExceededError: more pieces received than are still out.
    """
    if quantity is None or quantity <= 0:
        raise InvalidQuantityError("Received quantity must be greater than 0")
    if quantity > pending:
        raise QuantityExceededError(
            f"Received quantity ({quantity}) exceeds pending quantity ({pending})",
            details={"requested": quantity, "pending": pending},
        )


def group_by_partner(rows: Iterable[OverdueReturn]) -> Dict[str, int]:
    """Pending pieces per partner name."""
    totals: Dict[str, int] = {}
    for row in rows:
        totals[row.partner_name] = totals.get(row.partner_name, 0) + row.pcs_pending
    return totals
