from datetime import date
from types import SimpleNamespace

import pytest

from factory_ops.workflow.errors import InvalidQuantityError, QuantityExceededError
from factory_ops.workflow.external import (
    build_overdue_returns,
    days_overdue,
    due_reminders,
    group_by_partner,
    matches_process,
    overdue_severity,
    pending_quantity,
    receipt_status,
    validate_receipt_quantity,
)

TODAY = date(2025, 3, 10)


def _move(**fields):
    base = dict(
        id="m1",
        work_order_id="wo1",
        process="zinc_plating",
        partner_id="p1",
        quantity_sent=100,
        quantity_returned=0,
        dispatch_date=date(2025, 2, 20),
        expected_return_date=date(2025, 3, 1),
        challan_no="CH-9",
        status="sent",
        work_order=None,
        partner=None,
    )
    base.update(fields)
    return SimpleNamespace(**base)


def test_pending_and_days_overdue():
    assert pending_quantity(100, 30) == 70
    assert pending_quantity(None, None) == 0
    assert days_overdue(date(2025, 3, 1), TODAY) == 9
    assert days_overdue(date(2025, 3, 12), TODAY) == -2
    assert days_overdue(None, TODAY) == 0


@pytest.mark.parametrize("days, expected", [(1, "overdue"), (3, "overdue"), (4, "warning"), (7, "warning"), (8, "critical")])
def test_overdue_severity(days, expected):
    assert overdue_severity(days) == expected


def test_build_overdue_returns_display_fallbacks():
    moves = [
        _move(
            work_order=SimpleNamespace(display_id="WO-0042", item_code="BR-101"),
            partner=SimpleNamespace(name="Shine Platers"),
        ),
        _move(id="m2", process=None, quantity_returned=40, expected_return_date=date(2025, 3, 8)),
        _move(id="m3", quantity_returned=100),
        _move(id="m4", work_order=SimpleNamespace(display_id=None, item_code="BR-7")),
    ]
    rows = build_overdue_returns(moves, TODAY)
    assert [r.id for r in rows] == ["m1", "m2", "m4"]

    first, second, third = rows
    assert first.work_order_display == "WO-0042"
    assert first.partner_name == "Shine Platers"
    assert first.days_overdue == 9
    assert first.severity == "critical"
    assert second.work_order_display == "N/A"
    assert second.process == "Unknown"
    assert second.partner_name == "Unknown Partner"
    assert second.pcs_pending == 60
    assert second.severity == "overdue"
    assert third.work_order_display == "BR-7"

    assert group_by_partner(rows) == {"Shine Platers": 100, "Unknown Partner": 160}


def test_matches_process():
    assert matches_process("Zinc plating", "plating_ext")
    assert matches_process("cnc_turning", "cnc_turning")
    assert not matches_process("Buffing", "plating_ext")
    assert matches_process("anything", None)


def test_due_reminders():
    work_orders = {"wo1": SimpleNamespace(display_id="WO-0042", customer="Acme", item_code="BR-101")}
    moves = [
        _move(id="late", expected_return_date=date(2025, 3, 5)),
        _move(id="soon", expected_return_date=date(2025, 3, 11)),
        _move(id="later", expected_return_date=date(2025, 3, 20)),
        _move(id="closed", expected_return_date=date(2025, 3, 5), status="received_full"),
        _move(id="orphan", work_order_id="wo-missing", expected_return_date=date(2025, 3, 5)),
    ]
    reminders = due_reminders(moves, work_orders, TODAY, window_days=2)
    assert [r.move_id for r in reminders] == ["late", "soon"]

    late, soon = reminders
    assert late.title == "Overdue External Return - WO-0042"
    assert late.type == "alert"
    assert late.days_diff == 5
    assert late.message == "ZINC PLATING process for Acme - BR-101 (Challan: CH-9) is overdue"

    assert soon.title == "External Return Due in 1 Day"
    assert soon.type == "reminder"
    assert soon.message == "ZINC PLATING process for Acme - BR-101 (Challan: CH-9) due on 2025-03-11"
    assert soon.entity_type == "wo_external_move"


def test_receipt_status_and_validation():
    assert receipt_status(100, 0) == "sent"
    assert receipt_status(100, 40) == "partial"
    assert receipt_status(100, 100) == "received_full"

    validate_receipt_quantity(10, 10)
    with pytest.raises(QuantityExceededError):
        validate_receipt_quantity(11, 10)
    with pytest.raises(InvalidQuantityError):
        validate_receipt_quantity(0, 10)
