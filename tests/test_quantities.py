from datetime import datetime, timezone

import pytest

from factory_ops.workflow.errors import InvalidQuantityError, QuantityExceededError
from factory_ops.workflow.quantities import (
    batch_status_label,
    dispatch_eligibility,
    dispatchable_quantity,
    packable_quantity,
    validate_dispatch_quantity,
    validate_packing_quantity,
    wo_batch_quantities,
    wo_batch_status,
)

ENDED = datetime(2025, 1, 10, tzinfo=timezone.utc)


def _batch(**fields):
    base = {
        "batch_quantity": None,
        "produced_qty": 0,
        "qc_approved_qty": 0,
        "qc_rejected_qty": 0,
        "dispatched_qty": 0,
        "stage_type": "production",
        "batch_status": None,
        "external_process_type": None,
        "ended_at": None,
    }
    base.update(fields)
    return base


def test_wo_batch_quantities_breakdown():
    batches = [
        _batch(batch_quantity=100, produced_qty=100, qc_approved_qty=80, qc_rejected_qty=5),
        _batch(batch_quantity=50, stage_type="external", external_process_type="plating"),
        _batch(batch_quantity=20, stage_type="external", external_process_type="buffing"),
        _batch(produced_qty=30, stage_type="external"),
        _batch(batch_quantity=40, batch_status="completed"),
    ]
    q = wo_batch_quantities(500, batches, carton_quantities=[40, 20], dispatch_quantities=[25, None])

    assert q.in_production == 100
    assert q.at_external == 100
    assert [(b.process, b.quantity) for b in q.external_breakdown] == [
        ("plating", 50),
        ("Other", 30),
        ("buffing", 20),
    ]
    assert q.qc_approved == 80
    assert q.qc_rejected == 5
    assert q.qc_pending == 15 + 30
    assert q.packed == 60
    assert q.dispatched == 25
    assert q.remaining == 475
    assert q.progress_percent == pytest.approx(5.0)


def test_wo_batch_quantities_zero_ordered():
    q = wo_batch_quantities(0, [], dispatch_quantities=[10])
    assert q.remaining == 0
    assert q.progress_percent == 0.0


@pytest.mark.parametrize(
    "batches, base_status, expected",
    [
        ([_batch(produced_qty=100, qc_approved_qty=100, dispatched_qty=100, ended_at=ENDED)], None, "fully_dispatched"),
        ([_batch(produced_qty=50, qc_approved_qty=50, dispatched_qty=50, ended_at=ENDED)], None, "awaiting_next_batch"),
        ([_batch(produced_qty=50, qc_approved_qty=50, dispatched_qty=20)], None, "partially_dispatched"),
        ([_batch(produced_qty=50, qc_approved_qty=50, ended_at=ENDED)], None, "ready_to_dispatch"),
        ([_batch(produced_qty=0, ended_at=ENDED)], None, "pending"),
        ([_batch(produced_qty=10, ended_at=ENDED)], None, "in_production"),
        ([_batch()], None, "in_production"),
        ([], "completed", "closed"),
        ([], "qc", "in_qc"),
        ([], "unknown", "pending"),
    ],
)
def test_wo_batch_status_precedence(batches, base_status, expected):
    assert wo_batch_status(100, base_status, batches).status == expected


def test_wo_batch_status_aggregates():
    batches = [
        _batch(produced_qty=60, qc_approved_qty=40, qc_rejected_qty=5, dispatched_qty=0),
        _batch(produced_qty=20, ended_at=ENDED),
    ]
    s = wo_batch_status(100, "in_progress", batches)
    assert s.status == "ready_to_dispatch"
    assert s.label == "Ready to Dispatch"
    assert s.qc_pending_qty == 35
    assert s.has_pending_qc
    assert s.active_batches == 1
    assert s.remaining_qty == 100


def test_batch_status_label_passthrough():
    assert batch_status_label("partially_qc_approved") == "Partially QC Approved"
    assert batch_status_label("on_hold") == "on_hold"


def test_packable_quantity_floors_at_zero():
    p = packable_quantity(50, 70)
    assert p.available == 0
    assert packable_quantity(None, None).available == 0
    assert packable_quantity(100, 60).available == 40


def test_validate_packing_quantity_messages():
    balance = packable_quantity(50, 40)
    validate_packing_quantity(10, balance)
    with pytest.raises(QuantityExceededError) as exc:
        validate_packing_quantity(20, balance)
    assert exc.value.message == (
        "Packing quantity (20) exceeds available QC-approved balance (10). "
        "Batch has 50 QC-approved, 40 already packed."
    )
    with pytest.raises(InvalidQuantityError):
        validate_packing_quantity(0, balance)


def test_validate_dispatch_quantity_messages():
    assert dispatchable_quantity(30, 25) == 5
    with pytest.raises(QuantityExceededError) as exc:
        validate_dispatch_quantity(10, 5)
    assert exc.value.message == "Cannot dispatch 10 pcs. Only 5 pcs available (QC approved - already dispatched)"
    with pytest.raises(InvalidQuantityError) as exc:
        validate_dispatch_quantity(-1, 5)
    assert exc.value.message == "Dispatch quantity must be greater than 0"


def test_dispatch_eligibility():
    e = dispatch_eligibility(packed_ready=120, dispatched_from_cartons=20, inventory_qty=15, dispatched_total=60, ordered=200)
    assert e.available_from_packing == 100
    assert e.available_from_inventory == 15
    assert e.total_available == 115
    assert e.remaining_to_dispatch == 140
