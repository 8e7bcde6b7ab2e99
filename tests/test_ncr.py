import pytest

from factory_ops.workflow.ncr import (
    FAILURE_CATEGORIES,
    FAILURE_REASONS,
    category_label,
    next_ncr_number,
    reason_by_id,
    reasons_by_category,
    rejection_exceedances,
    rejection_rate,
    requires_ncr,
)


def test_failure_reason_catalogue():
    assert len(FAILURE_REASONS) == 23
    assert {r.category for r in FAILURE_REASONS} <= set(FAILURE_CATEGORIES)
    assert reason_by_id("tool_worn").label == "Tool Wear"
    assert reason_by_id("nope") is None
    assert [r.id for r in reasons_by_category("measurement")] == ["measurement_instrument", "measurement_technique"]
    assert category_label("setup") == "Setup Fault"
    assert category_label("custom") == "custom"


def test_rejection_rate_and_ncr_threshold():
    assert rejection_rate(5, 50) == pytest.approx(10.0)
    assert rejection_rate(3, 0) == 0.0
    assert requires_ncr(6, 100, 5.0)
    assert not requires_ncr(5, 100, 5.0)


def test_rejection_exceedances_sorted_by_count():
    hits = rejection_exceedances(
        {"rejection_dent": 7, "rejection_scratch": 12, "rejection_lining": 5, "rejection_burr": 9},
        thresholds={"rejection_scratch": 10},
    )
    assert [(h.key, h.count, h.threshold) for h in hits] == [
        ("rejection_scratch", 12, 10),
        ("rejection_burr", 9, 5),
        ("rejection_dent", 7, 5),
    ]
    assert hits[0].label == "Scratch"
    assert hits[1].label == "Burr"


@pytest.mark.parametrize(
    "last, year, expected",
    [
        (None, 2025, "NCR-2025-0001"),
        ("NCR-2025-0007", 2025, "NCR-2025-0008"),
        ("NCR-2024-0120", 2025, "NCR-2025-0001"),
        ("garbage", 2025, "NCR-2025-0001"),
        ("NCR-2025-9999", 2025, "NCR-2025-10000"),
        ("NCR-2025-10000", 2025, "NCR-2025-10001"),
    ],
)
def test_next_ncr_number(last, year, expected):
    assert next_ncr_number(last, year) == expected
