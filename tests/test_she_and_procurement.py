from datetime import date
from types import SimpleNamespace

from factory_ops.workflow.procurement import receive_rate_pct, rpo_is_past_due, rpo_progress
from factory_ops.workflow.she import capa_summary, incident_summary, recycling_percent


def test_incident_summary_groups_by_severity():
    incidents = [
        {"severity": "minor", "lost_time_hours": 0},
        {"severity": "major", "lost_time_hours": 8},
        {"severity": "minor", "lost_time_hours": 1.5},
        {"severity": None, "lost_time_hours": None},
    ]
    summary = incident_summary(incidents)
    assert [(s.severity, s.count, s.lost_time_hours) for s in summary] == [
        ("minor", 2, 1.5),
        ("major", 1, 8.0),
        ("unknown", 1, 0.0),
    ]


def test_capa_summary_and_recycling():
    capa = capa_summary(["open", "overdue", "closed", "closed", None])
    assert (capa.total, capa.overdue, capa.closed) == (5, 1, 2)
    assert recycling_percent(200, 50) == 25.0
    assert recycling_percent(0, 5) == 0.0


def test_rpo_progress():
    today = date(2025, 3, 10)
    assert receive_rate_pct(1000, 250) == 25.0
    assert receive_rate_pct(0, 10) == 0.0
    assert rpo_is_past_due("approved", date(2025, 3, 1), 1000, 250, today)
    assert not rpo_is_past_due("approved", date(2025, 3, 1), 1000, 1000, today)
    assert not rpo_is_past_due("closed", date(2025, 3, 1), 1000, 0, today)
    assert not rpo_is_past_due("approved", None, 1000, 0, today)

    rpo = SimpleNamespace(
        status="partially_received",
        expected_delivery_date=date(2025, 3, 20),
        qty_ordered_kg=400,
        qty_received_kg=100,
    )
    assert rpo_progress(rpo, today) == {"receive_rate_pct": 25.0, "is_past_due": False}
