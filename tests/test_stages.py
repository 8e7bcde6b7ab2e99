import pytest

from factory_ops.workflow.errors import UnknownStageError
from factory_ops.workflow.stages import (
    WORKFLOW_STAGES,
    is_known_stage,
    progress_percent,
    require_known_stage,
    stage_flow,
    stage_index,
    stage_label,
)


def test_stage_list_order():
    keys = [k for k, _ in WORKFLOW_STAGES]
    assert len(keys) == 16
    assert keys[0] == "production_planning"
    assert keys[-1] == "dispatch"
    assert keys.index("first_piece_qc") < keys.index("mass_production") < keys.index("packing")


def test_stage_index_and_known():
    assert stage_index("production_planning") == 0
    assert stage_index("forging") == 7
    assert stage_index("welding") == -1
    assert stage_index(None) == -1
    assert is_known_stage("plating")
    assert not is_known_stage("")


def test_stage_label_falls_back_to_title_case():
    assert stage_label("cnc_production") == "CNC Production"
    assert stage_label("heat_treatment") == "Heat Treatment"
    assert stage_label(None) == ""


def test_stage_flow_marks_done_active_pending():
    steps = stage_flow("forging")
    statuses = [s.status for s in steps]
    assert statuses[:7] == ["done"] * 7
    assert statuses[7] == "active"
    assert statuses[8:] == ["pending"] * 8
    assert [s.is_current for s in steps].count(True) == 1
    assert steps[7].key == "forging" and steps[7].label == "Forging"


def test_stage_flow_unknown_stage_is_all_pending():
    for current in (None, "unknown_stage"):
        steps = stage_flow(current)
        assert all(s.status == "pending" for s in steps)
        assert not any(s.is_current for s in steps)


def test_progress_percent():
    assert progress_percent("dispatch") == 100.0
    assert progress_percent("forging") == 50.0
    assert progress_percent(None) == 0.0


def test_require_known_stage():
    assert require_known_stage("packing") == "packing"
    with pytest.raises(UnknownStageError) as exc:
        require_known_stage("painting")
    assert exc.value.status_code == 422
    assert "packing" in exc.value.details["allowed"]
