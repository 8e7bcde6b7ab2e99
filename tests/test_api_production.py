import asyncio
from datetime import datetime, timezone
from types import SimpleNamespace
from uuid import UUID, uuid4

from conftest import USER_ID, make_token

from factory_ops.core.security import Principal
from factory_ops.db.models.production import WorkOrderStageHistory
from factory_ops.repositories.logistics import LogisticsRepository
from factory_ops.repositories.production import ProductionBatchRepository, WorkOrderRepository
from factory_ops.schemas.production import StageChangeRequest
from factory_ops.services.production import ProductionService

WO_ID = UUID("0b6c3f1e-8d7a-4e2b-9c5d-1a2b3c4d5e6f")
NOW = datetime(2025, 3, 9, 8, 0, tzinfo=timezone.utc)


def _work_order(**fields):
    base = dict(
        id=WO_ID,
        display_id="WO-0042",
        customer="Acme Fittings",
        item_code="BR-101",
        quantity=500,
        due_date=None,
        status="in_progress",
        current_stage="forging",
        priority=2,
        created_at=NOW,
        updated_at=NOW,
    )
    base.update(fields)
    return SimpleNamespace(**base)


def _batch(**fields):
    base = dict(
        id=uuid4(),
        wo_id=WO_ID,
        batch_number=1,
        batch_quantity=100,
        produced_qty=100,
        qc_approved_qty=80,
        qc_rejected_qty=5,
        dispatched_qty=25,
        stage_type="production",
        batch_status="in_progress",
        external_process_type=None,
        qc_material_status="passed",
        qc_first_piece_status="passed",
        qc_final_status="pending",
        started_at=NOW,
        ended_at=None,
    )
    base.update(fields)
    return SimpleNamespace(**base)


def _patch_work_order(monkeypatch, wo):
    async def get_work_order(self, wo_id):
        return wo if wo is not None and wo_id == wo.id else None

    monkeypatch.setattr(WorkOrderRepository, "get_work_order", get_work_order)


def _patch_batches(monkeypatch, batches):
    async def list_for_work_order(self, wo_id):
        return batches

    monkeypatch.setattr(ProductionBatchRepository, "list_for_work_order", list_for_work_order)


def test_health_echoes_correlation_id(client):
    resp = client.get("/api/v1/health", headers={"X-Correlation-ID": "corr-123"})
    assert resp.status_code == 200
    assert resp.json()["message"] == "Healthy"
    assert resp.headers["X-Correlation-ID"] == "corr-123"


def test_missing_token_is_401(client):
    resp = client.get(f"/api/v1/production/work-orders/{WO_ID}")
    assert resp.status_code == 401
    assert resp.headers["WWW-Authenticate"] == "Bearer"
    body = resp.json()
    assert body["error"]["type"] == "http_error"
    assert body["path"] == f"/api/v1/production/work-orders/{WO_ID}"


def test_token_with_wrong_signature_is_401(client):
    headers = {"Authorization": f"Bearer {make_token('production:view', secret='other')}"}
    resp = client.get(f"/api/v1/production/work-orders/{WO_ID}", headers=headers)
    assert resp.status_code == 401
    assert resp.json()["error"]["message"] == "Invalid token"


def test_wrong_role_is_403(client, auth_headers):
    resp = client.get(f"/api/v1/production/work-orders/{WO_ID}", headers=auth_headers("finance:view"))
    assert resp.status_code == 403


def test_unknown_work_order_is_404(client, auth_headers, monkeypatch):
    _patch_work_order(monkeypatch, None)
    resp = client.get(f"/api/v1/production/work-orders/{WO_ID}", headers=auth_headers("production:view"))
    assert resp.status_code == 404
    assert resp.json()["error"] == {
        "type": "not_found",
        "message": "Work order not found",
        "details": {"work_order_id": str(WO_ID)},
    }


def test_get_work_order(client, auth_headers, monkeypatch):
    _patch_work_order(monkeypatch, _work_order())
    resp = client.get(f"/api/v1/production/work-orders/{WO_ID}", headers=auth_headers("admin"))
    assert resp.status_code == 200
    assert resp.json()["display_id"] == "WO-0042"


def test_stage_flow(client, auth_headers, monkeypatch):
    _patch_work_order(monkeypatch, _work_order())
    resp = client.get(f"/api/v1/production/work-orders/{WO_ID}/stage-flow", headers=auth_headers("production:view"))
    assert resp.status_code == 200
    body = resp.json()
    assert body["current_label"] == "Forging"
    assert body["progress_percent"] == 50.0
    assert len(body["steps"]) == 16
    statuses = [s["status"] for s in body["steps"]]
    assert statuses[:7] == ["done"] * 7
    assert statuses[7] == "active"
    assert set(statuses[8:]) == {"pending"}


def test_change_to_unknown_stage_is_422(client, auth_headers, session):
    resp = client.post(
        f"/api/v1/production/work-orders/{WO_ID}/stage",
        json={"to_stage": "painting"},
        headers=auth_headers("production:manage"),
    )
    assert resp.status_code == 422
    error = resp.json()["error"]
    assert error["type"] == "invalid_stage"
    assert "forging" in error["details"]["allowed"]
    assert session.commits == 0


def test_change_stage_requires_manage_role(client, auth_headers):
    resp = client.post(
        f"/api/v1/production/work-orders/{WO_ID}/stage",
        json={"to_stage": "cnc_production"},
        headers=auth_headers("production:view"),
    )
    assert resp.status_code == 403


def test_change_stage_records_history(session, monkeypatch):
    wo = _work_order(current_stage="plating")
    _patch_work_order(monkeypatch, wo)
    principal = Principal(user_id=USER_ID, roles=frozenset({"production:manage"}))
    request = StageChangeRequest(to_stage="buffing", remarks="rework")

    entry = asyncio.run(ProductionService(session).change_stage(WO_ID, request, principal))

    assert isinstance(entry, WorkOrderStageHistory)
    assert (entry.from_stage, entry.to_stage) == ("plating", "buffing")
    assert entry.is_override is True
    assert entry.changed_by == UUID(USER_ID)
    assert wo.current_stage == "buffing"
    assert session.added == [entry]
    assert session.commits == 1


def test_quantities(client, auth_headers, monkeypatch):
    _patch_work_order(monkeypatch, _work_order())
    _patch_batches(
        monkeypatch,
        [_batch(), _batch(stage_type="external", external_process_type="plating", batch_quantity=50, produced_qty=0)],
    )

    async def cartons(self, wo_id):
        return [40, 20]

    async def dispatches(self, wo_id):
        return [25]

    monkeypatch.setattr(LogisticsRepository, "carton_quantities_for_work_order", cartons)
    monkeypatch.setattr(LogisticsRepository, "dispatch_quantities_for_work_order", dispatches)

    resp = client.get(f"/api/v1/production/work-orders/{WO_ID}/quantities", headers=auth_headers("production:view"))
    assert resp.status_code == 200
    body = resp.json()
    assert body["in_production"] == 100
    assert body["at_external"] == 50
    assert body["external_breakdown"] == [{"process": "plating", "quantity": 50}]
    assert body["packed"] == 60
    assert body["dispatched"] == 25
    assert body["remaining"] == 475
    assert body["progress_percent"] == 5.0


def test_batch_status(client, auth_headers, monkeypatch):
    _patch_work_order(monkeypatch, _work_order())
    _patch_batches(monkeypatch, [_batch()])
    resp = client.get(f"/api/v1/production/work-orders/{WO_ID}/batch-status", headers=auth_headers("production:view"))
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "partially_dispatched"
    assert body["qc_pending_qty"] == 15
    assert body["active_batches"] == 1
    assert body["has_pending_qc"] is True


def test_batches_visible_to_logistics(client, auth_headers, monkeypatch):
    _patch_work_order(monkeypatch, _work_order())
    _patch_batches(monkeypatch, [_batch()])
    resp = client.get(f"/api/v1/production/work-orders/{WO_ID}/batches", headers=auth_headers("logistics:view"))
    assert resp.status_code == 200
    assert resp.json()[0]["batch_number"] == 1
