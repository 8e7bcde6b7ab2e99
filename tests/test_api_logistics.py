import asyncio
from datetime import date, datetime, timezone
from types import SimpleNamespace
from uuid import UUID, uuid4

import pytest

from conftest import USER_ID

from factory_ops.core.security import Principal
from factory_ops.db.models.logistics import Carton, Dispatch
from factory_ops.repositories.logistics import LogisticsRepository
from factory_ops.repositories.production import ProductionBatchRepository, WorkOrderRepository
from factory_ops.schemas.logistics import CartonCreate, DispatchCreate
from factory_ops.services.logistics import LogisticsService
from factory_ops.workflow.errors import DispatchBlockedError

WO_ID = UUID("0b6c3f1e-8d7a-4e2b-9c5d-1a2b3c4d5e6f")
BATCH_ID = UUID("5d2e8a41-7c3b-4f6e-a1d9-0e8f7a6b5c4d")
MANAGER = Principal(user_id=USER_ID, roles=frozenset({"logistics:manage"}))


def _batch(**fields):
    base = dict(
        id=BATCH_ID,
        wo_id=WO_ID,
        batch_number=3,
        qc_approved_qty=50,
        dispatched_qty=0,
        qc_material_status="passed",
        qc_first_piece_status="passed",
        qc_final_status="passed",
    )
    base.update(fields)
    return SimpleNamespace(**base)


@pytest.fixture
def stock(monkeypatch):
    """Batch lookups and packed totals served from a mutable dict."""
    state = {"batch": _batch(), "packed": 40, "carton_count": 0}

    async def get_batch(self, batch_id):
        return state["batch"] if batch_id == BATCH_ID else None

    async def packed_quantity_for_batch(self, batch_id):
        return state["packed"]

    async def count_cartons_with_prefix(self, prefix):
        state["prefix"] = prefix
        return state["carton_count"]

    async def get_work_order(self, wo_id):
        return SimpleNamespace(id=WO_ID, display_id="WO-0042", item_code="BR-101", quantity=500)

    monkeypatch.setattr(ProductionBatchRepository, "get_batch", get_batch)
    monkeypatch.setattr(ProductionBatchRepository, "get_batch_for_update", get_batch)
    monkeypatch.setattr(LogisticsRepository, "packed_quantity_for_batch", packed_quantity_for_batch)
    monkeypatch.setattr(LogisticsRepository, "count_cartons_with_prefix", count_cartons_with_prefix)
    monkeypatch.setattr(WorkOrderRepository, "get_work_order", get_work_order)
    return state


def test_packable(client, auth_headers, stock):
    resp = client.get(f"/api/v1/logistics/batches/{BATCH_ID}/packable", headers=auth_headers("logistics:view"))
    assert resp.status_code == 200
    assert resp.json() == {"batch_id": str(BATCH_ID), "qc_approved": 50, "already_packed": 40, "available": 10}


def test_packable_unknown_batch(client, auth_headers, stock):
    resp = client.get(f"/api/v1/logistics/batches/{uuid4()}/packable", headers=auth_headers("logistics:view"))
    assert resp.status_code == 404


def test_packing_above_balance_is_rejected(client, auth_headers, stock, session):
    resp = client.post(
        "/api/v1/logistics/cartons",
        json={"batch_id": str(BATCH_ID), "quantity": 20},
        headers=auth_headers("logistics:manage"),
    )
    assert resp.status_code == 409
    error = resp.json()["error"]
    assert error["type"] == "quantity_exceeded"
    assert error["message"] == (
        "Packing quantity (20) exceeds available QC-approved balance (10). "
        "Batch has 50 QC-approved, 40 already packed."
    )
    assert session.commits == 0


def test_packing_zero_is_invalid(client, auth_headers, stock):
    resp = client.post(
        "/api/v1/logistics/cartons",
        json={"batch_id": str(BATCH_ID), "quantity": 0},
        headers=auth_headers("logistics:manage"),
    )
    assert resp.status_code == 422
    assert resp.json()["error"]["type"] == "invalid_quantity"


def test_create_carton_generates_carton_id(session, stock):
    stock["carton_count"] = 2
    payload = CartonCreate(batch_id=BATCH_ID, quantity=10, net_weight=4.5, heat_nos=["H-77"])

    carton = asyncio.run(LogisticsService(session).create_carton(payload, MANAGER))

    assert isinstance(carton, Carton)
    assert carton.carton_id == "WO-0042-B3-C003"
    assert stock["prefix"] == "WO-0042-B3-C"
    assert carton.status == "packed"
    assert carton.heat_nos == ["H-77"]
    assert carton.built_by == UUID(USER_ID)
    assert session.added == [carton]
    assert session.commits == 1


def test_create_carton_fits_weights_to_column(session, stock, caplog):
    payload = CartonCreate(
        batch_id=BATCH_ID, quantity=10, carton_id="C-MANUAL", net_weight=4.56789, gross_weight=5e9
    )

    with caplog.at_level("WARNING", logger="factory_ops.services.logistics"):
        carton = asyncio.run(LogisticsService(session).create_carton(payload, MANAGER))

    assert carton.carton_id == "C-MANUAL"
    assert carton.net_weight == 4.568
    assert carton.gross_weight == pytest.approx(999999999.999)
    assert "gross_weight" in caplog.text
    assert "net_weight" not in caplog.text


def test_dispatch_blocked_by_pending_final_qc(client, auth_headers, stock, session):
    stock["batch"] = _batch(qc_final_status=None)
    resp = client.post(
        "/api/v1/logistics/dispatches",
        json={"batch_id": str(BATCH_ID), "quantity": 5},
        headers=auth_headers("logistics:manage"),
    )
    assert resp.status_code == 409
    error = resp.json()["error"]
    assert error["type"] == "dispatch_blocked"
    assert error["message"] == "Dispatch blocked: Final QC not approved for Batch #3. Current status: pending"
    assert session.commits == 0


def test_dispatch_above_balance(client, auth_headers, stock):
    stock["batch"] = _batch(dispatched_qty=45)
    resp = client.post(
        "/api/v1/logistics/dispatches",
        json={"batch_id": str(BATCH_ID), "quantity": 10},
        headers=auth_headers("logistics:manage"),
    )
    assert resp.status_code == 409
    assert resp.json()["error"]["message"] == (
        "Cannot dispatch 10 pcs. Only 5 pcs available (QC approved - already dispatched)"
    )


def test_create_dispatch_updates_batch_and_carton(session, stock, monkeypatch):
    carton = SimpleNamespace(
        id=uuid4(), carton_id="WO-0042-B3-C001", production_batch_id=BATCH_ID, quantity=10, dispatched_qty=4, status="ready_for_dispatch"
    )

    async def get_carton_for_update(self, carton_id):
        return carton

    monkeypatch.setattr(LogisticsRepository, "get_carton_for_update", get_carton_for_update)
    payload = DispatchCreate(batch_id=BATCH_ID, quantity=6, carton_id=carton.id, remarks="truck 2")

    dispatch = asyncio.run(LogisticsService(session).create_dispatch(payload, MANAGER))

    assert isinstance(dispatch, Dispatch)
    assert dispatch.quantity == 6
    assert dispatch.carton_id == carton.id
    assert stock["batch"].dispatched_qty == 6
    assert carton.dispatched_qty == 10
    assert carton.status == "dispatched"
    assert session.commits == 1


def test_mark_ready_requires_complete_gates(session, stock, monkeypatch):
    stock["batch"] = _batch(qc_first_piece_status="hold")
    carton = SimpleNamespace(id=uuid4(), wo_id=WO_ID, production_batch_id=BATCH_ID, status="packed")

    async def get_carton_for_update(self, carton_id):
        return carton

    monkeypatch.setattr(LogisticsRepository, "get_carton_for_update", get_carton_for_update)
    with pytest.raises(DispatchBlockedError):
        asyncio.run(LogisticsService(session).mark_ready_for_dispatch(carton.id))
    assert carton.status == "packed"

    stock["batch"] = _batch()
    asyncio.run(LogisticsService(session).mark_ready_for_dispatch(carton.id))
    assert carton.status == "ready_for_dispatch"
    assert session.commits == 1


def test_dispatch_eligibility(client, auth_headers, stock, monkeypatch):
    async def ready_carton_totals(self, wo_id):
        return 120, 30

    async def inventory_available_for_item(self, item_code):
        return 15

    async def dispatch_quantities_for_work_order(self, wo_id):
        return [30, 20]

    monkeypatch.setattr(LogisticsRepository, "ready_carton_totals", ready_carton_totals)
    monkeypatch.setattr(LogisticsRepository, "inventory_available_for_item", inventory_available_for_item)
    monkeypatch.setattr(LogisticsRepository, "dispatch_quantities_for_work_order", dispatch_quantities_for_work_order)

    resp = client.get(
        f"/api/v1/logistics/work-orders/{WO_ID}/dispatch-eligibility", headers=auth_headers("logistics:view")
    )
    assert resp.status_code == 200
    assert resp.json() == {
        "work_order_id": str(WO_ID),
        "available_from_packing": 90,
        "available_from_inventory": 15,
        "total_available": 105,
        "remaining_to_dispatch": 450,
    }


def test_ageing(client, auth_headers, monkeypatch):
    def _carton(day, quantity):
        return SimpleNamespace(
            quantity=quantity, dispatched_qty=0, status="packed", built_at=datetime(2025, 3, day, tzinfo=timezone.utc)
        )

    async def list_open_cartons_with_weight(self):
        return [(_carton(28, 100), 1500.0), (_carton(1, 100), 500.0)]

    monkeypatch.setattr(LogisticsRepository, "list_open_cartons_with_weight", list_open_cartons_with_weight)

    resp = client.get("/api/v1/logistics/ageing?as_of=2025-03-31", headers=auth_headers("logistics:view"))
    assert resp.status_code == 200
    body = resp.json()
    assert body["risk_days"] == 15
    assert body["risk_percent"] == 25
    fresh, _, older, _ = body["buckets"]
    assert (fresh["quantity"], fresh["value_display"]) == (100, "₹1.5L")
    assert (older["quantity"], older["value_display"]) == (100, "₹50K")


def test_date_today_default_is_used(client, auth_headers, monkeypatch):
    seen = {}

    async def ageing(self, today):
        seen["today"] = today
        return SimpleNamespace(buckets=[], risk_percent=0, risk_days=15)

    monkeypatch.setattr(LogisticsService, "ageing", ageing)
    resp = client.get("/api/v1/logistics/ageing", headers=auth_headers("logistics:view"))
    assert resp.status_code == 200
    assert seen["today"] == date.today()
