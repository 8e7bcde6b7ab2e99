from datetime import date, datetime, timezone
from types import SimpleNamespace
from uuid import uuid4

from factory_ops.repositories.finance import InvoiceRepository
from factory_ops.repositories.procurement import RawPurchaseOrderRepository
from factory_ops.repositories.sales import SalesOrderRepository
from factory_ops.repositories.she import SheRepository


def test_rpos_with_progress(client, auth_headers, monkeypatch):
    async def list_rpos(self, *, status, wo_id, limit, offset):
        return [
            SimpleNamespace(
                id=uuid4(),
                rpo_no="RPO-0012",
                status="approved",
                supplier_name="Hindalco",
                wo_id=None,
                item_code="BR-101",
                alloy="CW614N",
                qty_ordered_kg=1000.0,
                qty_received_kg=None,
                rate_per_kg=540.0,
                amount_ordered=540000.0,
                expected_delivery_date=date(2025, 3, 1),
            )
        ]

    monkeypatch.setattr(RawPurchaseOrderRepository, "list_rpos", list_rpos)
    resp = client.get("/api/v1/procurement/rpos?as_of=2025-03-10", headers=auth_headers("procurement:view"))
    assert resp.status_code == 200
    [rpo] = resp.json()
    assert rpo["qty_received_kg"] == 0
    assert rpo["receive_rate_pct"] == 0.0
    assert rpo["is_past_due"] is True


def test_overdue_invoices(client, auth_headers, monkeypatch):
    async def list_overdue_invoices(self, *, today, limit, offset):
        return [
            SimpleNamespace(
                id=uuid4(),
                invoice_no="INV-101",
                customer_name="Acme",
                invoice_date=date(2025, 1, 1),
                due_date=date(2025, 1, 31),
                currency="INR",
                total_amount=2500000.0,
                balance_amount=1250000.0,
            )
        ]

    monkeypatch.setattr(InvoiceRepository, "list_overdue_invoices", list_overdue_invoices)
    resp = client.get("/api/v1/finance/overdue-invoices?as_of=2025-03-10", headers=auth_headers("finance:view"))
    assert resp.status_code == 200
    [invoice] = resp.json()
    assert (invoice["days_late"], invoice["tier"]) == (38, "critical")
    assert invoice["balance_display"] == "₹12.5L"


def test_she_summary(client, auth_headers, monkeypatch):
    seen = {}

    async def list_incidents(self, *, since, limit, offset):
        seen["since"] = since
        return [
            SimpleNamespace(severity="minor", lost_time_hours=2),
            SimpleNamespace(severity="major", lost_time_hours=16),
            SimpleNamespace(severity="minor", lost_time_hours=0),
        ]

    async def list_capa_statuses(self):
        return ["open", "closed", "overdue"]

    async def list_environmental_metrics(self, *, limit):
        seen["limit"] = limit
        return [
            SimpleNamespace(
                metric_date=date(2025, 3, 9), energy_kwh=900, water_liters=12500, waste_kg=80, recycled_waste_kg=20
            ),
            SimpleNamespace(
                metric_date=date(2025, 3, 8), energy_kwh=850, water_liters=None, waste_kg=0, recycled_waste_kg=0
            ),
        ]

    monkeypatch.setattr(SheRepository, "list_incidents", list_incidents)
    monkeypatch.setattr(SheRepository, "list_capa_statuses", list_capa_statuses)
    monkeypatch.setattr(SheRepository, "list_environmental_metrics", list_environmental_metrics)

    resp = client.get("/api/v1/she/summary?days=7&as_of=2025-03-10", headers=auth_headers("she:view"))
    assert resp.status_code == 200
    body = resp.json()
    assert seen == {"since": datetime(2025, 3, 3, tzinfo=timezone.utc), "limit": 7}
    assert body["incidents"] == [
        {"severity": "minor", "count": 2, "lost_time_hours": 2.0},
        {"severity": "major", "count": 1, "lost_time_hours": 16.0},
    ]
    assert body["capa"] == {"total": 3, "overdue": 1, "closed": 1}
    older, newer = body["environment"]
    assert older["metric_date"] == "2025-03-08"
    assert older["recycling_pct"] == 0.0
    assert newer["water_m3"] == 12.5
    assert newer["recycling_pct"] == 25.0


def test_she_summary_rejects_long_window(client, auth_headers):
    resp = client.get("/api/v1/she/summary?days=400", headers=auth_headers("she:view"))
    assert resp.status_code == 422
    assert resp.json()["error"]["type"] == "validation_error"


def test_sales_orders_total_from_lines_when_unstored(client, auth_headers, monkeypatch):
    seen = {}

    async def list_sales_orders(self, *, status, search, limit, offset):
        seen.update(status=status, search=search)
        created = datetime(2025, 3, 1, 9, 0, tzinfo=timezone.utc)
        return [
            SimpleNamespace(
                id=uuid4(),
                so_id="SO-0031",
                customer="Acme",
                po_number="PO-77",
                po_date=date(2025, 2, 27),
                expected_delivery_date=date(2025, 4, 15),
                currency="USD",
                status="approved",
                items=[
                    {"item_code": "BR-101", "quantity": 1000, "price_per_pc": 0.85},
                    {"item_code": "BR-102", "quantity": 500, "line_amount": 300.0},
                ],
                total_amount=0,
                created_at=created,
            ),
            SimpleNamespace(
                id=uuid4(),
                so_id="SO-0030",
                customer="Globex",
                po_number=None,
                po_date=None,
                expected_delivery_date=None,
                currency="EUR",
                status="pending",
                items=None,
                total_amount=4200.5,
                created_at=created,
            ),
        ]

    monkeypatch.setattr(SalesOrderRepository, "list_sales_orders", list_sales_orders)
    resp = client.get("/api/v1/sales/orders?search=acme", headers=auth_headers("sales:view"))
    assert resp.status_code == 200
    assert seen == {"status": None, "search": "acme"}
    first, second = resp.json()
    assert (first["total_amount"], first["line_count"], first["ordered_pieces"]) == (1150.0, 2, 1500)
    assert (second["total_amount"], second["line_count"], second["ordered_pieces"]) == (4200.5, 0, 0)


def test_sales_orders_require_sales_role(client, auth_headers):
    resp = client.get("/api/v1/sales/orders", headers=auth_headers("production:view"))
    assert resp.status_code == 403
