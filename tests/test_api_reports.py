import csv
import io
import re
from datetime import date, datetime, timezone
from types import SimpleNamespace
from uuid import uuid4

import pytest

from factory_ops.repositories.finance import InvoiceRepository
from factory_ops.repositories.logistics import LogisticsRepository
from factory_ops.repositories.production import ProductionBatchRepository, WorkOrderRepository
from factory_ops.repositories.quality import QualityRepository
from factory_ops.services.exports import PACKING_COLUMNS

WO_ID = uuid4()
BATCH_ID = uuid4()


@pytest.fixture
def cartons(monkeypatch):
    rows = [
        SimpleNamespace(
            carton_id="WO-0042-B1-C001",
            wo_id=WO_ID,
            production_batch_id=BATCH_ID,
            quantity=50,
            dispatched_qty=0,
            status="packed",
            net_weight=12.5,
            gross_weight=13.0,
            heat_nos=["H1", "H2"],
            built_at=datetime(2025, 3, 9, 6, 0, tzinfo=timezone.utc),
        )
    ]

    async def list_cartons(self, *, wo_id, status, limit, offset):
        return rows

    async def get_work_orders_by_ids(self, ids):
        return [SimpleNamespace(id=WO_ID, display_id="WO-0042", item_code="BR-101")]

    async def get_batches_by_ids(self, ids):
        return [SimpleNamespace(id=BATCH_ID, batch_number=1)]

    monkeypatch.setattr(LogisticsRepository, "list_cartons", list_cartons)
    monkeypatch.setattr(WorkOrderRepository, "get_work_orders_by_ids", get_work_orders_by_ids)
    monkeypatch.setattr(ProductionBatchRepository, "get_batches_by_ids", get_batches_by_ids)
    return rows


def _csv_rows(resp):
    return list(csv.reader(io.StringIO(resp.content.decode("utf-8"))))


def test_packing_csv(client, auth_headers, cartons):
    resp = client.get("/api/v1/reports/packing", headers=auth_headers("reports:view"))
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/csv")
    assert re.fullmatch(
        r'attachment; filename="packing_\d{4}-\d{2}-\d{2}\.csv"', resp.headers["content-disposition"]
    )
    header, row = _csv_rows(resp)
    assert header == [h for _, h in PACKING_COLUMNS]
    assert row[:4] == ["WO-0042-B1-C001", "WO-0042", "1", "50"]
    assert row[8] == "H1, H2"
    assert row[9] == "2025-03-09 06:00:00"


def test_empty_packing_export_has_header_only(client, auth_headers, cartons):
    cartons.clear()
    resp = client.get("/api/v1/reports/packing", headers=auth_headers("logistics:view"))
    assert resp.status_code == 200
    assert _csv_rows(resp) == [[h for _, h in PACKING_COLUMNS]]


def test_packing_xlsx_and_pdf(client, auth_headers, cartons):
    xlsx = client.get("/api/v1/reports/packing?format=xlsx", headers=auth_headers("reports:view"))
    assert xlsx.status_code == 200
    assert xlsx.content.startswith(b"PK")
    assert xlsx.headers["content-disposition"].endswith('.xlsx"')

    pdf = client.get("/api/v1/reports/packing?format=pdf", headers=auth_headers("reports:view"))
    assert pdf.status_code == 200
    assert pdf.headers["content-type"] == "application/pdf"
    assert pdf.content.startswith(b"%PDF")


def test_unknown_format_falls_back_to_csv(client, auth_headers, cartons):
    resp = client.get("/api/v1/reports/packing?format=docx", headers=auth_headers("reports:view"))
    assert resp.status_code == 200
    assert resp.headers["content-disposition"].endswith('.csv"')


def test_report_requires_matching_role(client, auth_headers):
    resp = client.get("/api/v1/reports/packing", headers=auth_headers("finance:view"))
    assert resp.status_code == 403


def test_overdue_invoices_export(client, auth_headers, monkeypatch):
    async def list_overdue_invoices(self, *, today, limit, offset):
        assert today == date(2025, 3, 20)
        return [
            SimpleNamespace(
                invoice_no="INV-101",
                customer_name="Acme",
                invoice_date=date(2025, 1, 30),
                due_date=date(2025, 3, 1),
                total_amount=250000.0,
                balance_amount=120000.0,
            )
        ]

    monkeypatch.setattr(InvoiceRepository, "list_overdue_invoices", list_overdue_invoices)
    resp = client.get("/api/v1/reports/overdue-invoices?as_of=2025-03-20", headers=auth_headers("finance:view"))
    assert resp.status_code == 200
    header, row = _csv_rows(resp)
    assert header[-2:] == ["Days Late", "Tier"]
    assert row[0] == "INV-101"
    assert row[-2:] == ["19", "serious"]


def test_qc_records_export_labels(client, auth_headers, monkeypatch):
    async def list_qc_records(self, *, wo_id, qc_type, result, limit, offset):
        return [
            SimpleNamespace(
                qc_id="QC-2-1A2B3C4D",
                qc_type="first_piece",
                result="passed",
                inspected_quantity=50,
                approved_quantity=45,
                rejected_quantity=5,
                failure_reason="tool_worn",
                qc_date_time=datetime(2025, 3, 9, 6, 0, tzinfo=timezone.utc),
            )
        ]

    monkeypatch.setattr(QualityRepository, "list_qc_records", list_qc_records)
    resp = client.get("/api/v1/reports/qc-records", headers=auth_headers("quality:view"))
    assert resp.status_code == 200
    _, row = _csv_rows(resp)
    assert row[:3] == ["QC-2-1A2B3C4D", "First Piece", "Passed"]
    assert row[6:8] == ["10.0", "Tool Wear"]
