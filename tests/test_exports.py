from datetime import date, datetime, timedelta, timezone

from factory_ops.services.exports import (
    PACKING_COLUMNS,
    XLSX_MEDIA_TYPE,
    export_filename,
    export_rows,
    render_csv,
    render_pdf,
    render_xlsx,
    rows_to_dataframe,
)


def test_export_filename():
    assert export_filename("dispatch_history", "csv", date(2025, 3, 9)) == "dispatch_history_2025-03-09.csv"


def test_rows_projected_onto_columns_in_order():
    ist = timezone(timedelta(hours=5, minutes=30))
    rows = [
        {
            "carton_id": "WO-0042-B1-C001",
            "wo_display": "WO-0042",
            "batch_number": 1,
            "quantity": 50,
            "heat_nos": ["H1", "H2"],
            "built_at": datetime(2025, 3, 9, 15, 30, tzinfo=ist),
            "ignored": "x",
        }
    ]
    df = rows_to_dataframe(rows, PACKING_COLUMNS)
    assert list(df.columns) == [header for _, header in PACKING_COLUMNS]
    record = df.iloc[0]
    assert record["Heat Nos"] == "H1, H2"
    assert record["Packed At"] == datetime(2025, 3, 9, 10, 0)
    assert "ignored" not in df.columns


def test_empty_export_is_header_only():
    csv = render_csv(rows_to_dataframe([], PACKING_COLUMNS)).decode("utf-8")
    assert csv.strip() == ",".join(header for _, header in PACKING_COLUMNS)


def test_export_rows_formats():
    rows = [{"carton_id": "C1", "quantity": 10}]
    today = date(2025, 3, 9)

    csv = export_rows(rows, PACKING_COLUMNS, "packing", "csv", today=today)
    assert csv.media_type == "text/csv"
    assert csv.headers["content-disposition"] == 'attachment; filename="packing_2025-03-09.csv"'

    xlsx = export_rows(rows, PACKING_COLUMNS, "packing", "xlsx", today=today)
    assert xlsx.media_type == XLSX_MEDIA_TYPE
    assert xlsx.headers["content-disposition"].endswith('packing_2025-03-09.xlsx"')

    pdf = export_rows(rows, PACKING_COLUMNS, "packing", "PDF", today=today)
    assert pdf.media_type == "application/pdf"

    fallback = export_rows(rows, PACKING_COLUMNS, "packing", "docx", today=today)
    assert fallback.media_type == "text/csv"


def test_binary_renderers():
    df = rows_to_dataframe([{"carton_id": "C1", "quantity": 10}], PACKING_COLUMNS)
    assert render_xlsx(df, sheet_name="Packing and dispatch readiness report").startswith(b"PK")
    pdf = render_pdf(df, "Packing", generated_at=datetime(2025, 3, 9, 8, 0, tzinfo=timezone.utc))
    assert pdf.startswith(b"%PDF")
