"""
Tabular exports (CSV, Excel, PDF) with fixed column lists per report.

Rows are plain mappings; each report names the keys it exports and the header shown
for each. An empty result still produces a file with the header row.
"""
from __future__ import annotations

import io
from datetime import date, datetime, timezone
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple

import pandas as pd
from fastapi.responses import StreamingResponse

Column = Tuple[str, str]  # (row key, header)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

WORK_ORDER_COLUMNS: List[Column] = [
    ("display_id", "WO Number"),
    ("customer", "Customer"),
    ("item_code", "Item Code"),
    ("quantity", "Ordered Qty"),
    ("due_date", "Due Date"),
    ("current_stage", "Stage"),
    ("batch_status", "Batch Status"),
    ("dispatched", "Dispatched"),
    ("remaining", "Remaining"),
    ("external_wip", "External WIP"),
]

OVERDUE_RETURN_COLUMNS: List[Column] = [
    ("work_order_display", "Work Order"),
    ("process", "Process"),
    ("partner_name", "Partner"),
    ("sent_date", "Sent"),
    ("expected_return", "Expected Return"),
    ("pcs_pending", "Pcs Pending"),
    ("days_overdue", "Days Overdue"),
    ("severity", "Severity"),
]

PACKING_COLUMNS: List[Column] = [
    ("carton_id", "Carton"),
    ("wo_display", "Work Order"),
    ("batch_number", "Batch"),
    ("quantity", "Qty"),
    ("dispatched_qty", "Dispatched"),
    ("status", "Status"),
    ("net_weight", "Net Wt (kg)"),
    ("gross_weight", "Gross Wt (kg)"),
    ("heat_nos", "Heat Nos"),
    ("built_at", "Packed At"),
]

DISPATCH_COLUMNS: List[Column] = [
    ("dispatched_at", "Dispatched At"),
    ("wo_display", "Work Order"),
    ("batch_number", "Batch"),
    ("carton", "Carton"),
    ("quantity", "Qty"),
    ("remarks", "Remarks"),
]

QC_RECORD_COLUMNS: List[Column] = [
    ("qc_id", "QC ID"),
    ("qc_type", "Gate"),
    ("result", "Result"),
    ("inspected_quantity", "Inspected"),
    ("approved_quantity", "Approved"),
    ("rejected_quantity", "Rejected"),
    ("rejection_rate", "Rejection %"),
    ("failure_reason", "Failure Reason"),
    ("qc_date_time", "Date"),
]

NCR_COLUMNS: List[Column] = [
    ("ncr_number", "NCR"),
    ("rejection_type", "Rejection Type"),
    ("quantity_affected", "Qty Affected"),
    ("issue_description", "Issue"),
    ("status", "Status"),
    ("created_at", "Raised At"),
]

RPO_COLUMNS: List[Column] = [
    ("rpo_no", "RPO"),
    ("supplier_name", "Supplier"),
    ("item_code", "Item Code"),
    ("alloy", "Alloy"),
    ("qty_ordered_kg", "Ordered (kg)"),
    ("qty_received_kg", "Received (kg)"),
    ("receive_rate_pct", "Received %"),
    ("expected_delivery_date", "Expected Delivery"),
    ("is_past_due", "Past Due"),
    ("status", "Status"),
]

INVOICE_COLUMNS: List[Column] = [
    ("invoice_no", "Invoice"),
    ("customer_name", "Customer"),
    ("invoice_date", "Invoice Date"),
    ("due_date", "Due Date"),
    ("total_amount", "Total"),
    ("balance_amount", "Balance"),
    ("days_late", "Days Late"),
    ("tier", "Tier"),
]

SHE_INCIDENT_COLUMNS: List[Column] = [
    ("incident_id", "Incident"),
    ("incident_date", "Date"),
    ("severity", "Severity"),
    ("incident_type", "Type"),
    ("description", "Description"),
    ("lost_time_hours", "Lost Time (h)"),
    ("status", "Status"),
]


def export_filename(filename_base: str, extension: str, today: Optional[date] = None) -> str:
    """'<base>_<YYYY-MM-DD>.<ext>'"""
    day = today or date.today()
    return f"{filename_base}_{day:%Y-%m-%d}.{extension}"


def _cell(value: Any) -> Any:
    # Excel cannot store timezone-aware datetimes
    if isinstance(value, datetime) and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value)
    return value


def rows_to_dataframe(rows: Iterable[Mapping[str, Any]], columns: Sequence[Column]) -> pd.DataFrame:
    """Project rows onto the report columns, in order, with display headers."""
    keys = [key for key, _ in columns]
    records = [[_cell(row.get(key)) for key in keys] for row in rows]
    return pd.DataFrame(records, columns=[header for _, header in columns])


def render_csv(df: pd.DataFrame) -> bytes:
    buffer = io.StringIO()
    df.to_csv(buffer, index=False)
    return buffer.getvalue().encode("utf-8")


def render_xlsx(df: pd.DataFrame, sheet_name: str = "Report") -> bytes:
    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        df.to_excel(writer, index=False, sheet_name=sheet_name[:31])
    return buffer.getvalue()


def render_pdf(df: pd.DataFrame, title: str, generated_at: Optional[datetime] = None) -> bytes:
    """Landscape table with a title and a 'Generated:' line."""
    from reportlab.lib import colors
    from reportlab.lib.pagesizes import letter, landscape
    from reportlab.lib.styles import getSampleStyleSheet
    from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

    stamp = generated_at or datetime.now(timezone.utc)
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer, pagesize=landscape(letter), leftMargin=18, rightMargin=18, topMargin=18, bottomMargin=18
    )
    styles = getSampleStyleSheet()
    elements: list = [
        Paragraph(title, styles["Title"]),
        Paragraph(f"Generated: {stamp:%Y-%m-%d %H:%M} UTC", styles["Normal"]),
        Spacer(1, 8),
    ]

    data = [list(df.columns)] + df.fillna("").astype(str).values.tolist()
    table = Table(data, repeatRows=1)
    table.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, 0), colors.lightgrey),
                ("TEXTCOLOR", (0, 0), (-1, 0), colors.black),
                ("ALIGN", (0, 0), (-1, -1), "LEFT"),
                ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                ("FONTSIZE", (0, 0), (-1, -1), 8),
                ("BOTTOMPADDING", (0, 0), (-1, 0), 6),
                ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
            ]
        )
    )
    elements.append(table)
    doc.build(elements)
    return buffer.getvalue()


def _stream(content: bytes, media_type: str, filename: str) -> StreamingResponse:
    headers = {"Content-Disposition": f'attachment; filename="{filename}"'}
    return StreamingResponse(io.BytesIO(content), media_type=media_type, headers=headers)


# PUBLIC_INTERFACE
def export_rows(
    rows: Iterable[Mapping[str, Any]],
    columns: Sequence[Column],
    filename_base: str,
    export_format: str = "csv",
    title: Optional[str] = None,
    today: Optional[date] = None,
) -> StreamingResponse:
    """
    Render rows in the requested format and return a StreamingResponse.

    Supported formats:
      - csv: text/csv (also used for unknown formats)
      - xlsx: spreadsheet via pandas + openpyxl
      - pdf: tabular rendering via reportlab
    """
    df = rows_to_dataframe(rows, columns)
    export_format = (export_format or "csv").lower()
    report_title = title or filename_base.replace("_", " ").title()

    if export_format in ("xlsx", "excel", "xls"):
        return _stream(
            render_xlsx(df, sheet_name=report_title),
            XLSX_MEDIA_TYPE,
            export_filename(filename_base, "xlsx", today),
        )
    if export_format == "pdf":
        return _stream(
            render_pdf(df, report_title), "application/pdf", export_filename(filename_base, "pdf", today)
        )
    return _stream(render_csv(df), "text/csv", export_filename(filename_base, "csv", today))
