"""Spreadsheet and PDF exports of the admin registrations view."""
import io
import re
from datetime import date, datetime
from typing import Iterable, List, Optional
from xml.sax.saxutils import escape

import xlsxwriter
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from src.models.event import EVENT_CATALOG
from src.models.registration import Registration
from src.utils.date_utils import format_date, format_timestamp, today_iso

EXPORT_COLUMNS = [
    "Email",
    "Student Name",
    "College",
    "Department",
    "Year",
    "Phone",
    "Team Member 1",
    "Team Member 2",
    "Team Member 3",
    "Event Name",
    "Event Category",
    "Uploaded File",
    "Created At",
]

# The PDF leaves out the file column to fit a landscape page
PDF_COLUMNS = [column for column in EXPORT_COLUMNS if column != "Uploaded File"]
PDF_COLUMN_WIDTHS = [120, 80, 85, 70, 30, 60, 65, 65, 65, 65, 55, 55]

XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
PDF_MIME = "application/pdf"


def _category(event_name: str) -> str:
    event = EVENT_CATALOG.get(event_name)
    return event.category if event else ""


def build_export_rows(registrations: Iterable[Registration]) -> List[dict]:
    """One dict per registration, keyed by EXPORT_COLUMNS."""
    rows = []
    for reg in registrations:
        rows.append({
            "Email": reg.email,
            "Student Name": reg.student_name,
            "College": reg.college_name,
            "Department": reg.department,
            "Year": reg.year,
            "Phone": reg.phone or "",
            "Team Member 1": reg.team_member1,
            "Team Member 2": reg.team_member2 or "",
            "Team Member 3": reg.team_member3 or "",
            "Event Name": reg.event_name,
            "Event Category": _category(reg.event_name),
            "Uploaded File": reg.uploaded_file_path or "",
            "Created At": format_timestamp(reg.created_at),
        })
    return rows


def export_filename(event_filter: str, extension: str, today: Optional[date] = None) -> str:
    """
    Download name, e.g. ``registrations_Paper_Quest_2025-09-01.xlsx``.

    Non-alphanumeric characters in the event name become underscores.
    """
    if event_filter and event_filter != "all":
        label = re.sub(r"[^a-zA-Z0-9]", "_", event_filter)
    else:
        label = "all"
    return f"registrations_{label}_{today_iso(today)}.{extension.lstrip('.')}"


def export_to_excel(registrations: Iterable[Registration]) -> bytes:
    """Generate an .xlsx workbook with a single "Registrations" sheet."""
    rows = build_export_rows(registrations)
    output = io.BytesIO()
    workbook = xlsxwriter.Workbook(output, {"in_memory": True})
    worksheet = workbook.add_worksheet("Registrations")

    header_format = workbook.add_format({
        "bold": True,
        "bg_color": "#4154f1",
        "font_color": "white",
        "align": "center",
    })

    for col, column in enumerate(EXPORT_COLUMNS):
        worksheet.write(0, col, column, header_format)
        worksheet.set_column(col, col, max(len(column) + 2, 14))

    for row_idx, row in enumerate(rows, 1):
        for col, column in enumerate(EXPORT_COLUMNS):
            worksheet.write(row_idx, col, row[column])

    worksheet.freeze_panes(1, 0)
    workbook.close()
    output.seek(0)
    return output.getvalue()


def export_to_pdf(
    registrations: Iterable[Registration],
    title: str = "Event Registration Dashboard",
    generated_at: Optional[datetime] = None,
) -> bytes:
    """Generate a landscape PDF listing; the table splits across pages as needed."""
    registrations = list(registrations)
    generated_at = generated_at or datetime.now()

    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=landscape(A4),
        leftMargin=20,
        rightMargin=20,
        topMargin=24,
        bottomMargin=24,
        title=title,
    )
    styles = getSampleStyleSheet()
    cell_style = styles["BodyText"].clone("cell", fontSize=7, leading=8)

    elements = [
        Paragraph(f"<b>{escape(title)}</b>", styles["Title"]),
        Paragraph(f"Generated on: {generated_at.strftime('%Y-%m-%d %H:%M')}", styles["Normal"]),
        Paragraph(f"Total Records: {len(registrations)}", styles["Normal"]),
        Spacer(1, 12),
    ]

    table_data = [PDF_COLUMNS]
    for reg in registrations:
        values = [
            reg.email,
            reg.student_name,
            reg.college_name,
            reg.department,
            str(reg.year),
            reg.phone or "",
            reg.team_member1,
            reg.team_member2 or "",
            reg.team_member3 or "",
            reg.event_name,
            _category(reg.event_name),
            format_date(reg.created_at),
        ]
        table_data.append([Paragraph(escape(value), cell_style) for value in values])

    table = Table(table_data, colWidths=PDF_COLUMN_WIDTHS, repeatRows=1)
    table.setStyle(TableStyle([
        ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor("#4154f1")),
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, 0), 7),
        ('VALIGN', (0, 0), (-1, -1), 'TOP'),
        ('ROWBACKGROUNDS', (0, 1), (-1, -1), [colors.white, colors.HexColor("#f1f5f9")]),
        ('GRID', (0, 0), (-1, -1), 0.5, colors.grey),
    ]))
    elements.append(table)

    doc.build(elements)
    buffer.seek(0)
    return buffer.getvalue()
