"""Medical history export to CSV and PDF."""
from __future__ import annotations

import csv
import io
import re
from datetime import date, datetime
from typing import Iterable, Optional, Sequence
from xml.sax.saxutils import escape

from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from care.constants import TIMELINE_BOOKING, TIMELINE_CONSULTATION, TIMELINE_PRESCRIPTION

EXPORT_COLUMNS = ('Date', 'Type', 'Details', 'Status')
MONTHS = ('Jan', 'Feb', 'Mar', 'Apr', 'May', 'Jun', 'Jul', 'Aug', 'Sep', 'Oct', 'Nov', 'Dec')

_UNSAFE = re.compile(r'[^a-zA-Z0-9\s\-_]')
_SPACES = re.compile(r'\s+')


def sanitize_filename(name: Optional[str]) -> str:
    if not name:
        return 'export'
    return _SPACES.sub('_', _UNSAFE.sub('', name)).lower() or 'export'


def format_date_for_export(value) -> str:
    """``DD-Mon-YYYY`` in local time, ``N/A`` for missing values."""
    if value in (None, ''):
        return 'N/A'
    if isinstance(value, str):
        value = parse_datetime(value) or parse_date(value)
    if isinstance(value, datetime):
        if timezone.is_aware(value):
            value = timezone.localtime(value)
        value = value.date()
    if not isinstance(value, date):
        return 'N/A'
    return f'{value.day:02d}-{MONTHS[value.month - 1]}-{value.year}'


def export_filename(patient_id: int, fmt: str, *, now=None) -> str:
    now = now or timezone.now()
    stamp = int(now.timestamp() * 1000)
    return f'{sanitize_filename(f"medical-history-{patient_id}-{stamp}")}.{fmt}'


def _describe(entry) -> str:
    d = entry.details
    if entry.type == TIMELINE_BOOKING:
        return f'{d.provider_name} ({d.booking_type})'
    if entry.type == TIMELINE_PRESCRIPTION:
        return f'Prescribed by {d.prescribed_by}'
    if entry.type == TIMELINE_CONSULTATION:
        return f'Consultation with {d.doctor_name} ({d.mode})'
    return d.file_name


def timeline_rows(entries: Iterable) -> list[list[str]]:
    rows = []
    for entry in entries:
        rows.append([
            format_date_for_export(entry.date),
            entry.type.capitalize(),
            _describe(entry),
            entry.status or 'N/A',
        ])
    return rows


def render_csv(rows: Sequence[Sequence[str]]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow(EXPORT_COLUMNS)
    writer.writerows(rows)
    return buf.getvalue()


def date_range_label(start=None, end=None) -> str:
    if start and end:
        return f'{format_date_for_export(start)} to {format_date_for_export(end)}'
    return 'All dates'


def render_pdf(title: str, rows: Sequence[Sequence[str]], *, date_range: str = 'All dates', now=None) -> bytes:
    now = now or timezone.now()
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        title=title,
        leftMargin=50,
        rightMargin=50,
        topMargin=50,
        bottomMargin=50,
    )
    styles = getSampleStyleSheet()
    body_style = styles["BodyText"]

    elements = [Paragraph(title, styles["Heading1"]), Spacer(1, 6)]
    elements.append(Paragraph(f"Date Range: {date_range}", body_style))
    local_now = timezone.localtime(now) if timezone.is_aware(now) else now
    elements.append(Paragraph(
        f"Generated: {format_date_for_export(now)} at {local_now.strftime('%H:%M:%S')}", body_style,
    ))
    elements.append(Spacer(1, 12))

    if not rows:
        elements.append(Paragraph("No data available for the selected criteria.", body_style))
    else:
        # wrap the free-text column so long details do not overflow the page
        data = [list(EXPORT_COLUMNS)] + [
            [r[0], r[1], Paragraph(escape(r[2]), body_style), r[3]] for r in rows
        ]
        table = Table(data, colWidths=[80, 80, 255, 80], repeatRows=1)
        table.setStyle(TableStyle([
            ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#f0f0f0")),
            ("GRID", (0, 0), (-1, -1), 0.5, colors.HexColor("#cccccc")),
            ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
            ("FONTSIZE", (0, 0), (-1, -1), 9),
            ("VALIGN", (0, 0), (-1, -1), "TOP"),
        ]))
        elements.append(table)

    doc.build(elements)
    return buffer.getvalue()
