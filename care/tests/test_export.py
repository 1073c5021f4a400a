import csv
import io
from datetime import date, datetime, timezone as dt_timezone

from care.services.export import (
    date_range_label,
    export_filename,
    format_date_for_export,
    render_csv,
    render_pdf,
    sanitize_filename,
    timeline_rows,
)
from care.services.timeline import (
    BookingDetails,
    ConsultationDetails,
    PrescriptionDetails,
    TimelineEntry,
)

WHEN = datetime(2024, 3, 5, 9, 30, tzinfo=dt_timezone.utc)


def sample_entries():
    return [
        TimelineEntry('booking', 1, WHEN, 'IPD booking at City General',
                      BookingDetails('City General', 'IPD', 'CONFIRMED')),
        TimelineEntry('prescription', 2, WHEN, 'Prescription by Dr. Rao',
                      PrescriptionDetails('Dr. Rao', ['Paracetamol'])),
        TimelineEntry('consultation', 3, WHEN, 'Chat consultation with Dr. Iyer',
                      ConsultationDetails('Dr. Iyer', 'CHAT', 'COMPLETED')),
    ]


def test_sanitize_filename():
    assert sanitize_filename('My Report (v2).csv') == 'my_report_v2csv'
    assert sanitize_filename('') == 'export'
    assert sanitize_filename('***') == 'export'


def test_format_date_for_export():
    assert format_date_for_export(WHEN) == '05-Mar-2024'
    assert format_date_for_export(date(2023, 12, 31)) == '31-Dec-2023'
    assert format_date_for_export('2024-01-09') == '09-Jan-2024'
    assert format_date_for_export(None) == 'N/A'
    assert format_date_for_export('not a date') == 'N/A'


def test_export_filename():
    name = export_filename(42, 'csv', now=WHEN)
    assert name == f'medical-history-42-{int(WHEN.timestamp() * 1000)}.csv'


def test_rows():
    rows = timeline_rows(sample_entries())
    assert rows[0] == ['05-Mar-2024', 'Booking', 'City General (IPD)', 'CONFIRMED']
    assert rows[1] == ['05-Mar-2024', 'Prescription', 'Prescribed by Dr. Rao', 'N/A']
    assert rows[2][2] == 'Consultation with Dr. Iyer (CHAT)'


def test_csv_has_header_and_quotes_commas():
    rows = [['05-Mar-2024', 'Document', 'Report, page 2', 'N/A']]
    parsed = list(csv.reader(io.StringIO(render_csv(rows))))
    assert parsed[0] == ['Date', 'Type', 'Details', 'Status']
    assert parsed[1][2] == 'Report, page 2'


def test_pdf_document():
    pdf = render_pdf('Medical History', timeline_rows(sample_entries()), now=WHEN)
    assert pdf.startswith(b'%PDF')
    empty = render_pdf('Medical History', [], date_range=date_range_label(WHEN, WHEN), now=WHEN)
    assert empty.startswith(b'%PDF')


def test_date_range_label():
    assert date_range_label() == 'All dates'
    assert date_range_label(WHEN, date(2024, 4, 1)) == '05-Mar-2024 to 01-Apr-2024'
