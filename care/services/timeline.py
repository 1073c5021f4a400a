"""
A patient's medical history as one chronological timeline.

Bookings, prescriptions, documents and consultations live in separate
tables.  Each has a fetcher (ORM query with the date range applied in the
database) and a normalizer (row -> ``TimelineEntry``).  The merged list is
sorted newest first and sliced for the requested page.

A source that cannot be read is logged and reported in
``TimelinePage.degraded``; the other sources are still served.
"""
from __future__ import annotations

import logging
import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date, datetime, time
from decimal import Decimal
from typing import Callable, Optional, Union

from django.conf import settings
from django.db import connections
from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime

from care.constants import (
    TIMELINE_BOOKING,
    TIMELINE_CONSULTATION,
    TIMELINE_DOCUMENT,
    TIMELINE_PRESCRIPTION,
    TIMELINE_TYPES,
)
from care.exceptions import PartialSourceUnavailable
from care.models import Booking, Consultation, Document, Prescription

logger = logging.getLogger(__name__)


@dataclass
class BookingDetails:
    provider_name: str
    booking_type: str
    status: str
    department: Optional[str] = None
    booking_time: Optional[str] = None
    payment_status: Optional[str] = None
    payment_amount: Optional[Decimal] = None

    def as_dict(self) -> dict:
        return {
            'providerName': self.provider_name,
            'bookingType': self.booking_type,
            'status': self.status,
            'department': self.department,
            'bookingTime': self.booking_time,
            'paymentStatus': self.payment_status,
            'paymentAmount': float(self.payment_amount) if self.payment_amount is not None else None,
        }


@dataclass
class PrescriptionDetails:
    prescribed_by: str
    medicines: list = field(default_factory=list)
    pharmacy: Optional[str] = None
    status: Optional[str] = None

    def as_dict(self) -> dict:
        return {
            'prescribedBy': self.prescribed_by,
            'medicines': list(self.medicines),
            'pharmacy': self.pharmacy,
            'status': self.status,
        }


@dataclass
class DocumentDetails:
    document_type: str
    file_name: str
    description: str = ''
    file_url: str = ''
    uploaded_by: Optional[int] = None

    def as_dict(self) -> dict:
        return {
            'documentType': self.document_type,
            'fileName': self.file_name,
            'description': self.description,
            'fileUrl': self.file_url,
            'uploadedBy': self.uploaded_by,
        }


@dataclass
class ConsultationDetails:
    doctor_name: str
    mode: str
    status: str
    notes: str = ''

    def as_dict(self) -> dict:
        return {
            'doctorName': self.doctor_name,
            'mode': self.mode,
            'status': self.status,
            'notes': self.notes,
        }


Details = Union[BookingDetails, PrescriptionDetails, DocumentDetails, ConsultationDetails]


@dataclass
class TimelineEntry:
    type: str
    id: int
    date: datetime
    title: str
    details: Details

    @property
    def status(self) -> Optional[str]:
        return getattr(self.details, 'status', None)

    def as_dict(self) -> dict:
        return {
            'type': self.type,
            'id': self.id,
            'date': self.date.isoformat(),
            'title': self.title,
            'details': self.details.as_dict(),
        }


@dataclass
class TimelinePage:
    entries: list
    total_count: int
    pagination: Optional[dict] = None
    degraded: list = field(default_factory=list)


# -- normalizers -----------------------------------------------------------

def _format_medicine(medicine) -> str:
    if isinstance(medicine, str):
        return medicine
    if isinstance(medicine, dict):
        parts = [medicine.get('name') or 'Medicine', medicine.get('dosage') or '', medicine.get('frequency') or '']
        return ' '.join(p for p in parts if p).strip()
    return str(medicine)


def normalize_booking(b: Booking) -> TimelineEntry:
    provider = b.provider_name or 'Unknown Provider'
    return TimelineEntry(
        type=TIMELINE_BOOKING,
        id=b.id,
        date=b.booking_date,
        title=f'{b.booking_type} booking at {provider}',
        details=BookingDetails(
            provider_name=provider,
            booking_type=b.booking_type,
            status=b.status,
            department=b.department or None,
            booking_time=b.booking_time or None,
            payment_status=b.payment_status or None,
            payment_amount=b.payment_amount,
        ),
    )


def normalize_prescription(p: Prescription) -> TimelineEntry:
    doctor = p.doctor_name or 'Unknown Doctor'
    return TimelineEntry(
        type=TIMELINE_PRESCRIPTION,
        id=p.id,
        date=p.created_at,
        title=f'Prescription by {doctor}',
        details=PrescriptionDetails(
            prescribed_by=doctor,
            medicines=[_format_medicine(m) for m in (p.medicines or [])],
            pharmacy=p.pharmacy_name or None,
            status=p.status,
        ),
    )


def normalize_document(d: Document) -> TimelineEntry:
    name = d.title or 'Untitled'
    return TimelineEntry(
        type=TIMELINE_DOCUMENT,
        id=d.id,
        date=d.created_at,
        title=name,
        details=DocumentDetails(
            document_type=d.document_type,
            file_name=name,
            description=d.description,
            file_url=d.file_url,
            uploaded_by=d.uploaded_by_id,
        ),
    )


def normalize_consultation(c: Consultation) -> TimelineEntry:
    doctor = c.doctor_name or 'Unknown Doctor'
    mode = c.mode or 'unknown'
    return TimelineEntry(
        type=TIMELINE_CONSULTATION,
        id=c.id,
        date=c.created_at,
        title=f'{mode.replace("_", " ").title()} consultation with {doctor}',
        details=ConsultationDetails(doctor_name=doctor, mode=mode, status=c.status, notes=c.notes or ''),
    )


# -- fetchers --------------------------------------------------------------

@dataclass
class Source:
    type: str
    model: type
    date_field: str
    normalize: Callable


SOURCES = {
    TIMELINE_BOOKING: Source(TIMELINE_BOOKING, Booking, 'booking_date', normalize_booking),
    TIMELINE_PRESCRIPTION: Source(TIMELINE_PRESCRIPTION, Prescription, 'created_at', normalize_prescription),
    TIMELINE_DOCUMENT: Source(TIMELINE_DOCUMENT, Document, 'created_at', normalize_document),
    TIMELINE_CONSULTATION: Source(TIMELINE_CONSULTATION, Consultation, 'created_at', normalize_consultation),
}


def fetch_source(source: Source, patient_id: int, start: Optional[datetime], end: Optional[datetime]) -> list[TimelineEntry]:
    """Rows of one source as timeline entries.

    Any failure while querying or normalizing is raised as
    ``PartialSourceUnavailable`` so the caller can skip the source.
    """
    try:
        qs = source.model.objects.filter(patient_id=patient_id)
        if start is not None:
            qs = qs.filter(**{f'{source.date_field}__gte': start})
        if end is not None:
            qs = qs.filter(**{f'{source.date_field}__lte': end})
        return [source.normalize(row) for row in qs.order_by(f'-{source.date_field}', '-id')]
    except Exception as exc:
        raise PartialSourceUnavailable(source.type, exc) from exc


def _fetch_in_worker(source, patient_id, start, end):
    try:
        return fetch_source(source, patient_id, start, end)
    finally:
        connections.close_all()


def parse_boundary(value, end: bool = False) -> Optional[datetime]:
    """Turn an ISO date or datetime into an aware datetime.

    A bare date used as an end bound covers that whole day.
    """
    if value in (None, ''):
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime.combine(value, time.max if end else time.min)
    else:
        # date-only first: parse_datetime would read '2024-03-06' as midnight
        d = parse_date(str(value))
        if d is not None:
            dt = datetime.combine(d, time.max if end else time.min)
        else:
            dt = parse_datetime(str(value))
            if dt is None:
                raise ValueError(f'invalid date: {value!r}')
    if timezone.is_naive(dt):
        dt = timezone.make_aware(dt)
    return dt


def _sort_key(entry: TimelineEntry):
    return (-entry.date.timestamp(), TIMELINE_TYPES.index(entry.type), -entry.id)


def get_timeline(patient_id: int, *, type: Optional[str] = None, start_date=None, end_date=None,
                 page: Optional[int] = None, limit: Optional[int] = None) -> TimelinePage:
    """Merged, date-descending history for one patient.

    ``type`` restricts to one source.  With ``limit`` the merged list is
    sliced for ``page`` (default 1) and ``pagination`` is filled in;
    without it every entry is returned.
    """
    start = parse_boundary(start_date)
    end = parse_boundary(end_date, end=True)
    if type is not None and type not in SOURCES:
        raise ValueError(f'unknown timeline type: {type!r}')
    sources = [SOURCES[type]] if type else [SOURCES[t] for t in TIMELINE_TYPES]

    workers = max(int(getattr(settings, 'TIMELINE_SOURCE_WORKERS', 1)), 1)
    results: dict[str, list] = {}
    degraded: list[str] = []
    if workers > 1 and len(sources) > 1:
        with ThreadPoolExecutor(max_workers=min(workers, len(sources))) as pool:
            futures = {s.type: pool.submit(_fetch_in_worker, s, patient_id, start, end) for s in sources}
            for source_type, future in futures.items():
                try:
                    results[source_type] = future.result()
                except PartialSourceUnavailable as exc:
                    logger.warning('timeline source %s unavailable for patient %s: %s', source_type, patient_id, exc)
                    degraded.append(source_type)
    else:
        for source in sources:
            try:
                results[source.type] = fetch_source(source, patient_id, start, end)
            except PartialSourceUnavailable as exc:
                logger.warning('timeline source %s unavailable for patient %s: %s', source.type, patient_id, exc)
                degraded.append(source.type)

    merged = [entry for rows in results.values() for entry in rows]
    merged.sort(key=_sort_key)
    total = len(merged)

    if limit is None:
        return TimelinePage(entries=merged, total_count=total, degraded=degraded)
    page = max(int(page or 1), 1)
    limit = max(int(limit), 1)
    offset = (page - 1) * limit
    return TimelinePage(
        entries=merged[offset:offset + limit],
        total_count=total,
        pagination={
            'total': total,
            'page': page,
            'limit': limit,
            'totalPages': math.ceil(total / limit) if total else 0,
        },
        degraded=degraded,
    )


def get_full_timeline(patient_id: int, **filters) -> TimelinePage:
    """Timeline for exports and analytics, capped at ``TIMELINE_FULL_LIMIT``."""
    cap = int(getattr(settings, 'TIMELINE_FULL_LIMIT', 1000))
    return get_timeline(patient_id, page=1, limit=cap, **filters)
