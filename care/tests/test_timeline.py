import logging
from datetime import date, datetime, timedelta, timezone as dt_timezone

import pytest
from django.db import OperationalError

from care.models import Booking, Consultation, Document, Prescription
from care.services import timeline
from care.services.timeline import Source, get_full_timeline, get_timeline, parse_boundary

pytestmark = pytest.mark.django_db


def at(day, hour=12):
    return datetime(2024, 3, day, hour, tzinfo=dt_timezone.utc)


@pytest.fixture
def patient(make_patient):
    return make_patient()


@pytest.fixture
def history(patient, hospital):
    """Five bookings, three prescriptions, one document and one consultation in March 2024."""
    for day in (1, 3, 5, 7, 9):
        Booking.objects.create(patient=patient, hospital=hospital, booking_type='OPD', status='COMPLETED',
                               booking_date=at(day), provider_name='City General')
    for day in (2, 4, 6):
        Prescription.objects.create(patient=patient, doctor_name='Dr. Rao', created_at=at(day),
                                    medicines=['Paracetamol', {'name': 'Amoxicillin', 'dosage': '500mg', 'frequency': 'bd'}])
    Document.objects.create(patient=patient, title='Chest X-ray', document_type='imaging', created_at=at(8))
    Consultation.objects.create(patient=patient, doctor_name='Dr. Iyer', mode='VIDEO', status='COMPLETED',
                                created_at=at(10))
    return patient


def test_merged_newest_first(history):
    page = get_timeline(history.id)
    assert page.total_count == 10
    dates = [e.date for e in page.entries]
    assert dates == sorted(dates, reverse=True)
    assert page.entries[0].type == 'consultation'
    assert page.degraded == []
    assert page.pagination is None


def test_type_filter(history):
    page = get_timeline(history.id, type='prescription')
    assert page.total_count == 3
    assert {e.type for e in page.entries} == {'prescription'}


def test_unknown_type_rejected(history):
    with pytest.raises(ValueError):
        get_timeline(history.id, type='xray')


def test_date_range_inclusive(history):
    page = get_timeline(history.id, start_date='2024-03-03', end_date='2024-03-06')
    assert [e.date.day for e in page.entries] == [6, 5, 4, 3]


def test_pagination_across_types(history):
    first = get_timeline(history.id, page=1, limit=4)
    third = get_timeline(history.id, page=3, limit=4)
    assert first.pagination == {'total': 10, 'page': 1, 'limit': 4, 'totalPages': 3}
    assert [e.date.day for e in first.entries] == [10, 9, 8, 7]
    assert [e.date.day for e in third.entries] == [2, 1]
    assert get_timeline(history.id, page=9, limit=4).entries == []


def test_other_patients_history_is_invisible(history, make_patient):
    assert get_timeline(make_patient().id).total_count == 0


def test_same_instant_ordered_by_type(patient, hospital):
    when = at(15)
    Consultation.objects.create(patient=patient, doctor_name='A', mode='CHAT', created_at=when)
    Booking.objects.create(patient=patient, hospital=hospital, booking_date=when)
    assert [e.type for e in get_timeline(patient.id).entries] == ['booking', 'consultation']


def test_normalized_titles_and_details(history, patient):
    Booking.objects.create(patient=patient, booking_type='LAB', booking_date=at(20))
    Document.objects.create(patient=patient, created_at=at(21))
    entries = {e.type: e for e in get_timeline(patient.id, start_date='2024-03-20').entries}
    assert entries['booking'].title == 'LAB booking at Unknown Provider'
    assert entries['document'].title == 'Untitled'

    rx = get_timeline(patient.id, type='prescription').entries[0]
    assert rx.title == 'Prescription by Dr. Rao'
    assert rx.details.medicines == ['Paracetamol', 'Amoxicillin 500mg bd']
    consult = get_timeline(patient.id, type='consultation').entries[0]
    assert consult.title == 'Video consultation with Dr. Iyer'
    assert consult.as_dict()['details']['doctorName'] == 'Dr. Iyer'


class _BrokenManager:
    def filter(self, **kwargs):
        raise OperationalError('consultations table is offline')


class _BrokenModel:
    objects = _BrokenManager()


def test_failing_source_degrades_gracefully(history, monkeypatch, caplog):
    monkeypatch.setitem(
        timeline.SOURCES, 'consultation',
        Source('consultation', _BrokenModel, 'created_at', timeline.normalize_consultation),
    )
    with caplog.at_level(logging.WARNING, logger='care.services.timeline'):
        page = get_timeline(history.id)
    assert page.degraded == ['consultation']
    assert page.total_count == 9
    assert any('consultation' in r.getMessage() for r in caplog.records if r.levelno == logging.WARNING)


class _UnreachableManager:
    def filter(self, **kwargs):
        raise ConnectionError('consultation service unreachable')


class _UnreachableModel:
    objects = _UnreachableManager()


def test_unreachable_source_degrades(history, monkeypatch):
    monkeypatch.setitem(
        timeline.SOURCES, 'consultation',
        Source('consultation', _UnreachableModel, 'created_at', timeline.normalize_consultation),
    )
    page = get_timeline(history.id)
    assert page.degraded == ['consultation']
    assert page.total_count == 9


def test_bad_row_degrades_only_its_source(history, monkeypatch):
    def broken(row):
        raise KeyError('mode')

    monkeypatch.setitem(timeline.SOURCES, 'consultation', Source('consultation', Consultation, 'created_at', broken))
    page = get_timeline(history.id, page=1, limit=20)
    assert page.degraded == ['consultation']
    assert page.pagination['total'] == 9


def test_date_only_end_keeps_the_whole_day(patient, hospital):
    Booking.objects.create(patient=patient, hospital=hospital, booking_date=at(6, hour=12))
    page = get_timeline(patient.id, start_date='2024-03-01', end_date='2024-03-06')
    assert page.total_count == 1


def test_full_timeline_is_capped(history, settings):
    settings.TIMELINE_FULL_LIMIT = 4
    page = get_full_timeline(history.id)
    assert len(page.entries) == 4
    assert page.total_count == 10


def test_parse_boundary():
    assert parse_boundary(None) is None
    assert parse_boundary('') is None
    end = parse_boundary('2024-03-05', end=True)
    assert (end.hour, end.minute, end.second) == (23, 59, 59)
    assert parse_boundary(date(2024, 3, 5)).hour == 0
    assert parse_boundary('2024-03-05T10:30:00Z') == datetime(2024, 3, 5, 10, 30, tzinfo=dt_timezone.utc)
    with pytest.raises(ValueError):
        parse_boundary('yesterday')


def test_end_of_day_cutoff(history):
    late = parse_boundary('2024-03-09', end=True) + timedelta(microseconds=1)
    assert late.day == 10
    page = get_timeline(history.id, end_date='2024-03-09')
    assert page.entries[0].date.day == 9
