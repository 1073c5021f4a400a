from datetime import timedelta

import pytest
from django.core.cache import cache
from django.utils import timezone

from care.models import Bed, Booking, Hospital, QueueEntry, User
from care.services.scoring import compute_score


@pytest.fixture(autouse=True)
def _clear_cache():
    # throttling counters live in the cache
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def now():
    return timezone.now()


@pytest.fixture
def staff(db):
    return User.objects.create_user(username='staff1', password='P@ssw0rd1', role='hospital')


@pytest.fixture
def hospital(db, staff):
    return Hospital.objects.create(name='City General', owner=staff)


@pytest.fixture
def make_bed(db):
    def _make(hospital, bed_type='GENERAL', **kw):
        n = Bed.objects.filter(hospital=hospital).count() + 1
        kw.setdefault('bed_number', f'b-{n:03d}')
        return Bed.objects.create(hospital=hospital, bed_type=bed_type, **kw)
    return _make


@pytest.fixture
def make_patient(db):
    counter = {'n': 0}

    def _make(**kw):
        counter['n'] += 1
        username = kw.pop('username', f"patient{counter['n']}")
        return User.objects.create_user(username=username, password='P@ssw0rd1', role='patient', **kw)
    return _make


@pytest.fixture
def make_booking(db, make_patient):
    def _make(hospital, patient=None, **kw):
        kw.setdefault('booking_type', 'IPD')
        kw.setdefault('status', 'CONFIRMED')
        kw.setdefault('booking_date', timezone.now())
        kw.setdefault('provider_name', hospital.name)
        return Booking.objects.create(patient=patient or make_patient(), hospital=hospital, **kw)
    return _make


@pytest.fixture
def make_entry(db, make_booking):
    """A WAITING queue entry created directly, without side effects."""
    def _make(hospital, priority='MEDIUM', bed_type='GENERAL', waited_hours=0, patient=None, **kw):
        booking = make_booking(hospital, patient=patient)
        enqueued_at = timezone.now() - timedelta(hours=waited_hours)
        return QueueEntry.objects.create(
            booking=booking,
            patient=booking.patient,
            hospital=hospital,
            bed_type=bed_type,
            priority=priority,
            priority_score=compute_score(priority, timedelta(hours=waited_hours)),
            enqueued_at=enqueued_at,
            **kw,
        )
    return _make
