from datetime import timedelta

import pytest
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from care.exceptions import (
    BookingNotFoundError,
    ConflictError,
    HospitalNotFoundError,
    PatientAlreadyQueuedError,
    PatientNotInQueueError,
)
from care.models import HospitalLocation, QueueEntry, QueueEntryTransition
from care.services.queue import build_queue, enqueue, notify_queue_changed, withdraw

pytestmark = pytest.mark.django_db


def test_queue_orders_by_priority_then_wait(hospital, make_entry):
    low_old = make_entry(hospital, 'LOW', waited_hours=500)
    high_new = make_entry(hospital, 'HIGH', waited_hours=1)
    high_old = make_entry(hospital, 'HIGH', waited_hours=20)
    critical = make_entry(hospital, 'CRITICAL')

    queue = build_queue(hospital.id)
    assert [e.pk for e in queue] == [critical.pk, high_old.pk, high_new.pk, low_old.pk]
    assert [e.queue_position for e in queue] == [1, 2, 3, 4]


def test_ties_broken_by_enqueue_time(hospital, make_entry):
    first = make_entry(hospital, 'MEDIUM', waited_hours=2000)
    second = make_entry(hospital, 'MEDIUM', waited_hours=1000)
    # both capped at the same score
    queue = build_queue(hospital.id)
    assert queue[0].priority_score == queue[1].priority_score
    assert [e.pk for e in queue] == [first.pk, second.pk]


def test_build_queue_is_idempotent(hospital, make_entry):
    for level in ('LOW', 'HIGH', 'MEDIUM', 'HIGH'):
        make_entry(hospital, level, waited_hours=3)
    now = timezone.now()
    a = [e.pk for e in build_queue(hospital.id, now=now)]
    b = [e.pk for e in build_queue(hospital.id, now=now)]
    assert a == b


def test_positions_and_estimates_are_persisted(hospital, make_entry):
    e = make_entry(hospital, 'HIGH')
    make_entry(hospital, 'CRITICAL')
    build_queue(hospital.id)
    e.refresh_from_db()
    assert e.queue_position == 2
    assert e.estimated_wait_hours == 96


def test_only_waiting_entries_listed(hospital, make_entry):
    waiting = make_entry(hospital)
    make_entry(hospital, status=QueueEntry.STATUS_WITHDRAWN)
    assert [e.pk for e in build_queue(hospital.id)] == [waiting.pk]


def test_location_filter_and_all(hospital, make_entry):
    north = HospitalLocation.objects.create(hospital=hospital, name='North')
    south = HospitalLocation.objects.create(hospital=hospital, name='South')
    n = make_entry(hospital, location=north)
    make_entry(hospital, location=south)
    assert [e.pk for e in build_queue(hospital.id, north.id)] == [n.pk]
    assert len(build_queue(hospital.id, 'all')) == 2


def test_unknown_hospital_or_empty_queue(hospital):
    assert build_queue(99999) == []
    assert build_queue(hospital.id) == []


def test_enqueue_confirmed_ipd_booking(hospital, make_booking, staff):
    booking = make_booking(hospital)
    entry = enqueue(hospital.id, booking.id, 'ICU', priority='HIGH', operator=staff)
    assert entry.status == QueueEntry.STATUS_WAITING
    assert entry.queue_position == 1
    assert entry.priority_score == 200
    t = QueueEntryTransition.objects.get(entry=entry)
    assert (t.from_status, t.to_status, t.operator) == (None, 'WAITING', staff)


def test_enqueue_assesses_priority_when_missing(hospital, make_booking):
    booking = make_booking(hospital)
    entry = enqueue(hospital.id, booking.id, 'GENERAL', medical_urgency=10, patient_age=70, other_factors=10)
    assert entry.priority == 'HIGH'


def test_enqueue_rejections(hospital, make_booking):
    with pytest.raises(HospitalNotFoundError):
        enqueue(424242, 1, 'GENERAL', priority='LOW')
    with pytest.raises(BookingNotFoundError):
        enqueue(hospital.id, 424242, 'GENERAL', priority='LOW')
    opd = make_booking(hospital, booking_type='OPD')
    with pytest.raises(ValidationError):
        enqueue(hospital.id, opd.id, 'GENERAL', priority='LOW')
    pending = make_booking(hospital, status='PENDING')
    with pytest.raises(ValidationError):
        enqueue(hospital.id, pending.id, 'GENERAL', priority='LOW')

    booking = make_booking(hospital)
    enqueue(hospital.id, booking.id, 'GENERAL', priority='LOW')
    with pytest.raises(PatientAlreadyQueuedError):
        enqueue(hospital.id, booking.id, 'GENERAL', priority='LOW')


def test_withdraw_is_terminal(hospital, make_entry):
    entry = make_entry(hospital)
    withdrawn = withdraw(hospital.id, entry.booking_id, reason='patient transferred')
    assert withdrawn.status == QueueEntry.STATUS_WITHDRAWN
    assert withdrawn.withdrawn_at is not None
    assert build_queue(hospital.id) == []
    with pytest.raises(PatientNotInQueueError):
        withdraw(hospital.id, entry.booking_id)
    # a withdrawn booking cannot rejoin
    with pytest.raises(ConflictError):
        enqueue(hospital.id, entry.booking_id, 'GENERAL', priority='LOW')


def test_position_notifications_have_cooldown(hospital, make_entry, settings):
    settings.QUEUE_NOTIFY_TOP_N = 2
    for _ in range(3):
        make_entry(hospital)
    now = timezone.now()
    assert notify_queue_changed(hospital.id, now=now) == 2
    assert QueueEntry.objects.filter(last_notified_at__isnull=False).count() == 2
    assert notify_queue_changed(hospital.id, now=now + timedelta(hours=1)) == 0
    assert notify_queue_changed(hospital.id, now=now + timedelta(hours=25)) == 2
