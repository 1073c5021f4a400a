"""
The inpatient (IPD) bed waiting queue.

``build_queue`` is the single source of the queue order used by the list
endpoint, by auto-allocation and by position notifications.  Scores are
recomputed from the current wait each time it runs so an entry's rank
always reflects how long it has actually waited.
"""
from __future__ import annotations

import logging
from datetime import timedelta
from typing import Optional

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.conf import settings
from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from care.constants import ALL_LOCATIONS, BOOKING_STATUS_CONFIRMED, BOOKING_TYPE_IPD, PRIORITY_LEVELS
from care.exceptions import (
    BookingNotFoundError,
    ConflictError,
    HospitalNotFoundError,
    PatientAlreadyQueuedError,
    PatientNotInQueueError,
)
from care.models import Booking, Hospital, QueueEntry, QueueEntryTransition
from care.services.audit import ACTION_ENQUEUE, ACTION_WITHDRAW, log_action
from care.services.scoring import assess_priority, compute_score, estimate_wait_time, score_breakdown

logger = logging.getLogger(__name__)

NOTIFY_COOLDOWN = timedelta(hours=24)


def queue_group_name(hospital_id: int) -> str:
    return f"hospital.{hospital_id}.queue"


def patient_group_name(patient_id: int) -> str:
    return f"patient.{patient_id}.queue"


def location_filter(location_id):
    if location_id in (None, '', ALL_LOCATIONS):
        return None
    return int(location_id)


def _turnover_hours() -> int:
    return int(getattr(settings, 'BED_TURNOVER_HOURS', 48))


def build_queue(hospital_id: int, location_id=None, *, now=None, persist: bool = True) -> list[QueueEntry]:
    """Return the hospital's WAITING entries in allocation order.

    Order is score descending, then earliest ``enqueued_at``, then pk.
    Each returned entry carries a fresh ``priority_score``,
    ``score_breakdown``, 1-based ``queue_position`` and
    ``estimated_wait_hours``.  An unknown hospital yields an empty list.
    """
    now = now or timezone.now()
    if not Hospital.objects.filter(pk=hospital_id).exists():
        return []
    qs = QueueEntry.objects.select_related('patient', 'booking', 'location').filter(
        hospital_id=hospital_id, status=QueueEntry.STATUS_WAITING,
    )
    loc = location_filter(location_id)
    if loc is not None:
        qs = qs.filter(location_id=loc)
    entries = list(qs)
    for entry in entries:
        waited = now - entry.enqueued_at
        entry.priority_score = compute_score(entry.priority, waited)
        entry.score_breakdown = score_breakdown(entry.priority, waited, now=now)
    entries.sort(key=lambda e: (-e.priority_score, e.enqueued_at, e.pk))
    turnover = _turnover_hours()
    for position, entry in enumerate(entries, start=1):
        entry.queue_position = position
        entry.estimated_wait_hours = estimate_wait_time(position, turnover).hours
    if persist and entries:
        QueueEntry.objects.bulk_update(
            entries, ['priority_score', 'score_breakdown', 'queue_position', 'estimated_wait_hours'],
        )
    return entries


def serialize_entry(entry: QueueEntry) -> dict:
    patient = entry.patient
    bed = entry.assigned_bed if entry.assigned_bed_id else None
    data = {
        'bookingId': entry.booking_id,
        'patientId': entry.patient_id,
        'patientName': patient.get_full_name() or patient.username,
        'locationId': entry.location_id,
        'bedType': entry.bed_type,
        'priority': entry.priority,
        'priorityScore': entry.priority_score,
        'scoreBreakdown': entry.score_breakdown,
        'status': entry.status,
        'queuePosition': entry.queue_position,
        'joinedQueueAt': entry.enqueued_at.isoformat(),
        'allocatedAt': entry.allocated_at.isoformat() if entry.allocated_at else None,
        'releasedAt': entry.released_at.isoformat() if entry.released_at else None,
        'assignedBed': None,
    }
    if entry.estimated_wait_hours is not None and entry.queue_position:
        est = estimate_wait_time(entry.queue_position, _turnover_hours())
        data['estimatedWait'] = {'hours': est.hours, 'days': est.days, 'readable': est.readable}
    if bed is not None:
        data['assignedBed'] = {
            'bedIndex': bed.index,
            'bedNumber': bed.bed_number,
            'bedType': bed.bed_type,
            'floor': bed.floor,
            'ward': bed.ward,
        }
    return data


def record_transition(entry: QueueEntry, from_status: Optional[str], to_status: str, *, operator=None, reason: str = ''):
    return QueueEntryTransition.objects.create(
        entry=entry,
        from_status=from_status,
        to_status=to_status,
        operator=operator if getattr(operator, 'pk', None) else None,
        reason=reason[:255],
    )


def enqueue(hospital_id: int, booking_id: int, bed_type: str, *, priority: Optional[str] = None,
            medical_urgency: float = 0, patient_age: Optional[int] = None, other_factors: float = 0,
            operator=None, now=None) -> QueueEntry:
    """Put a confirmed IPD booking into the hospital's bed queue.

    When ``priority`` is not given it is assessed from the intake factors
    and the time already waited since the booking was made.
    """
    now = now or timezone.now()
    if not Hospital.objects.filter(pk=hospital_id).exists():
        raise HospitalNotFoundError()
    if priority is not None and priority not in PRIORITY_LEVELS:
        raise ValidationError({'priority': f'must be one of {", ".join(PRIORITY_LEVELS)}'})
    with transaction.atomic():
        booking = Booking.objects.select_for_update().filter(pk=booking_id, hospital_id=hospital_id).first()
        if booking is None:
            raise BookingNotFoundError()
        if booking.booking_type != BOOKING_TYPE_IPD:
            raise ValidationError({'bookingId': 'Only IPD bookings can join the bed queue'})
        if booking.status != BOOKING_STATUS_CONFIRMED:
            raise ValidationError({'bookingId': 'Booking must be confirmed before joining the bed queue'})
        existing = QueueEntry.objects.filter(booking=booking).first()
        if existing is not None:
            if existing.status == QueueEntry.STATUS_WAITING:
                raise PatientAlreadyQueuedError()
            raise ConflictError(f'Booking already left the queue ({existing.status.lower()}); a new booking is required')
        if priority is None:
            priority, _points = assess_priority(
                medical_urgency, patient_age, other_factors, waited=now - booking.created_at,
            )
        entry = QueueEntry.objects.create(
            booking=booking,
            patient_id=booking.patient_id,
            hospital_id=hospital_id,
            location_id=booking.location_id,
            bed_type=bed_type,
            priority=priority,
            priority_score=compute_score(priority, 0),
            score_breakdown=score_breakdown(priority, 0, now=now),
            enqueued_at=now,
        )
        record_transition(entry, None, QueueEntry.STATUS_WAITING, operator=operator, reason='enqueued')
        log_action(user=operator, action=ACTION_ENQUEUE, object_type='queue_entry', object_id=entry.id,
                   detail={'bookingId': booking.id, 'priority': priority, 'bedType': bed_type})
    logger.info('booking %s queued at hospital %s (%s, %s)', booking_id, hospital_id, priority, bed_type)
    notify_queue_changed(hospital_id, now=now)
    entry.refresh_from_db()
    return entry


def withdraw(hospital_id: int, booking_id: int, *, operator=None, reason: str = '', now=None) -> QueueEntry:
    """Take a WAITING entry out of the queue.  Terminal."""
    now = now or timezone.now()
    if not Hospital.objects.filter(pk=hospital_id).exists():
        raise HospitalNotFoundError()
    with transaction.atomic():
        entry = (
            QueueEntry.objects.select_for_update()
            .filter(hospital_id=hospital_id, booking_id=booking_id, status=QueueEntry.STATUS_WAITING)
            .first()
        )
        if entry is None:
            raise PatientNotInQueueError()
        entry.status = QueueEntry.STATUS_WITHDRAWN
        entry.withdrawn_at = now
        entry.queue_position = None
        entry.save(update_fields=['status', 'withdrawn_at', 'queue_position'])
        record_transition(entry, QueueEntry.STATUS_WAITING, QueueEntry.STATUS_WITHDRAWN,
                          operator=operator, reason=reason or 'withdrawn')
        log_action(user=operator, action=ACTION_WITHDRAW, object_type='queue_entry', object_id=entry.id,
                   detail={'bookingId': booking_id, 'reason': reason})
    logger.info('booking %s withdrawn from queue at hospital %s', booking_id, hospital_id)
    notify_queue_changed(hospital_id, now=now)
    return entry


def notify_queue_changed(hospital_id: int, *, now=None) -> int:
    """Rebuild the queue, broadcast it and ping the patients near the front.

    Returns the number of position notifications sent.  Entries in the top
    ``QUEUE_NOTIFY_TOP_N`` positions are notified at most once per 24 hours.
    """
    now = now or timezone.now()
    entries = build_queue(hospital_id, now=now)
    channel_layer = get_channel_layer()
    if channel_layer is None:
        return 0
    group = queue_group_name(hospital_id)
    async_to_sync(channel_layer.group_send)(group, {
        'type': 'queue.updated',
        'hospitalId': hospital_id,
        'ts': now.isoformat(),
        'waiting': len(entries),
    })
    top_n = int(getattr(settings, 'QUEUE_NOTIFY_TOP_N', 5))
    notified = []
    for entry in entries[:top_n]:
        if entry.last_notified_at and now - entry.last_notified_at < NOTIFY_COOLDOWN:
            continue
        est = estimate_wait_time(entry.queue_position, _turnover_hours())
        event = {
            'type': 'queue.position',
            'hospitalId': hospital_id,
            'bookingId': entry.booking_id,
            'patientId': entry.patient_id,
            'position': entry.queue_position,
            'estimatedWait': est.readable,
        }
        # staff dashboard and the patient's own feed
        async_to_sync(channel_layer.group_send)(group, event)
        async_to_sync(channel_layer.group_send)(patient_group_name(entry.patient_id), event)
        entry.last_notified_at = now
        notified.append(entry)
    if notified:
        QueueEntry.objects.bulk_update(notified, ['last_notified_at'])
    return len(notified)
