"""
Bed allocation: manual assignment, automatic assignment from the queue,
and release.

Every allocation mutates the bed and the queue entry inside one
transaction with both rows locked, so a bed can never be handed to two
patients and a patient can never hold two beds, however many operators
press the button at once.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from django.db import transaction
from django.utils import timezone

from care.constants import BOOKING_STATUS_COMPLETED
from care.exceptions import (
    BedAlreadyOccupiedError,
    BedInactiveError,
    BedNotFoundError,
    HospitalNotFoundError,
    NoBedAssignedError,
    PatientAlreadyAllocatedError,
    PatientNotInQueueError,
)
from care.models import Bed, Booking, Hospital, QueueEntry
from care.services.audit import ACTION_ALLOCATE, ACTION_AUTO_ALLOCATE, ACTION_RELEASE, log_action
from care.services.queue import location_filter, build_queue, notify_queue_changed, record_transition

logger = logging.getLogger(__name__)

# failures that belong to the bed; the patient stays eligible for the next one
BED_SIDE_ERRORS = (BedAlreadyOccupiedError, BedInactiveError, BedNotFoundError)


@dataclass
class AllocationReport:
    allocated: list = field(default_factory=list)
    failures: list = field(default_factory=list)

    @property
    def allocated_count(self) -> int:
        return len(self.allocated)

    @property
    def failed_count(self) -> int:
        return len(self.failures)


def find_available_beds(hospital_id: int, location_id=None, bed_type: Optional[str] = None,
                        floor: Optional[str] = None, ward: Optional[str] = None) -> list[Bed]:
    qs = Bed.objects.filter(hospital_id=hospital_id, is_active=True, is_occupied=False)
    loc = location_filter(location_id)
    if loc is not None:
        qs = qs.filter(location_id=loc)
    if bed_type:
        qs = qs.filter(bed_type=bed_type)
    if floor:
        qs = qs.filter(floor=floor)
    if ward:
        qs = qs.filter(ward=ward)
    return list(qs.order_by('index'))


def _locked_bed(hospital_id: int, bed_index: Optional[int], bed_number: Optional[str]) -> Bed:
    qs = Bed.objects.select_for_update().filter(hospital_id=hospital_id)
    if bed_index is not None:
        bed = qs.filter(index=bed_index).first()
    elif bed_number:
        bed = qs.filter(bed_number=bed_number.strip().upper()).first()
    else:
        bed = None
    if bed is None:
        raise BedNotFoundError()
    return bed


def _allocate(hospital_id: int, booking_id: int, bed_index: Optional[int], bed_number: Optional[str],
              operator, now, action: str) -> QueueEntry:
    with transaction.atomic():
        bed = _locked_bed(hospital_id, bed_index, bed_number)
        if not bed.is_active:
            raise BedInactiveError()
        if bed.is_occupied:
            raise BedAlreadyOccupiedError()
        entry = (
            QueueEntry.objects.select_for_update()
            .filter(hospital_id=hospital_id, booking_id=booking_id)
            .first()
        )
        if entry is None or entry.status == QueueEntry.STATUS_WITHDRAWN:
            raise PatientNotInQueueError()
        if entry.status == QueueEntry.STATUS_ALLOCATED:
            raise PatientAlreadyAllocatedError()

        bed.is_occupied = True
        bed.occupant_id = entry.patient_id
        bed.save(update_fields=['is_occupied', 'occupant'])

        entry.status = QueueEntry.STATUS_ALLOCATED
        entry.assigned_bed = bed
        entry.allocated_at = now
        entry.queue_position = None
        entry.save(update_fields=['status', 'assigned_bed', 'allocated_at', 'queue_position'])
        record_transition(entry, QueueEntry.STATUS_WAITING, QueueEntry.STATUS_ALLOCATED,
                          operator=operator, reason=f'bed {bed.bed_number}')
        log_action(user=operator, action=action, object_type='queue_entry', object_id=entry.id,
                   detail={'bookingId': booking_id, 'bedIndex': bed.index, 'bedNumber': bed.bed_number})
    logger.info('bed %s (#%s) allocated to booking %s at hospital %s',
                bed.bed_number, bed.index, booking_id, hospital_id)
    return entry


def allocate_bed(hospital_id: int, booking_id: int, bed_index: Optional[int] = None, *,
                 bed_number: Optional[str] = None, operator=None, now=None) -> QueueEntry:
    """Assign a specific bed to a waiting patient.

    The operator's choice is final: the bed type is not compared with the
    type the patient asked for.  Raises a named error, and writes nothing,
    when the hospital or bed does not exist, the bed is out of service or
    occupied, or the booking is not waiting in the queue.
    """
    now = now or timezone.now()
    if not Hospital.objects.filter(pk=hospital_id).exists():
        raise HospitalNotFoundError()
    entry = _allocate(hospital_id, booking_id, bed_index, bed_number, operator, now, ACTION_ALLOCATE)
    notify_queue_changed(hospital_id, now=now)
    return entry


def auto_allocate(hospital_id: int, location_id=None, *, operator=None, now=None) -> AllocationReport:
    """Fill free beds from the queue.

    Beds are visited in inventory order; each goes to the highest-ranked
    waiting patient whose requested bed type matches exactly.  Every
    assignment commits on its own, so one failure is reported and the pass
    carries on with the next bed.
    """
    now = now or timezone.now()
    if not Hospital.objects.filter(pk=hospital_id).exists():
        raise HospitalNotFoundError()
    report = AllocationReport()
    remaining = build_queue(hospital_id, location_id, now=now)
    for bed in find_available_beds(hospital_id, location_id):
        candidate = next((e for e in remaining if e.bed_type == bed.bed_type), None)
        if candidate is None:
            continue
        try:
            entry = _allocate(hospital_id, candidate.booking_id, bed.index, None, operator, now, ACTION_ALLOCATE)
        except BED_SIDE_ERRORS as exc:
            report.failures.append({
                'bookingId': candidate.booking_id, 'bedIndex': bed.index,
                'code': exc.default_code, 'reason': str(exc.detail),
            })
            continue
        except (PatientAlreadyAllocatedError, PatientNotInQueueError) as exc:
            report.failures.append({
                'bookingId': candidate.booking_id, 'bedIndex': bed.index,
                'code': exc.default_code, 'reason': str(exc.detail),
            })
            remaining.remove(candidate)
            continue
        remaining.remove(candidate)
        report.allocated.append(entry)
    log_action(user=operator, action=ACTION_AUTO_ALLOCATE, object_type='hospital', object_id=hospital_id,
               detail={'allocated': report.allocated_count, 'failed': report.failed_count,
                       'locationId': location_id})
    logger.info('auto-allocation at hospital %s: %d allocated, %d failed',
                hospital_id, report.allocated_count, report.failed_count)
    notify_queue_changed(hospital_id, now=now)
    return report


def release_bed(hospital_id: int, booking_id: int, *, operator=None, now=None) -> QueueEntry:
    """Free the bed held by a booking and mark the booking completed.

    The entry keeps its ALLOCATED status and bed; ``released_at`` records
    the discharge.
    """
    now = now or timezone.now()
    if not Hospital.objects.filter(pk=hospital_id).exists():
        raise HospitalNotFoundError()
    with transaction.atomic():
        entry = (
            QueueEntry.objects.select_for_update()
            .filter(hospital_id=hospital_id, booking_id=booking_id)
            .first()
        )
        if entry is None:
            raise PatientNotInQueueError()
        if entry.status != QueueEntry.STATUS_ALLOCATED or entry.released_at is not None:
            raise NoBedAssignedError()
        bed = Bed.objects.select_for_update().get(pk=entry.assigned_bed_id)
        bed.is_occupied = False
        bed.occupant = None
        bed.save(update_fields=['is_occupied', 'occupant'])
        entry.released_at = now
        entry.save(update_fields=['released_at'])
        Booking.objects.filter(pk=booking_id).update(status=BOOKING_STATUS_COMPLETED)
        log_action(user=operator, action=ACTION_RELEASE, object_type='queue_entry', object_id=entry.id,
                   detail={'bookingId': booking_id, 'bedIndex': bed.index, 'bedNumber': bed.bed_number})
    logger.info('bed %s released by booking %s at hospital %s', bed.bed_number, booking_id, hospital_id)
    return entry
