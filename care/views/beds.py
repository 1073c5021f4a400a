"""
Hospital bed queue and allocation endpoints.

Staff of a hospital (role ``hospital``, owner of the hospital) and
administrators can list the IPD waiting queue, add and withdraw bookings,
list free beds, allocate a bed by hand, run an automatic allocation pass
and release a bed on discharge.  Domain failures are raised from the
service layer and rendered by the project exception handler.
"""
from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from care.exceptions import HospitalNotFoundError
from care.models import Hospital, QueueEntry
from care.permissions import IsHospitalOrAdmin
from care.serializers.queue import (
    AllocateBedSerializer,
    AvailableBedsQuerySerializer,
    EnqueueSerializer,
    LocationQuerySerializer,
    WithdrawSerializer,
)
from care.services import allocation, queue as queue_service


def _hospital_or_404(hospital_id: int) -> Hospital:
    hospital = Hospital.objects.filter(pk=hospital_id).first()
    if hospital is None:
        raise HospitalNotFoundError()
    return hospital


def _bed_payload(bed) -> dict:
    return {
        'bedIndex': bed.index,
        'bedNumber': bed.bed_number,
        'bedType': bed.bed_type,
        'floor': bed.floor,
        'ward': bed.ward,
        'locationId': bed.location_id,
    }


def _entry_payload(entry: QueueEntry) -> dict:
    entry = QueueEntry.objects.select_related('patient', 'assigned_bed').get(pk=entry.pk)
    return queue_service.serialize_entry(entry)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsHospitalOrAdmin])
def hospital_queue(request, hospital_id: int):
    """GET the ranked waiting queue; POST adds a confirmed IPD booking to it."""
    _hospital_or_404(hospital_id)
    if request.method == 'POST':
        s = EnqueueSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        v = s.validated_data
        entry = queue_service.enqueue(
            hospital_id, v['bookingId'], v['bedType'],
            priority=v.get('priority'),
            medical_urgency=v.get('medicalUrgency') or 0,
            patient_age=v.get('patientAge'),
            other_factors=v.get('otherFactors') or 0,
            operator=request.user,
        )
        return Response({'ok': True, 'entry': _entry_payload(entry)}, status=status.HTTP_201_CREATED)

    q = LocationQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    entries = queue_service.build_queue(hospital_id, q.validated_data.get('locationId'))
    return Response({
        'ok': True,
        'queue': [queue_service.serialize_entry(e) for e in entries],
        'count': len(entries),
    })


@api_view(['DELETE'])
@permission_classes([IsAuthenticated, IsHospitalOrAdmin])
def withdraw_from_queue(request, hospital_id: int, booking_id: int):
    s = WithdrawSerializer(data=request.data or {})
    s.is_valid(raise_exception=True)
    entry = queue_service.withdraw(hospital_id, booking_id, operator=request.user,
                                   reason=s.validated_data.get('reason') or '')
    return Response({'ok': True, 'bookingId': entry.booking_id, 'status': entry.status})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsHospitalOrAdmin])
def available_beds(request, hospital_id: int):
    _hospital_or_404(hospital_id)
    q = AvailableBedsQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    v = q.validated_data
    beds = allocation.find_available_beds(
        hospital_id, v.get('locationId'),
        bed_type=v.get('bedType'), floor=v.get('floor'), ward=v.get('ward'),
    )
    return Response({'ok': True, 'availableBeds': [_bed_payload(b) for b in beds], 'count': len(beds)})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsHospitalOrAdmin])
def allocate_bed(request, hospital_id: int):
    s = AllocateBedSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    v = s.validated_data
    entry = allocation.allocate_bed(
        hospital_id, v['bookingId'], v.get('bedIndex'),
        bed_number=v.get('bedNumber'), operator=request.user,
    )
    return Response({'ok': True, 'entry': _entry_payload(entry)})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsHospitalOrAdmin])
def auto_allocate(request, hospital_id: int):
    q = LocationQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    report = allocation.auto_allocate(hospital_id, q.validated_data.get('locationId'), operator=request.user)
    return Response({
        'ok': True,
        'allocatedCount': report.allocated_count,
        'failedCount': report.failed_count,
        'allocations': [_entry_payload(e) for e in report.allocated],
        'failures': report.failures,
    })


@api_view(['PUT'])
@permission_classes([IsAuthenticated, IsHospitalOrAdmin])
def release_bed(request, hospital_id: int, booking_id: int):
    entry = allocation.release_bed(hospital_id, booking_id, operator=request.user)
    bed = entry.assigned_bed
    return Response({
        'ok': True,
        'bookingId': entry.booking_id,
        'releasedAt': entry.released_at.isoformat(),
        'bed': _bed_payload(bed),
    })
