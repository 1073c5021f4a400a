"""
Domain errors and the unified API exception handler.

Allocation failures are raised as distinct exception classes so the
client can branch on ``error.code`` ("bed already occupied" and
"patient already allocated" need different messages).  All of them are
DRF ``APIException`` subclasses and are rendered by
:func:`api_exception_handler` into the ``{ok, error}`` envelope.
"""
import logging

from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)


class NotFoundError(APIException):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Not found.'
    default_code = 'not_found'


class ConflictError(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Conflict.'
    default_code = 'conflict'


class HospitalNotFoundError(NotFoundError):
    default_detail = 'Hospital not found'
    default_code = 'hospital_not_found'


class BedNotFoundError(NotFoundError):
    default_detail = 'Bed not found'
    default_code = 'bed_not_found'


class BookingNotFoundError(NotFoundError):
    default_detail = 'Booking not found'
    default_code = 'booking_not_found'


class PatientNotInQueueError(NotFoundError):
    default_detail = 'Patient is not waiting in the bed queue'
    default_code = 'patient_not_in_queue'


class NoHistoryToExportError(NotFoundError):
    default_detail = 'No medical history data to export for the selected date range'
    default_code = 'no_history'


class BedAlreadyOccupiedError(ConflictError):
    default_detail = 'Bed is already occupied'
    default_code = 'bed_already_occupied'


class BedInactiveError(ConflictError):
    default_detail = 'Bed is not in service'
    default_code = 'bed_inactive'


class PatientAlreadyAllocatedError(ConflictError):
    default_detail = 'Patient has already been allocated a bed'
    default_code = 'patient_already_allocated'


class PatientAlreadyQueuedError(ConflictError):
    default_detail = 'Booking is already in the queue'
    default_code = 'patient_already_queued'


class NoBedAssignedError(ConflictError):
    default_detail = 'No bed is assigned to this booking'
    default_code = 'no_bed_assigned'


class PartialSourceUnavailable(Exception):
    """One timeline source could not be read; the others are still served."""

    def __init__(self, source: str, cause: Exception | None = None):
        super().__init__(f'{source} source unavailable: {cause}')
        self.source = source
        self.cause = cause


def api_exception_handler(exc, context):
    resp = drf_exception_handler(exc, context)
    if resp is None:
        logger.exception('unhandled error in %s', getattr(context.get('view'), '__name__', context.get('view')))
        return Response({'ok': False, 'error': {'code': 'server_error', 'message': str(exc)}}, status=500)
    # normalize response
    detail = None
    if isinstance(resp.data, dict):
        detail = resp.data.get('detail') or resp.data
    else:
        detail = resp.data
    code = getattr(exc, 'default_code', None) or 'api_error'
    out = Response({'ok': False, 'error': {'code': code, 'message': detail}}, status=resp.status_code)
    for header in ('WWW-Authenticate', 'Retry-After'):
        if header in resp:
            out[header] = resp[header]
    return out
