"""Enumerations shared by the API validation layer and the services."""

PRIORITY_LEVELS = ('CRITICAL', 'HIGH', 'MEDIUM', 'LOW')

BOOKING_TYPE_IPD = 'IPD'
BOOKING_STATUS_CONFIRMED = 'CONFIRMED'
BOOKING_STATUS_COMPLETED = 'COMPLETED'

TIMELINE_BOOKING = 'booking'
TIMELINE_PRESCRIPTION = 'prescription'
TIMELINE_DOCUMENT = 'document'
TIMELINE_CONSULTATION = 'consultation'
TIMELINE_TYPES = (
    TIMELINE_BOOKING,
    TIMELINE_PRESCRIPTION,
    TIMELINE_DOCUMENT,
    TIMELINE_CONSULTATION,
)

EXPORT_FORMATS = ('csv', 'pdf')

# ``locationId=all`` is what the dashboard sends for "every branch"
ALL_LOCATIONS = 'all'
