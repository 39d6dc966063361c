"""
Booking Admission Errors

Every failure the admission service can report is a typed exception with a
stable ``code``. Controllers map classes to HTTP statuses; the service itself
never formats, logs or retries.
"""


class AdmissionError(Exception):
    """Base class for booking admission failures"""
    code = 'admission_error'
    default_message = 'Booking could not be processed.'

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationFailed(AdmissionError):
    """Malformed or inadmissible input (shape, time, party size, requester)"""
    code = 'validation_failed'
    default_message = 'Invalid booking request.'


class NotFound(AdmissionError):
    code = 'not_found'
    default_message = 'Not found.'


class Forbidden(AdmissionError):
    """Requester does not own the booking or resource"""
    code = 'forbidden'
    default_message = 'You are not allowed to access this booking.'


class CapacityExceeded(AdmissionError):
    code = 'capacity_exceeded'
    default_message = 'Party size exceeds the resource capacity.'


class OutsideOperatingHours(AdmissionError):
    code = 'outside_operating_hours'
    default_message = 'Requested time is outside operating hours.'


class SlotUnavailable(AdmissionError):
    """
    An active booking already holds the requested time

    Callers may retry with a different slot.
    """
    code = 'slot_unavailable'
    default_message = 'The requested time is already booked.'


class Conflict(AdmissionError):
    """
    A concurrent mutation was detected

    The whole operation may be retried.
    """
    code = 'conflict'
    default_message = 'The booking was modified concurrently, please retry.'


class AlreadyCancelled(AdmissionError):
    code = 'already_cancelled'
    default_message = 'Booking is already cancelled.'


class Internal(AdmissionError):
    """Booking store unavailable or failing"""
    code = 'internal'
    default_message = 'Booking store error.'
