from django.utils.translation import gettext_lazy as _

from rest_framework import status
from rest_framework.exceptions import APIException


# Service Layer/Internal Errors
class SchedulingError(Exception):
    """Base exception for scheduling errors"""

    default_message = ""

    def __init__(self, message: str | None = None):
        if message is None:
            message = self.default_message
        super().__init__(message)


class BookingLookupError(SchedulingError):
    """Raised when existing bookings could not be read from storage"""

    default_message = "Existing appointments could not be loaded"


class SeriesNotFoundError(SchedulingError):
    default_message = "Appointment series not found"


class SeriesAlreadyDeletedError(SchedulingError):
    default_message = "Appointment series is already deleted"


class AppointmentAlreadyDeletedError(SchedulingError):
    default_message = "Appointment is already deleted"


# API Errors
class CollisionLookupUnavailable(APIException):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = _("Existing appointments could not be checked. Please try again.")
    default_code = "collision_lookup_unavailable"
