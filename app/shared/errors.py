"""Domain errors raised by booking and payment services.

Each error carries the HTTP status the API responds with; main.py converts
them to JSON responses in a single exception handler.
"""


class BookingError(Exception):
    """Base class for errors surfaced to API callers"""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(BookingError):
    """Malformed or missing input"""

    status_code = 400


class InvalidAmount(ValidationError):
    """Payment amount is missing or not strictly positive"""


class SchedulingConflict(BookingError):
    """Requested interval overlaps an existing appointment"""

    status_code = 409


class NotFound(BookingError):
    status_code = 404


class Unauthorized(BookingError):
    """Actor is not a party to the appointment"""

    status_code = 403


class GatewayError(BookingError):
    """Payment gateway returned a non-2xx or malformed response"""

    status_code = 502


class SignatureError(BookingError):
    """Webhook signature missing or invalid"""

    status_code = 401
