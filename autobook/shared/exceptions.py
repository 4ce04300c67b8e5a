"""Domain errors raised by the booking core and mapped to HTTP responses in main.py"""

from typing import Optional


class BookingError(Exception):
    """Base class for errors surfaced to API clients"""

    status_code = 500
    default_detail = "Internal error"

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class ValidationError(BookingError):
    """Malformed or missing input, reported per field"""

    status_code = 400
    default_detail = "Validation failed"

    def __init__(self, errors: list[dict], detail: Optional[str] = None):
        self.errors = errors
        super().__init__(detail)


class NotFoundError(BookingError):
    status_code = 404
    default_detail = "Not found"


class InvalidVariantError(NotFoundError):
    """Requested service variant does not exist"""

    default_detail = "Invalid service variant"


class ConflictError(BookingError):
    """
    The requested change collides with current state.

    For reservations this means the slot was taken (or is outside business
    hours) and the caller should look up availability again.
    """

    status_code = 409
    default_detail = "Conflict"


class AuthenticityError(BookingError):
    """Inbound payment event failed signature verification"""

    status_code = 401
    default_detail = "Invalid webhook signature"


class TransientStoreError(BookingError):
    """Store unavailable; nothing was committed so the operation can be retried"""

    status_code = 503
    default_detail = "Service temporarily unavailable, please retry"


class PaymentGatewayError(BookingError):
    status_code = 502
    default_detail = "Payment provider error"
