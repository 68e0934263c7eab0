"""Typed rejections raised by SmartPackage booking operations.

Every rejection carries a stable ``code`` the client switches on, a
human ``message``, optional ``data`` for rendering expected/actual
comparisons, and the HTTP status the JSON views answer with.
"""


class BookingError(Exception):
    code = "BOOKING_ERROR"
    status = 400
    default_message = "The booking operation could not be completed."

    def __init__(self, message=None, *, code=None, data=None):
        self.message = message or self.default_message
        if code is not None:
            self.code = code
        self.data = data
        super().__init__(self.message)

    def as_dict(self):
        return {
            "success": False,
            "code": self.code,
            "message": self.message,
            "data": self.data,
        }


class BookingValidationError(BookingError):
    """Missing or malformed input. Nothing was written."""

    code = "VALIDATION_ERROR"
    default_message = "Required booking fields are missing."


class InvalidTransition(BookingError):
    """The booking's current status does not allow the requested event."""

    code = "INVALID_TRANSITION"
    status = 409

    def __init__(
        self, current_status, event, allowed=(), message=None, code=None
    ):
        self.current_status = current_status
        self.event = event
        self.allowed = list(allowed)
        super().__init__(
            message
            or (
                f"Cannot {event.replace('_', ' ')} a booking in status "
                f"'{current_status}'."
            ),
            data={
                "is_status": current_status,
                "event": event,
                "allowed_events": self.allowed,
            },
            code=code,
        )


class ScanRejected(BookingError):
    """A scan failed a business rule; reported in-band to the scanner."""

    code = "SCAN_REJECTED"
    status = 200
    default_message = "Scan rejected."


class BookingNotFound(BookingError):
    code = "NOT_FOUND"
    status = 404
    default_message = "Booking not found."


class CapabilityRequired(BookingError):
    code = "FORBIDDEN"
    status = 403
    default_message = "You do not have permission to perform this action."
