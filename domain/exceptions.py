"""Domain Errors

Every rejected booking operation raises a subclass of BookingError. The
message is meant to be shown to an operator as-is.
"""


class BookingError(ValueError):
    """Base class for caller-visible booking failures"""

    code = "BOOKING_ERROR"
    status_code = 400

    def __init__(self, message: str, code: str = None, status_code: int = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code


class InvalidDateRange(BookingError):
    code = "INVALID_DATE_RANGE"

    def __init__(self, message: str = "Invalid date range: check-out must be after check-in"):
        super().__init__(message)


class CapacityExceeded(BookingError):
    code = "CAPACITY_EXCEEDED"

    def __init__(self, capacity: int):
        super().__init__(f"Chalet capacity is {capacity} guests")
        self.capacity = capacity


class InvalidGuestCount(BookingError):
    code = "INVALID_GUEST_COUNT"

    def __init__(self, message: str = "Guest count must be at least 1"):
        super().__init__(message)


class NotAvailable(BookingError):
    code = "CHALET_UNAVAILABLE"

    def __init__(self, message: str = "Chalet is not available"):
        super().__init__(message)


class UnitAlreadyBooked(BookingError):
    code = "NOT_AVAILABLE"
    status_code = 409

    def __init__(self, message: str = "Chalet is already booked for the selected dates"):
        super().__init__(message)


class InvalidTransition(BookingError):
    code = "INVALID_STATUS"

    def __init__(self, message: str, current_status=None):
        super().__init__(message)
        self.current_status = current_status


class CannotCancelCompleted(InvalidTransition):
    code = "CANNOT_CANCEL"

    def __init__(self, current_status=None):
        super().__init__("Cannot cancel a completed booking", current_status)


class AlreadyCancelled(InvalidTransition):
    code = "ALREADY_CANCELLED"

    def __init__(self, current_status=None):
        super().__init__("Booking is already cancelled", current_status)


class NotFound(BookingError):
    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, message: str = "Booking not found"):
        super().__init__(message)
