"""
Custom exceptions for the booking engine.
Raised in engine.py and caught in the dashboard views, which report them to
the operator. Every refusal is raised before anything is written (or inside
the transaction that rolls back), so a refused operation changes nothing.
"""


class BookingEngineError(Exception):
    """Base exception for all booking engine errors."""
    code = 'booking_error'


class CapacityExceeded(BookingEngineError):
    """Raised when an exam date already holds the maximum number of students."""
    code = 'capacity_exceeded'


class MonthlyLimitReached(CapacityExceeded):
    """Raised when activating a new exam date would exceed the month's cap."""
    code = 'monthly_limit_reached'


class SameDate(BookingEngineError):
    """Raised when a whole session is moved onto its own date."""
    code = 'same_date'


class Cooldown(BookingEngineError):
    """Raised when a waiting-list entry is booked before its cooldown ends."""
    code = 'cooldown'

    def __init__(self, message, can_book_after=None):
        super().__init__(message)
        self.can_book_after = can_book_after


class PossibleDuplicate(BookingEngineError):
    """
    Advisory: a student with the same name is already booked somewhere.
    The caller repeats the request with confirmation to proceed anyway.
    """
    code = 'possible_duplicate'

    def __init__(self, message, matches=()):
        super().__init__(message)
        self.matches = list(matches)


class NotFound(BookingEngineError):
    """Raised when a booking, session or waiting-list entry id does not exist."""
    code = 'not_found'


class ValidationFailed(BookingEngineError):
    """Raised when an operation argument is outside its allowed range."""
    code = 'invalid'


class InvalidDate(ValidationFailed):
    """Raised when a retry date lies in the past."""
    pass


class InvalidFailCount(ValidationFailed):
    """Raised when a fail count override is outside 0..MAX_FAIL_COUNT."""
    pass


class InvalidLimit(ValidationFailed):
    """Raised when a monthly limit is negative."""
    pass
