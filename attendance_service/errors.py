"""
Error types raised by the attendance core and its stores.

No-match is deliberately absent: it is a normal outcome, not an error.
"""


class AttendanceError(Exception):
    """Base class for attendance service errors."""


class ValidationError(AttendanceError):
    """Malformed or missing input supplied by the caller."""


class LengthMismatchError(AttendanceError):
    """Two descriptors of different length were compared."""
    
    def __init__(self, expected: int, actual: int):
        super().__init__(
            f'Face descriptor arrays must have the same length ({expected} != {actual})'
        )
        self.expected = expected
        self.actual = actual


class TooSoonError(AttendanceError):
    """Check-out attempted before the minimum dwell time elapsed."""
    
    def __init__(self, minutes_remaining: float):
        super().__init__(
            f'Check-out not allowed yet, {minutes_remaining:.1f} minutes remaining'
        )
        self.minutes_remaining = minutes_remaining


class StoreUnavailable(AttendanceError):
    """A backing store failed; the request may be retried."""


class DuplicateEmailError(AttendanceError):
    """An identity with this email is already enrolled."""
    
    def __init__(self, email: str):
        super().__init__(f'User with email {email} already exists')
        self.email = email
