"""
Booking Domain Errors

Rule violations raised by the booking domain. The lifecycle service turns
them into rejected decisions; they only escape as exceptions through
Decision.unwrap().
"""

from shared.domain.errors import DomainError, InvalidWindow

__all__ = [
    'DomainError',
    'InvalidWindow',
    'DurationOutOfRange',
    'SlotConflict',
    'IllegalTransition',
    'PastCancellationDeadline',
    'InvalidBookingData',
]


class DurationOutOfRange(DomainError):
    """Booking duration is below the minimum or above the maximum for its kind"""

    code = 'duration_out_of_range'


class SlotConflict(DomainError):
    """Candidate window overlaps another live booking of the same resource"""

    code = 'slot_conflict'

    def __init__(self, message: str = '', conflicting_ids=()):
        super().__init__(message)
        self.conflicting_ids = list(conflicting_ids)

    def to_dict(self) -> dict:
        data = super().to_dict()
        data['conflicting_ids'] = [str(booking_id) for booking_id in self.conflicting_ids]
        return data


class IllegalTransition(DomainError):
    """Requested status change is not permitted from the current state"""

    code = 'illegal_transition'


class PastCancellationDeadline(DomainError):
    """Lead time before the booking start is no longer satisfied"""

    code = 'past_cancellation_deadline'


class InvalidBookingData(DomainError):
    """Kind-specific extras are missing or malformed"""

    code = 'invalid_booking_data'
