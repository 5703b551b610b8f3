"""
Booking State Machine

Legal status transitions for every resource kind. The three kinds share one
status vocabulary but not one transition set: checkout and return exist only
for equipment, and completing an equipment reservation requires the item to
be back.

Terminal states (CANCELLED, COMPLETED, NO_SHOW) have no outgoing transitions.
"""

from enum import Enum
from typing import Callable, Dict, List

from apps.bookings.domain.entities import Booking, BookingStatus, ResourceKind
from apps.bookings.domain.errors import IllegalTransition


class Action(Enum):
    APPROVE = 'approve'
    CANCEL = 'cancel'
    RESCHEDULE = 'reschedule'
    COMPLETE = 'complete'
    MARK_NO_SHOW = 'mark_no_show'
    CHECK_OUT = 'check_out'
    RETURN_ITEM = 'return_item'


# action -> {from_status: to_status}
TRANSITIONS: Dict[Action, Dict[BookingStatus, BookingStatus]] = {
    Action.APPROVE: {
        BookingStatus.PENDING: BookingStatus.CONFIRMED,
    },
    Action.CANCEL: {
        BookingStatus.PENDING: BookingStatus.CANCELLED,
        BookingStatus.CONFIRMED: BookingStatus.CANCELLED,
    },
    Action.RESCHEDULE: {
        BookingStatus.PENDING: BookingStatus.PENDING,
        BookingStatus.CONFIRMED: BookingStatus.CONFIRMED,
    },
    Action.COMPLETE: {
        BookingStatus.CONFIRMED: BookingStatus.COMPLETED,
    },
    Action.MARK_NO_SHOW: {
        BookingStatus.CONFIRMED: BookingStatus.NO_SHOW,
    },
    Action.CHECK_OUT: {
        BookingStatus.CONFIRMED: BookingStatus.CONFIRMED,
    },
    Action.RETURN_ITEM: {
        BookingStatus.CONFIRMED: BookingStatus.COMPLETED,
    },
}

EQUIPMENT_ONLY_ACTIONS = frozenset({Action.CHECK_OUT, Action.RETURN_ITEM})


def _equipment_guard(booking: Booking, action: Action) -> str | None:
    """Reason the action is refused for this equipment reservation, if any"""
    checked_out = booking.checked_out_at is not None
    returned = booking.returned_at is not None

    if action is Action.CHECK_OUT and checked_out:
        return "equipment is already checked out"
    if action is Action.RETURN_ITEM:
        if not checked_out:
            return "equipment was never checked out"
        if returned:
            return "equipment was already returned"
    if action is Action.COMPLETE and not returned:
        return "equipment has not been returned"
    if action is Action.MARK_NO_SHOW and checked_out:
        return "equipment was checked out"
    if action in (Action.CANCEL, Action.RESCHEDULE) and checked_out:
        return "equipment is already checked out"
    return None


def _no_guard(booking: Booking, action: Action) -> str | None:
    return None


GUARDS: Dict[ResourceKind, Callable[[Booking, Action], str | None]] = {
    ResourceKind.TUTOR_SESSION: _no_guard,
    ResourceKind.ROOM_BOOKING: _no_guard,
    ResourceKind.EQUIPMENT_RESERVATION: _equipment_guard,
}


def initial_status(auto_confirm: bool) -> BookingStatus:
    """Status of a freshly created booking"""
    return BookingStatus.CONFIRMED if auto_confirm else BookingStatus.PENDING


def _refusal(booking: Booking, action: Action) -> str | None:
    if booking.status.is_terminal:
        return f"booking is {booking.status.value} and cannot change any more"

    if action in EQUIPMENT_ONLY_ACTIONS and booking.kind is not ResourceKind.EQUIPMENT_RESERVATION:
        return f"{action.value} only applies to equipment reservations"

    if booking.status not in TRANSITIONS[action]:
        return f"{action.value} is not allowed from {booking.status.value}"

    return GUARDS[booking.kind](booking, action)


def transition(booking: Booking, action: Action) -> BookingStatus:
    """
    Target status of applying action to booking

    Raises:
        IllegalTransition: If the action is not legal from the booking's
            current status and kind
    """
    reason = _refusal(booking, action)
    if reason is not None:
        raise IllegalTransition(f"Cannot {action.value} booking {booking.id}: {reason}")
    return TRANSITIONS[action][booking.status]


def can_perform(booking: Booking, action: Action) -> bool:
    return _refusal(booking, action) is None


def allowed_actions(booking: Booking) -> List[Action]:
    """Actions legal from the booking's current state, ignoring deadlines"""
    return [action for action in Action if can_perform(booking, action)]
