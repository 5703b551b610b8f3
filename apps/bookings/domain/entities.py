"""
Booking Domain Entities

Core business entities for the booking domain:
- ResourceKind: Which kind of campus resource a booking holds
- BookingStatus: FSM states for the booking lifecycle
- Booking: A reservation of a tutor, study room or equipment item
- *Extras: Kind-specific booking details
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum

from shared.domain.base import Entity, ValueObject
from shared.domain.value_objects import TimeWindow
from apps.bookings.domain.errors import InvalidBookingData


class ResourceKind(Enum):
    """Bookable resource kinds. Selects the policy row and transition rules."""
    TUTOR_SESSION = 'tutor'
    ROOM_BOOKING = 'room'
    EQUIPMENT_RESERVATION = 'equipment'

    @property
    def display_name(self) -> str:
        return _KIND_DISPLAY_NAMES[self]


_KIND_DISPLAY_NAMES = {
    ResourceKind.TUTOR_SESSION: 'Tutor Session',
    ResourceKind.ROOM_BOOKING: 'Study Room',
    ResourceKind.EQUIPMENT_RESERVATION: 'Equipment',
}


class BookingStatus(Enum):
    """
    Booking Status Finite State Machine

    State transitions:
    - PENDING -> CONFIRMED (approved)
    - PENDING -> CANCELLED (requester cancelled before approval)
    - CONFIRMED -> CANCELLED (requester cancelled before the lead time)
    - CONFIRMED -> COMPLETED (window elapsed and resource was used)
    - CONFIRMED -> NO_SHOW (window elapsed and resource was never used)

    Tutor sessions used to store 'scheduled' for their active state; it is
    the same state as CONFIRMED and is only accepted on input.
    """
    PENDING = 'pending'
    CONFIRMED = 'confirmed'
    CANCELLED = 'cancelled'
    COMPLETED = 'completed'
    NO_SHOW = 'no_show'

    @classmethod
    def parse(cls, value: 'str | BookingStatus') -> 'BookingStatus':
        """Parse a stored status value, folding legacy aliases"""
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().lower()
        normalized = _STATUS_ALIASES.get(normalized, normalized)
        return cls(normalized)

    @property
    def display_name(self) -> str:
        return self.value.replace('_', ' ').title()

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


_STATUS_ALIASES = {
    'scheduled': 'confirmed',
    'noshow': 'no_show',
    'no-show': 'no_show',
}

TERMINAL_STATUSES = frozenset({
    BookingStatus.CANCELLED,
    BookingStatus.COMPLETED,
    BookingStatus.NO_SHOW,
})

# Only these bookings hold their window against new requests
BLOCKING_STATUSES = frozenset({
    BookingStatus.PENDING,
    BookingStatus.CONFIRMED,
})


class EquipmentCondition(Enum):
    """Condition reported when an equipment item is returned"""
    EXCELLENT = 'excellent'
    GOOD = 'good'
    FAIR = 'fair'
    POOR = 'poor'


# ===== Kind-specific extras =====

@dataclass(frozen=True)
class TutorSessionExtras(ValueObject):
    subject: str
    notes: str | None = None
    meeting_link: str | None = None

    def __post_init__(self):
        if not self.subject or not self.subject.strip():
            raise InvalidBookingData("Tutor sessions require a subject")


@dataclass(frozen=True)
class RoomBookingExtras(ValueObject):
    attendees: int = 1
    purpose: str | None = None

    def __post_init__(self):
        if self.attendees < 1:
            raise InvalidBookingData("Attendees count must be at least 1")


@dataclass(frozen=True)
class EquipmentReservationExtras(ValueObject):
    purpose: str | None = None
    checked_out_at: datetime | None = None
    returned_at: datetime | None = None
    return_condition: EquipmentCondition | None = None
    notes: str | None = None

    def __post_init__(self):
        if self.returned_at is not None and self.checked_out_at is None:
            raise InvalidBookingData("Equipment cannot be returned before it was checked out")


BookingExtras = TutorSessionExtras | RoomBookingExtras | EquipmentReservationExtras

EXTRAS_BY_KIND = {
    ResourceKind.TUTOR_SESSION: TutorSessionExtras,
    ResourceKind.ROOM_BOOKING: RoomBookingExtras,
    ResourceKind.EQUIPMENT_RESERVATION: EquipmentReservationExtras,
}


def default_extras(kind: ResourceKind) -> BookingExtras:
    """Empty extras for a kind. Tutor sessions have no default (subject is required)."""
    if kind is ResourceKind.TUTOR_SESSION:
        raise InvalidBookingData("Tutor sessions require a subject")
    return EXTRAS_BY_KIND[kind]()


@dataclass(kw_only=True, eq=False)
class Booking(Entity):
    """
    Booking Entity

    One entity covers tutor sessions, room bookings and equipment
    reservations; `kind` tags which one it is and `extras` carries the
    kind-specific details.

    Key invariants:
    - window.start < window.end (enforced by TimeWindow)
    - extras always match the kind
    - status only changes through the lifecycle service, which hands back
      new Booking values instead of mutating the one it was given
    """

    resource_id: str
    requester_id: str
    kind: ResourceKind
    window: TimeWindow
    status: BookingStatus = BookingStatus.PENDING
    extras: BookingExtras | None = None

    # Cancellation details
    cancellation_reason: str | None = None
    cancelled_at: datetime | None = None

    def __post_init__(self):
        if not isinstance(self.window, TimeWindow):
            raise InvalidBookingData("Booking window must be a TimeWindow")

        if self.extras is None:
            self.extras = default_extras(self.kind)

        expected = EXTRAS_BY_KIND[self.kind]
        if not isinstance(self.extras, expected):
            raise InvalidBookingData(
                f"{self.kind.display_name} bookings take {expected.__name__}, "
                f"got {type(self.extras).__name__}"
            )

    def with_changes(self, now: datetime, **changes) -> 'Booking':
        """Copy of this booking with the given fields replaced and updated_at bumped"""
        return replace(self, updated_at=now, **changes)

    def with_extras(self, now: datetime, **changes) -> 'Booking':
        return self.with_changes(now, extras=replace(self.extras, **changes))

    # ===== Status predicates =====

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def blocks_availability(self) -> bool:
        """Only PENDING and CONFIRMED bookings block their window"""
        return self.status in BLOCKING_STATUSES

    def is_upcoming(self, now: datetime) -> bool:
        return self.status == BookingStatus.CONFIRMED and self.window.start > now

    def is_past(self, now: datetime) -> bool:
        return self.window.end < now

    # ===== Equipment predicates =====

    @property
    def is_equipment(self) -> bool:
        return self.kind is ResourceKind.EQUIPMENT_RESERVATION

    @property
    def checked_out_at(self) -> datetime | None:
        return self.extras.checked_out_at if self.is_equipment else None

    @property
    def returned_at(self) -> datetime | None:
        return self.extras.returned_at if self.is_equipment else None

    @property
    def is_active(self) -> bool:
        """Equipment is out with the requester right now"""
        return (
            self.is_equipment
            and self.status == BookingStatus.CONFIRMED
            and self.checked_out_at is not None
            and self.returned_at is None
        )

    @property
    def can_return(self) -> bool:
        return self.is_active

    def is_overdue(self, now: datetime) -> bool:
        """Confirmed equipment whose window has ended and that has not come back"""
        return (
            self.is_equipment
            and self.status == BookingStatus.CONFIRMED
            and self.window.end < now
            and self.returned_at is None
        )

    # ===== Policy predicates =====

    def _lead_time_satisfied(self, now: datetime) -> bool:
        # Import here to avoid circular dependency
        from apps.bookings.domain.policies import policy_for

        return policy_for(self.kind).lead_time_satisfied(self.window.start, now)

    def can_cancel(self, now: datetime) -> bool:
        from apps.bookings.domain.state_machine import Action, can_perform

        return can_perform(self, Action.CANCEL) and self._lead_time_satisfied(now)

    def can_reschedule(self, now: datetime) -> bool:
        from apps.bookings.domain.state_machine import Action, can_perform

        return can_perform(self, Action.RESCHEDULE) and self._lead_time_satisfied(now)

    def __str__(self):
        return f"{self.kind.display_name} {self.id} ({self.status.value})"

    def __repr__(self):
        return (
            f"Booking(id={self.id}, kind={self.kind.value}, resource_id={self.resource_id}, "
            f"status={self.status.value}, window={self.window!r})"
        )
