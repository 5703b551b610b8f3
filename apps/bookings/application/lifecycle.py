"""
Booking Lifecycle Service

The entry point the persistence/API layer and the presentation layer call
into. Each operation consults the state machine, the policy table and the
availability resolver and hands back a Decision: the new Booking value
plus the events to publish, or the rule that was violated.

Operations:
- create: Book a resource for a window
- approve: Confirm a PENDING booking
- cancel: Cancel before the kind's lead time
- reschedule: Move a booking to a new window under the same id
- check_out / return_item: Equipment hand-over
- expire_sweep: Resolve bookings whose window has elapsed

The service performs no I/O and keeps no state besides its configuration.
Callers must serialize decisions per resource id (see availability module).
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from functools import wraps
from typing import Callable, Iterable, List, Mapping, Sequence
from uuid import uuid4
import logging

from django.utils import timezone  # type: ignore

from shared.domain.base import DomainEvent
from shared.domain.errors import DomainError, InvalidWindow
from shared.domain.value_objects import TimeWindow
from apps.bookings import conf
from apps.bookings.domain.availability import DaySlot, check_conflict, compute_day_slots
from apps.bookings.domain.entities import (
    EXTRAS_BY_KIND,
    Booking,
    BookingExtras,
    BookingStatus,
    EquipmentCondition,
    ResourceKind,
)
from apps.bookings.domain.errors import (
    InvalidBookingData,
    PastCancellationDeadline,
    SlotConflict,
)
from apps.bookings.domain.events import (
    BookingApproved,
    BookingCancelled,
    BookingCompleted,
    BookingCreated,
    BookingMarkedNoShow,
    BookingRescheduled,
    EquipmentCheckedOut,
    EquipmentReturned,
)
from apps.bookings.domain.policies import policy_for
from apps.bookings.domain.state_machine import Action, initial_status, transition

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Decision:
    """
    Outcome of a lifecycle operation

    Exactly one of booking / error is set. Events are only produced for
    accepted decisions and must be published after the booking is saved.
    """
    booking: Booking | None = None
    error: DomainError | None = None
    events: List[DomainEvent] = field(default_factory=list)

    @classmethod
    def accept(cls, booking: Booking, *events: DomainEvent) -> 'Decision':
        return cls(booking=booking, events=list(events))

    @classmethod
    def reject(cls, error: DomainError) -> 'Decision':
        return cls(error=error)

    @property
    def accepted(self) -> bool:
        return self.error is None

    @property
    def error_code(self) -> str | None:
        return self.error.code if self.error else None

    def unwrap(self) -> Booking:
        """Return the booking or raise the rule violation"""
        if self.error is not None:
            raise self.error
        return self.booking


@dataclass(frozen=True)
class SweepReport:
    """
    Result of expire_sweep

    resolved holds every booking the sweep moved to a terminal status.
    overdue holds checked-out equipment whose window ended and that has not
    come back; it is unchanged and stays CONFIRMED until return_item.
    """
    resolved: List[Booking] = field(default_factory=list)
    overdue: List[Booking] = field(default_factory=list)
    events: List[DomainEvent] = field(default_factory=list)

    @property
    def bookings(self) -> List[Booking]:
        return self.resolved + self.overdue


def decision(operation: Callable[..., Decision]) -> Callable[..., Decision]:
    """Turn rule violations raised by an operation into rejected decisions"""

    @wraps(operation)
    def wrapper(self, *args, **kwargs) -> Decision:
        try:
            result = operation(self, *args, **kwargs)
        except DomainError as e:
            logger.info(f"Rejected {operation.__name__}: {e.code} ({e.message})")
            return Decision.reject(e)

        logger.info(
            f"Accepted {operation.__name__} for booking {result.booking.id} "
            f"({result.booking.status.value})"
        )
        return result

    return wrapper


class BookingLifecycleService:
    """
    Booking lifecycle orchestration

    auto_confirm decides whether new bookings start CONFIRMED (the campus
    default) or PENDING, waiting for approve() on admin-gated resources.
    """

    def __init__(self, auto_confirm: bool = True, clock: Callable[[], datetime] | None = None):
        self.auto_confirm = auto_confirm
        self._clock = clock or timezone.now

    @classmethod
    def from_settings(cls) -> 'BookingLifecycleService':
        return cls(auto_confirm=conf.auto_confirm())

    def _now(self, now: datetime | None) -> datetime:
        return now if now is not None else self._clock()

    # ===== Create =====

    @decision
    def create(
        self,
        kind: ResourceKind,
        resource_id: str,
        requester_id: str,
        window: TimeWindow | Sequence[datetime],
        extras: BookingExtras | Mapping | None = None,
        existing: Iterable[Booking] = (),
        now: datetime | None = None,
    ) -> Decision:
        """
        Create a booking after duration and availability checks

        existing are the current bookings of the resource, as read by the
        caller. Rejections: InvalidWindow, InvalidBookingData,
        DurationOutOfRange, SlotConflict.
        """
        now = self._now(now)
        window = _as_window(window)
        extras = _as_extras(kind, extras)

        policy_for(kind).check_duration(window)
        _ensure_available(window, existing, resource_id, kind)

        booking = Booking(
            id=uuid4(),
            resource_id=resource_id,
            requester_id=requester_id,
            kind=kind,
            window=window,
            status=initial_status(self.auto_confirm),
            extras=extras,
            created_at=now,
            updated_at=now,
        )

        return Decision.accept(booking, BookingCreated(
            aggregate_id=booking.id,
            booking_id=booking.id,
            resource_id=resource_id,
            kind=kind,
            requester_id=requester_id,
            window=window,
            status=booking.status,
        ))

    # ===== Transitions =====

    @decision
    def approve(self, booking: Booking, now: datetime | None = None) -> Decision:
        """Approve a PENDING booking (PENDING -> CONFIRMED)"""
        now = self._now(now)
        status = transition(booking, Action.APPROVE)
        updated = booking.with_changes(now, status=status)
        return Decision.accept(updated, BookingApproved(**_event_refs(updated)))

    @decision
    def cancel(self, booking: Booking, now: datetime | None = None, reason: str | None = None) -> Decision:
        """
        Cancel a PENDING or CONFIRMED booking

        Rejections: IllegalTransition for terminal bookings,
        PastCancellationDeadline once less than the kind's lead time remains.
        """
        now = self._now(now)
        status = transition(booking, Action.CANCEL)
        _ensure_lead_time(booking, now, 'cancel')

        updated = booking.with_changes(
            now,
            status=status,
            cancellation_reason=reason,
            cancelled_at=now,
        )
        return Decision.accept(updated, BookingCancelled(
            **_event_refs(updated),
            reason=reason,
            old_status=booking.status.value,
        ))

    @decision
    def reschedule(
        self,
        booking: Booking,
        new_window: TimeWindow | Sequence[datetime],
        existing: Iterable[Booking] = (),
        now: datetime | None = None,
    ) -> Decision:
        """
        Move a booking to a new window, keeping its id, resource and status

        Checked in order: state, lead time against the original start,
        duration of the new window, conflicts with the resource's other
        bookings (this booking excluded).
        """
        now = self._now(now)
        status = transition(booking, Action.RESCHEDULE)
        new_window = _as_window(new_window)

        _ensure_lead_time(booking, now, 'reschedule')
        policy_for(booking.kind).check_duration(new_window)
        _ensure_available(new_window, existing, booking.resource_id, booking.kind, exclude=booking)

        updated = booking.with_changes(now, window=new_window, status=status)
        return Decision.accept(updated, BookingRescheduled(
            **_event_refs(updated),
            old_window=booking.window,
            new_window=new_window,
        ))

    @decision
    def check_out(self, reservation: Booking, now: datetime | None = None) -> Decision:
        """Hand a CONFIRMED equipment reservation to its requester"""
        now = self._now(now)
        status = transition(reservation, Action.CHECK_OUT)
        updated = reservation.with_extras(now, checked_out_at=now).with_changes(now, status=status)
        return Decision.accept(updated, EquipmentCheckedOut(
            **_event_refs(updated),
            checked_out_at=now,
        ))

    @decision
    def return_item(
        self,
        reservation: Booking,
        now: datetime | None = None,
        condition: EquipmentCondition = EquipmentCondition.GOOD,
        notes: str | None = None,
    ) -> Decision:
        """Take checked-out equipment back (CONFIRMED -> COMPLETED)"""
        now = self._now(now)
        status = transition(reservation, Action.RETURN_ITEM)
        try:
            condition = EquipmentCondition(condition)
        except ValueError as e:
            raise InvalidBookingData(f"Unknown equipment condition {condition!r}") from e

        changes = {'returned_at': now, 'return_condition': condition}
        if notes is not None:
            changes['notes'] = notes
        updated = reservation.with_extras(now, **changes).with_changes(now, status=status)

        return Decision.accept(updated, EquipmentReturned(
            **_event_refs(updated),
            returned_at=now,
            condition=condition,
        ))

    # ===== Sweep =====

    def sweep(self, bookings: Iterable[Booking], now: datetime | None = None) -> SweepReport:
        """
        Resolve CONFIRMED bookings whose window ended before now

        - tutor sessions and rooms are assumed used: COMPLETED
        - checked-out equipment not yet returned: left CONFIRMED, reported
          overdue, no event
        - equipment never checked out: NO_SHOW

        PENDING bookings are left to the approval workflow.
        """
        now = self._now(now)
        resolved: List[Booking] = []
        overdue: List[Booking] = []
        events: List[DomainEvent] = []

        for booking in bookings:
            if booking.status != BookingStatus.CONFIRMED or not booking.window.end < now:
                continue

            if booking.is_overdue(now) and booking.checked_out_at is not None:
                overdue.append(booking)
                continue

            if booking.is_equipment and booking.checked_out_at is None:
                status = transition(booking, Action.MARK_NO_SHOW)
                event_type = BookingMarkedNoShow
            else:
                status = transition(booking, Action.COMPLETE)
                event_type = BookingCompleted

            updated = booking.with_changes(now, status=status)
            resolved.append(updated)
            events.append(event_type(**_event_refs(updated)))

        logger.info(
            f"Sweep at {now.isoformat()}: {len(resolved)} resolved, {len(overdue)} overdue"
        )
        return SweepReport(resolved=resolved, overdue=overdue, events=events)

    def expire_sweep(self, bookings: Iterable[Booking], now: datetime | None = None) -> List[Booking]:
        """Resolved bookings followed by the overdue equipment, unchanged"""
        return self.sweep(bookings, now).bookings

    # ===== Availability =====

    def day_slots(
        self,
        resource_id: str,
        day: date,
        existing: Iterable[Booking],
        kind: ResourceKind | None = None,
    ) -> List[DaySlot]:
        """Day slots using the configured granularity, hours and current time zone"""
        return compute_day_slots(
            resource_id,
            day,
            existing,
            granularity=conf.slot_granularity(),
            hours=conf.operating_hours(),
            tz=timezone.get_current_timezone(),
            kind=kind,
        )


# ===== Helpers =====

def _as_window(value: TimeWindow | Sequence[datetime]) -> TimeWindow:
    if isinstance(value, TimeWindow):
        return value
    try:
        start, end = value
    except (TypeError, ValueError) as e:
        raise InvalidWindow(f"Expected a (start, end) pair, got {value!r}") from e
    return TimeWindow(start, end)


def _as_extras(kind: ResourceKind, extras: BookingExtras | Mapping | None) -> BookingExtras | None:
    if extras is None or not isinstance(extras, Mapping):
        return extras
    try:
        return EXTRAS_BY_KIND[kind](**extras)
    except TypeError as e:
        raise InvalidBookingData(f"Invalid {kind.display_name} details: {e}") from e


def _ensure_available(
    window: TimeWindow,
    existing: Iterable[Booking],
    resource_id: str,
    kind: ResourceKind,
    exclude: Booking | None = None,
) -> None:
    result = check_conflict(
        window,
        existing,
        resource_id=resource_id,
        kind=kind,
        exclude_id=exclude.id if exclude else None,
    )
    if result.has_conflict:
        raise SlotConflict(
            f"{kind.display_name} {resource_id} is not available for {window}. "
            f"Found {len(result.conflicts)} overlapping booking(s).",
            conflicting_ids=result.conflicting_ids,
        )


def _ensure_lead_time(booking: Booking, now: datetime, action: str) -> None:
    policy = policy_for(booking.kind)
    if not policy.lead_time_satisfied(booking.window.start, now):
        raise PastCancellationDeadline(
            f"Cannot {action} booking {booking.id}: deadline was "
            f"{policy.cancellation_deadline(booking.window.start).isoformat()}"
        )


def _event_refs(booking: Booking) -> dict:
    return {
        'aggregate_id': booking.id,
        'booking_id': booking.id,
        'resource_id': booking.resource_id,
        'kind': booking.kind,
    }
