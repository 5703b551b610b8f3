"""
Booking History Projections

Read-side views over bookings for the requester's mixed history feed and
dashboard. A feed entry is computed from the booking's kind tag by plain
functions; the kinds do not share a class hierarchy.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Dict, Iterable, List
from uuid import UUID

from shared.domain.value_objects import TimeWindow
from apps.bookings.domain.entities import Booking, BookingStatus, ResourceKind


@dataclass(frozen=True)
class FeedEntry:
    booking_id: UUID
    kind: ResourceKind
    title: str
    subtitle: str
    window: TimeWindow
    status: BookingStatus
    status_label: str


@dataclass(frozen=True)
class BookingSummary:
    upcoming_count: int = 0
    completed_count: int = 0
    cancelled_count: int = 0
    upcoming: List[FeedEntry] = field(default_factory=list)


def display_label(status: BookingStatus, kind: ResourceKind) -> str:
    """Status label shown to users; confirmed tutor sessions read 'Scheduled'"""
    if kind is ResourceKind.TUTOR_SESSION and status == BookingStatus.CONFIRMED:
        return 'Scheduled'
    return status.display_name


def _tutor_lines(booking: Booking, resource_name: str | None) -> tuple[str, str]:
    subtitle = f"with {resource_name}" if resource_name else booking.kind.display_name
    return booking.extras.subject, subtitle


def _room_lines(booking: Booking, resource_name: str | None) -> tuple[str, str]:
    attendees = booking.extras.attendees
    subtitle = f"{attendees} attendee{'s' if attendees != 1 else ''}"
    return resource_name or booking.kind.display_name, subtitle


def _equipment_lines(booking: Booking, resource_name: str | None) -> tuple[str, str]:
    return resource_name or booking.kind.display_name, booking.extras.purpose or booking.kind.display_name


_LINES: Dict[ResourceKind, Callable[[Booking, str | None], tuple[str, str]]] = {
    ResourceKind.TUTOR_SESSION: _tutor_lines,
    ResourceKind.ROOM_BOOKING: _room_lines,
    ResourceKind.EQUIPMENT_RESERVATION: _equipment_lines,
}


def project(booking: Booking, resource_name: str | None = None) -> FeedEntry:
    """Feed entry for a booking; resource_name is the tutor, room or item name if known"""
    title, subtitle = _LINES[booking.kind](booking, resource_name)
    return FeedEntry(
        booking_id=booking.id,
        kind=booking.kind,
        title=title,
        subtitle=subtitle,
        window=booking.window,
        status=booking.status,
        status_label=display_label(booking.status, booking.kind),
    )


def history_feed(
    bookings: Iterable[Booking],
    resource_names: Dict[str, str] | None = None,
) -> List[FeedEntry]:
    """Mixed history, most recent start first"""
    names = resource_names or {}
    entries = [project(booking, names.get(booking.resource_id)) for booking in bookings]
    return sorted(entries, key=lambda entry: entry.window.start, reverse=True)


def summarize(bookings: Iterable[Booking], now: datetime) -> BookingSummary:
    """Dashboard counters plus upcoming bookings, soonest first"""
    bookings = list(bookings)
    upcoming = sorted(
        (booking for booking in bookings if booking.is_upcoming(now)),
        key=lambda booking: booking.window.start,
    )
    return BookingSummary(
        upcoming_count=len(upcoming),
        completed_count=sum(1 for b in bookings if b.status == BookingStatus.COMPLETED),
        cancelled_count=sum(1 for b in bookings if b.status == BookingStatus.CANCELLED),
        upcoming=[project(booking) for booking in upcoming],
    )


def due_for_reminder(
    bookings: Iterable[Booking],
    now: datetime,
    lead: timedelta = timedelta(hours=1),
) -> List[Booking]:
    """Confirmed bookings starting within (now, now + lead]"""
    horizon = now + lead
    return sorted(
        (
            booking for booking in bookings
            if booking.status == BookingStatus.CONFIRMED and now < booking.window.start <= horizon
        ),
        key=lambda booking: booking.window.start,
    )
