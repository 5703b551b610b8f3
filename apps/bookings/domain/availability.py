"""
Availability Resolver

Decides whether a candidate window can be booked against a resource's
existing bookings and breaks a day into free/busy slots.

Only PENDING and CONFIRMED bookings hold their window; cancelled, completed
and no-show bookings never block. Bookings of other resources never
conflict.

The resolver is a pure function of its inputs. Callers must make sure no
other booking decision for the same resource runs between reading the
existing bookings and persisting the result (per-resource lock or a
conditional write), otherwise two requests can both see a free slot.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Iterable, List
from uuid import UUID

from shared.domain.value_objects import OperatingHours, TimeWindow
from apps.bookings.domain.entities import Booking, ResourceKind

DEFAULT_GRANULARITY = timedelta(minutes=30)
DEFAULT_OPERATING_HOURS = OperatingHours(time(9, 0), time(17, 0))


@dataclass(frozen=True)
class ConflictResult:
    """Outcome of a conflict check, with the bookings that overlap"""
    conflicts: List[Booking] = field(default_factory=list)

    @property
    def has_conflict(self) -> bool:
        return bool(self.conflicts)

    @property
    def conflicting_ids(self) -> List[UUID]:
        return [booking.id for booking in self.conflicts]

    def __bool__(self):
        return self.has_conflict


NO_CONFLICT = ConflictResult()


@dataclass(frozen=True)
class DaySlot:
    window: TimeWindow
    is_available: bool

    @property
    def start(self) -> datetime:
        return self.window.start

    @property
    def end(self) -> datetime:
        return self.window.end


def blocking_bookings(
    existing: Iterable[Booking],
    resource_id: str | None = None,
    kind: ResourceKind | None = None,
    exclude_id: UUID | None = None,
) -> List[Booking]:
    """
    Bookings that hold their window for the given resource

    resource_id and kind narrow the set when given; exclude_id drops the
    booking being rescheduled so it does not conflict with itself.
    """
    return [
        booking for booking in existing
        if booking.blocks_availability()
        and (resource_id is None or booking.resource_id == resource_id)
        and (kind is None or booking.kind is kind)
        and (exclude_id is None or booking.id != exclude_id)
    ]


def check_conflict(
    candidate: TimeWindow,
    existing: Iterable[Booking],
    resource_id: str | None = None,
    kind: ResourceKind | None = None,
    exclude_id: UUID | None = None,
) -> ConflictResult:
    """
    Check candidate against the live bookings of one resource

    A resource is identified by resource_id together with kind: ids are only
    unique within a kind, so a tutor and a room may share an id without
    blocking each other. Pass kind=None to match on resource_id alone.
    """
    overlapping = [
        booking for booking in blocking_bookings(existing, resource_id, kind, exclude_id)
        if booking.window.overlaps(candidate)
    ]
    if not overlapping:
        return NO_CONFLICT
    return ConflictResult(conflicts=overlapping)


def compute_day_slots(
    resource_id: str,
    day: date,
    existing: Iterable[Booking],
    granularity: timedelta = DEFAULT_GRANULARITY,
    hours: OperatingHours = DEFAULT_OPERATING_HOURS,
    tz: tzinfo = timezone.utc,
    kind: ResourceKind | None = None,
) -> List[DaySlot]:
    """
    Partition a day's operating hours into granularity-sized slots

    Slots start at opening time and step by granularity; a trailing slot
    that would run past closing time is dropped. A slot is unavailable if it
    overlaps any live booking of the resource.
    """
    if granularity <= timedelta(0):
        raise ValueError(f"Slot granularity must be positive, got {granularity}")

    day_window = hours.window_on(day, tz)
    live = [
        booking for booking in blocking_bookings(existing, resource_id, kind)
        if booking.window.overlaps(day_window)
    ]

    slots = []
    current = day_window.start
    while current + granularity <= day_window.end:
        window = TimeWindow(current, current + granularity)
        busy = any(booking.window.overlaps(window) for booking in live)
        slots.append(DaySlot(window=window, is_available=not busy))
        current += granularity

    return slots


def free_windows(slots: Iterable[DaySlot]) -> List[TimeWindow]:
    """Merge consecutive available slots into maximal free windows"""
    merged: List[TimeWindow] = []
    run_start = run_end = None

    for slot in slots:
        if slot.is_available and run_end is not None and slot.start == run_end:
            run_end = slot.end
            continue
        if run_start is not None:
            merged.append(TimeWindow(run_start, run_end))
            run_start = run_end = None
        if slot.is_available:
            run_start, run_end = slot.start, slot.end

    if run_start is not None:
        merged.append(TimeWindow(run_start, run_end))

    return merged
