from datetime import datetime, timedelta, timezone

import pytest

from shared.domain.value_objects import TimeWindow
from apps.bookings.application.lifecycle import BookingLifecycleService
from apps.bookings.domain.entities import (
    Booking,
    BookingStatus,
    EquipmentReservationExtras,
    ResourceKind,
    RoomBookingExtras,
    TutorSessionExtras,
)

NOW = datetime(2026, 3, 2, 8, 0, tzinfo=timezone.utc)


def at(hour: int, minute: int = 0, days: int = 0) -> datetime:
    """Aware instant on the reference day (2026-03-02), shifted by days"""
    return NOW.replace(hour=hour, minute=minute) + timedelta(days=days)


def default_extras_for(kind: ResourceKind):
    if kind is ResourceKind.TUTOR_SESSION:
        return TutorSessionExtras(subject="Linear Algebra")
    if kind is ResourceKind.ROOM_BOOKING:
        return RoomBookingExtras(attendees=3, purpose="Group study")
    return EquipmentReservationExtras(purpose="Field recording")


@pytest.fixture
def now():
    return NOW


@pytest.fixture(name="at")
def at_fixture():
    return at


@pytest.fixture
def service():
    return BookingLifecycleService(auto_confirm=True, clock=lambda: NOW)


@pytest.fixture
def make_booking():
    def factory(
        kind: ResourceKind = ResourceKind.ROOM_BOOKING,
        start: datetime | None = None,
        end: datetime | None = None,
        resource_id: str = "room-101",
        requester_id: str = "student-1",
        status: BookingStatus = BookingStatus.CONFIRMED,
        extras=None,
    ) -> Booking:
        start = start or at(10, days=2)
        end = end or start + timedelta(hours=1)
        return Booking(
            resource_id=resource_id,
            requester_id=requester_id,
            kind=kind,
            window=TimeWindow(start, end),
            status=status,
            extras=extras if extras is not None else default_extras_for(kind),
            created_at=NOW,
            updated_at=NOW,
        )

    return factory
