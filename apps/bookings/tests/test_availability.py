from datetime import date, datetime, time, timedelta, timezone

import pytest

from shared.domain.value_objects import OperatingHours, TimeWindow
from apps.bookings.domain.availability import (
    NO_CONFLICT,
    check_conflict,
    compute_day_slots,
    free_windows,
)
from apps.bookings.domain.entities import BookingStatus, ResourceKind

DAY = date(2026, 3, 4)


def on_day(hour: int, minute: int = 0) -> datetime:
    return datetime.combine(DAY, time(hour, minute), tzinfo=timezone.utc)


@pytest.fixture
def room_booking(make_booking):
    # Resource R has a confirmed booking for [10:00, 11:00)
    return make_booking(resource_id="R", start=on_day(10), end=on_day(11))


class TestCheckConflict:
    def test_overlap_on_same_resource_conflicts(self, room_booking):
        result = check_conflict(TimeWindow(on_day(10, 30), on_day(11, 30)), [room_booking], resource_id="R")
        assert result.has_conflict
        assert result.conflicting_ids == [room_booking.id]

    def test_back_to_back_is_free(self, room_booking):
        result = check_conflict(TimeWindow(on_day(11), on_day(12)), [room_booking], resource_id="R")
        assert not result.has_conflict
        assert result is NO_CONFLICT

    def test_other_resource_never_conflicts(self, room_booking):
        result = check_conflict(TimeWindow(on_day(10, 30), on_day(11, 30)), [room_booking], resource_id="R2")
        assert not result

    @pytest.mark.parametrize(
        "status", [BookingStatus.CANCELLED, BookingStatus.COMPLETED, BookingStatus.NO_SHOW]
    )
    def test_finished_bookings_do_not_block(self, make_booking, status):
        booking = make_booking(resource_id="R", start=on_day(10), end=on_day(11), status=status)
        assert not check_conflict(TimeWindow(on_day(10), on_day(11)), [booking], resource_id="R")

    def test_pending_bookings_block(self, make_booking):
        booking = make_booking(resource_id="R", start=on_day(10), end=on_day(11), status=BookingStatus.PENDING)
        assert check_conflict(TimeWindow(on_day(10), on_day(11)), [booking], resource_id="R")

    def test_excluded_booking_is_ignored(self, room_booking):
        result = check_conflict(
            TimeWindow(on_day(10, 30), on_day(11, 30)),
            [room_booking],
            resource_id="R",
            exclude_id=room_booking.id,
        )
        assert not result.has_conflict

    def test_kind_filter(self, room_booking):
        result = check_conflict(
            TimeWindow(on_day(10), on_day(11)),
            [room_booking],
            resource_id="R",
            kind=ResourceKind.EQUIPMENT_RESERVATION,
        )
        assert not result.has_conflict

    def test_without_kind_matches_on_resource_id_alone(self, room_booking):
        result = check_conflict(TimeWindow(on_day(10), on_day(11)), [room_booking], resource_id="R")
        assert result.conflicting_ids == [room_booking.id]


class TestDaySlots:
    def test_default_partition(self, room_booking):
        slots = compute_day_slots("R", DAY, [room_booking])

        assert len(slots) == 16
        assert slots[0].start == on_day(9)
        assert slots[-1].end == on_day(17)
        busy = [slot.start for slot in slots if not slot.is_available]
        assert busy == [on_day(10), on_day(10, 30)]

    def test_bookings_of_other_resources_are_ignored(self, room_booking):
        slots = compute_day_slots("R2", DAY, [room_booking])
        assert all(slot.is_available for slot in slots)

    def test_partial_trailing_slot_is_dropped(self):
        slots = compute_day_slots("R", DAY, [], granularity=timedelta(minutes=45))
        assert len(slots) == 10
        assert slots[-1].end == on_day(16, 30)

    def test_custom_hours(self):
        hours = OperatingHours(time(8, 0), time(10, 0))
        slots = compute_day_slots("R", DAY, [], granularity=timedelta(hours=1), hours=hours)
        assert [slot.start for slot in slots] == [on_day(8), on_day(9)]

    def test_multi_day_booking_blocks_whole_day(self, make_booking):
        item = make_booking(
            kind=ResourceKind.EQUIPMENT_RESERVATION,
            resource_id="cam-7",
            start=on_day(0) - timedelta(days=1),
            end=on_day(0) + timedelta(days=2),
        )
        slots = compute_day_slots("cam-7", DAY, [item])
        assert not any(slot.is_available for slot in slots)

    def test_granularity_must_be_positive(self):
        with pytest.raises(ValueError):
            compute_day_slots("R", DAY, [], granularity=timedelta(0))

    def test_free_windows_merge_adjacent_slots(self, room_booking):
        windows = free_windows(compute_day_slots("R", DAY, [room_booking]))
        assert windows == [
            TimeWindow(on_day(9), on_day(10)),
            TimeWindow(on_day(11), on_day(17)),
        ]

    def test_free_windows_of_fully_booked_day(self, make_booking):
        booking = make_booking(resource_id="R", start=on_day(9), end=on_day(11))
        slots = compute_day_slots("R", DAY, [booking], hours=OperatingHours(time(9), time(11)))
        assert free_windows(slots) == []
