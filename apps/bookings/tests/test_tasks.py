import pytest

from shared.application.message_bus import message_bus
from apps.bookings.domain.entities import EquipmentReservationExtras, ResourceKind
from apps.bookings.domain.events import BookingCompleted, BookingEvent
from apps.bookings.serializers import bookings_to_payload
from apps.bookings.tasks import collect_reminders, expire_sweep


@pytest.fixture
def published():
    received = []
    message_bus.register_event_handler(BookingEvent, received.append)
    yield received
    message_bus.clear()

class TestExpireSweep:
    def test_resolves_and_publishes(self, make_booking, at, now, published):
        room = make_booking(start=at(6), end=at(7))
        item = make_booking(
            kind=ResourceKind.EQUIPMENT_RESERVATION,
            resource_id="cam-7",
            start=at(5),
            end=at(7),
            extras=EquipmentReservationExtras(checked_out_at=at(5)),
        )
        upcoming = make_booking()

        result = expire_sweep(bookings_to_payload([room, item, upcoming]), now=now.isoformat())

        assert [b["id"] for b in result["resolved"]] == [str(room.id)]
        assert result["resolved"][0]["status"] == "completed"
        assert [b["id"] for b in result["overdue"]] == [str(item.id)]
        assert result["overdue"][0]["status"] == "confirmed"
        assert [type(event) for event in published] == [BookingCompleted]

    def test_runs_eagerly_through_celery(self, make_booking, at, now):
        room = make_booking(start=at(6), end=at(7))
        result = expire_sweep.delay(bookings_to_payload([room]), now=now.isoformat()).get()
        assert result["resolved"][0]["status"] == "completed"

    def test_rejects_bad_timestamp(self):
        with pytest.raises(ValueError):
            expire_sweep([], now="yesterday")

def test_collect_reminders_uses_configured_lead(make_booking, at, now, settings):
    settings.BOOKING_REMINDER_LEAD_MINUTES = 90
    soon = make_booking(start=at(9, 15))
    later = make_booking(start=at(10))

    due = collect_reminders(bookings_to_payload([later, soon]), now=now.isoformat())

    assert [b["id"] for b in due] == [str(soon.id)]
