import pytest
from rest_framework import serializers

from shared.domain.value_objects import TimeWindow
from apps.bookings.application.lifecycle import Decision
from apps.bookings.domain.availability import DaySlot
from apps.bookings.domain.entities import (
    BookingStatus,
    EquipmentCondition,
    EquipmentReservationExtras,
    ResourceKind,
    TutorSessionExtras,
)
from apps.bookings.domain.errors import SlotConflict
from apps.bookings.domain.projections import project, summarize
from apps.bookings.serializers import (
    BookingSerializer,
    BookingSummarySerializer,
    DaySlotSerializer,
    DecisionSerializer,
    FeedEntrySerializer,
    bookings_from_payload,
    bookings_to_payload,
)


def payload(**overrides):
    data = {
        "resource_id": "room-101",
        "requester_id": "student-1",
        "kind": "room",
        "start_time": "2026-03-04T10:00:00Z",
        "end_time": "2026-03-04T11:00:00Z",
        "status": "confirmed",
        "extras": {"attendees": 2},
    }
    data.update(overrides)
    return data


class TestBookingSerializer:
    def test_round_trip(self, make_booking):
        booking = make_booking()

        data = BookingSerializer(booking).data
        assert data["kind"] == "room"
        assert data["status"] == "confirmed"
        assert data["start_time"] == "2026-03-04T10:00:00Z"
        assert data["extras"] == {"attendees": 3, "purpose": "Group study"}

        [decoded] = bookings_from_payload([data])
        assert decoded.id == booking.id
        assert decoded.window == booking.window
        assert decoded.extras == booking.extras
        assert decoded.created_at == booking.created_at

    def test_equipment_extras_round_trip(self, make_booking, at):
        item = make_booking(
            kind=ResourceKind.EQUIPMENT_RESERVATION,
            extras=EquipmentReservationExtras(
                checked_out_at=at(9),
                returned_at=at(11),
                return_condition=EquipmentCondition.FAIR,
            ),
        )
        [decoded] = bookings_from_payload(bookings_to_payload([item]))
        assert decoded.extras.return_condition is EquipmentCondition.FAIR
        assert decoded.returned_at == at(11)

    def test_legacy_scheduled_status(self):
        serializer = BookingSerializer(data=payload(
            kind="tutor",
            status="scheduled",
            extras={"subject": "Organic Chemistry"},
        ))
        assert serializer.is_valid(), serializer.errors

        booking = serializer.save()
        assert booking.status is BookingStatus.CONFIRMED
        assert booking.extras == TutorSessionExtras(subject="Organic Chemistry")

    def test_status_defaults_to_pending(self):
        data = payload()
        del data["status"]
        serializer = BookingSerializer(data=data)
        assert serializer.is_valid(), serializer.errors
        assert serializer.save().status is BookingStatus.PENDING

    def test_missing_extras_use_kind_defaults(self):
        serializer = BookingSerializer(data=payload(extras=None))
        assert serializer.is_valid(), serializer.errors
        assert serializer.save().extras.attendees == 1

    def test_inverted_window(self):
        serializer = BookingSerializer(data=payload(end_time="2026-03-04T09:00:00Z"))
        assert not serializer.is_valid()
        assert "end_time" in serializer.errors

    def test_unknown_kind(self):
        serializer = BookingSerializer(data=payload(kind="parking"))
        assert not serializer.is_valid()
        assert "kind" in serializer.errors

    def test_extras_checked_against_kind(self):
        serializer = BookingSerializer(data=payload(extras={"attendees": 0}))
        assert not serializer.is_valid()
        assert "attendees" in serializer.errors["extras"]

    def test_tutor_session_without_extras(self):
        serializer = BookingSerializer(data=payload(kind="tutor", extras=None))
        assert serializer.is_valid(), serializer.errors
        with pytest.raises(serializers.ValidationError):
            serializer.save()

    def test_bad_payload_in_list(self):
        with pytest.raises(serializers.ValidationError):
            bookings_from_payload([payload(), payload(kind="parking")])


def test_day_slot_serializer(at):
    slot = DaySlot(window=TimeWindow(at(9), at(9, 30)), is_available=False)
    assert DaySlotSerializer(slot).data == {
        "start_time": "2026-03-02T09:00:00Z",
        "end_time": "2026-03-02T09:30:00Z",
        "is_available": False,
    }



def test_feed_entry_serializer(make_booking):
    booking = make_booking(kind=ResourceKind.TUTOR_SESSION, resource_id="tutor-1")
    data = FeedEntrySerializer(project(booking, "Dr. Okafor")).data

    assert data == {
        "booking_id": str(booking.id),
        "kind": "tutor",
        "title": "Linear Algebra",
        "subtitle": "with Dr. Okafor",
        "start_time": "2026-03-04T10:00:00Z",
        "end_time": "2026-03-04T11:00:00Z",
        "status": "confirmed",
        "status_label": "Scheduled",
    }


def test_booking_summary_serializer(make_booking, now, at):
    upcoming = make_booking()
    bookings = [
        upcoming,
        make_booking(start=at(9, days=-1), status=BookingStatus.COMPLETED),
        make_booking(start=at(9, days=3), status=BookingStatus.CANCELLED),
    ]
    data = BookingSummarySerializer(summarize(bookings, now)).data

    assert data["upcoming_count"] == 1
    assert data["completed_count"] == 1
    assert data["cancelled_count"] == 1
    assert [entry["booking_id"] for entry in data["upcoming"]] == [str(upcoming.id)]
    assert data["upcoming"][0]["title"] == "Study Room"
    assert data["upcoming"][0]["subtitle"] == "3 attendees"

class TestDecisionSerializer:
    def test_accepted(self, service, at):
        decision = service.create(
            ResourceKind.ROOM_BOOKING, "R", "student-1", (at(10, days=2), at(11, days=2))
        )
        data = DecisionSerializer(decision).data

        assert data["accepted"] is True
        assert data["error"] is None
        assert data["booking"]["id"] == str(decision.booking.id)
        assert data["events"][0]["event_type"] == "BookingCreated"
        assert data["events"][0]["booking_id"] == str(decision.booking.id)

    def test_rejected(self, make_booking):
        existing = make_booking()
        decision = Decision.reject(SlotConflict("taken", conflicting_ids=[existing.id]))
        data = DecisionSerializer(decision).data

        assert data["accepted"] is False
        assert data["booking"] is None
        assert data["error"] == {
            "code": "slot_conflict",
            "message": "taken",
            "conflicting_ids": [str(existing.id)],
        }
        assert data["events"] == []
