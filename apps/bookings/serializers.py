"""Serializers mapping booking engine values to and from transport payloads."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from shared.domain.value_objects import TimeWindow
from shared.domain.errors import DomainError
from .domain.entities import (
    Booking,
    BookingStatus,
    EquipmentCondition,
    EquipmentReservationExtras,
    ResourceKind,
    RoomBookingExtras,
    TutorSessionExtras,
)


class EnumField(serializers.ChoiceField):
    """ChoiceField that reads and writes Enum members by value."""

    def __init__(self, enum_class, **kwargs):
        self.enum_class = enum_class
        super().__init__(choices=[(member.value, member.value) for member in enum_class], **kwargs)

    def to_internal_value(self, data):
        try:
            return self.enum_class(data)
        except ValueError:
            self.fail("invalid_choice", input=data)

    def to_representation(self, value):
        if value in ("", None):
            return value
        return self.enum_class(value).value


class StatusField(EnumField):
    """Booking status, accepting the legacy 'scheduled' value of tutor sessions."""

    def __init__(self, **kwargs):
        super().__init__(BookingStatus, **kwargs)

    def to_internal_value(self, data):
        try:
            return BookingStatus.parse(data)
        except ValueError:
            self.fail("invalid_choice", input=data)


# ===== Kind-specific extras =====

class TutorSessionExtrasSerializer(serializers.Serializer):
    subject = serializers.CharField(max_length=200)
    notes = serializers.CharField(required=False, allow_null=True, allow_blank=True, default=None)
    meeting_link = serializers.CharField(required=False, allow_null=True, allow_blank=True, default=None)

    def create(self, validated_data):  # type: ignore
        return TutorSessionExtras(**validated_data)


class RoomBookingExtrasSerializer(serializers.Serializer):
    attendees = serializers.IntegerField(min_value=1, default=1)
    purpose = serializers.CharField(required=False, allow_null=True, allow_blank=True, default=None)

    def create(self, validated_data):  # type: ignore
        return RoomBookingExtras(**validated_data)


class EquipmentReservationExtrasSerializer(serializers.Serializer):
    purpose = serializers.CharField(required=False, allow_null=True, allow_blank=True, default=None)
    checked_out_at = serializers.DateTimeField(required=False, allow_null=True, default=None)
    returned_at = serializers.DateTimeField(required=False, allow_null=True, default=None)
    return_condition = EnumField(EquipmentCondition, required=False, allow_null=True, default=None)
    notes = serializers.CharField(required=False, allow_null=True, allow_blank=True, default=None)

    def create(self, validated_data):  # type: ignore
        return EquipmentReservationExtras(**validated_data)


EXTRAS_SERIALIZERS = {
    ResourceKind.TUTOR_SESSION: TutorSessionExtrasSerializer,
    ResourceKind.ROOM_BOOKING: RoomBookingExtrasSerializer,
    ResourceKind.EQUIPMENT_RESERVATION: EquipmentReservationExtrasSerializer,
}


EXTRAS_SERIALIZERS_BY_TYPE = {
    TutorSessionExtras: TutorSessionExtrasSerializer,
    RoomBookingExtras: RoomBookingExtrasSerializer,
    EquipmentReservationExtras: EquipmentReservationExtrasSerializer,
}


class ExtrasField(serializers.DictField):
    """Kind-specific extras; validated against the kind in BookingSerializer.validate."""

    def to_representation(self, value):
        if value is None:
            return None
        return dict(EXTRAS_SERIALIZERS_BY_TYPE[type(value)](value).data)


# ===== Bookings =====

class BookingSerializer(serializers.Serializer):
    """Booking as exchanged with the persistence/API layer."""

    id = serializers.UUIDField(required=False)
    resource_id = serializers.CharField(max_length=64)
    requester_id = serializers.CharField(max_length=64)
    kind = EnumField(ResourceKind)
    start_time = serializers.DateTimeField(source="window.start")
    end_time = serializers.DateTimeField(source="window.end")
    status = StatusField(default=BookingStatus.PENDING)
    extras = ExtrasField(required=False, allow_null=True, default=None)
    cancellation_reason = serializers.CharField(required=False, allow_null=True, allow_blank=True, default=None)
    cancelled_at = serializers.DateTimeField(required=False, allow_null=True, default=None)
    created_at = serializers.DateTimeField(required=False)
    updated_at = serializers.DateTimeField(required=False)

    def validate(self, attrs):  # type: ignore
        window_data = attrs.pop("window")
        try:
            attrs["window"] = TimeWindow(window_data["start"], window_data["end"])
        except DomainError as exc:
            raise serializers.ValidationError({"end_time": [exc.message]})

        kind = attrs["kind"]
        extras_data = attrs.get("extras")
        if extras_data is not None:
            extras_serializer = EXTRAS_SERIALIZERS[kind](data=extras_data)
            if not extras_serializer.is_valid():
                raise serializers.ValidationError({"extras": extras_serializer.errors})
            attrs["extras"] = extras_serializer.save()
        return attrs

    def create(self, validated_data):  # type: ignore
        data = {key: value for key, value in validated_data.items() if value is not None or key == "extras"}
        try:
            return Booking(**data)
        except DomainError as exc:
            raise serializers.ValidationError({"non_field_errors": [exc.message]})


def bookings_from_payload(payload) -> list[Booking]:
    """Decode a list of booking payloads, raising ValidationError on the first bad one."""
    serializer = BookingSerializer(data=list(payload), many=True)
    serializer.is_valid(raise_exception=True)
    return serializer.save()


def bookings_to_payload(bookings) -> list[dict]:
    return BookingSerializer(list(bookings), many=True).data


# ===== Read models =====

class DaySlotSerializer(serializers.Serializer):
    start_time = serializers.DateTimeField(source="window.start")
    end_time = serializers.DateTimeField(source="window.end")
    is_available = serializers.BooleanField()


class FeedEntrySerializer(serializers.Serializer):
    booking_id = serializers.UUIDField()
    kind = EnumField(ResourceKind)
    title = serializers.CharField()
    subtitle = serializers.CharField()
    start_time = serializers.DateTimeField(source="window.start")
    end_time = serializers.DateTimeField(source="window.end")
    status = StatusField()
    status_label = serializers.CharField()


class BookingSummarySerializer(serializers.Serializer):
    upcoming_count = serializers.IntegerField()
    completed_count = serializers.IntegerField()
    cancelled_count = serializers.IntegerField()
    upcoming = FeedEntrySerializer(many=True)


class DecisionSerializer(serializers.Serializer):
    """Read-only view of a lifecycle Decision."""

    accepted = serializers.BooleanField()
    booking = BookingSerializer(allow_null=True)
    error = serializers.SerializerMethodField()
    events = serializers.SerializerMethodField()

    def get_error(self, decision):
        return decision.error.to_dict() if decision.error else None

    def get_events(self, decision):
        return [event.to_dict() for event in decision.events]
