"""
Booking Domain Events

Events that represent decisions taken by the lifecycle service.
They travel on the Decision and are published by the caller after the new
booking state has been persisted.
"""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from shared.domain.base import DomainEvent
from shared.domain.value_objects import TimeWindow
from apps.bookings.domain.entities import BookingStatus, EquipmentCondition, ResourceKind


@dataclass(kw_only=True)
class BookingEvent(DomainEvent):
    booking_id: UUID
    resource_id: str
    kind: ResourceKind

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update({
            'booking_id': str(self.booking_id),
            'resource_id': self.resource_id,
            'kind': self.kind.value,
        })
        return data


@dataclass(kw_only=True)
class BookingCreated(BookingEvent):
    """
    Event: A new booking was accepted

    Triggers:
    - Confirmation to the requester
    - Approval request when the booking starts PENDING
    """
    requester_id: str
    window: TimeWindow
    status: BookingStatus


@dataclass(kw_only=True)
class BookingApproved(BookingEvent):
    """Event: PENDING -> CONFIRMED"""


@dataclass(kw_only=True)
class BookingCancelled(BookingEvent):
    """
    Event: Booking was cancelled

    Triggers:
    - Notify requester and resource owner
    - Free up the window
    """
    reason: str | None
    old_status: str


@dataclass(kw_only=True)
class BookingRescheduled(BookingEvent):
    """Event: Booking moved to a new window under the same id"""
    old_window: TimeWindow
    new_window: TimeWindow


@dataclass(kw_only=True)
class EquipmentCheckedOut(BookingEvent):
    checked_out_at: datetime


@dataclass(kw_only=True)
class EquipmentReturned(BookingEvent):
    returned_at: datetime
    condition: EquipmentCondition


@dataclass(kw_only=True)
class BookingCompleted(BookingEvent):
    """
    Event: Window elapsed and the resource was used (CONFIRMED -> COMPLETED)

    Triggers:
    - Feedback request to the requester
    """


@dataclass(kw_only=True)
class BookingMarkedNoShow(BookingEvent):
    """Event: Window elapsed and the resource was never used (CONFIRMED -> NO_SHOW)"""
