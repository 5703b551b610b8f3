"""
Booking Policy Table

Per-kind limits on booking duration and the lead time required before a
booking's start to cancel or reschedule it.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from types import MappingProxyType

from shared.domain.value_objects import TimeWindow
from apps.bookings.domain.entities import ResourceKind
from apps.bookings.domain.errors import DurationOutOfRange


@dataclass(frozen=True)
class PolicyRow:
    max_duration: timedelta
    cancellation_lead_time: timedelta
    min_duration: timedelta | None = None

    def check_duration(self, window: TimeWindow) -> None:
        """
        Raise DurationOutOfRange unless min_duration <= duration <= max_duration

        The minimum is skipped for kinds that have none.
        """
        duration = window.duration()
        if self.min_duration is not None and duration < self.min_duration:
            raise DurationOutOfRange(
                f"Booking lasts {_fmt(duration)}, minimum is {_fmt(self.min_duration)}"
            )
        if duration > self.max_duration:
            raise DurationOutOfRange(
                f"Booking lasts {_fmt(duration)}, maximum is {_fmt(self.max_duration)}"
            )

    def lead_time_satisfied(self, start: datetime, now: datetime) -> bool:
        """True while at least cancellation_lead_time remains before start"""
        return start - now >= self.cancellation_lead_time

    def cancellation_deadline(self, start: datetime) -> datetime:
        """Last instant at which cancel/reschedule is still allowed"""
        return start - self.cancellation_lead_time


POLICY_TABLE = MappingProxyType({
    ResourceKind.TUTOR_SESSION: PolicyRow(
        min_duration=timedelta(minutes=30),
        max_duration=timedelta(hours=2),
        cancellation_lead_time=timedelta(hours=24),
    ),
    ResourceKind.ROOM_BOOKING: PolicyRow(
        max_duration=timedelta(hours=2),
        cancellation_lead_time=timedelta(hours=1),
    ),
    ResourceKind.EQUIPMENT_RESERVATION: PolicyRow(
        max_duration=timedelta(days=7),
        cancellation_lead_time=timedelta(hours=1),
    ),
})


def policy_for(kind: ResourceKind) -> PolicyRow:
    return POLICY_TABLE[kind]


def _fmt(delta: timedelta) -> str:
    total = int(delta.total_seconds())
    days, rest = divmod(total, 86400)
    hours, rest = divmod(rest, 3600)
    minutes, seconds = divmod(rest, 60)
    parts = []
    if days:
        parts.append(f"{days}d")
    if hours:
        parts.append(f"{hours}h")
    if minutes:
        parts.append(f"{minutes}m")
    if seconds or not parts:
        parts.append(f"{seconds}s")
    return " ".join(parts)
