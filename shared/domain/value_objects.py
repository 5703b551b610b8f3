"""
Common Value Objects

Value objects used across the booking domain:
- TimeWindow: A half-open interval [start, end) during which a resource is held
- OperatingHours: Daily opening hours of a resource
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, tzinfo

from shared.domain.base import ValueObject
from shared.domain.errors import InvalidWindow


def _is_naive(value: datetime) -> bool:
    return value.tzinfo is None or value.tzinfo.utcoffset(value) is None


@dataclass(frozen=True)
class TimeWindow(ValueObject):
    """
    Time window value object

    Represents a range from start (inclusive) to end (exclusive).
    Used for booking windows, day slots and availability checks.
    """
    start: datetime
    end: datetime

    def __post_init__(self):
        if self.start is None or self.end is None:
            raise InvalidWindow("Window start and end are both required")
        if not isinstance(self.start, datetime) or not isinstance(self.end, datetime):
            raise InvalidWindow("Window start and end must be datetimes")
        if _is_naive(self.start) or _is_naive(self.end):
            raise InvalidWindow("Window start and end must be timezone-aware")
        if self.end <= self.start:
            raise InvalidWindow(
                f"Window end ({self.end.isoformat()}) must be after start ({self.start.isoformat()})"
            )

    def overlaps(self, other: 'TimeWindow') -> bool:
        """
        Check if this window overlaps with another

        end is exclusive, so windows that only touch do not overlap.

        Examples:
            - [10:00, 11:00) overlaps with [10:30, 11:30) -> True
            - [10:00, 11:00) overlaps with [11:00, 12:00) -> False (adjacent)
        """
        if not isinstance(other, TimeWindow):
            raise TypeError("Can only check overlap with another TimeWindow")

        return self.start < other.end and other.start < self.end

    def duration(self) -> timedelta:
        return self.end - self.start

    def contains(self, instant: datetime) -> bool:
        """start is inclusive, end is exclusive"""
        return self.start <= instant < self.end

    def __str__(self):
        return f"{self.start.isoformat()} - {self.end.isoformat()}"

    def __repr__(self):
        return f"TimeWindow({self.start.isoformat()}, {self.end.isoformat()})"


@dataclass(frozen=True)
class OperatingHours(ValueObject):
    """Daily opening hours, open_time inclusive and close_time exclusive"""
    open_time: time
    close_time: time

    def __post_init__(self):
        if self.close_time <= self.open_time:
            raise ValueError(
                f"Closing time ({self.close_time}) must be after opening time ({self.open_time})"
            )

    def window_on(self, day: date, tz: tzinfo) -> TimeWindow:
        """Opening hours of a given day as an aware TimeWindow"""
        return TimeWindow(
            datetime.combine(day, self.open_time, tzinfo=tz),
            datetime.combine(day, self.close_time, tzinfo=tz),
        )

    @classmethod
    def parse(cls, open_value: str, close_value: str) -> 'OperatingHours':
        """Build from 'HH:MM' strings"""
        return cls(_parse_hhmm(open_value), _parse_hhmm(close_value))

    def __str__(self):
        return f"{self.open_time.strftime('%H:%M')}-{self.close_time.strftime('%H:%M')}"


def _parse_hhmm(value: str) -> time:
    h, m = value.strip().split(":")
    return time(int(h), int(m))
