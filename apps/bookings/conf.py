"""Typed access to the booking engine settings."""

from __future__ import annotations

from datetime import timedelta

from django.conf import settings  # type: ignore
from django.core.exceptions import ImproperlyConfigured  # type: ignore

from shared.domain.value_objects import OperatingHours


def auto_confirm() -> bool:
    return bool(getattr(settings, "BOOKING_AUTO_CONFIRM", True))


def slot_granularity() -> timedelta:
    minutes = int(getattr(settings, "BOOKING_SLOT_GRANULARITY_MINUTES", 30))
    if minutes <= 0:
        raise ImproperlyConfigured(
            f"BOOKING_SLOT_GRANULARITY_MINUTES must be positive, got {minutes}"
        )
    return timedelta(minutes=minutes)


def operating_hours() -> OperatingHours:
    open_value = getattr(settings, "BOOKING_OPEN_TIME", "09:00")
    close_value = getattr(settings, "BOOKING_CLOSE_TIME", "17:00")
    try:
        return OperatingHours.parse(open_value, close_value)
    except ValueError as exc:
        raise ImproperlyConfigured(
            f"Invalid operating hours {open_value!r}-{close_value!r}: {exc}"
        ) from exc


def reminder_lead() -> timedelta:
    minutes = int(getattr(settings, "BOOKING_REMINDER_LEAD_MINUTES", 60))
    if minutes <= 0:
        raise ImproperlyConfigured(
            f"BOOKING_REMINDER_LEAD_MINUTES must be positive, got {minutes}"
        )
    return timedelta(minutes=minutes)
