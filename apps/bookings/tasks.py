"""Celery tasks for the booking domain."""

from __future__ import annotations

import logging
from datetime import datetime

from celery import shared_task  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.dateparse import parse_datetime  # type: ignore

from shared.application.message_bus import message_bus

from . import conf
from .application.lifecycle import BookingLifecycleService
from .domain.projections import due_for_reminder
from .serializers import bookings_from_payload, bookings_to_payload

logger = logging.getLogger(__name__)


def _resolve_now(now: str | None) -> datetime:
    if not now:
        return timezone.now()
    parsed = parse_datetime(now)
    if parsed is None:
        raise ValueError(f"Invalid timestamp: {now!r}")
    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed)
    return parsed


# ============================================================================
# PERIODIC TASKS (scheduled through Celery Beat by the persistence layer)
# ============================================================================

@shared_task(name="bookings.expire_sweep")
def expire_sweep(bookings: list[dict], now: str | None = None) -> dict[str, list[dict]]:
    """
    Resolve bookings whose window has elapsed.

    The persistence layer passes the CONFIRMED bookings it wants swept and
    saves the "resolved" bookings it gets back. "overdue" lists checked-out
    equipment that has not been returned yet; it is unchanged (still
    CONFIRMED) and produces no event.

    Returns:
        dict: {"resolved": [...], "overdue": [...]}
    """
    current = _resolve_now(now)
    service = BookingLifecycleService.from_settings()

    report = service.sweep(bookings_from_payload(bookings), now=current)
    message_bus.publish_events(report.events)

    if report.resolved or report.overdue:
        logger.info(
            f"Sweep resolved {len(report.resolved)} booking(s), "
            f"{len(report.overdue)} overdue equipment reservation(s)"
        )

    return {
        "resolved": bookings_to_payload(report.resolved),
        "overdue": bookings_to_payload(report.overdue),
    }


@shared_task(name="bookings.collect_reminders")
def collect_reminders(bookings: list[dict], now: str | None = None) -> list[dict]:
    """
    Pick the confirmed bookings that start within the reminder lead time.

    Delivery is left to the notification collaborator.
    """
    current = _resolve_now(now)
    due = due_for_reminder(bookings_from_payload(bookings), current, lead=conf.reminder_lead())

    if due:
        logger.info(f"{len(due)} booking(s) due for a reminder")

    return bookings_to_payload(due)
