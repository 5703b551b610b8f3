"""Bookings app package.

This app holds the booking lifecycle and availability engine for campus
resources: tutor sessions, study rooms and equipment. The domain layer is
pure Python; the application layer adds configuration, serializers and
Celery tasks around it.
"""
