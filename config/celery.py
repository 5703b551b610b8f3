import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings.dev")

app = Celery("campus_booking")

app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks(["apps.bookings"])

# No beat schedule here: bookings.expire_sweep and bookings.collect_reminders
# take the bookings to process as arguments, so the persistence layer that
# owns the lookups schedules them (see CELERY_BEAT_SCHEDULE in its settings).
