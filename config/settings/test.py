"""Test settings: in-memory database, eager Celery, fixed engine defaults."""

from .base import *  # noqa: F401,F403

DEBUG = False

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

TIME_ZONE = 'UTC'

BOOKING_AUTO_CONFIRM = True
BOOKING_SLOT_GRANULARITY_MINUTES = 30
BOOKING_OPEN_TIME = '09:00'
BOOKING_CLOSE_TIME = '17:00'
BOOKING_REMINDER_LEAD_MINUTES = 60

CELERY_BROKER_URL = 'memory://'
CELERY_RESULT_BACKEND = 'cache+memory://'
CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
