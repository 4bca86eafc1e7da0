"""
Test settings.

SQLite database, in-process cache, eager Celery and a fake payment gateway so
that the suite runs without external services.
"""
from .base import *  # noqa

DEBUG = False
SECRET_KEY = "test-secret"

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

PAYMENT_GATEWAY_CLASS = "orders.gateway.FakeGateway"
PAYMENT_WEBHOOK_SECRET = "whsec-test"

EVENT_NOTIFICATION_DISPATCHER = "events.notifications.RecordingNotificationDispatcher"

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = "memory://"
CELERY_RESULT_BACKEND = "cache+memory://"
