"""
Development settings for the invitations backend.

Extends the base settings with debugging and a local SQLite database. Do not
use these settings in production.
"""
import os

from .base import *  # noqa

DEBUG = True
ALLOWED_HOSTS = ["*"]

if not os.getenv("POSTGRES_DB"):
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": BASE_DIR / "db.sqlite3",
        }
    }

LOGGING["loggers"]["orders"]["level"] = "DEBUG"
LOGGING["loggers"]["events"]["level"] = "DEBUG"
