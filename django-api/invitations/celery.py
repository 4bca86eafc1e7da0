"""
Celery configuration for the invitations backend.

Tasks are discovered from the `tasks.py` module of every installed app.
Periodic sweeps (abandoned orders, finished events) are declared in
`CELERY_BEAT_SCHEDULE` in settings.
"""
import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "invitations.settings.dev")

celery_app = Celery("invitations")
celery_app.config_from_object("django.conf:settings", namespace="CELERY")
celery_app.autodiscover_tasks()
