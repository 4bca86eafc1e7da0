"""
Package initializer for the invitations backend.

The Celery application is imported here so that shared tasks bind to
`invitations.celery_app` by default.
"""
from .celery import celery_app

__all__ = ["celery_app"]
