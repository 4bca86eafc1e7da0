"""WSGI entry point for the invitations backend."""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "invitations.settings.dev")

application = get_wsgi_application()
