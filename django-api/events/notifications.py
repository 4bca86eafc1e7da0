"""Outbound notification contract.

Delivery (WhatsApp, email) lives outside this project. The dispatcher named
by `EVENT_NOTIFICATION_DISPATCHER` is invoked from a Celery task, so a slow or
failing channel never holds up the request that triggered it.
"""

import logging
from abc import ABC, abstractmethod
from typing import ClassVar

from django.conf import settings
from django.utils.module_loading import import_string

logger = logging.getLogger("events")

EVENT_PENDING_APPROVAL = "event_pending_approval"
EVENT_APPROVED = "event_approved"
EVENT_REJECTED = "event_rejected"
GUEST_ADDED = "guest_added"


class NotificationDispatcher(ABC):
    @abstractmethod
    def notify(self, kind: str, event_id: str, guest_id: str | None = None) -> None:
        """Deliver one notification. Raising makes the task retry."""
        ...


class LoggingNotificationDispatcher(NotificationDispatcher):
    """Default dispatcher: records the intent in the log."""

    def notify(self, kind: str, event_id: str, guest_id: str | None = None) -> None:
        logger.info("Notification %s for event %s guest %s", kind, event_id, guest_id)


class RecordingNotificationDispatcher(NotificationDispatcher):
    sent: ClassVar[list[tuple[str, str, str | None]]] = []

    def notify(self, kind: str, event_id: str, guest_id: str | None = None) -> None:
        self.sent.append((kind, event_id, guest_id))


def get_dispatcher() -> NotificationDispatcher:
    return import_string(settings.EVENT_NOTIFICATION_DISPATCHER)()
