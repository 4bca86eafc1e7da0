import logging

from celery import shared_task
from django.db import transaction
from django.utils import timezone

from events.notifications import get_dispatcher

logger = logging.getLogger("events")


@shared_task(autoretry_for=(Exception,), retry_backoff=True, max_retries=3)
def dispatch_notification(kind: str, event_id: str, guest_id: str | None = None) -> None:
    get_dispatcher().notify(kind, event_id, guest_id)


def enqueue_notification(kind: str, event_id, guest_id=None) -> None:
    """Queue a notification once the surrounding transaction commits."""
    event_ref = str(event_id)
    guest_ref = str(guest_id) if guest_id is not None else None
    transaction.on_commit(lambda: dispatch_notification.delay(kind, event_ref, guest_ref))


@shared_task
def advance_event_status() -> int:
    """Periodic sweep: mark upcoming events whose end time has passed as done."""
    from events.services.event_lifecycle import EventLifecycle
    from events.stores.django_store import DjangoEventStore

    finished = EventLifecycle(DjangoEventStore()).advance_finished(timezone.now())
    logger.info("Advanced %s events to done", len(finished))
    return len(finished)
