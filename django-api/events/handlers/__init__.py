from events.handlers.views import (
    AllocationView,
    ApproveEventView,
    BulkApproveView,
    CollaboratorDetailView,
    CollaboratorListView,
    EventCancelView,
    EventDeliverablesView,
    EventDetailView,
    EventListView,
    GuestDeclineView,
    GuestDetailView,
    GuestListConfirmView,
    GuestListView,
    GuestWhatsappView,
    PendingApprovalListView,
    RejectEventView,
    ReopenGuestListView,
)

__all__ = [
    "AllocationView",
    "ApproveEventView",
    "BulkApproveView",
    "CollaboratorDetailView",
    "CollaboratorListView",
    "EventCancelView",
    "EventDeliverablesView",
    "EventDetailView",
    "EventListView",
    "GuestDeclineView",
    "GuestDetailView",
    "GuestListConfirmView",
    "GuestListView",
    "GuestWhatsappView",
    "PendingApprovalListView",
    "RejectEventView",
    "ReopenGuestListView",
]
