from django.urls import path

from events.handlers import (
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

urlpatterns = [
    path("events/", EventListView.as_view(), name="event-list"),
    path("events/<str:event_id>/", EventDetailView.as_view(), name="event-detail"),
    path("events/<str:event_id>/cancel/", EventCancelView.as_view(), name="event-cancel"),
    path("events/<str:event_id>/allocation/", AllocationView.as_view(), name="event-allocation"),
    path(
        "events/<str:event_id>/collaborators/",
        CollaboratorListView.as_view(),
        name="collaborator-list",
    ),
    path(
        "events/<str:event_id>/collaborators/<str:collaborator_id>/",
        CollaboratorDetailView.as_view(),
        name="collaborator-detail",
    ),
    path("events/<str:event_id>/guests/", GuestListView.as_view(), name="guest-list"),
    path(
        "events/<str:event_id>/guests/confirm/",
        GuestListConfirmView.as_view(),
        name="guest-list-confirm",
    ),
    path(
        "events/<str:event_id>/guests/<str:guest_id>/",
        GuestDetailView.as_view(),
        name="guest-detail",
    ),
    path(
        "events/<str:event_id>/guests/<str:guest_id>/whatsapp/",
        GuestWhatsappView.as_view(),
        name="guest-whatsapp",
    ),
    path(
        "events/<str:event_id>/guests/<str:guest_id>/decline/",
        GuestDeclineView.as_view(),
        name="guest-decline",
    ),
    path("admin/events/pending/", PendingApprovalListView.as_view(), name="admin-event-pending"),
    path(
        "admin/events/bulk-approve/", BulkApproveView.as_view(), name="admin-event-bulk-approve"
    ),
    path(
        "admin/events/<str:event_id>/approve/",
        ApproveEventView.as_view(),
        name="admin-event-approve",
    ),
    path(
        "admin/events/<str:event_id>/reject/", RejectEventView.as_view(), name="admin-event-reject"
    ),
    path(
        "admin/events/<str:event_id>/deliverables/",
        EventDeliverablesView.as_view(),
        name="admin-event-deliverables",
    ),
    path(
        "admin/events/<str:event_id>/reopen-guest-list/",
        ReopenGuestListView.as_view(),
        name="admin-event-reopen-guest-list",
    ),
]
