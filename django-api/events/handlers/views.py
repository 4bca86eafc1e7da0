"""HTTP handlers (views) - handle HTTP concerns only.

Handlers:
- Parse requests and validate input format
- Call services for business logic
- Map domain errors to HTTP responses (DomainAPIView)
- Never contain business logic
- Return the canonical current state after every mutation
"""

from rest_framework import status
from rest_framework.permissions import IsAdminUser
from rest_framework.request import Request
from rest_framework.response import Response

from common.views import DomainAPIView
from events.handlers.serializers import (
    AllocationSummarySerializer,
    ApproveSerializer,
    BulkApprovalResultSerializer,
    BulkApproveSerializer,
    CollaboratorCreateSerializer,
    CollaboratorSerializer,
    CollaboratorUpdateSerializer,
    DeliverablesSerializer,
    EventSerializer,
    GuestCreateSerializer,
    GuestSerializer,
    GuestUpdateSerializer,
    RejectSerializer,
)
from events.permissions import actor_for
from events.services.approval_workflow import ApprovalWorkflow
from events.services.collaboration_service import (
    CollaborationService,
    CollaboratorInput,
    GuestInput,
)
from events.services.event_lifecycle import EventLifecycle
from events.stores.django_store import DjangoEventStore


def get_collaboration_service() -> CollaborationService:
    return CollaborationService(DjangoEventStore())


def get_approval_workflow() -> ApprovalWorkflow:
    return ApprovalWorkflow(DjangoEventStore())


def get_event_lifecycle() -> EventLifecycle:
    return EventLifecycle(DjangoEventStore())


def _validated(serializer_class, request: Request) -> dict:
    serializer = serializer_class(data=request.data)
    serializer.is_valid(raise_exception=True)
    return serializer.validated_data


class EventListView(DomainAPIView):
    """Handler for GET /api/events/ (owned and collaborated events)"""

    def get(self, request: Request) -> Response:
        events = get_event_lifecycle().list_for_user(actor_for(request.user))
        return Response({"results": EventSerializer(events, many=True).data})


class EventDetailView(DomainAPIView):
    """Handler for GET /api/events/{event_id}/"""

    def get(self, request: Request, event_id: str) -> Response:
        event = get_event_lifecycle().get_event(event_id, actor_for(request.user))
        return Response(EventSerializer(event).data)


class EventCancelView(DomainAPIView):
    def post(self, request: Request, event_id: str) -> Response:
        event = get_event_lifecycle().cancel(event_id, actor_for(request.user))
        return Response(EventSerializer(event).data)


class AllocationView(DomainAPIView):
    def get(self, request: Request, event_id: str) -> Response:
        summary = get_collaboration_service().allocation_summary(event_id, actor_for(request.user))
        return Response(AllocationSummarySerializer(summary).data)


class CollaboratorListView(DomainAPIView):
    """Handler for /api/events/{event_id}/collaborators/"""

    def get(self, request: Request, event_id: str) -> Response:
        collaborators = get_collaboration_service().list_collaborators(
            event_id, actor_for(request.user)
        )
        return Response({"results": CollaboratorSerializer(collaborators, many=True).data})

    def post(self, request: Request, event_id: str) -> Response:
        data = _validated(CollaboratorCreateSerializer, request)
        collaborator = get_collaboration_service().add_collaborator(
            event_id, actor_for(request.user), CollaboratorInput(**data)
        )
        return Response(CollaboratorSerializer(collaborator).data, status=status.HTTP_201_CREATED)


class CollaboratorDetailView(DomainAPIView):
    """Handler for /api/events/{event_id}/collaborators/{collaborator_id}/"""

    def patch(self, request: Request, event_id: str, collaborator_id: str) -> Response:
        data = _validated(CollaboratorUpdateSerializer, request)
        collaborator = get_collaboration_service().update_collaborator(
            event_id,
            actor_for(request.user),
            collaborator_id,
            allocated_invites=data.get("allocated_invites"),
            permissions=data.get("permissions"),
        )
        return Response(CollaboratorSerializer(collaborator).data)

    def delete(self, request: Request, event_id: str, collaborator_id: str) -> Response:
        service = get_collaboration_service()
        actor = actor_for(request.user)
        service.remove_collaborator(event_id, actor, collaborator_id)
        summary = service.allocation_summary(event_id, actor)
        return Response(AllocationSummarySerializer(summary).data)


class GuestListView(DomainAPIView):
    def post(self, request: Request, event_id: str) -> Response:
        data = _validated(GuestCreateSerializer, request)
        guest = get_collaboration_service().record_guest_added(
            event_id, actor_for(request.user), GuestInput(**data)
        )
        return Response(GuestSerializer(guest).data, status=status.HTTP_201_CREATED)


class GuestDetailView(DomainAPIView):
    def patch(self, request: Request, event_id: str, guest_id: str) -> Response:
        data = _validated(GuestUpdateSerializer, request)
        guest = get_collaboration_service().update_guest(
            event_id, actor_for(request.user), guest_id, dict(data)
        )
        return Response(GuestSerializer(guest).data)

    def delete(self, request: Request, event_id: str, guest_id: str) -> Response:
        actor = actor_for(request.user)
        get_collaboration_service().remove_guest(event_id, actor, guest_id)
        event = get_event_lifecycle().get_event(event_id, actor)
        return Response(EventSerializer(event).data)


class GuestWhatsappView(DomainAPIView):
    def post(self, request: Request, event_id: str, guest_id: str) -> Response:
        guest = get_collaboration_service().mark_whatsapp_sent(
            event_id, actor_for(request.user), guest_id
        )
        return Response(GuestSerializer(guest).data)


class GuestDeclineView(DomainAPIView):
    """Records a declined RSVP and reclaims the guest's invites.

    The caller needs permission to edit the guest.
    """

    def post(self, request: Request, event_id: str, guest_id: str) -> Response:
        guest = get_collaboration_service().reclaim_on_decline(
            event_id, guest_id, actor=actor_for(request.user)
        )
        return Response(GuestSerializer(guest).data)


class GuestListConfirmView(DomainAPIView):
    def post(self, request: Request, event_id: str) -> Response:
        event = get_event_lifecycle().confirm_guest_list(event_id, actor_for(request.user))
        return Response(EventSerializer(event).data)


# Admin


class PendingApprovalListView(DomainAPIView):
    permission_classes = [IsAdminUser]

    def get(self, request: Request) -> Response:
        events = get_approval_workflow().list_pending()
        return Response({"results": EventSerializer(events, many=True).data})


class ApproveEventView(DomainAPIView):
    permission_classes = [IsAdminUser]

    def post(self, request: Request, event_id: str) -> Response:
        data = _validated(ApproveSerializer, request)
        event = get_approval_workflow().approve(
            event_id,
            str(request.user.pk),
            notes=data.get("notes"),
            invitation_card_url=data.get("invitation_card_url"),
            qr_code_reader_url=data.get("qr_code_reader_url"),
        )
        return Response(EventSerializer(event).data)


class RejectEventView(DomainAPIView):
    permission_classes = [IsAdminUser]

    def post(self, request: Request, event_id: str) -> Response:
        data = _validated(RejectSerializer, request)
        event = get_approval_workflow().reject(event_id, str(request.user.pk), data["notes"])
        return Response(EventSerializer(event).data)


class EventDeliverablesView(DomainAPIView):
    permission_classes = [IsAdminUser]

    def post(self, request: Request, event_id: str) -> Response:
        data = _validated(DeliverablesSerializer, request)
        event = get_approval_workflow().update_deliverables(event_id, str(request.user.pk), **data)
        return Response(EventSerializer(event).data)


class BulkApproveView(DomainAPIView):
    """Approves many events; always 200 with one result per requested id."""

    permission_classes = [IsAdminUser]

    def post(self, request: Request) -> Response:
        data = _validated(BulkApproveSerializer, request)
        result = get_approval_workflow().bulk_approve(
            data["event_ids"], str(request.user.pk), notes=data.get("notes")
        )
        return Response(BulkApprovalResultSerializer(result).data)


class ReopenGuestListView(DomainAPIView):
    permission_classes = [IsAdminUser]

    def post(self, request: Request, event_id: str) -> Response:
        event = get_event_lifecycle().reopen_guest_list(event_id, actor_for(request.user))
        return Response(EventSerializer(event).data)
