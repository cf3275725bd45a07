# ===============================================================================
# TICKETS API VIEWS - CONTACT FORM & SUPPORT DESK 🎫
# ===============================================================================

import logging
from typing import Any, ClassVar

from django.db.models import QuerySet
from rest_framework import status
from rest_framework.decorators import action, api_view, permission_classes, throttle_classes
from rest_framework.permissions import AllowAny
from rest_framework.request import Request
from rest_framework.response import Response

from apps.common.request_ip import get_request_metadata
from apps.common.utils import clamp_pagination
from apps.tickets.models import Ticket
from apps.tickets.services import STATS_DEFAULT_DAYS, ContactService, TicketService

from ..core import ContactThrottle, ReadOnlyAdminViewSet, service_error_response, success_response
from .serializers import (
    ContactInputSerializer,
    TicketAssignInputSerializer,
    TicketCloseInputSerializer,
    TicketDetailSerializer,
    TicketInternalNoteSerializer,
    TicketListSerializer,
    TicketNoteInputSerializer,
    TicketResolveInputSerializer,
    TicketResponseInputSerializer,
    TicketResponseSerializer,
)

logger = logging.getLogger(__name__)

MAX_STATS_DAYS = 365


# ===============================================================================
# CONTACT FORM 📨
# ===============================================================================

@api_view(['POST'])
@permission_classes([AllowAny])
@throttle_classes([ContactThrottle])
def submit_contact(request: Request) -> Response:
    """
    📨 Contact form

    POST /api/contact/
    {
        "firstName", "lastName", "email", "phone", "company"?,
        "subject": "devis|livraison|produits|commande|support|autre",
        "message", "preferredContact"?, "urgency"?: "normal|urgent|low",
        "acceptTerms": true, "acceptNewsletter"?: false
    }

    Response (201): {"ticketNumber", "estimatedResponse"}
    A second message from the same address within the anti-spam window gets 429.
    """
    serializer = ContactInputSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    result = ContactService.submit(serializer.to_submission(get_request_metadata(request)))
    if result.is_err():
        return service_error_response(result.error)

    outcome = result.unwrap()
    return success_response(
        {
            'ticketNumber': outcome.ticket.ticket_number,
            'estimatedResponse': outcome.estimated_response,
        },
        "Votre message a été envoyé avec succès",
        status.HTTP_201_CREATED,
    )


# ===============================================================================
# SUPPORT DESK 🛠️
# ===============================================================================

class TicketAdminViewSet(ReadOnlyAdminViewSet):
    """
    /api/admin/tickets/                  → search (?q=&status=&priority=&subject=&assigned_to=
                                            &date_from=&date_to=&sort_by=&sort_order=&page=&limit=)
    /api/admin/tickets/stats/?days=30    → counts and average handling times
    /api/admin/tickets/<uuid>/           → detail
    /api/admin/tickets/<uuid>/respond/   → {message, method?, isInternal?}
    /api/admin/tickets/<uuid>/note/      → {note, isPrivate?}
    /api/admin/tickets/<uuid>/assign/    → {userId, team?}
    /api/admin/tickets/<uuid>/resolve/   → {resolution?}
    /api/admin/tickets/<uuid>/close/     → {reason?}
    """

    queryset = Ticket.objects.all()
    serializer_class = TicketDetailSerializer
    http_method_names: ClassVar = ['get', 'post', 'head', 'options']
    SEARCH_FILTERS: ClassVar[tuple[str, ...]] = (
        'status', 'priority', 'subject', 'assigned_to', 'date_from', 'date_to', 'sort_by', 'sort_order',
    )

    def get_queryset(self) -> QuerySet[Ticket]:
        return Ticket.objects.select_related('assigned_to').prefetch_related(
            'responses__responded_by', 'internal_notes__author', 'status_history__changed_by'
        )

    def list(self, request: Request, *args: Any, **kwargs: Any) -> Response:
        params = request.query_params
        query = (params.get('q') or params.get('search') or '').strip()
        filters = {name: params.get(name) for name in self.SEARCH_FILTERS if params.get(name)}

        result = TicketService.search(query, params.get('page', 1), params.get('limit'), **filters)
        return success_response(
            TicketListSerializer(result.tickets, many=True).data,
            pagination=result.stats,
        )

    @action(detail=False, methods=['get'])
    def stats(self, request: Request) -> Response:
        _page, days = clamp_pagination(1, request.query_params.get('days'), STATS_DEFAULT_DAYS, MAX_STATS_DAYS)
        return success_response(TicketService.get_stats(days))

    @action(detail=True, methods=['post'])
    def respond(self, request: Request, pk: str | None = None) -> Response:
        serializer = TicketResponseInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        ticket = self.get_object()
        result = TicketService.add_response(ticket, data['message'], data['method'], request.user, data['isInternal'])
        if result.is_err():
            return service_error_response(result.error)
        return success_response(
            TicketResponseSerializer(result.unwrap()).data, "Réponse ajoutée", status.HTTP_201_CREATED,
            ticketStatus=ticket.status,
        )

    @action(detail=True, methods=['post'])
    def note(self, request: Request, pk: str | None = None) -> Response:
        serializer = TicketNoteInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = TicketService.add_internal_note(
            self.get_object(), serializer.validated_data['note'], request.user, serializer.validated_data['isPrivate']
        )
        if result.is_err():
            return service_error_response(result.error)
        return success_response(TicketInternalNoteSerializer(result.unwrap()).data, "Note ajoutée", status.HTTP_201_CREATED)

    @action(detail=True, methods=['post'])
    def assign(self, request: Request, pk: str | None = None) -> Response:
        serializer = TicketAssignInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = TicketService.assign_to(
            self.get_object(), serializer.validated_data['userId'], serializer.validated_data['team'], request.user
        )
        return self._ticket_response(result, "Ticket assigné")

    @action(detail=True, methods=['post'])
    def resolve(self, request: Request, pk: str | None = None) -> Response:
        serializer = TicketResolveInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = TicketService.resolve(self.get_object(), serializer.validated_data['resolution'], request.user)
        return self._ticket_response(result, "Ticket résolu")

    @action(detail=True, methods=['post'])
    def close(self, request: Request, pk: str | None = None) -> Response:
        serializer = TicketCloseInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = TicketService.close(self.get_object(), serializer.validated_data['reason'], request.user)
        return self._ticket_response(result, "Ticket fermé")

    def _ticket_response(self, result: Any, message: str) -> Response:
        if result.is_err():
            return service_error_response(result.error)
        ticket = TicketService.get_ticket(result.unwrap().pk).unwrap()
        return success_response(TicketDetailSerializer(ticket).data, message)
