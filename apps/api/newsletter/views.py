# ===============================================================================
# NEWSLETTER API VIEWS 📰
# ===============================================================================

import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, throttle_classes
from rest_framework.permissions import AllowAny
from rest_framework.request import Request
from rest_framework.response import Response

from apps.common.request_ip import get_request_metadata, get_safe_client_ip
from apps.newsletter.services import NewsletterService

from ..core import NewsletterThrottle, error_response, service_error_response, success_response
from .serializers import (
    ConfirmInputSerializer,
    SubscribeInputSerializer,
    SubscriberSerializer,
    UnsubscribeInputSerializer,
)

logger = logging.getLogger(__name__)


@api_view(['POST'])
@permission_classes([AllowAny])
@throttle_classes([NewsletterThrottle])
def subscribe(request: Request) -> Response:
    """
    ✉️ Newsletter signup (double opt-in)

    POST /api/newsletter/subscribe/ {email, firstName?, interests?, source?}

    201 new subscriber (confirmation e-mail sent), 200 reactivated, 409 already active.
    """
    serializer = SubscribeInputSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    result = NewsletterService.subscribe(
        email=data['email'],
        first_name=data.get('firstName', ''),
        interests=data.get('interests', []),
        source=data.get('source') or 'unknown',
        metadata=get_request_metadata(request),
    )
    if result.is_err():
        return service_error_response(result.error)

    outcome = result.unwrap()
    if outcome.reactivated:
        return success_response(
            SubscriberSerializer(outcome.subscriber).data,
            "Votre inscription a été réactivée",
            reactivated=True,
            stats=outcome.stats,
        )

    return success_response(
        SubscriberSerializer(outcome.subscriber).data,
        "Inscription enregistrée, consultez votre boîte mail pour la confirmer",
        status.HTTP_201_CREATED,
        requiresConfirmation=True,
        emailSent=outcome.email_sent,
        stats=outcome.stats,
    )


@api_view(['GET', 'POST'])
@permission_classes([AllowAny])
@throttle_classes([NewsletterThrottle])
def confirm(request: Request) -> Response:
    """
    ✅ Confirm a subscription

    GET  /api/newsletter/confirm/?token=...
    POST /api/newsletter/confirm/ {token}
    """
    source = request.query_params if request.method == 'GET' else request.data
    token = source.get('token', '')
    if not token:
        return error_response("Token de confirmation requis", 'MISSING_TOKEN', status.HTTP_400_BAD_REQUEST)

    serializer = ConfirmInputSerializer(data={'token': token})
    serializer.is_valid(raise_exception=True)

    result = NewsletterService.confirm(serializer.validated_data['token'], get_request_metadata(request))
    if result.is_err():
        return service_error_response(result.error)

    outcome = result.unwrap()
    if outcome.already_confirmed:
        return success_response(
            SubscriberSerializer(outcome.subscriber).data,
            "Votre inscription est déjà confirmée",
            alreadyConfirmed=True,
        )
    return success_response(
        SubscriberSerializer(outcome.subscriber).data,
        "Votre inscription est confirmée",
        stats=outcome.stats,
    )


@api_view(['POST'])
@permission_classes([AllowAny])
@throttle_classes([NewsletterThrottle])
def unsubscribe(request: Request) -> Response:
    """
    🚪 Unsubscribe

    POST /api/newsletter/unsubscribe/ {email, token?, reason?}
    """
    serializer = UnsubscribeInputSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    result = NewsletterService.unsubscribe(
        data.get('email', ''), data.get('token') or None, data.get('reason') or None, get_safe_client_ip(request)
    )
    if result.is_err():
        return service_error_response(result.error)

    outcome = result.unwrap()
    if outcome.already_unsubscribed:
        return success_response(message="Cette adresse est déjà désinscrite", alreadyUnsubscribed=True)
    return success_response(
        {'email': outcome.subscriber.email, 'unsubscribedAt': outcome.subscriber.unsubscribed_at},
        "Vous avez été désinscrit de notre newsletter",
        stats=outcome.stats,
    )
