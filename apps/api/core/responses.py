# ===============================================================================
# API RESPONSE ENVELOPE 📨
# ===============================================================================
#
# Success: {"success": true, "message": ..., "data": ...}
# Failure: {"success": false, "message": ..., "code": ..., "errors": {...}}

import logging
from typing import Any

from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from apps.common.types import ServiceError

logger = logging.getLogger(__name__)

# Service error code → HTTP status, anything else is a 400 business rule
ERROR_STATUS_CODES: dict[str, int] = {
    'not_found': status.HTTP_404_NOT_FOUND,
    'already_subscribed': status.HTTP_409_CONFLICT,
    'duplicate_slug': status.HTTP_409_CONFLICT,
    'invalid_token': status.HTTP_401_UNAUTHORIZED,
    'rate_limited': status.HTTP_429_TOO_MANY_REQUESTS,
    'email_failed': status.HTTP_500_INTERNAL_SERVER_ERROR,
    'order_number_unavailable': status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def success_response(
    data: Any = None, message: str = '', status_code: int = status.HTTP_200_OK, **extra: Any
) -> Response:
    body: dict[str, Any] = {'success': True}
    if message:
        body['message'] = message
    if data is not None:
        body['data'] = data
    body.update(extra)
    return Response(body, status=status_code)


def error_response(
    message: str,
    code: str = 'ERROR',
    status_code: int = status.HTTP_400_BAD_REQUEST,
    errors: Any = None,
) -> Response:
    body: dict[str, Any] = {'success': False, 'message': message, 'code': code}
    if errors:
        body['errors'] = errors
    return Response(body, status=status_code)


def validation_error_response(errors: Any, message: str = "Données invalides") -> Response:
    return error_response(message, 'VALIDATION_ERROR', status.HTTP_400_BAD_REQUEST, errors)


def service_error_response(error: ServiceError) -> Response:
    """Translate a service-layer ``Err`` payload into an HTTP response"""
    status_code = ERROR_STATUS_CODES.get(error.code, status.HTTP_400_BAD_REQUEST)
    if error.code == 'validation_error':
        return validation_error_response(error.details, error.message)
    return error_response(error.message, error.code.upper(), status_code, error.details)


def api_exception_handler(exc: Exception, context: dict[str, Any]) -> Response | None:
    """
    DRF exception handler wrapping every error in the failure envelope.
    Unexpected exceptions are logged and reported as SERVER_ERROR.
    """
    response = exception_handler(exc, context)

    if response is None:
        view = context.get('view')
        logger.exception(f"🔥 [API] Unhandled error in {view.__class__.__name__ if view else '?'}: {exc}")
        return error_response(
            "Erreur interne du serveur", 'SERVER_ERROR', status.HTTP_500_INTERNAL_SERVER_ERROR
        )

    if isinstance(exc, exceptions.ValidationError):
        response.data = {
            'success': False,
            'message': "Données invalides",
            'code': 'VALIDATION_ERROR',
            'errors': response.data,
        }
        return response

    detail = response.data.get('detail', '') if isinstance(response.data, dict) else response.data
    code = 'RATE_LIMITED' if isinstance(exc, exceptions.Throttled) else str(
        getattr(exc, 'default_code', 'error')
    ).upper()
    response.data = {'success': False, 'message': str(detail), 'code': code}
    return response


class ConflictError(exceptions.APIException):
    """409 raised from serializers when a unique business key is taken"""
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Cette ressource existe déjà"
    default_code = 'conflict'
