"""
Common middleware for the firewood storefront
Request tracing for logs and support.
"""

import logging
import uuid
from collections.abc import Callable

from django.http import HttpRequest, HttpResponse

from .logging import clear_request_id, set_request_id

logger = logging.getLogger(__name__)

# ===============================================================================
# REQUEST ID MIDDLEWARE
# ===============================================================================

class RequestIDMiddleware:
    """Add unique request ID for tracing"""

    def __init__(self, get_response: Callable[[HttpRequest], HttpResponse]):
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        # Reuse an upstream ID when the proxy already assigned one
        request_id = request.META.get('HTTP_X_REQUEST_ID') or str(uuid.uuid4())
        request.META['REQUEST_ID'] = request_id
        set_request_id(request_id)

        try:
            response = self.get_response(request)
        finally:
            clear_request_id()

        response['X-Request-ID'] = request_id

        if response.status_code >= 500:
            logger.error(f"🔥 [Request] {request.method} {request.path} -> {response.status_code} ({request_id})")

        return response
