# ===============================================================================
# API CORE INFRASTRUCTURE - SHARED BASE CLASSES 🏗️
# ===============================================================================

from .pagination import AdminResultsSetPagination
from .permissions import IsStaffUser
from .responses import (
    ConflictError,
    error_response,
    service_error_response,
    success_response,
    validation_error_response,
)
from .throttling import CatalogThrottle, ContactThrottle, NewsletterThrottle, OrderCreateThrottle
from .viewsets import BaseAdminViewSet, ReadOnlyAdminViewSet

__all__ = [
    'AdminResultsSetPagination',
    'BaseAdminViewSet',
    'CatalogThrottle',
    'ConflictError',
    'ContactThrottle',
    'IsStaffUser',
    'NewsletterThrottle',
    'OrderCreateThrottle',
    'ReadOnlyAdminViewSet',
    'error_response',
    'service_error_response',
    'success_response',
    'validation_error_response',
]
