# ===============================================================================
# API BASE VIEWSETS 🎯
# ===============================================================================

import logging
from typing import Any, ClassVar

from django.db.models import QuerySet
from rest_framework import status, viewsets
from rest_framework.request import Request
from rest_framework.response import Response

from .pagination import AdminResultsSetPagination
from .permissions import IsStaffUser
from .responses import success_response

logger = logging.getLogger(__name__)


class AdminViewSetMixin:
    """Staff-only access, page / limit pagination, success envelope on reads"""

    permission_classes: ClassVar = [IsStaffUser]
    pagination_class = AdminResultsSetPagination
    # Back-office is not throttled, staff accounts are trusted
    throttle_classes: ClassVar = []

    def get_queryset(self) -> QuerySet:
        queryset = getattr(self, 'queryset', None)
        if queryset is None:
            raise NotImplementedError(
                f"{self.__class__.__name__} must define 'queryset' or override 'get_queryset()'"
            )
        return queryset.all()

    def retrieve(self, request: Request, *args: Any, **kwargs: Any) -> Response:
        serializer = self.get_serializer(self.get_object())
        return success_response(serializer.data)


class BaseAdminViewSet(AdminViewSetMixin, viewsets.ModelViewSet):
    """
    Base viewset for back-office CRUD endpoints under /api/admin/.

    Usage:
        class CategoryAdminViewSet(BaseAdminViewSet):
            queryset = Category.objects.all()
            serializer_class = CategoryAdminSerializer
    """

    def create(self, request: Request, *args: Any, **kwargs: Any) -> Response:
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        self.perform_create(serializer)
        logger.info(f"🛠️ [Admin API] {request.user} created {self.get_view_name()} {serializer.instance.pk}")
        return success_response(serializer.data, "Créé avec succès", status.HTTP_201_CREATED)

    def update(self, request: Request, *args: Any, **kwargs: Any) -> Response:
        partial = kwargs.pop('partial', False)
        serializer = self.get_serializer(self.get_object(), data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        self.perform_update(serializer)
        logger.info(f"🛠️ [Admin API] {request.user} updated {self.get_view_name()} {serializer.instance.pk}")
        return success_response(serializer.data, "Mis à jour avec succès")

    def destroy(self, request: Request, *args: Any, **kwargs: Any) -> Response:
        instance = self.get_object()
        pk = instance.pk
        self.perform_destroy(instance)
        logger.info(f"🗑️ [Admin API] {request.user} deleted {self.get_view_name()} {pk}")
        return success_response(message="Supprimé avec succès")


class ReadOnlyAdminViewSet(AdminViewSetMixin, viewsets.ReadOnlyModelViewSet):
    """
    Back-office list / detail for records changed through service actions
    (orders, tickets) rather than plain CRUD.
    """
