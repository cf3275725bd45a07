# ===============================================================================
# API PERMISSIONS CLASSES 🔐
# ===============================================================================

from typing import Any

from rest_framework import permissions
from rest_framework.request import Request


class IsStaffUser(permissions.BasePermission):
    """
    Back-office access: authenticated staff accounts only.
    """

    message = "Accès réservé à l'équipe"

    def has_permission(self, request: Request, view: Any) -> bool:
        user = request.user
        return bool(user and user.is_authenticated and user.is_staff)
