# ===============================================================================
# STOREFRONT API APP CONFIGURATION 🛠️
# ===============================================================================

from django.apps import AppConfig


class ApiConfig(AppConfig):
    """
    Configuration for the centralized JSON API.

    Public storefront endpoints live at the top level, back-office endpoints
    under /api/admin/ and require a staff account.
    """

    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.api"
    label = "storefront_api"
    verbose_name = "Storefront API"
