"""
Site Settings Django App Configuration
"""

from __future__ import annotations

from typing import Any

from django.apps import AppConfig
from django.utils.translation import gettext_lazy as _


class SiteSettingsConfig(AppConfig):
    """⚙️ Site settings application configuration"""

    default_auto_field: str = 'django.db.models.BigAutoField'
    name: str = 'apps.settings'
    label: str = 'site_settings'
    verbose_name: Any = _('⚙️ Site Settings')

    def ready(self) -> None:
        """Initialize app when Django starts"""
        from . import signals  # noqa: F401,PLC0415  # Signals must be imported after Django ready
