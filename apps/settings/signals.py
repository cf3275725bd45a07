"""
Site settings signals for the firewood storefront
Cache invalidation when the settings table changes.
"""

from __future__ import annotations

import logging
from typing import Any

from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from .models import SiteSettings
from .services import SiteSettingsService

logger = logging.getLogger(__name__)


@receiver(post_save, sender=SiteSettings)
def handle_settings_saved(sender: Any, instance: SiteSettings, created: bool, **kwargs: Any) -> None:
    """🔄 Drop the cached active settings after any save"""
    SiteSettingsService.clear_cache()
    logger.info("✅ [Settings Signal] Settings %s %s", instance.pk, "created" if created else "updated")


@receiver(post_delete, sender=SiteSettings)
def handle_settings_deleted(sender: Any, instance: SiteSettings, **kwargs: Any) -> None:
    """🗑️ Drop the cached active settings after a delete"""
    SiteSettingsService.clear_cache()
