"""
Site settings service layer for the firewood storefront
Cached access to the active SiteSettings row and admin updates.
"""

from __future__ import annotations

import logging
from typing import Any, ClassVar

from django.core.cache import cache
from django.core.exceptions import ValidationError
from django.db import transaction

from apps.common.types import Err, Ok, Result, ServiceError

from .models import SiteSettings

logger = logging.getLogger(__name__)

# Fields that admin updates may never touch
PROTECTED_FIELDS = frozenset({"id", "is_active", "created_at", "updated_at"})


class SiteSettingsService:
    """⚙️ Active site settings with caching and validation"""

    CACHE_KEY: ClassVar[str] = "site_settings:active"
    CACHE_TIMEOUT: ClassVar[int] = 3600  # 1 hour

    @classmethod
    def get_active_settings(cls) -> SiteSettings:
        """
        🔍 Get the active settings row, creating the defaults on first use
        """
        cached = cache.get(cls.CACHE_KEY)
        if cached is not None:
            logger.debug("✅ [Settings] Cache hit for active settings")
            return cached  # type: ignore[no-any-return]

        site_settings = SiteSettings.objects.filter(is_active=True).order_by("-created_at").first()
        if site_settings is None:
            site_settings = SiteSettings.objects.create()
            logger.info("⚙️ [Settings] Created default site settings")

        cache.set(cls.CACHE_KEY, site_settings, timeout=cls.CACHE_TIMEOUT)
        return site_settings

    @classmethod
    def clear_cache(cls) -> None:
        cache.delete(cls.CACHE_KEY)

    @classmethod
    def calculate_shipping_cents(cls, country: str, region: str | None, subtotal_cents: int) -> int:
        """🚚 Shipping cost for a destination using the active zone table"""
        return cls.get_active_settings().calculate_shipping_cents(country, region, subtotal_cents)

    @classmethod
    @transaction.atomic
    def update_settings(cls, changes: dict[str, Any]) -> Result[SiteSettings, ServiceError]:
        """
        📝 Apply a partial or full update to the active settings

        ``id`` and ``is_active`` are never changed through this path.
        """
        site_settings = SiteSettings.objects.select_for_update().get(pk=cls.get_active_settings().pk)

        for field, value in changes.items():
            if field in PROTECTED_FIELDS:
                continue
            setattr(site_settings, field, value)

        try:
            site_settings.full_clean()
        except ValidationError as e:
            return Err(ServiceError("validation_error", "Données invalides", e.message_dict))

        site_settings.save()
        logger.info(f"⚙️ [Settings] Updated fields: {sorted(set(changes) - PROTECTED_FIELDS)}")
        return Ok(site_settings)

    @classmethod
    @transaction.atomic
    def replace_settings(cls, values: dict[str, Any]) -> Result[SiteSettings, ServiceError]:
        """
        🔄 Deactivate the current settings and create a new active row
        """
        data = {field: value for field, value in values.items() if field not in PROTECTED_FIELDS}
        site_settings = SiteSettings(**data, is_active=True)

        try:
            site_settings.full_clean()
        except ValidationError as e:
            return Err(ServiceError("validation_error", "Données invalides", e.message_dict))

        deactivated = SiteSettings.objects.filter(is_active=True).update(is_active=False)
        site_settings.save()
        cls.clear_cache()

        logger.info(f"⚙️ [Settings] Replaced active settings ({deactivated} row(s) deactivated)")
        return Ok(site_settings)
