"""
Site settings models for the firewood storefront
Single active row holding contact data, shipping zones and legal content.
"""

from __future__ import annotations

import copy
from decimal import Decimal, InvalidOperation
from typing import Any, ClassVar

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.utils.translation import gettext_lazy as _

from apps.common.utils import cents_to_decimal, decimal_to_cents

# ===============================================================================
# DEFAULT SHIPPING ZONES
# ===============================================================================

DEFAULT_SHIPPING_ZONES: list[dict[str, Any]] = [
    {
        "country": "France",
        "regions": [
            {"name": "Île-de-France", "cost": 15},
            {"name": "Auvergne-Rhône-Alpes", "cost": 20},
            {"name": "Provence-Alpes-Côte d'Azur", "cost": 25},
            {"name": "Occitanie", "cost": 25},
            {"name": "Nouvelle-Aquitaine", "cost": 22},
            {"name": "Bretagne", "cost": 20},
            {"name": "Pays de la Loire", "cost": 18},
            {"name": "Centre-Val de Loire", "cost": 18},
            {"name": "Normandie", "cost": 18},
            {"name": "Hauts-de-France", "cost": 18},
            {"name": "Grand Est", "cost": 20},
            {"name": "Bourgogne-Franche-Comté", "cost": 20},
            {"name": "Corse", "cost": 35},
        ],
    },
    {
        "country": "Belgique",
        "regions": [
            {"name": "Bruxelles-Capitale", "cost": 25},
            {"name": "Flandre", "cost": 28},
            {"name": "Wallonie", "cost": 28},
        ],
    },
    {
        "country": "Suisse",
        "regions": [
            {"name": "Genève", "cost": 35},
            {"name": "Vaud", "cost": 35},
            {"name": "Valais", "cost": 38},
            {"name": "Berne", "cost": 38},
            {"name": "Zurich", "cost": 40},
            {"name": "Autres cantons", "cost": 40},
        ],
    },
    {
        "country": "Luxembourg",
        "regions": [
            {"name": "Luxembourg", "cost": 30},
        ],
    },
]


def default_shipping_zones() -> list[dict[str, Any]]:
    return copy.deepcopy(DEFAULT_SHIPPING_ZONES)


def default_business_hours() -> dict[str, str]:
    return {
        "monday": "8h-18h",
        "tuesday": "8h-18h",
        "wednesday": "8h-18h",
        "thursday": "8h-18h",
        "friday": "8h-18h",
        "saturday": "9h-12h",
        "sunday": "Fermé",
    }


# ===============================================================================
# SITE SETTINGS
# ===============================================================================

class SiteSettings(models.Model):
    """⚙️ Storefront configuration - exactly one row is active at a time"""

    # Identity
    site_name = models.CharField(_("Site Name"), max_length=100, default="Mon bois de chauffe")
    site_description = models.CharField(_("Site Description"), max_length=500, blank=True)
    site_keywords = models.CharField(_("Site Keywords"), max_length=500, blank=True)

    # Contact
    contact_email = models.EmailField(_("Contact Email"), default="contact@monboisdechauffe.fr")
    contact_phone = models.CharField(_("Contact Phone"), max_length=30, blank=True)
    whatsapp_link = models.URLField(_("WhatsApp Link"), blank=True)

    # Postal address
    address_street = models.CharField(_("Street"), max_length=200, blank=True)
    address_postal_code = models.CharField(_("Postal Code"), max_length=10, blank=True)
    address_city = models.CharField(_("City"), max_length=100, blank=True)
    address_country = models.CharField(_("Country"), max_length=100, default="France")

    # Legal entity
    company_name = models.CharField(_("Company Name"), max_length=150, blank=True)
    siren = models.CharField(_("SIREN"), max_length=9, blank=True)
    siret = models.CharField(_("SIRET"), max_length=14, blank=True)
    vat_number = models.CharField(_("VAT Number"), max_length=20, blank=True)

    # Shipping
    shipping_zones = models.JSONField(
        _("Shipping Zones"),
        default=default_shipping_zones,
        help_text=_("List of {country, regions: [{name, cost}]} with costs in euros"),
    )
    free_shipping_threshold_cents = models.BigIntegerField(
        _("Free Shipping Threshold (cents)"),
        default=50000,
        validators=[MinValueValidator(0)],
        help_text=_("Orders at or above this subtotal ship for free"),
    )

    # Social & e-mail
    social_media = models.JSONField(_("Social Media"), default=dict, blank=True)
    email_from_name = models.CharField(_("Email Sender Name"), max_length=100, default="Mon bois de chauffe")
    email_from_address = models.EmailField(_("Email Sender Address"), blank=True)
    business_hours = models.JSONField(_("Business Hours"), default=default_business_hours, blank=True)

    # Legal content
    mentions_legales = models.TextField(_("Mentions légales"), blank=True)
    politique_confidentialite = models.TextField(_("Politique de confidentialité"), blank=True)
    cgv = models.TextField(_("Conditions générales de vente"), blank=True)
    cookies = models.TextField(_("Politique cookies"), blank=True)

    metadata = models.JSONField(_("Metadata"), default=dict, blank=True)
    is_active = models.BooleanField(_("Is Active"), default=True)

    created_at = models.DateTimeField(_("Created At"), auto_now_add=True)
    updated_at = models.DateTimeField(_("Updated At"), auto_now=True)

    class Meta:
        db_table = 'site_settings'
        verbose_name = _("Site Settings")
        verbose_name_plural = _("Site Settings")
        ordering: ClassVar = ["-created_at"]
        indexes: ClassVar = [
            models.Index(fields=["is_active"]),
        ]

    def __str__(self) -> str:
        return f"⚙️ {self.site_name}{'' if self.is_active else ' (inactive)'}"

    # ===============================================================================
    # VALIDATION
    # ===============================================================================

    def clean(self) -> None:
        """Validate the shipping zone table"""
        super().clean()

        if not isinstance(self.shipping_zones, list):
            raise ValidationError({"shipping_zones": _("Shipping zones must be a list")})

        for index, zone in enumerate(self.shipping_zones):
            if not isinstance(zone, dict) or not zone.get("country"):
                raise ValidationError({"shipping_zones": _("Zone %(index)s has no country") % {"index": index}})

            regions = zone.get("regions")
            if not isinstance(regions, list):
                raise ValidationError(
                    {"shipping_zones": _("Zone %(country)s must list its regions") % {"country": zone["country"]}}
                )

            for region in regions:
                if not isinstance(region, dict) or not region.get("name"):
                    raise ValidationError(
                        {"shipping_zones": _("Every region of %(country)s needs a name") % {"country": zone["country"]}}
                    )
                try:
                    cost = Decimal(str(region.get("cost")))
                except (InvalidOperation, ValueError):
                    raise ValidationError(
                        {"shipping_zones": _("Invalid cost for region %(name)s") % {"name": region["name"]}}
                    ) from None
                if cost < 0:
                    raise ValidationError(
                        {"shipping_zones": _("Cost for region %(name)s cannot be negative") % {"name": region["name"]}}
                    )

    # ===============================================================================
    # PROPERTIES
    # ===============================================================================

    @property
    def free_shipping_threshold(self) -> Decimal:
        return cents_to_decimal(self.free_shipping_threshold_cents)

    @property
    def full_address(self) -> str:
        parts = [
            self.address_street,
            f"{self.address_postal_code} {self.address_city}".strip(),
            self.address_country,
        ]
        return ", ".join(part for part in parts if part)

    @property
    def sender_email(self) -> str:
        address = self.email_from_address or settings.DEFAULT_FROM_EMAIL
        return f"{self.email_from_name} <{address}>" if self.email_from_name else address

    # ===============================================================================
    # SHIPPING
    # ===============================================================================

    def get_zone(self, country: str) -> dict[str, Any] | None:
        """Find the shipping zone of a country (case-insensitive)"""
        wanted = (country or "").strip().lower()
        for zone in self.shipping_zones or []:
            if str(zone.get("country", "")).lower() == wanted:
                return zone
        return None

    def calculate_shipping_cents(self, country: str, region: str | None, subtotal_cents: int) -> int:
        """
        Shipping cost for a destination.

        Free above the threshold. Unknown countries pay the standard rate,
        unknown regions pay the first region's rate of their country.
        """
        if subtotal_cents >= self.free_shipping_threshold_cents:
            return 0

        default_cents = settings.ORDER_STANDARD_SHIPPING_CENTS
        zone = self.get_zone(country)
        if zone is None:
            return default_cents

        regions = zone.get("regions") or []
        wanted = (region or "").strip().lower()
        for candidate in regions:
            if str(candidate.get("name", "")).lower() == wanted:
                return decimal_to_cents(candidate["cost"])

        if regions:
            return decimal_to_cents(regions[0]["cost"])
        return default_cents
