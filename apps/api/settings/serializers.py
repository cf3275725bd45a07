# ===============================================================================
# SITE SETTINGS API SERIALIZERS ⚙️
# ===============================================================================

from decimal import Decimal
from typing import Any, ClassVar

from rest_framework import serializers

from apps.common.utils import decimal_to_cents
from apps.settings.models import SiteSettings

PUBLIC_FIELDS = [
    'site_name', 'site_description', 'site_keywords',
    'contact_email', 'contact_phone', 'whatsapp_link',
    'address_street', 'address_postal_code', 'address_city', 'address_country', 'full_address',
    'company_name', 'siren', 'siret', 'vat_number',
    'shipping_zones', 'free_shipping_threshold', 'social_media', 'business_hours',
    'mentions_legales', 'politique_confidentialite', 'cgv', 'cookies',
]


class PublicSiteSettingsSerializer(serializers.ModelSerializer):
    """What the storefront needs: identity, contact, shipping and legal pages"""

    full_address = serializers.CharField(read_only=True)
    free_shipping_threshold = serializers.DecimalField(max_digits=10, decimal_places=2, read_only=True)

    class Meta:
        model = SiteSettings
        fields: ClassVar = PUBLIC_FIELDS


class SiteSettingsAdminSerializer(serializers.ModelSerializer):
    """
    Back-office settings; the threshold is exchanged in euros.
    Zone table validation happens in the model ``clean()``.
    """

    full_address = serializers.CharField(read_only=True)
    free_shipping_threshold = serializers.DecimalField(
        max_digits=10, decimal_places=2, min_value=Decimal('0'), required=False
    )

    class Meta:
        model = SiteSettings
        fields: ClassVar = [
            'id', *PUBLIC_FIELDS, 'email_from_name', 'email_from_address',
            'metadata', 'is_active', 'created_at', 'updated_at',
        ]
        read_only_fields: ClassVar = ['id', 'is_active', 'created_at', 'updated_at']

    def to_model_values(self) -> dict[str, Any]:
        values = dict(self.validated_data)
        if 'free_shipping_threshold' in values:
            values['free_shipping_threshold_cents'] = decimal_to_cents(values.pop('free_shipping_threshold'))
        return values


class ShippingCostQuerySerializer(serializers.Serializer):
    country = serializers.CharField(max_length=100, required=False, default='France')
    region = serializers.CharField(max_length=100, required=False, allow_blank=True, default='')
    subtotal = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal('0'), default=Decimal('0'))
