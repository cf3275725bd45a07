"""
Django admin configuration for site settings.
"""

from typing import ClassVar

from django.contrib import admin

from .models import SiteSettings


@admin.register(SiteSettings)
class SiteSettingsAdmin(admin.ModelAdmin):
    """Admin interface for site settings."""

    list_display: ClassVar[list[str]] = ('site_name', 'contact_email', 'is_active', 'updated_at')
    list_filter: ClassVar[list[str]] = ('is_active',)

    fieldsets: ClassVar[tuple] = (
        ('Identity', {
            'fields': ('site_name', 'site_description', 'site_keywords')
        }),
        ('Contact', {
            'fields': (
                'contact_email', 'contact_phone', 'whatsapp_link',
                'address_street', 'address_postal_code', 'address_city', 'address_country',
            )
        }),
        ('Company', {
            'fields': ('company_name', 'siren', 'siret', 'vat_number')
        }),
        ('Shipping', {
            'fields': ('shipping_zones', 'free_shipping_threshold_cents')
        }),
        ('Communication', {
            'fields': ('email_from_name', 'email_from_address', 'social_media', 'business_hours')
        }),
        ('Legal', {
            'fields': ('mentions_legales', 'politique_confidentialite', 'cgv', 'cookies'),
            'classes': ('collapse',)
        }),
        ('Status', {
            'fields': ('is_active', 'metadata')
        }),
    )

    readonly_fields: ClassVar[list[str]] = ('created_at', 'updated_at')
