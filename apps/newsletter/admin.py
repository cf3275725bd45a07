"""
Django admin configuration for newsletter app.
"""

from typing import ClassVar

from django.contrib import admin

from .models import Subscriber


@admin.register(Subscriber)
class SubscriberAdmin(admin.ModelAdmin):
    """Admin interface for newsletter subscribers."""

    list_display: ClassVar[list[str]] = ('email', 'first_name', 'source', 'is_active', 'confirmed_at', 'subscribed_at')
    list_filter: ClassVar[list[str]] = ('is_active', 'source', 'subscribed_at')
    search_fields: ClassVar[list[str]] = ('email', 'first_name')
    readonly_fields: ClassVar[list[str]] = (
        'subscribed_at', 'confirmed_at', 'unsubscribed_at', 'ip_address', 'user_agent', 'referer',
        'created_at', 'updated_at',
    )
