"""
Django admin for notifications app.
Read-only view over the outbound e-mail log.
"""

from __future__ import annotations

from typing import Any, ClassVar

from django.contrib import admin
from django.http import HttpRequest
from django.utils.html import format_html
from django.utils.safestring import SafeString
from django.utils.translation import gettext_lazy as _

from .models import EmailLog


@admin.register(EmailLog)
class EmailLogAdmin(admin.ModelAdmin):
    """Admin interface for email logs"""

    list_display: ClassVar[list[str]] = ('subject', 'to_addr', 'template_key', 'status_display', 'reference', 'sent_at')
    list_filter: ClassVar[list[str]] = ('status', 'template_key', 'sent_at')
    search_fields: ClassVar[list[str]] = ('to_addr', 'subject', 'reference', 'message_id')
    readonly_fields: ClassVar[list[str]] = (
        'to_addr', 'from_addr', 'reply_to', 'template_key', 'subject', 'status',
        'message_id', 'error', 'reference', 'meta', 'sent_at',
    )

    @admin.display(description=_('Status'))
    def status_display(self, obj: EmailLog) -> SafeString:
        color = '#10B981' if obj.is_successful() else '#EF4444'
        return format_html('<span style="color: {}; font-weight: bold;">{}</span>', color, obj.get_status_display())

    def has_add_permission(self, request: HttpRequest) -> bool:
        return False

    def has_change_permission(self, request: HttpRequest, obj: Any = None) -> bool:
        return False
