"""
Django admin configuration for support ticket models.
Contact form follow-up administration.
"""


from typing import Any

from django.contrib import admin
from django.db.models.query import QuerySet
from django.http import HttpRequest
from django.utils.html import format_html
from django.utils.safestring import SafeString
from django.utils.translation import gettext_lazy as _

from .models import Ticket, TicketInternalNote, TicketResponse, TicketStatusHistory
from .services import TicketService

PRIORITY_COLORS: dict[str, str] = {
    'low': '#10B981',      # Green
    'normal': '#3B82F6',   # Blue
    'high': '#F59E0B',     # Amber
    'urgent': '#EF4444',   # Red
}


class TicketResponseInline(admin.TabularInline):
    model = TicketResponse
    extra = 0
    fields = ['method', 'message', 'is_internal', 'responded_by', 'responded_at']
    readonly_fields = ['responded_at']


class TicketInternalNoteInline(admin.TabularInline):
    model = TicketInternalNote
    extra = 0
    fields = ['note', 'author', 'is_private', 'created_at']
    readonly_fields = ['created_at']


class TicketStatusHistoryInline(admin.TabularInline):
    model = TicketStatusHistory
    extra = 0
    can_delete = False
    readonly_fields = ['old_status', 'new_status', 'changed_by', 'note', 'changed_at']


# ===============================================================================
# TICKET ADMIN
# ===============================================================================

@admin.register(Ticket)
class TicketAdmin(admin.ModelAdmin):
    """Contact tickets with SLA indicators"""

    list_display = [
        'ticket_number',
        'customer_email',
        'subject',
        'status',
        'priority_display',
        'assigned_to',
        'sla_status',
        'created_at',
    ]
    list_filter = ['status', 'priority', 'subject', 'source', 'assigned_team', 'is_vip', 'is_spam']
    search_fields = ['ticket_number', 'customer_email', 'customer_first_name', 'customer_last_name', 'message']
    inlines = [TicketResponseInline, TicketInternalNoteInline, TicketStatusHistoryInline]
    actions = ['mark_resolved', 'mark_closed']

    fieldsets = (
        (_('Ticket'), {
            'fields': ('ticket_number', 'status', 'priority', 'subject', 'message', 'tags')
        }),
        (_('Customer'), {
            'fields': (
                'customer_first_name', 'customer_last_name', 'customer_email',
                'customer_phone', 'customer_company', 'preferred_contact', 'source',
            )
        }),
        (_('Assignment'), {
            'fields': ('assigned_to', 'assigned_team', 'requires_follow_up', 'follow_up_date', 'is_vip', 'is_spam')
        }),
        (_('Service Level'), {
            'fields': ('first_response_at', 'resolved_at', 'closed_at'),
            'classes': ('collapse',),
        }),
        (_('Satisfaction'), {
            'fields': ('satisfaction_rating', 'satisfaction_feedback', 'satisfaction_submitted_at'),
            'classes': ('collapse',),
        }),
        (_('Related Records'), {
            'fields': ('related_order', 'related_quote'),
            'classes': ('collapse',),
        }),
        (_('Request Metadata'), {
            'fields': ('ip_address', 'user_agent', 'referer', 'created_at', 'updated_at'),
            'classes': ('collapse',),
        }),
    )
    readonly_fields = ['ticket_number', 'created_at', 'updated_at', 'ip_address', 'user_agent', 'referer']

    @admin.display(description=_('Priority'))
    def priority_display(self, obj: Ticket) -> SafeString:
        """Display priority with colors"""
        return format_html(
            '<span style="color: {}; font-weight: bold;">{}</span>',
            PRIORITY_COLORS.get(obj.priority, '#6B7280'),
            obj.get_priority_display()
        )

    @admin.display(description=_('SLA'))
    def sla_status(self, obj: Ticket) -> SafeString:
        if obj.is_overdue:
            return format_html('<span style="color: red;">{}</span>', '❌ Overdue')
        return format_html('<span style="color: green;">{}</span>', '✅ On Time')

    @admin.action(description=_('Mark selected tickets as resolved'))
    def mark_resolved(self, request: HttpRequest, queryset: QuerySet[Ticket]) -> None:
        for ticket in queryset:
            TicketService.resolve(ticket, user=request.user)
        self.message_user(request, _('%(count)d ticket(s) resolved.') % {'count': queryset.count()})

    @admin.action(description=_('Close selected tickets'))
    def mark_closed(self, request: HttpRequest, queryset: QuerySet[Ticket]) -> None:
        for ticket in queryset:
            TicketService.close(ticket, user=request.user)
        self.message_user(request, _('%(count)d ticket(s) closed.') % {'count': queryset.count()})

    def get_queryset(self, request: HttpRequest) -> QuerySet[Ticket]:
        return super().get_queryset(request).select_related('assigned_to')

    def has_delete_permission(self, request: HttpRequest, obj: Any = None) -> bool:
        return bool(request.user.is_superuser)
