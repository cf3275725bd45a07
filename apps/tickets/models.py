"""
Support ticket models for the firewood storefront
Every contact form submission becomes a ticket followed up by the team.
"""

import logging
import uuid
from datetime import timedelta
from typing import Any, ClassVar

from django.conf import settings
from django.core.validators import MaxLengthValidator, MaxValueValidator, MinLengthValidator, MinValueValidator
from django.db import IntegrityError, models, transaction
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from apps.common.validators import validate_french_phone

logger = logging.getLogger(__name__)

# Hours before an unanswered ticket is overdue
SLA_HOURS: dict[str, int] = {
    'urgent': 1,
    'high': 4,
    'normal': 24,
    'low': 48,
}

CLOSED_STATUSES = frozenset({'resolved', 'closed'})

TICKET_NUMBER_ATTEMPTS = 5


def _round_hours(delta: timedelta) -> float:
    return round(delta.total_seconds() / 3600, 2)


class Ticket(models.Model):
    """Customer contact / support ticket"""

    STATUS_CHOICES: ClassVar[list[tuple[str, Any]]] = [
        ('new', _('New')),
        ('in_progress', _('In Progress')),
        ('pending_customer', _('Pending Customer')),
        ('resolved', _('Resolved')),
        ('closed', _('Closed')),
    ]

    PRIORITY_CHOICES: ClassVar[list[tuple[str, Any]]] = [
        ('low', _('Low')),
        ('normal', _('Normal')),
        ('high', _('High')),
        ('urgent', _('Urgent')),
    ]

    SUBJECT_CHOICES: ClassVar[list[tuple[str, Any]]] = [
        ('devis', _('Quote')),
        ('livraison', _('Delivery')),
        ('produits', _('Products')),
        ('commande', _('Order')),
        ('support', _('Support')),
        ('autre', _('Other')),
    ]

    PREFERRED_CONTACT_CHOICES: ClassVar[list[tuple[str, Any]]] = [
        ('email', _('Email')),
        ('phone', _('Phone')),
        ('both', _('Both')),
    ]

    SOURCE_CHOICES: ClassVar[list[tuple[str, Any]]] = [
        ('website', _('Website')),
        ('phone', _('Phone')),
        ('email', _('Email')),
        ('chat', _('Chat')),
        ('social', _('Social Media')),
        ('referral', _('Referral')),
    ]

    TEAM_CHOICES: ClassVar[list[tuple[str, Any]]] = [
        ('commercial', _('Sales')),
        ('support', _('Support')),
        ('livraison', _('Delivery')),
        ('technique', _('Technical')),
        ('direction', _('Management')),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    # Ticket identification
    ticket_number = models.CharField(
        max_length=20,
        unique=True,
        blank=True,
        verbose_name=_('Ticket Number')
    )

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='new', verbose_name=_('Status'))
    priority = models.CharField(max_length=10, choices=PRIORITY_CHOICES, default='normal', verbose_name=_('Priority'))

    # Customer
    customer_first_name = models.CharField(max_length=50, validators=[MinLengthValidator(2)])
    customer_last_name = models.CharField(max_length=50, validators=[MinLengthValidator(2)])
    customer_email = models.EmailField(verbose_name=_('Contact Email'))
    customer_phone = models.CharField(max_length=30, validators=[validate_french_phone])
    customer_company = models.CharField(max_length=100, blank=True)

    # Request
    subject = models.CharField(max_length=20, choices=SUBJECT_CHOICES, verbose_name=_('Subject'))
    message = models.TextField(validators=[MinLengthValidator(10), MaxLengthValidator(2000)])
    preferred_contact = models.CharField(max_length=10, choices=PREFERRED_CONTACT_CHOICES, default='email')
    source = models.CharField(max_length=20, choices=SOURCE_CHOICES, default='website', verbose_name=_('Source'))
    tags = models.JSONField(default=list, blank=True)

    # Assignment
    assigned_to = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='assigned_tickets',
        verbose_name=_('Assigned To')
    )
    assigned_team = models.CharField(max_length=20, choices=TEAM_CHOICES, blank=True)

    # SLA tracking
    first_response_at = models.DateTimeField(null=True, blank=True)
    resolved_at = models.DateTimeField(null=True, blank=True)
    closed_at = models.DateTimeField(null=True, blank=True)

    # Customer satisfaction
    satisfaction_rating = models.PositiveSmallIntegerField(
        null=True,
        blank=True,
        validators=[MinValueValidator(1), MaxValueValidator(5)],
        verbose_name=_('Satisfaction Rating (1-5)')
    )
    satisfaction_feedback = models.TextField(blank=True, validators=[MaxLengthValidator(500)])
    satisfaction_submitted_at = models.DateTimeField(null=True, blank=True)

    # Request metadata
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    user_agent = models.TextField(blank=True)
    referer = models.TextField(blank=True)

    # Related records
    related_order = models.ForeignKey(
        'orders.Order',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='tickets',
    )
    related_quote = models.ForeignKey(
        'orders.Quote',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='tickets',
    )

    # Flags
    is_vip = models.BooleanField(default=False, verbose_name=_('VIP'))
    is_spam = models.BooleanField(default=False, verbose_name=_('Spam'))
    requires_follow_up = models.BooleanField(default=True, verbose_name=_('Requires Follow-up'))
    follow_up_date = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True, verbose_name=_('Created At'))
    updated_at = models.DateTimeField(auto_now=True, verbose_name=_('Updated At'))

    class Meta:
        db_table = 'tickets'
        verbose_name = _('Support Ticket')
        verbose_name_plural = _('Support Tickets')
        ordering: ClassVar[list[str]] = ['-created_at']
        indexes: ClassVar[list[models.Index]] = [
            models.Index(fields=['status', 'priority']),
            models.Index(fields=['customer_email', '-created_at']),
            models.Index(fields=['subject', 'status']),
            models.Index(fields=['assigned_to', 'status']),
            models.Index(fields=['source', '-created_at']),
            models.Index(fields=['-created_at']),
        ]

    def __str__(self) -> str:
        return f"#{self.ticket_number}: {self.get_subject_display()} - {self.customer_email}"

    def save(self, *args: Any, **kwargs: Any) -> None:
        if self.ticket_number:
            super().save(*args, **kwargs)
            return

        # numbers come from today's count, so a concurrent submission can take
        # the same one first; the next free number is tried instead
        for attempt in range(TICKET_NUMBER_ATTEMPTS):
            self.ticket_number = self._generate_ticket_number(offset=attempt)
            try:
                with transaction.atomic():
                    super().save(*args, **kwargs)
                return
            except IntegrityError:
                taken = Ticket.objects.filter(ticket_number=self.ticket_number).exists()
                if attempt == TICKET_NUMBER_ATTEMPTS - 1 or not taken:
                    raise
                logger.warning(f"⚠️ [Tickets] Ticket number {self.ticket_number} already used, retrying")

    def _generate_ticket_number(self, offset: int = 0) -> str:
        """TKT + yyyymmdd + count of today's tickets + 1"""
        now = timezone.localtime()
        start_of_day = now.replace(hour=0, minute=0, second=0, microsecond=0)
        count = Ticket.objects.filter(created_at__gte=start_of_day).count()
        return f"TKT{now:%Y%m%d}{count + 1 + offset:04d}"

    @property
    def customer_full_name(self) -> str:
        return f"{self.customer_first_name} {self.customer_last_name}".strip()

    @property
    def is_overdue(self) -> bool:
        """Open tickets older than their priority SLA"""
        if self.status in CLOSED_STATUSES or self.created_at is None:
            return False
        age = timezone.now() - self.created_at
        return age > timedelta(hours=SLA_HOURS.get(self.priority, 24))

    @property
    def first_response_time(self) -> dict[str, Any] | None:
        if not self.first_response_at or not self.created_at:
            return None
        delta = self.first_response_at - self.created_at
        hours = _round_hours(delta)
        if hours < 1:
            formatted = f"{round(delta.total_seconds() / 60)} minutes"
        else:
            formatted = f"{hours:g} heures"
        return {'hours': hours, 'formatted': formatted}

    @property
    def resolution_time(self) -> dict[str, Any] | None:
        if not self.resolved_at or not self.created_at:
            return None
        hours = _round_hours(self.resolved_at - self.created_at)
        if hours < 24:
            formatted = f"{hours:g} heures"
        else:
            formatted = f"{round(hours / 24, 2):g} jours"
        return {'hours': hours, 'formatted': formatted}


class TicketResponse(models.Model):
    """Replies sent to the customer (or logged calls)"""

    METHOD_CHOICES: ClassVar[list[tuple[str, Any]]] = [
        ('email', _('Email')),
        ('phone', _('Phone')),
        ('sms', _('SMS')),
        ('chat', _('Chat')),
        ('meeting', _('Meeting')),
    ]

    ticket = models.ForeignKey(Ticket, on_delete=models.CASCADE, related_name='responses', verbose_name=_('Ticket'))
    responded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='ticket_responses',
    )
    method = models.CharField(max_length=10, choices=METHOD_CHOICES)
    message = models.TextField(validators=[MaxLengthValidator(2000)])
    is_internal = models.BooleanField(default=False)
    responded_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'ticket_responses'
        verbose_name = _('Ticket Response')
        verbose_name_plural = _('Ticket Responses')
        ordering: ClassVar[list[str]] = ['responded_at']
        indexes: ClassVar[list[models.Index]] = [
            models.Index(fields=['ticket', 'responded_at']),
        ]

    def __str__(self) -> str:
        return f"Response on {self.ticket.ticket_number} ({self.method})"


class TicketInternalNote(models.Model):
    """Staff-only notes"""

    ticket = models.ForeignKey(
        Ticket, on_delete=models.CASCADE, related_name='internal_notes', verbose_name=_('Ticket')
    )
    note = models.TextField(validators=[MaxLengthValidator(1000)])
    author = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='ticket_notes',
    )
    is_private = models.BooleanField(default=False)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'ticket_internal_notes'
        verbose_name = _('Ticket Internal Note')
        verbose_name_plural = _('Ticket Internal Notes')
        ordering: ClassVar[list[str]] = ['created_at']

    def __str__(self) -> str:
        return f"Note on {self.ticket.ticket_number}"


class TicketStatusHistory(models.Model):
    """Status changes after creation"""

    ticket = models.ForeignKey(
        Ticket, on_delete=models.CASCADE, related_name='status_history', verbose_name=_('Ticket')
    )
    old_status = models.CharField(max_length=20, blank=True)
    new_status = models.CharField(max_length=20, choices=Ticket.STATUS_CHOICES)
    changed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='ticket_status_changes',
    )
    note = models.CharField(max_length=200, blank=True)
    changed_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'ticket_status_history'
        verbose_name = _('Ticket Status History')
        verbose_name_plural = _('Ticket Status History')
        ordering: ClassVar[list[str]] = ['-changed_at']

    def __str__(self) -> str:
        return f"{self.ticket.ticket_number}: {self.old_status} → {self.new_status}"
