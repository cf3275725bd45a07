"""
Notifications models for the firewood storefront
Outbound transactional e-mail log.
"""

import uuid
from typing import ClassVar

from django.core.validators import EmailValidator
from django.db import models
from django.utils.translation import gettext_lazy as _

# ===============================================================================
# EMAIL LOGGING & TRACKING
# ===============================================================================

class EmailLog(models.Model):
    """
    Email delivery log for audit and debugging.
    One row per recipient list and send attempt, successful or not.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    to_addr = models.TextField(help_text=_("Comma separated recipient addresses"))
    from_addr = models.CharField(
        max_length=255,
        blank=True,
        help_text=_("Sender as used in the From header")
    )
    reply_to = models.EmailField(
        blank=True,
        validators=[EmailValidator()],
        help_text=_("Reply-to email address")
    )

    # Email content
    template_key = models.CharField(
        max_length=100,
        help_text=_("Template used to generate this email")
    )
    subject = models.CharField(max_length=255, help_text=_("Actual email subject sent"))

    STATUS_CHOICES: ClassVar[list[tuple[str, object]]] = [
        ('sent', _('Sent')),        # Accepted by the mail backend
        ('failed', _('Failed')),    # Backend raised
    ]
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='sent')

    message_id = models.CharField(max_length=255, blank=True, help_text=_("Message-ID header value"))
    error = models.TextField(blank=True)

    # Object the e-mail is about (order number, ticket number, subscriber email)
    reference = models.CharField(max_length=100, blank=True)
    meta = models.JSONField(default=dict, blank=True)

    sent_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'email_log'
        verbose_name = _('Email Log')
        verbose_name_plural = _('Email Logs')
        indexes: ClassVar[list[models.Index]] = [
            models.Index(fields=['template_key', '-sent_at']),
            models.Index(fields=['status', '-sent_at']),
            models.Index(fields=['reference']),
            models.Index(fields=['-sent_at']),
        ]
        ordering: ClassVar[list[str]] = ['-sent_at']

    def __str__(self) -> str:
        return f"{self.subject} → {self.to_addr} ({self.status})"

    def is_successful(self) -> bool:
        return self.status == 'sent'
