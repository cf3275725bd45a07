"""
Newsletter subscribers for the firewood storefront
"""

import uuid
from typing import Any, ClassVar

from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from apps.common.validators import validate_choice_list

INTEREST_CHOICES: tuple[str, ...] = ('promotions', 'nouveautes', 'conseils', 'saisons')


class Subscriber(models.Model):
    """
    Newsletter subscriber.
    Double opt-in: ``confirmed_at`` is only set once the e-mailed link is followed.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    email = models.EmailField(unique=True, help_text=_("Stored lower-case"))
    first_name = models.CharField(max_length=50, blank=True)
    interests = models.JSONField(default=list, blank=True)
    source = models.CharField(
        max_length=50,
        default='unknown',
        help_text=_("Where the signup came from (footer, contact_form, ...)")
    )

    is_active = models.BooleanField(default=True)
    confirmed_at = models.DateTimeField(null=True, blank=True)
    subscribed_at = models.DateTimeField(default=timezone.now)
    unsubscribed_at = models.DateTimeField(null=True, blank=True)
    unsubscribe_reason = models.CharField(max_length=200, blank=True)

    # Request metadata
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    user_agent = models.TextField(blank=True)
    referer = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'newsletter_subscribers'
        verbose_name = _('Newsletter Subscriber')
        verbose_name_plural = _('Newsletter Subscribers')
        ordering: ClassVar[tuple[str, ...]] = ('-subscribed_at',)
        indexes: ClassVar[tuple[models.Index, ...]] = (
            models.Index(fields=['is_active']),
            models.Index(fields=['-subscribed_at']),
        )

    def __str__(self) -> str:
        return self.email

    def clean(self) -> None:
        validate_choice_list(self.interests, list(INTEREST_CHOICES), 'interests')

    def save(self, *args: Any, **kwargs: Any) -> None:
        self.email = (self.email or '').strip().lower()
        super().save(*args, **kwargs)

    @property
    def is_confirmed(self) -> bool:
        return self.confirmed_at is not None
