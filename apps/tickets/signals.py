"""
Ticket status signals
Capture the previous status before save, stamp resolution dates and record
the status history once the change is persisted.
"""

import logging
from typing import Any

from django.db.models.signals import post_save, pre_save
from django.dispatch import receiver
from django.utils import timezone

from .models import Ticket, TicketStatusHistory

logger = logging.getLogger(__name__)


@receiver(pre_save, sender=Ticket)
def capture_ticket_status_change(sender: type[Ticket], instance: Ticket, **kwargs: Any) -> None:
    """
    Remember the stored status and set resolved_at / closed_at on the
    transitions that need them.
    """
    old_status = None
    if not instance._state.adding:
        old_status = Ticket.objects.filter(pk=instance.pk).values_list('status', flat=True).first()
    instance._old_status = old_status

    if old_status == instance.status and not instance._state.adding:
        return

    now = timezone.now()
    if instance.status == 'resolved' and not instance.resolved_at:
        instance.resolved_at = now
    elif instance.status == 'closed':
        if not instance.closed_at:
            instance.closed_at = now
        if not instance.resolved_at:
            instance.resolved_at = instance.closed_at


@receiver(post_save, sender=Ticket)
def record_ticket_status_history(sender: type[Ticket], instance: Ticket, created: bool, **kwargs: Any) -> None:
    """Write a history row for status changes on existing tickets"""
    if created:
        logger.info(f"🎫 [Tickets] Opened {instance.ticket_number} ({instance.subject}, {instance.priority})")
        return

    old_status = getattr(instance, '_old_status', None)
    if old_status is None or old_status == instance.status:
        return

    TicketStatusHistory.objects.create(
        ticket=instance,
        old_status=old_status,
        new_status=instance.status,
        changed_by=getattr(instance, '_status_changed_by', None),
        note=(getattr(instance, '_status_note', '') or '')[:200],
    )
    instance._old_status = instance.status
    logger.info(f"🎫 [Tickets] {instance.ticket_number}: {old_status} → {instance.status}")
