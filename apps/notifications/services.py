"""
Notification Services for the firewood storefront
Transactional e-mail: quotes, bank details, contact tickets and newsletter
confirmation. Every send is logged and reported as a Result, never raised.
"""

from __future__ import annotations

import logging
from email.utils import make_msgid
from typing import TYPE_CHECKING, Any

from django.conf import settings
from django.core.mail import EmailMultiAlternatives
from django.template.loader import render_to_string

from apps.common.types import Err, Ok, Result
from apps.common.utils import format_euros

from .models import EmailLog

if TYPE_CHECKING:
    from apps.newsletter.models import Subscriber
    from apps.orders.models import Order, Quote
    from apps.tickets.models import Ticket

logger = logging.getLogger(__name__)

TEMPLATE_DIR = 'notifications/emails'

SUBJECT_LABELS: dict[str, str] = {
    'devis': "Demande de devis",
    'livraison': "Question livraison",
    'produits': "Question produits",
    'commande': "Suivi de commande",
    'support': "Support technique",
    'autre': "Autre demande",
}


# ===============================================================================
# EMAIL SERVICE
# ===============================================================================


class EmailService:
    """
    📧 Email notification service.
    Text and HTML bodies come from templates under notifications/emails/.
    """

    @staticmethod
    def _site_context() -> dict[str, Any]:
        from apps.settings.services import SiteSettingsService  # noqa: PLC0415

        site = SiteSettingsService.get_active_settings()
        return {
            'site': site,
            'site_name': site.site_name,
            'site_url': settings.SITE_URL,
            'contact_email': site.contact_email,
            'contact_phone': site.contact_phone,
        }

    @staticmethod
    def _sender() -> str:
        from apps.settings.services import SiteSettingsService  # noqa: PLC0415

        try:
            return SiteSettingsService.get_active_settings().sender_email
        except Exception as e:
            logger.warning(f"⚠️ [Email] Falling back to DEFAULT_FROM_EMAIL: {e}")
            return settings.DEFAULT_FROM_EMAIL

    @staticmethod
    def send_template_email(
        template_key: str,
        recipients: list[str],
        subject: str,
        context: dict[str, Any],
        reference: str = '',
        reply_to: str | None = None,
    ) -> Result[str, str]:
        """
        Render ``<template_key>.txt`` / ``.html`` and send them as one message.
        Returns the Message-ID on success.
        """
        recipients = [address for address in recipients if address]
        if not recipients:
            return Err("No recipient")

        sender = EmailService._sender()
        domain = sender.rsplit('@', 1)[-1].rstrip('>') if '@' in sender else None
        message_id = make_msgid(domain=domain)

        try:
            full_context = {**EmailService._site_context(), **context}
            text_body = render_to_string(f"{TEMPLATE_DIR}/{template_key}.txt", full_context)
            html_body = render_to_string(f"{TEMPLATE_DIR}/{template_key}.html", full_context)

            message = EmailMultiAlternatives(
                subject=subject,
                body=text_body,
                from_email=sender,
                to=recipients,
                reply_to=[reply_to] if reply_to else None,
                headers={'Message-ID': message_id},
            )
            message.attach_alternative(html_body, 'text/html')
            message.send(fail_silently=False)
        except Exception as e:
            logger.exception(f"🔥 [Email] Failed to send {template_key} to {recipients}: {e}")
            EmailService._log(template_key, recipients, sender, subject, 'failed', '', reference, str(e), reply_to)
            return Err(str(e))

        EmailService._log(template_key, recipients, sender, subject, 'sent', message_id, reference, '', reply_to)
        logger.info(f"📧 [Email] Sent {template_key} to {', '.join(recipients)} ({reference or '-'})")
        return Ok(message_id)

    @staticmethod
    def _log(
        template_key: str,
        recipients: list[str],
        sender: str,
        subject: str,
        status: str,
        message_id: str,
        reference: str,
        error: str,
        reply_to: str | None,
    ) -> None:
        try:
            EmailLog.objects.create(
                to_addr=', '.join(recipients),
                from_addr=sender[:255],
                reply_to=reply_to or '',
                template_key=template_key,
                subject=subject[:255],
                status=status,
                message_id=message_id,
                error=error,
                reference=reference[:100],
            )
        except Exception as e:
            logger.error(f"🔥 [Email] Could not write email log for {template_key}: {e}")

    # ===============================================================================
    # ORDER EMAILS
    # ===============================================================================

    @staticmethod
    def send_quote_email(order: Order, quote: Quote) -> Result[str, str]:
        """Quote with the bank transfer instructions"""
        return EmailService.send_template_email(
            'quote',
            [order.customer_email],
            f"Devis pour votre commande {order.order_number}",
            {
                'order': order,
                'quote': quote,
                'items': list(order.items.all()),
                'amount': format_euros(quote.amount_cents),
                'shipping': format_euros(order.shipping_cents),
                'total': format_euros(order.total_cents),
            },
            reference=order.order_number,
        )

    @staticmethod
    def send_bank_details_email(order: Order) -> Result[str, str]:
        amount_cents = order.bank_amount_to_pay_cents
        return EmailService.send_template_email(
            'bank_details',
            [order.customer_email],
            f"Informations bancaires - Commande #{order.order_number}",
            {
                'order': order,
                'amount': format_euros(amount_cents if amount_cents is not None else order.total_cents),
            },
            reference=order.order_number,
        )

    # ===============================================================================
    # CONTACT EMAILS
    # ===============================================================================

    @staticmethod
    def send_contact_confirmation(ticket: Ticket) -> Result[str, str]:
        from apps.tickets.services import estimated_response_time  # noqa: PLC0415

        urgency = {'high': 'urgent', 'low': 'low'}.get(ticket.priority, 'normal')
        return EmailService.send_template_email(
            'contact_confirmation',
            [ticket.customer_email],
            f"Confirmation de réception - Ticket {ticket.ticket_number}",
            {
                'ticket': ticket,
                'subject_label': SUBJECT_LABELS.get(ticket.subject, ticket.subject),
                'estimated_response': estimated_response_time(urgency, ticket.subject),
            },
            reference=ticket.ticket_number,
        )

    @staticmethod
    def send_contact_internal_notification(ticket: Ticket, recipients: list[str]) -> Result[str, str]:
        return EmailService.send_template_email(
            'contact_internal',
            recipients,
            f"[{ticket.priority.upper()}] Nouveau contact: {ticket.ticket_number}",
            {
                'ticket': ticket,
                'subject_label': SUBJECT_LABELS.get(ticket.subject, ticket.subject),
                'admin_url': f"{settings.ADMIN_URL}/tickets/ticket/{ticket.pk}/change/",
            },
            reference=ticket.ticket_number,
            reply_to=ticket.customer_email,
        )

    # ===============================================================================
    # NEWSLETTER EMAILS
    # ===============================================================================

    @staticmethod
    def send_newsletter_confirmation(subscriber: Subscriber, confirm_url: str, unsubscribe_url: str) -> Result[str, str]:
        return EmailService.send_template_email(
            'newsletter_confirmation',
            [subscriber.email],
            "Confirmez votre inscription à notre newsletter",
            {
                'subscriber': subscriber,
                'confirm_url': confirm_url,
                'unsubscribe_url': unsubscribe_url,
                'max_age_days': settings.NEWSLETTER_CONFIRMATION_MAX_AGE_DAYS,
            },
            reference=subscriber.email,
        )
