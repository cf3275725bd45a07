"""
Newsletter services for the firewood storefront
Double opt-in subscription, confirmation, unsubscription and dashboard stats.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlencode

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from apps.common.types import Err, Ok, Result, ServiceError
from apps.common.validators import log_security_event

from .models import INTEREST_CHOICES, Subscriber
from .tokens import make_confirmation_token, make_unsubscribe_token, verify_confirmation_token, verify_unsubscribe_token

logger = logging.getLogger(__name__)

CONTACT_FORM_SOURCE = 'contact_form'
CONTACT_FORM_INTERESTS = ('promotions', 'conseils')
DEFAULT_UNSUBSCRIBE_REASON = "Non spécifiée"


@dataclass
class SubscriptionOutcome:
    subscriber: Subscriber
    reactivated: bool = False
    email_sent: bool = False
    stats: dict[str, Any] = field(default_factory=dict)


@dataclass
class ConfirmationOutcome:
    subscriber: Subscriber
    already_confirmed: bool = False
    stats: dict[str, Any] = field(default_factory=dict)


@dataclass
class UnsubscribeOutcome:
    subscriber: Subscriber
    already_unsubscribed: bool = False
    stats: dict[str, Any] = field(default_factory=dict)


def _percentage(part: int, whole: int, digits: int = 0) -> float:
    if whole <= 0:
        return 0
    value = part / whole * 100
    return round(value, digits) if digits else round(value)


class NewsletterService:
    """📰 Newsletter subscription lifecycle"""

    # ===============================================================================
    # LINKS
    # ===============================================================================

    @staticmethod
    def confirmation_url(subscriber: Subscriber) -> str:
        token = make_confirmation_token(subscriber.pk)
        return f"{settings.SITE_URL}/newsletter/confirmation?{urlencode({'token': token})}"

    @staticmethod
    def unsubscribe_url(subscriber: Subscriber) -> str:
        query = urlencode({'email': subscriber.email, 'token': make_unsubscribe_token(subscriber.pk, subscriber.email)})
        return f"{settings.SITE_URL}/newsletter/desinscription?{query}"

    # ===============================================================================
    # STATS
    # ===============================================================================

    @staticmethod
    def subscription_stats() -> dict[str, Any]:
        today_start = timezone.localtime().replace(hour=0, minute=0, second=0, microsecond=0)
        total = Subscriber.objects.count()
        today = Subscriber.objects.filter(subscribed_at__gte=today_start).count()
        return {
            'total': total,
            'active': Subscriber.objects.filter(is_active=True).count(),
            'today': today,
            'growthRate': _percentage(today, total, digits=2),
        }

    @staticmethod
    def confirmation_stats() -> dict[str, Any]:
        today_start = timezone.localtime().replace(hour=0, minute=0, second=0, microsecond=0)
        active = Subscriber.objects.filter(is_active=True)
        total = active.count()
        confirmed = active.filter(confirmed_at__isnull=False).count()
        return {
            'total': total,
            'confirmed': confirmed,
            'pending': total - confirmed,
            'todayConfirmations': Subscriber.objects.filter(confirmed_at__gte=today_start).count(),
            'confirmationRate': _percentage(confirmed, total),
        }

    @staticmethod
    def unsubscribe_stats() -> dict[str, Any]:
        today_start = timezone.localtime().replace(hour=0, minute=0, second=0, microsecond=0)
        total = Subscriber.objects.count()
        active = Subscriber.objects.filter(is_active=True).count()
        return {
            'total': total,
            'active': active,
            'unsubscribed': total - active,
            'todayUnsubscribes': Subscriber.objects.filter(unsubscribed_at__gte=today_start).count(),
            'retentionRate': _percentage(active, total),
        }

    # ===============================================================================
    # OPERATIONS
    # ===============================================================================

    @staticmethod
    def subscribe(
        email: str,
        first_name: str = '',
        interests: list[str] | None = None,
        source: str = 'unknown',
        metadata: dict[str, Any] | None = None,
    ) -> Result[SubscriptionOutcome, ServiceError]:
        """
        ✉️ Subscribe an address

        An active address is a conflict, an inactive one is reactivated and a
        new one receives the confirmation e-mail.
        """
        from apps.notifications.services import EmailService  # noqa: PLC0415

        email = (email or '').strip().lower()
        interests = list(interests or [])
        metadata = metadata or {}

        with transaction.atomic():
            existing = Subscriber.objects.select_for_update().filter(email=email).first()

            if existing is not None and existing.is_active:
                return Err(ServiceError('already_subscribed', "Cette adresse email est déjà inscrite à notre newsletter"))

            if existing is not None:
                existing.is_active = True
                existing.first_name = (first_name or '').strip() or existing.first_name
                existing.interests = interests or existing.interests
                existing.source = source or existing.source
                existing.subscribed_at = timezone.now()
                existing.unsubscribed_at = None
                existing.unsubscribe_reason = ''
                _apply_metadata(existing, metadata)
                subscriber = existing
                reactivated = True
            else:
                subscriber = Subscriber(
                    email=email,
                    first_name=(first_name or '').strip(),
                    interests=interests,
                    source=source or 'unknown',
                )
                _apply_metadata(subscriber, metadata)
                reactivated = False

            try:
                subscriber.full_clean(validate_unique=not reactivated)
            except ValidationError as e:
                return Err(ServiceError('validation_error', "Données invalides", e.message_dict))
            subscriber.save()

        if reactivated:
            logger.info(f"📰 [Newsletter] Reactivated {email}")
            return Ok(SubscriptionOutcome(subscriber, reactivated=True, stats=NewsletterService.subscription_stats()))

        email_result = EmailService.send_newsletter_confirmation(
            subscriber,
            NewsletterService.confirmation_url(subscriber),
            NewsletterService.unsubscribe_url(subscriber),
        )
        if email_result.is_err():
            logger.warning(f"⚠️ [Newsletter] Confirmation e-mail to {email} failed: {email_result.error}")

        logger.info(f"📰 [Newsletter] New subscriber {email} from {subscriber.source}")
        return Ok(SubscriptionOutcome(
            subscriber,
            email_sent=email_result.is_ok(),
            stats=NewsletterService.subscription_stats(),
        ))

    @staticmethod
    @transaction.atomic
    def confirm(token: str, metadata: dict[str, Any] | None = None) -> Result[ConfirmationOutcome, ServiceError]:
        """✅ Confirm a subscription from the e-mailed token"""
        if not token:
            return Err(ServiceError('missing_token', "Token de confirmation requis"))

        token_result = verify_confirmation_token(token)
        if token_result.is_err():
            if token_result.error.code == 'invalid_token':
                log_security_event(
                    'newsletter_invalid_token', {'kind': 'confirmation'}, (metadata or {}).get('ip_address')
                )
            return token_result

        try:
            subscriber_id = uuid.UUID(token_result.unwrap())
        except ValueError:
            return Err(ServiceError('not_found', "Abonné non trouvé"))

        subscriber = Subscriber.objects.select_for_update().filter(pk=subscriber_id).first()
        if subscriber is None:
            return Err(ServiceError('not_found', "Abonné non trouvé"))

        if subscriber.confirmed_at is not None:
            return Ok(ConfirmationOutcome(subscriber, already_confirmed=True))

        if not subscriber.is_active:
            return Err(ServiceError('subscription_cancelled', "Cet abonnement a été annulé"))

        subscriber.confirmed_at = timezone.now()
        subscriber.save(update_fields=['confirmed_at', 'updated_at'])

        logger.info(f"✅ [Newsletter] Confirmed {subscriber.email}")
        return Ok(ConfirmationOutcome(subscriber, stats=NewsletterService.confirmation_stats()))

    @staticmethod
    @transaction.atomic
    def unsubscribe(
        email: str, token: str | None = None, reason: str | None = None, request_ip: str | None = None
    ) -> Result[UnsubscribeOutcome, ServiceError]:
        """🚪 Unsubscribe; a token, when given, must match the address"""
        email = (email or '').strip().lower()
        if not email:
            return Err(ServiceError('missing_email', "Adresse email requise"))

        subscriber = Subscriber.objects.select_for_update().filter(email=email).first()
        if subscriber is None:
            return Err(ServiceError('not_found', "Adresse email non trouvée dans notre liste"))

        if not subscriber.is_active:
            return Ok(UnsubscribeOutcome(subscriber, already_unsubscribed=True))

        if token and not verify_unsubscribe_token(subscriber.pk, subscriber.email, token):
            log_security_event('newsletter_invalid_token', {'kind': 'unsubscribe', 'email': email}, request_ip)
            return Err(ServiceError('invalid_token', "Token de désabonnement invalide"))

        subscriber.is_active = False
        subscriber.unsubscribed_at = timezone.now()
        subscriber.unsubscribe_reason = (reason or '').strip()[:200] or DEFAULT_UNSUBSCRIBE_REASON
        subscriber.save(update_fields=['is_active', 'unsubscribed_at', 'unsubscribe_reason', 'updated_at'])

        logger.info(f"🚪 [Newsletter] Unsubscribed {email}: {subscriber.unsubscribe_reason}")
        return Ok(UnsubscribeOutcome(subscriber, stats=NewsletterService.unsubscribe_stats()))

    @staticmethod
    @transaction.atomic
    def upsert_from_contact(email: str, first_name: str = '', metadata: dict[str, Any] | None = None) -> Subscriber:
        """
        Opt-in ticked on the contact form: create or reactivate the subscriber
        and make sure it follows promotions and advice
        """
        email = (email or '').strip().lower()
        subscriber, created = Subscriber.objects.select_for_update().get_or_create(
            email=email,
            defaults={
                'first_name': (first_name or '').strip(),
                'interests': list(CONTACT_FORM_INTERESTS),
                'source': CONTACT_FORM_SOURCE,
            },
        )
        if not created:
            merged = list(subscriber.interests or [])
            merged.extend(i for i in CONTACT_FORM_INTERESTS if i not in merged)
            subscriber.interests = [i for i in merged if i in INTEREST_CHOICES]
            subscriber.source = CONTACT_FORM_SOURCE
            if not subscriber.is_active:
                subscriber.is_active = True
                subscriber.subscribed_at = timezone.now()
                subscriber.unsubscribed_at = None
        _apply_metadata(subscriber, metadata or {})
        subscriber.save()

        logger.info(f"📰 [Newsletter] Contact form opt-in for {email} ({'new' if created else 'updated'})")
        return subscriber


def _apply_metadata(subscriber: Subscriber, metadata: dict[str, Any]) -> None:
    subscriber.ip_address = metadata.get('ip_address') or subscriber.ip_address
    subscriber.user_agent = (metadata.get('user_agent') or subscriber.user_agent or '')[:1000]
    subscriber.referer = (metadata.get('referer') or subscriber.referer or '')[:1000]
