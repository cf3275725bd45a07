"""
Ticket management service layer.

Contact form intake (anti-spam, priority, tags, notifications) and the staff
follow-up operations: responses, notes, assignment, resolution, stats, search.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, ClassVar

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Count, Q, QuerySet
from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime

from apps.common.types import Err, Ok, Result, ServiceError
from apps.common.utils import PaginationStats, build_pagination, clamp_pagination
from apps.common.validators import log_security_event

from .models import Ticket, TicketInternalNote, TicketResponse

logger = logging.getLogger(__name__)

# ===============================================================================
# CONTACT INTAKE RULES
# ===============================================================================

URGENCY_TO_PRIORITY: dict[str, str] = {
    'urgent': 'high',
    'low': 'low',
}

SUBJECT_TAGS: dict[str, tuple[str, ...]] = {
    'devis': ('devis', 'commercial'),
    'livraison': ('livraison', 'logistique'),
    'produits': ('produits', 'technique'),
    'commande': ('commande', 'suivi'),
    'support': ('support', 'technique'),
}

KEYWORD_TAGS: tuple[tuple[tuple[str, ...], str], ...] = (
    (('prix', 'tarif', 'coût'), 'prix'),
    (('urgent', 'rapidement'), 'urgent'),
    (('livraison', 'délai'), 'livraison'),
)

BASE_RESPONSE_TIME: dict[str, str] = {
    'urgent': "1 heure",
    'normal': "2-4 heures",
    'low': "24 heures",
}

SUBJECT_RESPONSE_MODIFIER: dict[str, str] = {
    'devis': " (devis détaillé sous 24h)",
    'support': " (support technique prioritaire)",
    'commande': " (suivi immédiat)",
}

SEARCH_DEFAULT_LIMIT = 50
SEARCH_MAX_LIMIT = 100
STATS_DEFAULT_DAYS = 30


def map_priority(urgency: str) -> str:
    return URGENCY_TO_PRIORITY.get(urgency, 'normal')


def generate_tags(subject: str, urgency: str, company: str, message: str) -> list[str]:
    """Classification tags, first occurrence order kept"""
    tags: list[str] = list(SUBJECT_TAGS.get(subject, ('general',)))

    if urgency == 'urgent':
        tags.append('urgent')

    tags.extend(('professionnel', 'b2b') if company else ('particulier', 'b2c'))

    words = (message or '').lower()
    for keywords, tag in KEYWORD_TAGS:
        if any(keyword in words for keyword in keywords):
            tags.append(tag)

    return list(dict.fromkeys(tags))


def estimated_response_time(urgency: str, subject: str) -> str:
    return BASE_RESPONSE_TIME.get(urgency, BASE_RESPONSE_TIME['normal']) + SUBJECT_RESPONSE_MODIFIER.get(subject, '')


# ===============================================================================
# PARAMETER OBJECTS
# ===============================================================================

@dataclass
class ContactSubmission:
    """Validated contact form payload"""
    first_name: str
    last_name: str
    email: str
    phone: str
    subject: str
    message: str
    company: str = ''
    preferred_contact: str = 'email'
    urgency: str = 'normal'
    accept_newsletter: bool = False
    source: str = 'website'
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class ContactOutcome:
    ticket: Ticket
    estimated_response: str
    newsletter_subscribed: bool = False
    notifications_sent: bool = False


@dataclass
class TicketSearchResult:
    tickets: list[Ticket]
    stats: PaginationStats


# ===============================================================================
# CONTACT SERVICE
# ===============================================================================

class ContactService:
    """📨 Public contact form intake"""

    @staticmethod
    def has_recent_submission(email: str) -> bool:
        window = timedelta(minutes=int(settings.CONTACT_ANTISPAM_WINDOW_MINUTES))
        return Ticket.objects.filter(customer_email=email, created_at__gte=timezone.now() - window).exists()

    @staticmethod
    def team_recipients(subject: str) -> list[str]:
        """Main address first, then the team addresses for this subject"""
        teams = settings.CONTACT_TEAM_EMAILS
        recipients = [teams.get('main', '')]
        recipients.extend(teams.get(subject, []))
        return [address for address in dict.fromkeys(recipients) if address]

    @staticmethod
    def submit(data: ContactSubmission) -> Result[ContactOutcome, ServiceError]:
        """
        🎫 Create a ticket from the contact form

        Newsletter opt-in and e-mail notifications never fail the submission.
        """
        from apps.newsletter.services import NewsletterService  # noqa: PLC0415
        from apps.notifications.services import EmailService  # noqa: PLC0415

        email = data.email.strip().lower()
        metadata = data.metadata or {}

        if ContactService.has_recent_submission(email):
            log_security_event('contact_antispam_block', {'email': email}, metadata.get('ip_address'))
            return Err(ServiceError('rate_limited', "Veuillez patienter avant d'envoyer un nouveau message"))

        ticket = Ticket(
            status='new',
            priority=map_priority(data.urgency),
            customer_first_name=data.first_name.strip(),
            customer_last_name=data.last_name.strip(),
            customer_email=email,
            customer_phone=data.phone.strip(),
            customer_company=(data.company or '').strip(),
            subject=data.subject,
            message=data.message.strip(),
            preferred_contact=data.preferred_contact or 'email',
            source=data.source or 'website',
            tags=generate_tags(data.subject, data.urgency, data.company, data.message),
            ip_address=metadata.get('ip_address') or None,
            user_agent=(metadata.get('user_agent') or '')[:1000],
            referer=(metadata.get('referer') or '')[:1000],
        )

        try:
            ticket.full_clean(exclude=['ticket_number'])
        except ValidationError as e:
            return Err(ServiceError('validation_error', "Données invalides", e.message_dict))
        ticket.save()

        newsletter_subscribed = False
        if data.accept_newsletter:
            try:
                NewsletterService.upsert_from_contact(email, data.first_name, metadata)
                newsletter_subscribed = True
            except Exception as e:
                logger.exception(f"🔥 [Contact] Newsletter opt-in failed for {email}: {e}")

        confirmation = EmailService.send_contact_confirmation(ticket)
        internal = EmailService.send_contact_internal_notification(ticket, ContactService.team_recipients(ticket.subject))
        for result in (confirmation, internal):
            if result.is_err():
                logger.warning(f"⚠️ [Contact] Notification for {ticket.ticket_number} failed: {result.error}")

        logger.info(f"📨 [Contact] New contact {ticket.subject} - {email} - Ticket: {ticket.ticket_number}")
        return Ok(ContactOutcome(
            ticket=ticket,
            estimated_response=estimated_response_time(data.urgency, data.subject),
            newsletter_subscribed=newsletter_subscribed,
            notifications_sent=confirmation.is_ok() and internal.is_ok(),
        ))


# ===============================================================================
# TICKET SERVICE
# ===============================================================================

class TicketService:
    """🎫 Staff follow-up operations"""

    SORT_FIELDS: ClassVar[frozenset[str]] = frozenset({'created_at', 'priority', 'status', 'updated_at'})

    @staticmethod
    def get_ticket(ticket_id: Any) -> Result[Ticket, ServiceError]:
        try:
            ticket = (
                Ticket.objects.select_related('assigned_to', 'related_order')
                .prefetch_related('responses', 'internal_notes', 'status_history')
                .get(pk=ticket_id)
            )
        except (Ticket.DoesNotExist, ValidationError, ValueError):
            return Err(ServiceError('not_found', "Ticket non trouvé"))
        return Ok(ticket)

    @staticmethod
    def _set_status(ticket: Ticket, status: str, user: Any = None, note: str = '') -> None:
        ticket.status = status
        ticket._status_changed_by = user if getattr(user, 'is_authenticated', False) else None
        ticket._status_note = note

    @staticmethod
    @transaction.atomic
    def add_response(
        ticket: Ticket, message: str, method: str = 'email', user: Any = None, is_internal: bool = False
    ) -> Result[TicketResponse, ServiceError]:
        """💬 Record a reply; the first public reply starts the clock and the work"""
        response = TicketResponse(
            ticket=ticket,
            responded_by=user if getattr(user, 'is_authenticated', False) else None,
            method=method,
            message=message,
            is_internal=is_internal,
        )
        try:
            response.full_clean()
        except ValidationError as e:
            return Err(ServiceError('validation_error', "Réponse invalide", e.message_dict))
        response.save()

        if not is_internal:
            if ticket.first_response_at is None:
                ticket.first_response_at = response.responded_at
            if ticket.status == 'new':
                TicketService._set_status(ticket, 'in_progress', user, "Première réponse")
            ticket.save()

        logger.info(f"💬 [Tickets] Response on {ticket.ticket_number} via {method}{' (internal)' if is_internal else ''}")
        return Ok(response)

    @staticmethod
    def add_internal_note(
        ticket: Ticket, note: str, user: Any = None, is_private: bool = False
    ) -> Result[TicketInternalNote, ServiceError]:
        internal_note = TicketInternalNote(
            ticket=ticket,
            note=note,
            author=user if getattr(user, 'is_authenticated', False) else None,
            is_private=is_private,
        )
        try:
            internal_note.full_clean()
        except ValidationError as e:
            return Err(ServiceError('validation_error', "Note invalide", e.message_dict))
        internal_note.save()
        return Ok(internal_note)

    @staticmethod
    @transaction.atomic
    def assign_to(ticket: Ticket, assignee: Any, team: str = '', user: Any = None) -> Result[Ticket, ServiceError]:
        """👤 Assign a staff member (and team); a new ticket moves to in progress"""
        valid_teams = {choice for choice, _label in Ticket.TEAM_CHOICES}
        if team and team not in valid_teams:
            return Err(ServiceError('validation_error', f"Équipe invalide: {team}"))

        ticket.assigned_to = assignee
        ticket.assigned_team = team or ticket.assigned_team
        if ticket.status == 'new':
            TicketService._set_status(ticket, 'in_progress', user, "Ticket assigné")
        ticket.save()

        logger.info(f"👤 [Tickets] {ticket.ticket_number} assigned to {assignee} ({ticket.assigned_team or '-'})")
        return Ok(ticket)

    @staticmethod
    @transaction.atomic
    def resolve(ticket: Ticket, resolution: str = '', user: Any = None) -> Result[Ticket, ServiceError]:
        """✅ Mark resolved; the resolution text is sent as an e-mail response"""
        if resolution:
            response_result = TicketService.add_response(ticket, resolution, 'email', user)
            if response_result.is_err():
                return response_result

        TicketService._set_status(ticket, 'resolved', user, "Ticket résolu")
        ticket.resolved_at = timezone.now()
        ticket.save()
        return Ok(ticket)

    @staticmethod
    @transaction.atomic
    def close(ticket: Ticket, reason: str = '', user: Any = None) -> Result[Ticket, ServiceError]:
        """🔒 Close the ticket, keeping the reason as an internal note"""
        TicketService._set_status(ticket, 'closed', user, "Ticket fermé")
        ticket.closed_at = timezone.now()
        if ticket.resolved_at is None:
            ticket.resolved_at = ticket.closed_at
        ticket.save()

        if reason:
            note_result = TicketService.add_internal_note(ticket, f"Contact fermé: {reason}", user)
            if note_result.is_err():
                return note_result
        return Ok(ticket)

    @staticmethod
    def get_stats(days: int = STATS_DEFAULT_DAYS) -> dict[str, Any]:
        """📊 Counts and average handling times over the last ``days`` days"""
        since = timezone.now() - timedelta(days=days)
        queryset = Ticket.objects.filter(created_at__gte=since)

        counts = queryset.aggregate(
            total=Count('id'),
            new=Count('id', filter=Q(status='new')),
            in_progress=Count('id', filter=Q(status='in_progress')),
            resolved=Count('id', filter=Q(status='resolved')),
            closed=Count('id', filter=Q(status='closed')),
        )
        timings = list(queryset.values_list('created_at', 'first_response_at', 'resolved_at'))
        response_hours = [(first - created).total_seconds() / 3600 for created, first, _resolved in timings if first]
        resolution_hours = [(resolved - created).total_seconds() / 3600 for created, _first, resolved in timings if resolved]

        def _average(values: list[float]) -> float | None:
            return round(sum(values) / len(values), 2) if values else None

        return {
            **counts,
            'avgResponseHours': _average(response_hours),
            'avgResolutionHours': _average(resolution_hours),
            'periodDays': days,
        }

    @staticmethod
    def _parse_date_bound(value: str | None, end_of_day: bool = False) -> datetime | None:
        if not value:
            return None
        parsed = parse_datetime(value)
        if parsed is not None:
            return parsed if timezone.is_aware(parsed) else timezone.make_aware(parsed)
        day = parse_date(value)
        if day is None:
            return None
        moment = datetime.combine(day, datetime.max.time() if end_of_day else datetime.min.time())
        return timezone.make_aware(moment)

    @staticmethod
    def build_search_queryset(query: str = '', **filters: Any) -> QuerySet[Ticket]:
        queryset = Ticket.objects.select_related('assigned_to', 'related_order')

        if query:
            queryset = queryset.filter(
                Q(customer_first_name__icontains=query)
                | Q(customer_last_name__icontains=query)
                | Q(customer_email__icontains=query)
                | Q(customer_company__icontains=query)
                | Q(message__icontains=query)
                | Q(ticket_number__icontains=query)
            )

        for name in ('status', 'priority', 'subject'):
            if value := filters.get(name):
                queryset = queryset.filter(**{name: value})
        if assigned_to := filters.get('assigned_to'):
            queryset = queryset.filter(assigned_to_id=assigned_to)

        if date_from := TicketService._parse_date_bound(filters.get('date_from')):
            queryset = queryset.filter(created_at__gte=date_from)
        if date_to := TicketService._parse_date_bound(filters.get('date_to'), end_of_day=True):
            queryset = queryset.filter(created_at__lte=date_to)

        sort_by = filters.get('sort_by') or 'created_at'
        if sort_by not in TicketService.SORT_FIELDS:
            sort_by = 'created_at'
        prefix = '' if filters.get('sort_order') == 'asc' else '-'
        return queryset.order_by(f"{prefix}{sort_by}")

    @staticmethod
    def search(query: str = '', page: Any = 1, limit: Any = SEARCH_DEFAULT_LIMIT, **filters: Any) -> TicketSearchResult:
        """🔍 Paginated ticket search for the back-office"""
        page_number, page_size = clamp_pagination(page, limit, SEARCH_DEFAULT_LIMIT, SEARCH_MAX_LIMIT)
        queryset = TicketService.build_search_queryset(query, **filters)
        total = queryset.count()
        offset = (page_number - 1) * page_size
        return TicketSearchResult(
            tickets=list(queryset[offset:offset + page_size]),
            stats=build_pagination(page_number, page_size, total),
        )
