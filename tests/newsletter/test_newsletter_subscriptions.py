"""
Tests for the newsletter: signed tokens and the double opt-in lifecycle
"""

import base64
import time
from urllib.parse import parse_qs, urlparse

import pytest
from django.core import mail
from django.test import TestCase

from apps.newsletter.models import Subscriber
from apps.newsletter.services import NewsletterService
from apps.newsletter.tokens import (
    MS_PER_DAY,
    make_confirmation_token,
    make_unsubscribe_token,
    verify_confirmation_token,
    verify_unsubscribe_token,
)

SUBSCRIBER_ID = '8d7c1e9a-3f2b-4c5d-9e8f-0a1b2c3d4e5f'


class NewsletterTokenTest(TestCase):
    """🔐 Confirmation and unsubscribe tokens"""

    def test_confirmation_token_round_trip(self):
        now = int(time.time() * 1000)
        token = make_confirmation_token(SUBSCRIBER_ID, now)
        self.assertEqual(verify_confirmation_token(token, now).unwrap(), SUBSCRIBER_ID)

    def test_confirmation_token_expires_after_seven_days(self):
        issued = 1_700_000_000_000
        token = make_confirmation_token(SUBSCRIBER_ID, issued)

        self.assertTrue(verify_confirmation_token(token, issued + 7 * MS_PER_DAY).is_ok())
        result = verify_confirmation_token(token, issued + 7 * MS_PER_DAY + 1)
        self.assertEqual(result.error.code, 'token_expired')

    def test_tampered_confirmation_token(self):
        issued = 1_700_000_000_000
        raw = base64.b64decode(make_confirmation_token(SUBSCRIBER_ID, issued)).decode()
        subscriber_id, timestamp, digest = raw.split(':')
        forged = base64.b64encode(f"{subscriber_id}:{timestamp}:{'0' * len(digest)}".encode()).decode()

        self.assertEqual(verify_confirmation_token(forged, issued).error.code, 'invalid_token')

    def test_malformed_confirmation_token(self):
        for token in ['pas-un-token!', base64.b64encode(b'only:two').decode(), '']:
            self.assertEqual(verify_confirmation_token(token).error.code, 'malformed_token')

    def test_unsubscribe_token(self):
        token = make_unsubscribe_token(SUBSCRIBER_ID, 'marie@example.com')
        self.assertEqual(len(token), 64)
        self.assertTrue(verify_unsubscribe_token(SUBSCRIBER_ID, 'marie@example.com', token))
        self.assertFalse(verify_unsubscribe_token(SUBSCRIBER_ID, 'paul@example.com', token))


# ===============================================================================
# SUBSCRIPTION LIFECYCLE
# ===============================================================================

def _token_from_confirmation_email():
    body = mail.outbox[-1].body
    url = next(word for word in body.split() if 'newsletter/confirmation?' in word)
    return parse_qs(urlparse(url).query)['token'][0]


@pytest.mark.django_db
def test_subscribe_sends_confirmation_email():
    result = NewsletterService.subscribe(
        ' Marie@Example.com ', 'Marie', ['promotions'], 'footer', {'ip_address': '192.0.2.1'}
    )

    outcome = result.unwrap()
    assert outcome.email_sent is True
    assert outcome.reactivated is False
    assert outcome.subscriber.email == 'marie@example.com'
    assert outcome.subscriber.ip_address == '192.0.2.1'
    assert outcome.stats['total'] == 1
    assert outcome.stats['today'] == 1
    assert outcome.stats['growthRate'] == 100

    assert len(mail.outbox) == 1
    assert mail.outbox[0].subject == "Confirmez votre inscription à notre newsletter"
    assert 'https://boutique.test/newsletter/confirmation?token=' in mail.outbox[0].body


@pytest.mark.django_db
def test_subscribe_conflicts_and_reactivation():
    NewsletterService.subscribe('marie@example.com')

    duplicate = NewsletterService.subscribe('MARIE@example.com')
    assert duplicate.error.code == 'already_subscribed'

    NewsletterService.unsubscribe('marie@example.com')
    mail.outbox.clear()

    outcome = NewsletterService.subscribe('marie@example.com', interests=['saisons']).unwrap()
    assert outcome.reactivated is True
    assert outcome.subscriber.is_active
    assert outcome.subscriber.interests == ['saisons']
    assert outcome.subscriber.unsubscribe_reason == ''
    assert mail.outbox == []


@pytest.mark.django_db
def test_subscribe_rejects_unknown_interest():
    result = NewsletterService.subscribe('marie@example.com', interests=['bricolage'])
    assert result.error.code == 'validation_error'
    assert not Subscriber.objects.exists()


@pytest.mark.django_db
def test_confirm_with_emailed_token():
    NewsletterService.subscribe('marie@example.com')
    token = _token_from_confirmation_email()

    outcome = NewsletterService.confirm(token).unwrap()
    assert outcome.subscriber.is_confirmed
    assert outcome.stats['confirmed'] == 1
    assert outcome.stats['confirmationRate'] == 100

    again = NewsletterService.confirm(token).unwrap()
    assert again.already_confirmed is True


@pytest.mark.django_db
def test_confirm_errors():
    assert NewsletterService.confirm('').error.code == 'missing_token'
    assert NewsletterService.confirm(make_confirmation_token(SUBSCRIBER_ID)).error.code == 'not_found'

    subscriber = Subscriber.objects.create(email='paul@example.com', is_active=False)
    assert NewsletterService.confirm(make_confirmation_token(subscriber.pk)).error.code == 'subscription_cancelled'


@pytest.mark.django_db
def test_unsubscribe_with_and_without_token():
    subscriber = Subscriber.objects.create(email='marie@example.com')

    assert NewsletterService.unsubscribe('').error.code == 'missing_email'
    assert NewsletterService.unsubscribe('inconnu@example.com').error.code == 'not_found'
    assert NewsletterService.unsubscribe('marie@example.com', token='f' * 64).error.code == 'invalid_token'

    token = make_unsubscribe_token(subscriber.pk, subscriber.email)
    outcome = NewsletterService.unsubscribe('Marie@example.com', token=token).unwrap()
    assert outcome.subscriber.is_active is False
    assert outcome.subscriber.unsubscribe_reason == "Non spécifiée"
    assert outcome.stats['retentionRate'] == 0

    assert NewsletterService.unsubscribe('marie@example.com').unwrap().already_unsubscribed is True


@pytest.mark.django_db
def test_unsubscribe_url_carries_valid_token():
    subscriber = Subscriber.objects.create(email='marie@example.com')
    query = parse_qs(urlparse(NewsletterService.unsubscribe_url(subscriber)).query)

    assert query['email'] == ['marie@example.com']
    assert verify_unsubscribe_token(subscriber.pk, subscriber.email, query['token'][0])


@pytest.mark.django_db
def test_upsert_from_contact_merges_interests():
    created = NewsletterService.upsert_from_contact('Marie@Example.com', 'Marie')
    assert created.interests == ['promotions', 'conseils']
    assert created.source == 'contact_form'

    Subscriber.objects.filter(pk=created.pk).update(is_active=False, interests=['saisons'])
    updated = NewsletterService.upsert_from_contact('marie@example.com')

    assert updated.is_active
    assert updated.interests == ['saisons', 'promotions', 'conseils']
    assert Subscriber.objects.count() == 1
