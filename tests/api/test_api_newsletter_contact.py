"""
Newsletter and contact form API tests, plus the back-office support desk
"""

from urllib.parse import parse_qs, urlparse

import pytest
from django.core import mail

from apps.newsletter.models import Subscriber
from apps.tickets.models import Ticket


def confirmation_token():
    body = mail.outbox[-1].body
    url = next(word for word in body.split() if 'newsletter/confirmation?' in word)
    return parse_qs(urlparse(url).query)['token'][0]


# ===============================================================================
# NEWSLETTER
# ===============================================================================

@pytest.mark.django_db
def test_subscribe_confirm_unsubscribe(api_client):
    created = api_client.post('/api/newsletter/subscribe/', {
        'email': 'Marie@Example.com', 'firstName': 'Marie', 'interests': ['conseils'], 'source': 'footer',
    }, format='json')

    assert created.status_code == 201
    body = created.json()
    assert body['requiresConfirmation'] is True
    assert body['emailSent'] is True
    assert body['data']['email'] == 'marie@example.com'
    assert body['data']['is_confirmed'] is False

    confirmed = api_client.get('/api/newsletter/confirm/', {'token': confirmation_token()})
    assert confirmed.status_code == 200
    assert confirmed.json()['data']['is_confirmed'] is True

    again = api_client.post('/api/newsletter/confirm/', {'token': confirmation_token()}, format='json')
    assert again.json()['alreadyConfirmed'] is True

    left = api_client.post('/api/newsletter/unsubscribe/', {'email': 'marie@example.com'}, format='json')
    assert left.status_code == 200
    assert left.json()['data']['email'] == 'marie@example.com'

    twice = api_client.post('/api/newsletter/unsubscribe/', {'email': 'marie@example.com'}, format='json')
    assert twice.json()['alreadyUnsubscribed'] is True


@pytest.mark.django_db
def test_subscribe_conflict_and_reactivation(api_client):
    api_client.post('/api/newsletter/subscribe/', {'email': 'marie@example.com'}, format='json')

    duplicate = api_client.post('/api/newsletter/subscribe/', {'email': 'marie@example.com'}, format='json')
    assert duplicate.status_code == 409
    assert duplicate.json()['code'] == 'ALREADY_SUBSCRIBED'

    Subscriber.objects.update(is_active=False)
    reactivated = api_client.post('/api/newsletter/subscribe/', {'email': 'marie@example.com'}, format='json')
    assert reactivated.status_code == 200
    assert reactivated.json()['reactivated'] is True


@pytest.mark.django_db
def test_subscribe_validation(api_client):
    response = api_client.post('/api/newsletter/subscribe/', {
        'email': 'pas-une-adresse', 'interests': ['bricolage'],
    }, format='json')

    assert response.status_code == 400
    assert set(response.json()['errors']) == {'email', 'interests'}


@pytest.mark.django_db
def test_confirm_token_errors(api_client):
    missing = api_client.get('/api/newsletter/confirm/')
    assert missing.status_code == 400
    assert missing.json()['code'] == 'MISSING_TOKEN'

    malformed = api_client.get('/api/newsletter/confirm/', {'token': 'pas-un-token!'})
    assert malformed.status_code == 400
    assert malformed.json()['code'] == 'MALFORMED_TOKEN'


@pytest.mark.django_db
def test_unsubscribe_with_bad_token(api_client):
    Subscriber.objects.create(email='marie@example.com')

    response = api_client.post(
        '/api/newsletter/unsubscribe/', {'email': 'marie@example.com', 'token': 'f' * 64}, format='json'
    )

    assert response.status_code == 401
    assert response.json()['code'] == 'INVALID_TOKEN'


# ===============================================================================
# CONTACT FORM
# ===============================================================================

def contact_payload(**overrides):
    payload = {
        'firstName': 'Marie',
        'lastName': 'Dupont',
        'email': 'marie@example.com',
        'phone': '06 12 34 56 78',
        'subject': 'livraison',
        'message': "Livrez-vous à Beaune la semaine prochaine ?",
        'acceptTerms': True,
    }
    payload.update(overrides)
    return payload


@pytest.mark.django_db
def test_contact_creates_ticket(api_client):
    response = api_client.post('/api/contact/', contact_payload(urgency='urgent'), format='json')

    assert response.status_code == 201
    data = response.json()['data']
    assert data['ticketNumber'].startswith('TKT')
    assert data['estimatedResponse'] == "1 heure"

    ticket = Ticket.objects.get(ticket_number=data['ticketNumber'])
    assert ticket.priority == 'high'
    assert ticket.ip_address == '127.0.0.1'
    assert len(mail.outbox) == 2


@pytest.mark.django_db
def test_contact_requires_terms(api_client):
    response = api_client.post('/api/contact/', contact_payload(acceptTerms=False), format='json')

    assert response.status_code == 400
    assert 'acceptTerms' in response.json()['errors']
    assert not Ticket.objects.exists()


@pytest.mark.django_db
def test_contact_antispam(api_client):
    api_client.post('/api/contact/', contact_payload(), format='json')

    response = api_client.post('/api/contact/', contact_payload(), format='json')

    assert response.status_code == 429
    assert response.json()['code'] == 'RATE_LIMITED'


# ===============================================================================
# SUPPORT DESK
# ===============================================================================

@pytest.fixture
def ticket(api_client):
    response = api_client.post('/api/contact/', contact_payload(), format='json')
    return Ticket.objects.get(ticket_number=response.json()['data']['ticketNumber'])


@pytest.mark.django_db
def test_ticket_desk_requires_staff(api_client, ticket):
    assert api_client.get('/api/admin/tickets/').status_code == 403
    assert api_client.post(f'/api/admin/tickets/{ticket.pk}/close/').status_code == 403


@pytest.mark.django_db
def test_ticket_list_detail_and_stats(admin_client, ticket):
    listing = admin_client.get('/api/admin/tickets/', {'q': 'dupont', 'subject': 'livraison'}).json()
    assert listing['pagination']['total'] == 1
    assert listing['data'][0]['ticket_number'] == ticket.ticket_number

    detail = admin_client.get(f'/api/admin/tickets/{ticket.pk}/').json()['data']
    assert detail['customer_email'] == 'marie@example.com'
    assert detail['responses'] == []

    stats = admin_client.get('/api/admin/tickets/stats/', {'days': 7}).json()['data']
    assert stats['total'] == 1
    assert stats['periodDays'] == 7


@pytest.mark.django_db
def test_ticket_workflow(admin_client, staff_user, ticket):
    responded = admin_client.post(
        f'/api/admin/tickets/{ticket.pk}/respond/', {'message': "Oui, mardi matin.", 'method': 'phone'}, format='json'
    )
    assert responded.status_code == 201
    assert responded.json()['message'] == "Réponse ajoutée"
    assert responded.json()['ticketStatus'] == 'in_progress'

    noted = admin_client.post(f'/api/admin/tickets/{ticket.pk}/note/', {'note': "Client fidèle"}, format='json')
    assert noted.status_code == 201
    assert noted.json()['message'] == "Note ajoutée"

    assigned = admin_client.post(
        f'/api/admin/tickets/{ticket.pk}/assign/', {'userId': staff_user.pk, 'team': 'livraison'}, format='json'
    )
    assert assigned.json()['data']['assigned_team'] == 'livraison'

    resolved = admin_client.post(f'/api/admin/tickets/{ticket.pk}/resolve/', {'resolution': "Livré"}, format='json')
    assert resolved.json()['data']['status'] == 'resolved'

    closed = admin_client.post(f'/api/admin/tickets/{ticket.pk}/close/', {}, format='json')
    assert closed.json()['message'] == "Ticket fermé"
    assert closed.json()['data']['status'] == 'closed'


@pytest.mark.django_db
def test_ticket_assign_unknown_user(admin_client, ticket):
    response = admin_client.post(f'/api/admin/tickets/{ticket.pk}/assign/', {'userId': 9999}, format='json')

    assert response.status_code == 400
    assert 'userId' in response.json()['errors']
