"""
Site settings API tests and response envelope checks
"""

from decimal import Decimal
from unittest.mock import patch

import pytest

from apps.settings.models import SiteSettings


@pytest.mark.django_db
def test_public_settings_hide_back_office_fields(api_client):
    response = api_client.get('/api/settings/')

    assert response.status_code == 200
    data = response.json()['data']
    assert data['site_name'] == 'Mon bois de chauffe'
    assert Decimal(data['free_shipping_threshold']) == Decimal('500.00')
    assert {zone['country'] for zone in data['shipping_zones']} >= {'France', 'Belgique'}
    assert 'email_from_address' not in data
    assert 'metadata' not in data


@pytest.mark.django_db
@pytest.mark.parametrize(('params', 'expected', 'is_free'), [
    ({'country': 'France', 'region': 'Corse', 'subtotal': '120'}, Decimal('35.00'), False),
    ({'country': 'Belgique', 'region': 'Inconnue', 'subtotal': '120'}, Decimal('25.00'), False),
    ({'country': 'Espagne', 'subtotal': '120'}, Decimal('15.00'), False),
    ({'country': 'France', 'region': 'Corse', 'subtotal': '500'}, Decimal('0'), True),
])
def test_shipping_cost(api_client, params, expected, is_free):
    response = api_client.get('/api/settings/shipping-cost/', params)

    data = response.json()['data']
    assert Decimal(str(data['shippingCost'])) == expected
    assert data['isFree'] is is_free
    assert data['country'] == params['country']


@pytest.mark.django_db
def test_shipping_cost_rejects_negative_subtotal(api_client):
    response = api_client.get('/api/settings/shipping-cost/', {'subtotal': '-5'})

    assert response.status_code == 400
    assert response.json()['code'] == 'VALIDATION_ERROR'


# ===============================================================================
# BACK-OFFICE SETTINGS
# ===============================================================================

@pytest.mark.django_db
def test_admin_settings_require_staff(api_client):
    response = api_client.get('/api/admin/settings/')

    assert response.status_code == 403
    assert response.json()['success'] is False


@pytest.mark.django_db
def test_admin_update_settings(admin_client, api_client):
    response = admin_client.patch('/api/admin/settings/', {
        'site_name': 'Bois du Morvan', 'free_shipping_threshold': '300.00',
    }, format='json')

    assert response.status_code == 200
    assert response.json()['message'] == "Paramètres mis à jour avec succès"
    assert 'email_from_address' in response.json()['data']

    # the public endpoint sees the change straight away
    public = api_client.get('/api/settings/').json()['data']
    assert public['site_name'] == 'Bois du Morvan'
    assert Decimal(public['free_shipping_threshold']) == Decimal('300.00')


@pytest.mark.django_db
def test_admin_update_rejects_bad_zone_table(admin_client):
    response = admin_client.patch('/api/admin/settings/', {
        'shipping_zones': [{'country': 'France', 'regions': [{'name': 'Corse'}]}],
    }, format='json')

    assert response.status_code == 400
    assert response.json()['code'] == 'VALIDATION_ERROR'


@pytest.mark.django_db
def test_admin_replace_settings(admin_client):
    admin_client.get('/api/admin/settings/')
    first = SiteSettings.objects.get(is_active=True)

    response = admin_client.post('/api/admin/settings/', {'site_name': 'Nouvelle boutique'}, format='json')

    assert response.status_code == 201
    assert response.json()['message'] == "Paramètres créés avec succès"
    first.refresh_from_db()
    assert first.is_active is False
    assert SiteSettings.objects.get(is_active=True).site_name == 'Nouvelle boutique'


# ===============================================================================
# ENVELOPE
# ===============================================================================

@pytest.mark.django_db
def test_unhandled_error_becomes_server_error(api_client):
    with patch('apps.api.settings.views.SiteSettingsService.get_active_settings', side_effect=RuntimeError('db down')):
        response = api_client.get('/api/settings/')

    assert response.status_code == 500
    assert response.json() == {'success': False, 'message': "Erreur interne du serveur", 'code': 'SERVER_ERROR'}


@pytest.mark.django_db
def test_unknown_method_uses_error_envelope(api_client):
    response = api_client.delete('/api/settings/')

    assert response.status_code == 405
    assert response.json()['success'] is False
    assert response.json()['code'] == 'METHOD_NOT_ALLOWED'
