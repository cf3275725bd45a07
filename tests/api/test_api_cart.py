"""
Session cart API tests
"""

import uuid
from decimal import Decimal

import pytest


def as_decimal(value):
    return Decimal(str(value))


@pytest.mark.django_db
def test_empty_cart(api_client):
    response = api_client.get('/api/cart/')

    assert response.status_code == 200
    data = response.json()['data']
    assert data['items'] == []
    assert data['itemsCount'] == 0
    assert as_decimal(data['total']) == 0


@pytest.mark.django_db
def test_add_item_keeps_cart_in_session(api_client, product):
    response = api_client.post('/api/cart/items/', {'productId': str(product.pk), 'quantity': 2}, format='json')

    assert response.status_code == 201
    body = response.json()
    assert body['message'] == "Produit ajouté au panier"
    assert body['item']['slug'] == 'chene-sec-33-cm'
    assert body['item']['quantity'] == 2
    assert body['item']['image'] == '/images/products/chene-sec-33-cm.jpg'

    cart = api_client.get('/api/cart/').json()['data']
    assert cart['itemsCount'] == 2
    assert as_decimal(cart['subtotal']) == Decimal('179.80')
    assert as_decimal(cart['shipping']) == Decimal('50.00')
    assert as_decimal(cart['tax']) == Decimal('35.96')
    assert as_decimal(cart['total']) == Decimal('265.76')


@pytest.mark.django_db
def test_add_unknown_product(api_client):
    response = api_client.post('/api/cart/items/', {'productId': str(uuid.uuid4())}, format='json')

    assert response.status_code == 404
    assert response.json()['code'] == 'PRODUCT_NOT_FOUND'


@pytest.mark.django_db
def test_add_item_validation(api_client, product):
    response = api_client.post('/api/cart/items/', {'productId': 'pas-un-uuid', 'quantity': 0}, format='json')

    assert response.status_code == 400
    body = response.json()
    assert body['code'] == 'VALIDATION_ERROR'
    assert set(body['errors']) == {'productId', 'quantity'}


@pytest.mark.django_db
def test_update_and_remove_line(api_client, product):
    api_client.post('/api/cart/items/', {'productId': str(product.pk), 'quantity': 1}, format='json')

    updated = api_client.patch(f'/api/cart/items/{product.pk}/', {'quantity': 99}, format='json')
    assert updated.json()['message'] == "Panier mis à jour"
    # clamped to the 40 in stock
    assert updated.json()['data']['items'][0]['quantity'] == 40

    removed = api_client.delete(f'/api/cart/items/{product.pk}/')
    assert removed.json()['data']['items'] == []

    missing = api_client.delete(f'/api/cart/items/{product.pk}/')
    assert missing.status_code == 404
    assert missing.json()['code'] == 'NOT_FOUND'


@pytest.mark.django_db
def test_clear_cart(api_client, product):
    api_client.post('/api/cart/items/', {'productId': str(product.pk)}, format='json')

    response = api_client.delete('/api/cart/')

    assert response.json()['message'] == "Panier vidé"
    assert api_client.get('/api/cart/').json()['data']['itemsCount'] == 0


@pytest.mark.django_db
def test_validate_cart(api_client, make_product):
    cheap = make_product('Allume-feu naturels', essence='allume-feu', price_cents=490, unit='sac')
    api_client.post('/api/cart/items/', {'productId': str(cheap.pk)}, format='json')

    invalid = api_client.get('/api/cart/validate/').json()['data']
    assert invalid['isValid'] is False
    assert "Commande minimum : 50€" in invalid['errors']
    assert invalid['items'] == []

    api_client.patch(f'/api/cart/items/{cheap.pk}/', {'quantity': 11}, format='json')
    valid = api_client.get('/api/cart/validate/').json()['data']
    assert valid['isValid'] is True
    assert valid['items'][0]['productId'] == str(cheap.pk)
    assert valid['items'][0]['quantity'] == 11
    assert as_decimal(valid['items'][0]['subtotal']) == Decimal('53.90')
