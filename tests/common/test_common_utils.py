"""
Tests for the shared helpers: money, slugs, pagination, validators,
Result types and request tracing.
"""

import logging
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.http import HttpResponse
from django.test import RequestFactory, TestCase, override_settings

from apps.common.logging import RequestIDFilter, clear_request_id, get_request_id, set_request_id
from apps.common.middleware import RequestIDMiddleware
from apps.common.request_ip import get_request_metadata, get_safe_client_ip
from apps.common.types import Err, Ok, ServiceError
from apps.common.utils import (
    build_pagination,
    cents_to_decimal,
    clamp_pagination,
    decimal_to_cents,
    format_euros,
    mask_sensitive_data,
    slugify_name,
)
from apps.common.validators import (
    normalize_bank_identifier,
    validate_bic,
    validate_choice_list,
    validate_french_phone,
    validate_iban,
    validate_image_url,
    validate_postal_code,
)


class MoneyUtilsTest(TestCase):
    """Cents <-> euros conversions"""

    def test_cents_to_decimal(self):
        self.assertEqual(cents_to_decimal(8990), Decimal('89.90'))
        self.assertEqual(cents_to_decimal(0), Decimal('0.00'))
        self.assertIsNone(cents_to_decimal(None))

    def test_decimal_to_cents_rounds_half_up(self):
        self.assertEqual(decimal_to_cents('89.90'), 8990)
        self.assertEqual(decimal_to_cents(Decimal('0.005')), 1)
        self.assertEqual(decimal_to_cents(15), 1500)
        self.assertIsNone(decimal_to_cents(''))

    def test_decimal_to_cents_rejects_garbage(self):
        with self.assertRaises(ValueError):
            decimal_to_cents('douze euros')

    def test_format_euros(self):
        self.assertEqual(format_euros(123450), '1234.50€')


class SlugAndPaginationTest(TestCase):
    def test_slugify_transliterates_accents(self):
        self.assertEqual(slugify_name('Chêne sec 33 cm'), 'chene-sec-33-cm')
        self.assertEqual(slugify_name('  Hêtre & Charme  '), 'hetre-charme')
        self.assertEqual(slugify_name(''), '')

    def test_clamp_pagination(self):
        self.assertEqual(clamp_pagination('0', 'abc'), (1, 12))
        self.assertEqual(clamp_pagination(3, 500), (3, 50))
        self.assertEqual(clamp_pagination(None, -4), (1, 1))

    def test_build_pagination(self):
        stats = build_pagination(page=2, limit=12, total=30)
        self.assertEqual(stats['totalPages'], 3)
        self.assertTrue(stats['hasNextPage'])
        self.assertTrue(stats['hasPrevPage'])

        last = build_pagination(page=1, limit=12, total=0)
        self.assertEqual(last['totalPages'], 0)
        self.assertFalse(last['hasNextPage'])

    def test_mask_sensitive_data(self):
        self.assertEqual(mask_sensitive_data('FR7630006000011234567890189'), '****0189')
        self.assertEqual(mask_sensitive_data('123'), '***')
        self.assertEqual(mask_sensitive_data(''), '')


class ValidatorsTest(TestCase):
    """Field validators used on orders, products and settings"""

    def test_french_phone_formats(self):
        for phone in ['06 12 34 56 78', '0612345678', '+33 6 12 34 56 78', '06.12.34.56.78']:
            validate_french_phone(phone)
        for phone in ['12345', '+40712345678', '00 12 34 56 78']:
            with self.assertRaises(ValidationError):
                validate_french_phone(phone)

    def test_postal_code(self):
        validate_postal_code('75001')
        with self.assertRaises(ValidationError):
            validate_postal_code('7500')

    def test_bank_identifiers(self):
        validate_iban(normalize_bank_identifier('fr76 3000 6000 0112 3456 7890 189'))
        validate_bic('BNPAFRPP')
        validate_bic('BNPAFRPPXXX')
        with self.assertRaises(ValidationError):
            validate_iban('FR76')
        with self.assertRaises(ValidationError):
            validate_bic('BNP')

    def test_image_url(self):
        validate_image_url('/images/products/chene.jpg')
        validate_image_url('https://cdn.example.com/chene.jpg')
        with self.assertRaises(ValidationError):
            validate_image_url('ftp://example.com/chene.jpg')

    def test_choice_list(self):
        validate_choice_list(['premium'], ['premium', 'offre'], 'badges')
        with self.assertRaises(ValidationError):
            validate_choice_list('premium', ['premium'], 'badges')
        with self.assertRaises(ValidationError):
            validate_choice_list(['gratuit'], ['premium'], 'badges')


class ResultTypesTest(TestCase):
    def test_ok_and_err(self):
        ok = Ok(5)
        self.assertTrue(ok.is_ok())
        self.assertEqual(ok.map(lambda v: v * 2).unwrap(), 10)

        err = Err(ServiceError('not_found', 'Commande introuvable'))
        self.assertTrue(err.is_err())
        self.assertEqual(err.unwrap_or('fallback'), 'fallback')
        self.assertEqual(str(err.error), 'Commande introuvable')
        with self.assertRaises(ValueError):
            err.unwrap()


# ===============================================================================
# REQUEST TRACING
# ===============================================================================

def test_request_id_middleware_sets_header_and_clears_context():
    seen = {}

    def view(request):
        seen['request_id'] = get_request_id()
        return HttpResponse('ok')

    request = RequestFactory().get('/api/products/search/', HTTP_X_REQUEST_ID='abc-123')
    response = RequestIDMiddleware(view)(request)

    assert response['X-Request-ID'] == 'abc-123'
    assert seen['request_id'] == 'abc-123'
    assert get_request_id() is None


def test_request_id_middleware_generates_id():
    request = RequestFactory().get('/')
    response = RequestIDMiddleware(lambda r: HttpResponse('ok'))(request)
    assert len(response['X-Request-ID']) == 36


def test_request_id_filter_defaults_to_dash():
    record = logging.LogRecord('apps', logging.INFO, __file__, 1, 'message', None, None)
    clear_request_id()
    RequestIDFilter().filter(record)
    assert record.request_id == '-'

    set_request_id('req-42')
    other = logging.LogRecord('apps', logging.INFO, __file__, 1, 'message', None, None)
    RequestIDFilter().filter(other)
    assert other.request_id == 'req-42'
    clear_request_id()


def test_safe_client_ip_ignores_forwarded_header_without_trusted_proxy():
    request = RequestFactory().get('/', REMOTE_ADDR='10.0.0.5', HTTP_X_FORWARDED_FOR='203.0.113.7')
    with override_settings(IPWARE_TRUSTED_PROXY_LIST=[]):
        assert get_safe_client_ip(request) == '10.0.0.5'


def test_request_metadata():
    request = RequestFactory().get('/', REMOTE_ADDR='192.0.2.1', HTTP_USER_AGENT='Firefox', HTTP_REFERER='https://a.b')
    assert get_request_metadata(request) == {
        'ip_address': '192.0.2.1',
        'user_agent': 'Firefox',
        'referer': 'https://a.b',
    }
