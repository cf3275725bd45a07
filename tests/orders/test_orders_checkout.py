"""
Tests for the order workflow: checkout, numbering, staff updates,
payment receipts, quotes and bank details
"""

import uuid
from smtplib import SMTPException
from unittest.mock import patch

import pytest
from django.contrib.sessions.backends.cache import SessionStore
from django.core import mail
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase, override_settings

from apps.cart.services import SessionCart
from apps.common.types import Err, ServiceError
from apps.notifications.models import EmailLog
from apps.orders.models import Order, Quote
from apps.orders.services import (
    OrderCalculationService,
    OrderCreateData,
    OrderNumberingService,
    OrderService,
    OrderUpdateData,
    QuoteData,
)
from apps.products.models import Category, Product
from apps.settings.services import SiteSettingsService

IBAN = 'FR7630006000011234567890189'


def checkout_data(items, **shipping_overrides):
    shipping = {
        'street': '12 rue des Chênes',
        'city': 'Dijon',
        'postal_code': '21000',
        'country': 'France',
    }
    shipping.update(shipping_overrides)
    return OrderCreateData(
        customer={
            'first_name': 'Marie',
            'last_name': 'Dupont',
            'email': 'Marie.Dupont@Example.com',
            'phone': '06 12 34 56 78',
        },
        shipping_address=shipping,
        items=items,
        notes='Livraison le matin',
    )


class OrderCreationTest(TestCase):
    """📦 Checkout from the storefront"""

    def setUp(self):
        self.category = Category.objects.create(name='Bois de chauffage')
        self.oak = Product.objects.create(
            name='Chêne sec 33 cm', category=self.category, essence='chêne',
            price_cents=8990, unit='stère', stock=10,
        )
        self.pellets = Product.objects.create(
            name='Granulés DIN+', category=self.category, essence='granulés',
            price_cents=690, unit='sac', stock=100,
        )

    def test_create_order_snapshots_lines_and_updates_stock(self):
        result = OrderService.create_order(checkout_data([
            {'product_id': self.oak.pk, 'quantity': 1},
            {'product_id': self.pellets.pk, 'quantity': 2},
            {'product_id': str(self.oak.pk), 'quantity': 1},
        ]))

        self.assertTrue(result.is_ok())
        created = result.unwrap()
        order = created.order

        self.assertEqual(len(created.items), 2)
        self.assertEqual(order.subtotal_cents, 2 * 8990 + 2 * 690)
        self.assertEqual(order.shipping_cents, 1500)
        self.assertEqual(order.total_cents, order.subtotal_cents + 1500)
        self.assertEqual(order.customer_email, 'marie.dupont@example.com')
        self.assertRegex(order.order_number, r'^CMD\d{6}\d{3}\d{2}$')
        self.assertEqual(order.status, 'pending')
        self.assertEqual(order.status_history.get().note, "Commande créée")

        self.oak.refresh_from_db()
        self.assertEqual(self.oak.stock, 8)
        self.assertEqual(self.oak.sales_count, 2)

    def test_free_shipping_above_threshold(self):
        order = OrderService.create_order(
            checkout_data([{'product_id': self.oak.pk, 'quantity': 6}], region='Corse')
        ).unwrap().order
        self.assertEqual(order.shipping_cents, 0)

    def test_region_uses_zone_cost(self):
        order = OrderService.create_order(
            checkout_data([{'product_id': self.oak.pk, 'quantity': 1}], region='Corse')
        ).unwrap().order
        self.assertEqual(order.shipping_cents, 3500)
        self.assertEqual(order.shipping_region, 'Corse')

    def test_empty_order(self):
        self.assertEqual(OrderService.create_order(checkout_data([])).error.code, 'empty_order')

    def test_unknown_or_inactive_product(self):
        result = OrderService.create_order(checkout_data([{'product_id': uuid.uuid4(), 'quantity': 1}]))
        self.assertEqual(result.error.code, 'product_not_found')

        self.pellets.is_active = False
        self.pellets.save()
        result = OrderService.create_order(checkout_data([{'product_id': self.pellets.pk, 'quantity': 1}]))
        self.assertEqual(result.error.code, 'product_not_found')

    def test_insufficient_stock_leaves_stock_untouched(self):
        result = OrderService.create_order(checkout_data([
            {'product_id': self.pellets.pk, 'quantity': 5},
            {'product_id': self.oak.pk, 'quantity': 11},
        ]))

        self.assertEqual(result.error.code, 'insufficient_stock')
        self.assertEqual(result.error.details['available'], 10)
        self.pellets.refresh_from_db()
        self.assertEqual(self.pellets.stock, 100)
        self.assertFalse(Order.objects.exists())

    def test_invalid_customer_data(self):
        data = checkout_data([{'product_id': self.oak.pk, 'quantity': 1}], postal_code='2100')
        data.customer['phone'] = '12345'

        result = OrderService.create_order(data)

        self.assertEqual(result.error.code, 'validation_error')
        self.assertIn('customer_phone', result.error.details)
        self.assertIn('shipping_postal_code', result.error.details)
        self.oak.refresh_from_db()
        self.assertEqual(self.oak.stock, 10)


class OrderNumberingTest(TestCase):
    def test_build_order_number(self):
        self.assertEqual(OrderNumberingService.build_order_number('250115', 7, 1), 'CMD25011500701')

    def test_shipping_calculation(self):
        self.assertEqual(OrderCalculationService.calculate_shipping_cents(50000), 0)
        self.assertEqual(OrderCalculationService.calculate_shipping_cents(1000), 1500)
        self.assertEqual(OrderCalculationService.calculate_shipping_cents(1000, 'France', 'Île-de-France'), 1500)
        self.assertEqual(OrderCalculationService.calculate_shipping_cents(1000, 'Belgique', 'Flandre'), 2800)


# ===============================================================================
# ORDER LIFECYCLE
# ===============================================================================

@pytest.fixture
def order(product):
    return OrderService.create_order(checkout_data([{'product_id': product.pk, 'quantity': 1}])).unwrap().order


@pytest.mark.django_db
def test_generate_order_number_bumps_counter(order):
    random_part = int(order.order_number[9:12])
    with patch('apps.orders.services.secrets.randbelow', return_value=random_part):
        number = OrderNumberingService.generate_order_number().unwrap()

    assert number != order.order_number
    assert number[:12] == order.order_number[:12]


@pytest.mark.django_db
def test_lookup_by_number_and_id(order):
    assert OrderService.get_order_by_number(order.order_number).unwrap().pk == order.pk
    assert OrderService.get_order(order.pk).unwrap().order_number == order.order_number
    assert OrderService.get_order_by_number('CMD000').error.code == 'not_found'
    assert OrderService.get_order('not-a-uuid').error.code == 'not_found'


@pytest.mark.django_db
def test_update_order_status_and_payment(order, staff_user):
    result = OrderService.update_order(order, OrderUpdateData(status='processing', notes='Palette'), staff_user)

    assert result.is_ok()
    order.refresh_from_db()
    assert order.status == 'processing'
    assert order.notes == 'Palette'
    assert order.status_history.filter(new_status='processing', changed_by=staff_user).exists()

    OrderService.update_order(order, OrderUpdateData(payment_status='received'), staff_user)
    order.refresh_from_db()
    assert order.payment_status == 'received'
    assert order.status == 'confirmed'
    assert order.status_history.filter(note="Paiement reçu").exists()


@pytest.mark.django_db
def test_update_order_rejects_unknown_status(order):
    assert OrderService.update_order(order, OrderUpdateData(status='lost')).error.code == 'invalid_status'
    assert OrderService.update_order(order, OrderUpdateData(payment_status='maybe')).error.code == 'invalid_status'


@pytest.mark.django_db
@override_settings(MEDIA_ROOT='/tmp/boutique-test-media')
def test_attach_receipt(order):
    pdf = SimpleUploadedFile('virement.pdf', b'%PDF-1.4 test', content_type='application/pdf')
    receipt = OrderService.attach_receipt(order, pdf, '192.0.2.1').unwrap()
    assert receipt.original_filename == 'virement.pdf'
    assert receipt.size == len(b'%PDF-1.4 test')

    photo = SimpleUploadedFile('virement.jpg', b'\xff\xd8\xff', content_type='image/jpeg')
    assert OrderService.attach_receipt(order, photo).is_ok()
    assert order.receipts.count() == 2


@pytest.mark.django_db
def test_attach_receipt_rejections(order):
    assert OrderService.attach_receipt(order, None).error.code == 'missing_file'

    script = SimpleUploadedFile('virement.exe', b'MZ', content_type='application/x-msdownload')
    assert OrderService.attach_receipt(order, script).error.code == 'invalid_file_type'

    with override_settings(RECEIPT_MAX_UPLOAD_BYTES=4):
        big = SimpleUploadedFile('virement.pdf', b'%PDF-1.4', content_type='application/pdf')
        assert OrderService.attach_receipt(order, big).error.code == 'file_too_large'


@pytest.mark.django_db
def test_send_quote_records_bank_details_and_emails(order, staff_user):
    result = OrderService.send_quote(
        order,
        QuoteData(amount_cents=10490, iban='fr76 3000 6000 0112 3456 7890 189', bic='bnpafrpp',
                  account_name='Bois SARL', notes='Livraison incluse'),
        staff_user,
    )

    sent = result.unwrap()
    assert sent.email_sent is True
    assert sent.warning is None

    order.refresh_from_db()
    assert order.status == 'confirmed'
    assert order.bank_iban == IBAN
    assert order.bank_bic == 'BNPAFRPP'
    assert order.bank_amount_to_pay_cents == 10490

    quote = Quote.objects.get(order=order)
    assert quote.sent_at is not None
    assert quote.sent_by == staff_user
    assert '****0189' in order.status_history.filter(new_status='confirmed').get().note

    assert len(mail.outbox) == 1
    assert mail.outbox[0].subject == f"Devis pour votre commande {order.order_number}"
    assert mail.outbox[0].to == [order.customer_email]
    assert EmailLog.objects.filter(template_key='quote', status='sent').exists()


@pytest.mark.django_db
def test_send_quote_keeps_quote_when_email_fails(order):
    with patch('apps.notifications.services.EmailMultiAlternatives.send', side_effect=SMTPException('down')):
        sent = OrderService.send_quote(
            order, QuoteData(amount_cents=9000, iban=IBAN, bic='BNPAFRPP', account_name='Bois SARL')
        ).unwrap()

    assert sent.email_sent is False
    assert sent.warning
    assert Quote.objects.filter(order=order, sent_at__isnull=True).exists()
    assert EmailLog.objects.filter(template_key='quote', status='failed').exists()


@pytest.mark.django_db
def test_send_quote_validation(order):
    bad_amount = OrderService.send_quote(order, QuoteData(amount_cents=0, iban=IBAN, bic='BNPAFRPP', account_name='X'))
    assert bad_amount.error.code == 'validation_error'

    bad_iban = OrderService.send_quote(order, QuoteData(amount_cents=100, iban='FR76', bic='BNPAFRPP', account_name='X'))
    assert bad_iban.error.code == 'validation_error'
    assert not Quote.objects.exists()


@pytest.mark.django_db
def test_send_bank_details(order):
    assert OrderService.send_bank_details(order).error.code == 'missing_bank_details'

    OrderService.send_quote(order, QuoteData(amount_cents=9000, iban=IBAN, bic='BNPAFRPP', account_name='Bois SARL'))
    mail.outbox.clear()

    assert OrderService.send_bank_details(order).is_ok()
    assert mail.outbox[0].subject == f"Informations bancaires - Commande #{order.order_number}"
    assert order.status_history.filter(note="Informations bancaires envoyées par email").exists()

    with patch('apps.notifications.services.EmailMultiAlternatives.send', side_effect=SMTPException('down')):
        assert OrderService.send_bank_details(order).error.code == 'email_failed'


@pytest.mark.django_db
def test_search_orders(order):
    OrderService.update_order(order, OrderUpdateData(payment_status='received'))

    assert OrderService.search_orders({'search': 'dupont'}).count() == 1
    assert OrderService.search_orders({'status': 'confirmed'}).count() == 1
    assert OrderService.search_orders({'paymentStatus': 'pending'}).count() == 0


@pytest.mark.django_db
@override_settings(MEDIA_ROOT='/tmp/boutique-test-media')
def test_attach_receipt_with_long_filename(order):
    long_name = 'releve-' + 'x' * 260 + '.pdf'
    pdf = SimpleUploadedFile(long_name, b'%PDF-1.4 test', content_type='application/pdf')

    receipt = OrderService.attach_receipt(order, pdf).unwrap()

    assert len(receipt.original_filename) <= 255
    assert receipt.original_filename.endswith('.pdf')
    assert len(receipt.file.name.rsplit('/', 1)[-1]) < 255


@pytest.mark.django_db
def test_order_number_gives_up_after_max_attempts():
    with patch('django.db.models.query.QuerySet.exists', return_value=True):
        result = OrderNumberingService.generate_order_number()

    assert result.is_err()
    assert result.error.code == 'order_number_unavailable'


@pytest.mark.django_db
def test_create_order_fails_when_no_number_is_free(product):
    unavailable = Err(ServiceError('order_number_unavailable', "Impossible de générer un numéro de commande unique"))
    with patch.object(OrderNumberingService, 'generate_order_number', return_value=unavailable):
        result = OrderService.create_order(checkout_data([{'product_id': product.pk, 'quantity': 1}]))

    assert result.error.code == 'order_number_unavailable'
    assert not Order.objects.exists()
    product.refresh_from_db()
    assert product.stock == 40


# ===============================================================================
# FREE SHIPPING THRESHOLD
# ===============================================================================

@pytest.mark.django_db
@pytest.mark.parametrize('region', [None, 'Corse'])
def test_site_threshold_applies_to_cart_quote_and_order(product, region):
    SiteSettingsService.update_settings({'free_shipping_threshold_cents': 30000}).unwrap()

    cart = SessionCart(SessionStore())
    cart.add(product, 4)  # 359.60€
    assert cart.shipping_cents == 0
    assert SiteSettingsService.calculate_shipping_cents('France', region, 35960) == 0

    order = OrderService.create_order(
        checkout_data([{'product_id': product.pk, 'quantity': 4}], region=region or '')
    ).unwrap().order

    assert order.shipping_cents == 0
    assert order.is_shipping_free


@pytest.mark.django_db
def test_raised_threshold_charges_shipping_everywhere(product):
    SiteSettingsService.update_settings({'free_shipping_threshold_cents': 100000}).unwrap()

    cart = SessionCart(SessionStore())
    cart.add(product, 6)  # 539.40€
    assert cart.shipping_cents == 5000

    order = OrderService.create_order(
        checkout_data([{'product_id': product.pk, 'quantity': 6}])
    ).unwrap().order

    assert order.shipping_cents == 1500
    assert not order.is_shipping_free
