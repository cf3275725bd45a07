"""
Order Management Services for the firewood storefront
Checkout with stock reservation, order numbering, tracking updates,
payment receipts and the staff quote / bank transfer workflow.
"""

from __future__ import annotations

import logging
import os
import secrets
import uuid
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, ClassVar, TypedDict

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import F, Q, QuerySet
from django.utils import timezone

from apps.common.types import Err, Ok, OrderNumber, Result, ServiceError
from apps.common.utils import format_euros, mask_sensitive_data
from apps.common.validators import log_security_event, normalize_bank_identifier
from apps.products.models import Product

from .models import Order, OrderItem, PaymentReceipt, Quote

if TYPE_CHECKING:
    from django.core.files.uploadedfile import UploadedFile

logger = logging.getLogger(__name__)

# ===============================================================================
# ORDER SERVICE PARAMETER OBJECTS
# ===============================================================================

class CustomerData(TypedDict, total=False):
    """Customer block of the checkout payload"""
    first_name: str
    last_name: str
    email: str
    phone: str
    company: str


class ShippingAddressData(TypedDict, total=False):
    """Shipping address block of the checkout payload"""
    street: str
    city: str
    postal_code: str
    country: str
    region: str


class OrderItemData(TypedDict):
    """Requested line: product and quantity only, prices come from the catalog"""
    product_id: uuid.UUID
    quantity: int


@dataclass
class OrderCreateData:
    """Parameter object for order creation"""
    customer: CustomerData
    shipping_address: ShippingAddressData
    items: list[OrderItemData]
    notes: str = ''


@dataclass
class OrderUpdateData:
    """Parameter object for staff order updates"""
    status: str | None = None
    payment_status: str | None = None
    notes: str | None = None


@dataclass
class QuoteData:
    """Parameter object for a quote sent by staff"""
    amount_cents: int
    iban: str
    bic: str
    account_name: str
    notes: str = ''


@dataclass
class OrderCreated:
    order: Order
    items: list[OrderItem] = field(default_factory=list)


@dataclass
class QuoteSent:
    order: Order
    quote: Quote
    email_sent: bool
    warning: str | None = None


# ===============================================================================
# ORDER CALCULATION SERVICES
# ===============================================================================

class OrderCalculationService:
    """Service for order financial calculations"""

    @staticmethod
    def calculate_subtotal_cents(lines: list[tuple[Product, int]]) -> int:
        return sum(product.price_cents * quantity for product, quantity in lines)

    @staticmethod
    def calculate_shipping_cents(subtotal_cents: int, country: str = 'France', region: str | None = None) -> int:
        """
        🚚 Free above the threshold, zone price when a region is known,
        flat standard rate otherwise
        """
        from apps.settings.services import SiteSettingsService  # noqa: PLC0415

        site_settings = SiteSettingsService.get_active_settings()
        if subtotal_cents >= site_settings.free_shipping_threshold_cents:
            return 0
        if region:
            return site_settings.calculate_shipping_cents(country, region, subtotal_cents)
        return int(settings.ORDER_STANDARD_SHIPPING_CENTS)

    @staticmethod
    def calculate_order_totals(
        lines: list[tuple[Product, int]], country: str = 'France', region: str | None = None
    ) -> dict[str, int]:
        """Calculate order subtotal, shipping and total in cents"""
        subtotal_cents = OrderCalculationService.calculate_subtotal_cents(lines)
        shipping_cents = OrderCalculationService.calculate_shipping_cents(subtotal_cents, country, region)
        return {
            'subtotal_cents': subtotal_cents,
            'shipping_cents': shipping_cents,
            'total_cents': subtotal_cents + shipping_cents,
        }


# ===============================================================================
# ORDER NUMBERING SERVICE
# ===============================================================================

class OrderNumberingService:
    """Service for generating unique order numbers: CMD + yymmdd + random + counter"""

    PREFIX: ClassVar[str] = 'CMD'
    MAX_ATTEMPTS: ClassVar[int] = 100

    @staticmethod
    def build_order_number(date_part: str, random_part: int, counter: int) -> OrderNumber:
        return f"{OrderNumberingService.PREFIX}{date_part}{random_part:03d}{counter:02d}"

    @classmethod
    def generate_order_number(cls) -> Result[OrderNumber, ServiceError]:
        """
        Pick a random 000-999 part for today, then bump the counter while the
        number is already taken
        """
        date_part = timezone.localdate().strftime('%y%m%d')
        random_part = secrets.randbelow(1000)

        for counter in range(1, cls.MAX_ATTEMPTS + 1):
            candidate = cls.build_order_number(date_part, random_part, counter)
            if not Order.objects.filter(order_number=candidate).exists():
                return Ok(candidate)

        logger.error(f"🔥 [Orders] Could not generate a unique order number after {cls.MAX_ATTEMPTS} attempts")
        return Err(ServiceError('order_number_unavailable', "Impossible de générer un numéro de commande unique"))


# ===============================================================================
# MAIN ORDER SERVICE
# ===============================================================================

class OrderService:
    """📦 Main service for order management operations"""

    @staticmethod
    def _merge_items(items: list[OrderItemData]) -> OrderedDict[uuid.UUID, int]:
        """Same product requested twice becomes one line"""
        merged: OrderedDict[uuid.UUID, int] = OrderedDict()
        for item in items:
            product_id = uuid.UUID(str(item['product_id']))
            merged[product_id] = merged.get(product_id, 0) + int(item['quantity'])
        return merged

    @staticmethod
    @transaction.atomic
    def create_order(data: OrderCreateData) -> Result[OrderCreated, ServiceError]:
        """
        🛒 Create an order from the checkout payload

        Products are locked while stock is checked and decremented, so two
        concurrent checkouts cannot sell the same units.
        """
        if not data.items:
            return Err(ServiceError('empty_order', "La commande doit contenir au moins un article"))

        requested = OrderService._merge_items(data.items)
        products = {
            product.id: product
            for product in Product.objects.select_for_update().filter(id__in=list(requested), is_active=True)
        }

        lines: list[tuple[Product, int]] = []
        for product_id, quantity in requested.items():
            product = products.get(product_id)
            if product is None:
                return Err(ServiceError('product_not_found', "Produit introuvable", {'productId': str(product_id)}))
            if product.stock < quantity:
                return Err(ServiceError(
                    'insufficient_stock',
                    f"Stock insuffisant pour {product.name}",
                    {'productId': str(product_id), 'available': product.stock},
                ))
            lines.append((product, quantity))

        shipping = data.shipping_address
        country = shipping.get('country') or 'France'
        region = shipping.get('region') or ''
        totals = OrderCalculationService.calculate_order_totals(lines, country, region or None)

        number_result = OrderNumberingService.generate_order_number()
        if number_result.is_err():
            return number_result

        customer = data.customer
        order = Order(
            order_number=number_result.unwrap(),
            customer_first_name=customer.get('first_name', '').strip(),
            customer_last_name=customer.get('last_name', '').strip(),
            customer_email=customer.get('email', '').strip().lower(),
            customer_phone=customer.get('phone', '').strip(),
            customer_company=customer.get('company', '').strip(),
            shipping_street=shipping.get('street', '').strip(),
            shipping_city=shipping.get('city', '').strip(),
            shipping_postal_code=shipping.get('postal_code', '').strip(),
            shipping_country=country,
            shipping_region=region,
            notes=data.notes or '',
            **totals,
        )
        try:
            order.full_clean()
        except ValidationError as e:
            return Err(ServiceError('validation_error', "Données de commande invalides", e.message_dict))
        order.save()

        order_items = []
        for product, quantity in lines:
            primary = product.primary_image
            order_items.append(OrderItem.objects.create(
                order=order,
                product=product,
                product_name=product.name,
                product_slug=product.slug,
                product_image=primary.url if primary else '',
                quantity=quantity,
                unit_price_cents=product.price_cents,
            ))
            Product.objects.filter(pk=product.pk).update(
                stock=F('stock') - quantity,
                sales_count=F('sales_count') + quantity,
            )

        order.add_status_history('pending', "Commande créée")

        logger.info(
            f"📦 [Orders] Created {order.order_number} for {order.customer_email} "
            f"({len(order_items)} item(s), total {format_euros(order.total_cents)})"
        )
        return Ok(OrderCreated(order=order, items=order_items))

    @staticmethod
    def get_order_by_number(order_number: str) -> Result[Order, ServiceError]:
        """🔍 Order with items, receipts and history for the tracking page"""
        order = (
            Order.objects
            .prefetch_related('items', 'receipts', 'status_history')
            .filter(order_number=order_number)
            .first()
        )
        if order is None:
            return Err(ServiceError('not_found', "Commande non trouvée"))
        return Ok(order)

    @staticmethod
    def get_order(order_id: uuid.UUID | str) -> Result[Order, ServiceError]:
        try:
            order = Order.objects.prefetch_related('items', 'receipts', 'status_history', 'quotes').get(pk=order_id)
        except (Order.DoesNotExist, ValidationError, ValueError):
            return Err(ServiceError('not_found', "Commande non trouvée"))
        return Ok(order)

    @staticmethod
    @transaction.atomic
    def update_order(order: Order, data: OrderUpdateData, changed_by: Any = None) -> Result[Order, ServiceError]:
        """
        ✏️ Staff update: status, payment status and notes

        A received payment also records the order as confirmed.
        """
        valid_statuses = {choice for choice, _label in Order.STATUS_CHOICES}
        valid_payment_statuses = {choice for choice, _label in Order.PAYMENT_STATUS_CHOICES}

        if data.status is not None and data.status not in valid_statuses:
            return Err(ServiceError('invalid_status', f"Statut invalide: {data.status}"))
        if data.payment_status is not None and data.payment_status not in valid_payment_statuses:
            return Err(ServiceError('invalid_status', f"Statut de paiement invalide: {data.payment_status}"))

        if data.status is not None and data.status != order.status:
            order.add_status_history(data.status, "Statut mis à jour", changed_by)

        if data.payment_status is not None and data.payment_status != order.payment_status:
            order.payment_status = data.payment_status
            order.save(update_fields=['payment_status', 'updated_at'])
            if data.payment_status == 'received':
                order.add_status_history('confirmed', "Paiement reçu", changed_by)

        if data.notes is not None:
            order.notes = data.notes
            order.save(update_fields=['notes', 'updated_at'])

        logger.info(f"✏️ [Orders] Updated {order.order_number}: status={order.status} payment={order.payment_status}")
        return Ok(order)

    @staticmethod
    def attach_receipt(order: Order, uploaded: UploadedFile | None, request_ip: str | None = None) -> Result[PaymentReceipt, ServiceError]:
        """
        🧾 Store a payment receipt uploaded by the customer
        """
        if uploaded is None:
            return Err(ServiceError('missing_file', "Aucun fichier fourni"))

        content_type = (getattr(uploaded, 'content_type', '') or '').lower()
        allowed = settings.RECEIPT_ALLOWED_CONTENT_TYPES
        type_ok = content_type in allowed or (content_type.startswith('image/') and 'image/*' in allowed)

        if uploaded.size > settings.RECEIPT_MAX_UPLOAD_BYTES:
            log_security_event(
                'receipt_upload_rejected',
                {'order_number': order.order_number, 'reason': 'too_large', 'size': uploaded.size},
                request_ip,
            )
            return Err(ServiceError('file_too_large', "Le fichier ne doit pas dépasser 10 Mo"))

        if not type_ok:
            log_security_event(
                'receipt_upload_rejected',
                {'order_number': order.order_number, 'reason': 'content_type', 'content_type': content_type},
                request_ip,
            )
            return Err(ServiceError('invalid_file_type', "Seuls les images et les PDF sont acceptés"))

        receipt = PaymentReceipt.objects.create(
            order=order,
            file=uploaded,
            original_filename=os.path.basename(uploaded.name or '')[:255],
            content_type=content_type,
            size=uploaded.size,
        )
        logger.info(f"🧾 [Orders] Receipt {receipt.original_filename} attached to {order.order_number}")
        return Ok(receipt)

    @staticmethod
    def send_quote(order: Order, data: QuoteData, sent_by: Any = None) -> Result[QuoteSent, ServiceError]:
        """
        💶 Record the quote and bank details, then e-mail the customer

        The quote stays recorded when the e-mail fails; the caller gets a warning.
        """
        from apps.notifications.services import EmailService  # noqa: PLC0415

        if data.amount_cents <= 0:
            return Err(ServiceError('validation_error', "Le montant doit être positif"))

        iban = normalize_bank_identifier(data.iban)
        bic = normalize_bank_identifier(data.bic)

        with transaction.atomic():
            quote = Quote(
                order=order,
                amount_cents=data.amount_cents,
                iban=iban,
                bic=bic,
                account_name=data.account_name.strip(),
                notes=data.notes or '',
                sent_by=sent_by if getattr(sent_by, 'is_authenticated', False) else None,
            )
            try:
                quote.full_clean()
            except ValidationError as e:
                return Err(ServiceError('validation_error', "Informations bancaires invalides", e.message_dict))
            quote.save()

            order.bank_iban = iban
            order.bank_bic = bic
            order.bank_account_name = quote.account_name
            order.bank_amount_to_pay_cents = data.amount_cents
            order.bank_details_updated_at = timezone.now()
            order.save(update_fields=[
                'bank_iban', 'bank_bic', 'bank_account_name',
                'bank_amount_to_pay_cents', 'bank_details_updated_at', 'updated_at',
            ])

            note = f"Devis envoyé - Montant: {format_euros(data.amount_cents)} - IBAN: {mask_sensitive_data(iban)}"
            order.add_status_history('confirmed', note, sent_by)

        log_security_event(
            'order_quote_sent',
            {
                'order_number': order.order_number,
                'amount_cents': data.amount_cents,
                'iban': mask_sensitive_data(iban),
                'user_id': str(sent_by.pk) if getattr(sent_by, 'pk', None) else None,
            },
        )

        email_result = EmailService.send_quote_email(order, quote)
        if email_result.is_err():
            logger.warning(f"⚠️ [Orders] Quote e-mail for {order.order_number} failed: {email_result.error}")
            return Ok(QuoteSent(
                order=order,
                quote=quote,
                email_sent=False,
                warning="Devis enregistré mais l'email n'a pas pu être envoyé",
            ))

        quote.sent_at = timezone.now()
        quote.email_message_id = email_result.unwrap()
        quote.save(update_fields=['sent_at', 'email_message_id', 'updated_at'])
        return Ok(QuoteSent(order=order, quote=quote, email_sent=True))

    @staticmethod
    def send_bank_details(order: Order, sent_by: Any = None) -> Result[Order, ServiceError]:
        """
        🏦 Re-send the stored bank transfer details to the customer
        """
        from apps.notifications.services import EmailService  # noqa: PLC0415

        if not order.has_bank_details:
            return Err(ServiceError('missing_bank_details', "Aucune information bancaire pour cette commande"))

        email_result = EmailService.send_bank_details_email(order)
        if email_result.is_err():
            logger.error(f"🔥 [Orders] Bank details e-mail for {order.order_number} failed: {email_result.error}")
            return Err(ServiceError('email_failed', "Erreur lors de l'envoi de l'email"))

        order.add_status_history(order.status, "Informations bancaires envoyées par email", sent_by)
        logger.info(f"🏦 [Orders] Bank details sent for {order.order_number}")
        return Ok(order)

    @staticmethod
    def search_orders(params: Any) -> QuerySet[Order]:
        """
        🔍 Admin order list: free-text search plus status filters
        """
        queryset = Order.objects.all()

        search = (params.get('search') or '').strip()
        if search:
            queryset = queryset.filter(
                Q(order_number__icontains=search)
                | Q(customer_email__icontains=search)
                | Q(customer_first_name__icontains=search)
                | Q(customer_last_name__icontains=search)
            )

        if status := params.get('status'):
            queryset = queryset.filter(status=status)
        if payment_status := params.get('paymentStatus'):
            queryset = queryset.filter(payment_status=payment_status)

        return queryset.order_by('-created_at')
