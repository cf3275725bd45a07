"""
Order Management models for the firewood storefront
Guest checkout paid by bank transfer: order snapshot, status history,
uploaded payment receipts and the quotes staff send with bank details.
"""

import os
import uuid
from decimal import Decimal
from typing import Any, ClassVar

from django.conf import settings
from django.core.validators import MaxLengthValidator, MinLengthValidator, MinValueValidator
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from apps.common.utils import cents_to_decimal
from apps.common.validators import validate_bic, validate_french_phone, validate_iban, validate_postal_code

# ===============================================================================
# ORDER MANAGEMENT MODELS
# ===============================================================================

class Order(models.Model):
    """
    Customer order for firewood products.
    Customer and address data are a snapshot taken at checkout.
    """

    # Use UUID for better security and external references
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    # Order identification
    order_number = models.CharField(
        max_length=30,
        unique=True,
        help_text=_("Human-readable order number (CMDyymmdd...)")
    )

    # Customer snapshot
    customer_first_name = models.CharField(max_length=50, validators=[MinLengthValidator(2)])
    customer_last_name = models.CharField(max_length=50, validators=[MinLengthValidator(2)])
    customer_email = models.EmailField(help_text=_("Customer email at time of order"))
    customer_phone = models.CharField(max_length=30, validators=[validate_french_phone])
    customer_company = models.CharField(max_length=100, blank=True)

    # Shipping address snapshot
    shipping_street = models.CharField(max_length=200, validators=[MinLengthValidator(5)])
    shipping_city = models.CharField(max_length=100, validators=[MinLengthValidator(2)])
    shipping_postal_code = models.CharField(max_length=5, validators=[validate_postal_code])
    shipping_country = models.CharField(max_length=100, default="France")
    shipping_region = models.CharField(
        max_length=100,
        blank=True,
        help_text=_("Shipping zone region used to price delivery")
    )

    # Amounts in cents for precision
    subtotal_cents = models.BigIntegerField(default=0, help_text=_("Sum of line totals in cents"))
    shipping_cents = models.BigIntegerField(default=0, help_text=_("Delivery cost in cents"))
    total_cents = models.BigIntegerField(default=0, help_text=_("Amount due in cents"))

    # Payment
    PAYMENT_METHOD_CHOICES: ClassVar[tuple[tuple[str, Any], ...]] = (
        ('bank_transfer', _('Bank Transfer')),
    )
    payment_method = models.CharField(
        max_length=20,
        choices=PAYMENT_METHOD_CHOICES,
        default='bank_transfer',
    )

    STATUS_CHOICES: ClassVar[tuple[tuple[str, Any], ...]] = (
        ('pending', _('Pending')),         # Waiting for the quote / payment
        ('confirmed', _('Confirmed')),     # Quote sent or payment received
        ('processing', _('Processing')),   # Being prepared
        ('shipped', _('Shipped')),
        ('delivered', _('Delivered')),
        ('cancelled', _('Cancelled')),
    )
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending')

    PAYMENT_STATUS_CHOICES: ClassVar[tuple[tuple[str, Any], ...]] = (
        ('pending', _('Pending')),
        ('received', _('Received')),
        ('failed', _('Failed')),
    )
    payment_status = models.CharField(max_length=20, choices=PAYMENT_STATUS_CHOICES, default='pending')

    notes = models.TextField(blank=True, validators=[MaxLengthValidator(500)])

    # Bank transfer details communicated to the customer
    bank_iban = models.CharField(max_length=34, blank=True, validators=[validate_iban])
    bank_bic = models.CharField(max_length=11, blank=True, validators=[validate_bic])
    bank_account_name = models.CharField(max_length=100, blank=True)
    bank_amount_to_pay_cents = models.BigIntegerField(null=True, blank=True, validators=[MinValueValidator(0)])
    bank_details_updated_at = models.DateTimeField(null=True, blank=True)

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'orders'
        verbose_name = _('Order')
        verbose_name_plural = _('Orders')
        ordering: ClassVar[tuple[str, ...]] = ('-created_at',)
        indexes: ClassVar[tuple[models.Index, ...]] = (
            models.Index(fields=['order_number']),
            models.Index(fields=['customer_email']),
            models.Index(fields=['status', '-created_at']),
            models.Index(fields=['payment_status', '-created_at']),
            models.Index(fields=['-created_at']),
        )

    def __str__(self) -> str:
        return f"Order {self.order_number} - {self.customer_email}"

    @property
    def subtotal(self) -> Decimal:
        """Return subtotal in euros"""
        return cents_to_decimal(self.subtotal_cents)

    @property
    def shipping_cost(self) -> Decimal:
        return cents_to_decimal(self.shipping_cents)

    @property
    def total(self) -> Decimal:
        """Return total in euros"""
        return cents_to_decimal(self.total_cents)

    @property
    def customer_full_name(self) -> str:
        return f"{self.customer_first_name} {self.customer_last_name}".strip()

    @property
    def is_shipping_free(self) -> bool:
        from apps.settings.services import SiteSettingsService  # noqa: PLC0415

        return self.subtotal_cents >= SiteSettingsService.get_active_settings().free_shipping_threshold_cents

    @property
    def has_bank_details(self) -> bool:
        return bool(self.bank_iban and self.bank_bic and self.bank_account_name)

    @property
    def bank_amount_to_pay(self) -> Decimal | None:
        return cents_to_decimal(self.bank_amount_to_pay_cents)

    def add_status_history(self, status: str, note: str = '', changed_by: Any = None) -> 'OrderStatusHistory':
        """
        Record a status change and apply it.
        A history row is written even when the status stays the same so that
        actions like re-sending bank details are traced.
        """
        old_status = self.status
        self.status = status
        self.save(update_fields=['status', 'updated_at'])
        return OrderStatusHistory.objects.create(
            order=self,
            old_status=old_status,
            new_status=status,
            note=note,
            changed_by=changed_by if getattr(changed_by, 'is_authenticated', False) else None,
        )


class OrderItem(models.Model):
    """
    Individual line item in an order.
    Stores a snapshot of the product so later catalog edits do not alter the order.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='items')
    product = models.ForeignKey(
        'products.Product',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='order_items',
        help_text=_("Product being ordered (kept null if later deleted)")
    )

    # Product snapshot
    product_name = models.CharField(max_length=150, help_text=_("Product name at time of order"))
    product_slug = models.CharField(max_length=170, blank=True)
    product_image = models.CharField(max_length=500, blank=True)

    quantity = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    unit_price_cents = models.BigIntegerField(
        validators=[MinValueValidator(0)],
        help_text=_("Unit price in cents (snapshot)")
    )
    line_total_cents = models.BigIntegerField(default=0, help_text=_("quantity x unit price in cents"))

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'order_items'
        verbose_name = _('Order Item')
        verbose_name_plural = _('Order Items')
        ordering: ClassVar[tuple[str, ...]] = ('created_at',)
        indexes: ClassVar[tuple[models.Index, ...]] = (
            models.Index(fields=['order', 'created_at']),
            models.Index(fields=['product']),
        )

    def __str__(self) -> str:
        return f"{self.product_name} x{self.quantity} ({self.order.order_number})"

    def save(self, *args: Any, **kwargs: Any) -> None:
        """Auto-calculate line total before saving"""
        self.line_total_cents = self.unit_price_cents * self.quantity
        super().save(*args, **kwargs)

    @property
    def unit_price(self) -> Decimal:
        return cents_to_decimal(self.unit_price_cents)

    @property
    def line_total(self) -> Decimal:
        return cents_to_decimal(self.line_total_cents)


class OrderStatusHistory(models.Model):
    """
    Track order status changes for the customer tracking page and audit.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='status_history')
    old_status = models.CharField(max_length=20, blank=True)
    new_status = models.CharField(max_length=20, choices=Order.STATUS_CHOICES)
    note = models.CharField(max_length=500, blank=True)
    changed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='order_status_changes',
        help_text=_("Staff member who made the change (null for customer/system)")
    )
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'order_status_history'
        verbose_name = _('Order Status History')
        verbose_name_plural = _('Order Status History')
        ordering: ClassVar[tuple[str, ...]] = ('-created_at',)
        indexes: ClassVar[tuple[models.Index, ...]] = (
            models.Index(fields=['order', '-created_at']),
        )

    def __str__(self) -> str:
        return f"{self.order.order_number}: {self.old_status or '-'} → {self.new_status}"


def receipt_upload_path(instance: 'PaymentReceipt', filename: str) -> str:
    """receipts/<order_number>/receipt_<timestamp>_<filename>"""
    stem, ext = os.path.splitext(os.path.basename(filename).replace(' ', '_'))
    safe_name = f"{stem[:100]}{ext[:10]}"
    timestamp = int(timezone.now().timestamp() * 1000)
    return f"receipts/{instance.order.order_number}/receipt_{timestamp}_{safe_name}"


class PaymentReceipt(models.Model):
    """Bank transfer proof uploaded by the customer"""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='receipts')
    file = models.FileField(upload_to=receipt_upload_path, max_length=300)
    original_filename = models.CharField(max_length=255)
    content_type = models.CharField(max_length=100)
    size = models.PositiveIntegerField(help_text=_("File size in bytes"))
    uploaded_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'order_payment_receipts'
        verbose_name = _('Payment Receipt')
        verbose_name_plural = _('Payment Receipts')
        ordering: ClassVar[tuple[str, ...]] = ('uploaded_at',)

    def __str__(self) -> str:
        return f"{self.order.order_number} - {self.original_filename}"


class Quote(models.Model):
    """
    Quote sent by staff for an order: final amount and the bank account to pay.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='quotes')
    amount_cents = models.BigIntegerField(validators=[MinValueValidator(0)])
    iban = models.CharField(max_length=34, validators=[validate_iban])
    bic = models.CharField(max_length=11, validators=[validate_bic])
    account_name = models.CharField(max_length=100)
    notes = models.TextField(blank=True, validators=[MaxLengthValidator(1000)])

    STATUS_CHOICES: ClassVar[tuple[tuple[str, Any], ...]] = (
        ('sent', _('Sent')),
        ('viewed', _('Viewed')),
        ('paid', _('Paid')),
    )
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default='sent')
    sent_at = models.DateTimeField(null=True, blank=True)
    email_message_id = models.CharField(max_length=255, blank=True)
    sent_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='sent_quotes',
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'order_quotes'
        verbose_name = _('Quote')
        verbose_name_plural = _('Quotes')
        ordering: ClassVar[tuple[str, ...]] = ('-created_at',)

    def __str__(self) -> str:
        return f"Quote {self.order.order_number} - {self.amount}€"

    @property
    def amount(self) -> Decimal:
        return cents_to_decimal(self.amount_cents)
