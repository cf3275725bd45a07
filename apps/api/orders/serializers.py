"""
Order API Serializers
Checkout input, order tracking output and back-office quote payloads.
"""

from decimal import Decimal
from typing import Any, ClassVar

from rest_framework import serializers

from apps.common.utils import decimal_to_cents
from apps.common.validators import (
    MAX_COMPANY_NAME_LENGTH,
    MAX_EMAIL_LENGTH,
    MAX_NAME_LENGTH,
    validate_french_phone,
    validate_postal_code,
)
from apps.orders.models import Order, OrderItem, OrderStatusHistory, PaymentReceipt, Quote
from apps.orders.services import OrderCreateData, OrderUpdateData, QuoteData

MAX_ITEM_QUANTITY = 100


# ===============================================================================
# CHECKOUT INPUT
# ===============================================================================

class CustomerInputSerializer(serializers.Serializer):
    firstName = serializers.CharField(min_length=2, max_length=MAX_NAME_LENGTH)
    lastName = serializers.CharField(min_length=2, max_length=MAX_NAME_LENGTH)
    email = serializers.EmailField(max_length=MAX_EMAIL_LENGTH)
    phone = serializers.CharField(max_length=30, validators=[validate_french_phone])
    company = serializers.CharField(max_length=MAX_COMPANY_NAME_LENGTH, required=False, allow_blank=True, default='')


class ShippingAddressInputSerializer(serializers.Serializer):
    street = serializers.CharField(min_length=5, max_length=200)
    city = serializers.CharField(min_length=2, max_length=100)
    postalCode = serializers.CharField(validators=[validate_postal_code])
    country = serializers.CharField(max_length=100, required=False, default='France')
    region = serializers.CharField(max_length=100, required=False, allow_blank=True, default='')


class OrderItemInputSerializer(serializers.Serializer):
    """Only product and quantity are accepted, prices come from the catalog"""

    productId = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1, max_value=MAX_ITEM_QUANTITY)


class OrderCreateInputSerializer(serializers.Serializer):
    """POST /api/orders/"""

    customer = CustomerInputSerializer()
    shippingAddress = ShippingAddressInputSerializer()
    items = OrderItemInputSerializer(many=True, allow_empty=False)
    notes = serializers.CharField(max_length=500, required=False, allow_blank=True, default='')

    def to_create_data(self) -> OrderCreateData:
        data = self.validated_data
        customer = data['customer']
        address = data['shippingAddress']
        return OrderCreateData(
            customer={
                'first_name': customer['firstName'],
                'last_name': customer['lastName'],
                'email': customer['email'],
                'phone': customer['phone'],
                'company': customer.get('company', ''),
            },
            shipping_address={
                'street': address['street'],
                'city': address['city'],
                'postal_code': address['postalCode'],
                'country': address.get('country') or 'France',
                'region': address.get('region', ''),
            },
            items=[{'product_id': item['productId'], 'quantity': item['quantity']} for item in data['items']],
            notes=data.get('notes', ''),
        )


class OrderUpdateInputSerializer(serializers.Serializer):
    """PUT/PATCH /api/orders/<order_number>/ (staff)"""

    status = serializers.ChoiceField(choices=Order.STATUS_CHOICES, required=False)
    paymentStatus = serializers.ChoiceField(choices=Order.PAYMENT_STATUS_CHOICES, required=False)
    notes = serializers.CharField(max_length=500, required=False, allow_blank=True)

    def to_update_data(self) -> OrderUpdateData:
        data = self.validated_data
        return OrderUpdateData(
            status=data.get('status'),
            payment_status=data.get('paymentStatus'),
            notes=data.get('notes'),
        )


class QuoteInputSerializer(serializers.Serializer):
    """POST /api/admin/orders/<uuid>/quote/"""

    amount = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal('0.01'))
    iban = serializers.CharField(max_length=50)
    bic = serializers.CharField(max_length=20)
    accountName = serializers.CharField(max_length=100)
    notes = serializers.CharField(max_length=1000, required=False, allow_blank=True, default='')

    def to_quote_data(self) -> QuoteData:
        data = self.validated_data
        return QuoteData(
            amount_cents=decimal_to_cents(data['amount']),
            iban=data['iban'],
            bic=data['bic'],
            account_name=data['accountName'],
            notes=data.get('notes', ''),
        )


# ===============================================================================
# ORDER OUTPUT
# ===============================================================================

class OrderItemSerializer(serializers.ModelSerializer):
    """Order line with its price snapshot"""

    unit_price = serializers.DecimalField(max_digits=10, decimal_places=2, read_only=True)
    line_total = serializers.DecimalField(max_digits=10, decimal_places=2, read_only=True)

    class Meta:
        model = OrderItem
        fields: ClassVar = [
            'id', 'product', 'product_name', 'product_slug', 'product_image',
            'quantity', 'unit_price', 'line_total',
        ]


class OrderStatusHistorySerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderStatusHistory
        fields: ClassVar = ['old_status', 'new_status', 'note', 'created_at']


class PaymentReceiptSerializer(serializers.ModelSerializer):
    class Meta:
        model = PaymentReceipt
        fields: ClassVar = ['id', 'original_filename', 'content_type', 'size', 'uploaded_at']


class OrderDetailSerializer(serializers.ModelSerializer):
    """Order tracking payload: items, receipts and history (newest first)"""

    items = OrderItemSerializer(many=True, read_only=True)
    receipts = PaymentReceiptSerializer(many=True, read_only=True)
    status_history = OrderStatusHistorySerializer(many=True, read_only=True)
    subtotal = serializers.DecimalField(max_digits=10, decimal_places=2, read_only=True)
    shipping_cost = serializers.DecimalField(max_digits=10, decimal_places=2, read_only=True)
    total = serializers.DecimalField(max_digits=10, decimal_places=2, read_only=True)
    bank_amount_to_pay = serializers.DecimalField(max_digits=10, decimal_places=2, read_only=True, allow_null=True)
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    payment_status_display = serializers.CharField(source='get_payment_status_display', read_only=True)
    customer_full_name = serializers.CharField(read_only=True)
    is_shipping_free = serializers.BooleanField(read_only=True)
    has_bank_details = serializers.BooleanField(read_only=True)

    class Meta:
        model = Order
        fields: ClassVar = [
            'id', 'order_number', 'status', 'status_display', 'payment_status', 'payment_status_display',
            'customer_first_name', 'customer_last_name', 'customer_full_name',
            'customer_email', 'customer_phone', 'customer_company',
            'shipping_street', 'shipping_city', 'shipping_postal_code', 'shipping_country', 'shipping_region',
            'subtotal', 'shipping_cost', 'total', 'is_shipping_free', 'payment_method', 'notes',
            'has_bank_details', 'bank_iban', 'bank_bic', 'bank_account_name', 'bank_amount_to_pay',
            'created_at', 'updated_at', 'items', 'receipts', 'status_history',
        ]


class OrderListSerializer(serializers.ModelSerializer):
    """Slim order row for the back-office list"""

    total = serializers.DecimalField(max_digits=10, decimal_places=2, read_only=True)
    customer_full_name = serializers.CharField(read_only=True)

    class Meta:
        model = Order
        fields: ClassVar = [
            'id', 'order_number', 'status', 'payment_status', 'customer_full_name',
            'customer_email', 'total', 'has_bank_details', 'created_at',
        ]


class QuoteSerializer(serializers.ModelSerializer):
    amount = serializers.DecimalField(max_digits=10, decimal_places=2, read_only=True)

    class Meta:
        model = Quote
        fields: ClassVar = [
            'id', 'amount', 'iban', 'bic', 'account_name', 'notes',
            'status', 'sent_at', 'email_message_id', 'created_at',
        ]


class OrderAdminDetailSerializer(OrderDetailSerializer):
    """Back-office order with quotes and who changed each status"""

    quotes = QuoteSerializer(many=True, read_only=True)
    status_history = serializers.SerializerMethodField()

    class Meta(OrderDetailSerializer.Meta):
        fields: ClassVar = [*OrderDetailSerializer.Meta.fields, 'quotes']

    def get_status_history(self, obj: Order) -> list[dict[str, Any]]:
        return [
            {
                'old_status': entry.old_status,
                'new_status': entry.new_status,
                'note': entry.note,
                'changed_by': entry.changed_by.get_username() if entry.changed_by else None,
                'created_at': entry.created_at,
            }
            for entry in obj.status_history.all()
        ]
