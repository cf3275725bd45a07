"""
Django admin configuration for orders app.
Bank transfer order follow-up interface.
"""


from typing import ClassVar

from django.contrib import admin

from .models import Order, OrderItem, OrderStatusHistory, PaymentReceipt, Quote


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    readonly_fields: ClassVar[list[str]] = ('line_total_cents', 'created_at')


class OrderStatusHistoryInline(admin.TabularInline):
    model = OrderStatusHistory
    extra = 0
    readonly_fields: ClassVar[list[str]] = ('old_status', 'new_status', 'note', 'changed_by', 'created_at')
    can_delete = False


class PaymentReceiptInline(admin.TabularInline):
    model = PaymentReceipt
    extra = 0
    readonly_fields: ClassVar[list[str]] = ('original_filename', 'content_type', 'size', 'uploaded_at')


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    """Admin interface for orders."""

    list_display: ClassVar[list[str]] = (
        'order_number', 'customer_email', 'status', 'payment_status',
        'total_cents', 'created_at'
    )
    list_filter: ClassVar[list[str]] = ('status', 'payment_status', 'shipping_country', 'created_at')
    search_fields: ClassVar[list[str]] = (
        'order_number', 'customer_email', 'customer_first_name', 'customer_last_name'
    )
    readonly_fields: ClassVar[list[str]] = ('created_at', 'updated_at', 'order_number')
    inlines: ClassVar[list] = [OrderItemInline, PaymentReceiptInline, OrderStatusHistoryInline]

    fieldsets: ClassVar[tuple] = (
        ('Order Information', {
            'fields': ('order_number', 'status', 'payment_status', 'payment_method')
        }),
        ('Customer', {
            'fields': (
                'customer_first_name', 'customer_last_name', 'customer_email',
                'customer_phone', 'customer_company'
            )
        }),
        ('Shipping Address', {
            'fields': (
                'shipping_street', 'shipping_city', 'shipping_postal_code',
                'shipping_country', 'shipping_region'
            ),
            'classes': ('collapse',)
        }),
        ('Financial Details', {
            'fields': ('subtotal_cents', 'shipping_cents', 'total_cents')
        }),
        ('Bank Transfer', {
            'fields': (
                'bank_iban', 'bank_bic', 'bank_account_name',
                'bank_amount_to_pay_cents', 'bank_details_updated_at'
            ),
            'classes': ('collapse',)
        }),
        ('Additional Information', {
            'fields': ('notes',),
            'classes': ('collapse',)
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        })
    )


@admin.register(Quote)
class QuoteAdmin(admin.ModelAdmin):
    """Admin interface for quotes sent to customers."""

    list_display: ClassVar[list[str]] = ('order', 'amount_cents', 'status', 'sent_at', 'sent_by')
    list_filter: ClassVar[list[str]] = ('status', 'sent_at')
    search_fields: ClassVar[list[str]] = ('order__order_number', 'account_name')
    readonly_fields: ClassVar[list[str]] = ('email_message_id', 'created_at', 'updated_at')
