# ===============================================================================
# CART API SERIALIZERS 🛒
# ===============================================================================

from typing import Any

from rest_framework import serializers

from apps.cart.services import CartLine, SessionCart
from apps.common.utils import cents_to_decimal


class CartItemInputSerializer(serializers.Serializer):
    """POST /api/cart/items/"""

    productId = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1, max_value=100, default=1)


class CartQuantitySerializer(serializers.Serializer):
    """PATCH /api/cart/items/<uuid>/ - zero removes the line"""

    quantity = serializers.IntegerField(max_value=100)


def serialize_line(line: CartLine) -> dict[str, Any]:
    product = line.product
    image = product.primary_image
    return {
        'productId': str(product.pk),
        'name': product.name,
        'slug': product.slug,
        'essence': product.essence,
        'unit': product.unit,
        'price': product.price,
        'quantity': line.quantity,
        'stock': product.stock,
        'lineTotal': cents_to_decimal(line.line_total_cents),
        'image': image.url if image else None,
        'exceedsStock': line.exceeds_stock,
    }


def serialize_cart(cart: SessionCart) -> dict[str, Any]:
    """Cart lines with server-computed totals"""
    lines = cart.lines()
    totals = cart.totals(lines)
    return {
        'items': [serialize_line(line) for line in lines],
        'itemsCount': cart.items_count,
        'subtotal': cents_to_decimal(totals.subtotal_cents),
        'shipping': cents_to_decimal(totals.shipping_cents),
        'tax': cents_to_decimal(totals.tax_cents),
        'total': cents_to_decimal(totals.total_cents),
    }
