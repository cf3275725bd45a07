# ===============================================================================
# CART API VIEWS 🛒
# ===============================================================================
#
# The cart lives in the Django session: anonymous visitors keep their cart
# through the session cookie.

import logging
import uuid

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, throttle_classes
from rest_framework.permissions import AllowAny
from rest_framework.request import Request
from rest_framework.response import Response

from apps.cart.services import SessionCart
from apps.products.models import Product

from ..core import CatalogThrottle, error_response, service_error_response, success_response
from .serializers import CartItemInputSerializer, CartQuantitySerializer, serialize_cart, serialize_line

logger = logging.getLogger(__name__)


@api_view(['GET', 'DELETE'])
@permission_classes([AllowAny])
@throttle_classes([CatalogThrottle])
def cart_detail(request: Request) -> Response:
    """
    GET    /api/cart/  → lines and totals
    DELETE /api/cart/  → empty the cart
    """
    cart = SessionCart(request.session)

    if request.method == 'DELETE':
        cart.clear()
        return success_response(serialize_cart(cart), "Panier vidé")

    return success_response(serialize_cart(cart))


@api_view(['POST'])
@permission_classes([AllowAny])
@throttle_classes([CatalogThrottle])
def add_cart_item(request: Request) -> Response:
    serializer = CartItemInputSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    product = Product.objects.filter(pk=serializer.validated_data['productId'], is_active=True).first()
    if product is None:
        return error_response("Produit introuvable", 'PRODUCT_NOT_FOUND', status.HTTP_404_NOT_FOUND)

    cart = SessionCart(request.session)
    result = cart.add(product, serializer.validated_data['quantity'])
    if result.is_err():
        return service_error_response(result.error)

    logger.info(f"🛒 [Cart API] Added {serializer.validated_data['quantity']} x {product.slug}")
    return success_response(
        serialize_cart(cart), "Produit ajouté au panier", status.HTTP_201_CREATED,
        item=serialize_line(result.unwrap()),
    )


@api_view(['PATCH', 'DELETE'])
@permission_classes([AllowAny])
@throttle_classes([CatalogThrottle])
def cart_item(request: Request, product_id: uuid.UUID) -> Response:
    """
    PATCH  /api/cart/items/<uuid>/ {quantity} → clamp to stock, ≤0 removes
    DELETE /api/cart/items/<uuid>/
    """
    cart = SessionCart(request.session)

    if request.method == 'DELETE':
        if not cart.remove(product_id):
            return error_response("Article absent du panier", 'NOT_FOUND', status.HTTP_404_NOT_FOUND)
        return success_response(serialize_cart(cart), "Article retiré du panier")

    serializer = CartQuantitySerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    result = cart.update_quantity(product_id, serializer.validated_data['quantity'])
    if result.is_err():
        return service_error_response(result.error)
    return success_response(serialize_cart(cart), "Panier mis à jour")


@api_view(['GET'])
@permission_classes([AllowAny])
@throttle_classes([CatalogThrottle])
def validate_cart(request: Request) -> Response:
    """✅ Pre-checkout check; returns the order payload when the cart is valid"""
    cart = SessionCart(request.session)
    validation = cart.validate()
    return success_response({
        'isValid': validation.is_valid,
        'errors': validation.errors,
        'items': cart.get_order_items() if validation.is_valid else [],
    })
