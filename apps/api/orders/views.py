"""
Order API Views
Guest checkout, order tracking by number, receipt upload and the
back-office order desk (quotes and bank details).
"""

import logging
from typing import Any, ClassVar

from django.db.models import QuerySet
from rest_framework import status
from rest_framework.decorators import action, api_view, parser_classes, permission_classes, throttle_classes
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.permissions import AllowAny
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.common.request_ip import get_safe_client_ip
from apps.common.utils import cents_to_decimal
from apps.orders.models import Order
from apps.orders.services import OrderService

from ..core import (
    IsStaffUser,
    OrderCreateThrottle,
    ReadOnlyAdminViewSet,
    service_error_response,
    success_response,
)
from .serializers import (
    OrderAdminDetailSerializer,
    OrderCreateInputSerializer,
    OrderDetailSerializer,
    OrderListSerializer,
    OrderUpdateInputSerializer,
    PaymentReceiptSerializer,
    QuoteInputSerializer,
    QuoteSerializer,
)

logger = logging.getLogger(__name__)


# ===============================================================================
# CHECKOUT 🛒
# ===============================================================================

@api_view(['POST'])
@permission_classes([AllowAny])
@throttle_classes([OrderCreateThrottle])
def create_order(request: Request) -> Response:
    """
    🛒 Create an order (bank transfer payment)

    POST /api/orders/
    {
        "customer": {"firstName", "lastName", "email", "phone", "company"?},
        "shippingAddress": {"street", "city", "postalCode", "country"?, "region"?},
        "items": [{"productId": "<uuid>", "quantity": 2}],
        "notes": "..."
    }

    Response (201): {"orderNumber", "orderId", "total", "shippingCost"}
    """
    serializer = OrderCreateInputSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    result = OrderService.create_order(serializer.to_create_data())
    if result.is_err():
        logger.warning(f"⚠️ [Orders API] Checkout refused: {result.error.code} - {result.error.message}")
        return service_error_response(result.error)

    order = result.unwrap().order
    return success_response(
        {
            'orderNumber': order.order_number,
            'orderId': str(order.id),
            'total': cents_to_decimal(order.total_cents),
            'shippingCost': cents_to_decimal(order.shipping_cents),
        },
        "Commande créée avec succès",
        status.HTTP_201_CREATED,
    )


# ===============================================================================
# ORDER TRACKING 🔍
# ===============================================================================

class OrderDetailAPIView(APIView):
    """
    GET        /api/orders/<order_number>/  → public order tracking
    PUT/PATCH  /api/orders/<order_number>/  → staff update {status, paymentStatus, notes}
    """

    def get_permissions(self) -> list[Any]:
        if self.request.method in ('PUT', 'PATCH'):
            return [IsStaffUser()]
        return [AllowAny()]

    def get(self, request: Request, order_number: str) -> Response:
        result = OrderService.get_order_by_number(order_number)
        if result.is_err():
            return service_error_response(result.error)
        return success_response(OrderDetailSerializer(result.unwrap()).data)

    def put(self, request: Request, order_number: str) -> Response:
        return self._update(request, order_number)

    def patch(self, request: Request, order_number: str) -> Response:
        return self._update(request, order_number)

    def _update(self, request: Request, order_number: str) -> Response:
        serializer = OrderUpdateInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        order_result = OrderService.get_order_by_number(order_number)
        if order_result.is_err():
            return service_error_response(order_result.error)

        result = OrderService.update_order(order_result.unwrap(), serializer.to_update_data(), request.user)
        if result.is_err():
            return service_error_response(result.error)

        refreshed = OrderService.get_order_by_number(order_number).unwrap()
        return success_response(OrderDetailSerializer(refreshed).data, "Commande mise à jour")


@api_view(['POST'])
@permission_classes([AllowAny])
@throttle_classes([OrderCreateThrottle])
@parser_classes([MultiPartParser, FormParser])
def upload_receipt(request: Request, order_number: str) -> Response:
    """
    🧾 Attach a bank transfer receipt

    POST /api/orders/<order_number>/upload-receipt/  (multipart, field "receipt")
    """
    order_result = OrderService.get_order_by_number(order_number)
    if order_result.is_err():
        return service_error_response(order_result.error)

    result = OrderService.attach_receipt(
        order_result.unwrap(), request.FILES.get('receipt'), get_safe_client_ip(request)
    )
    if result.is_err():
        return service_error_response(result.error)

    return success_response(
        PaymentReceiptSerializer(result.unwrap()).data,
        "Justificatif de paiement envoyé avec succès",
        status.HTTP_201_CREATED,
    )


# ===============================================================================
# BACK-OFFICE ORDERS 🛠️
# ===============================================================================

class OrderAdminViewSet(ReadOnlyAdminViewSet):
    """
    /api/admin/orders/                          → list (?search=&status=&paymentStatus=&page=&limit=)
    /api/admin/orders/<uuid>/                   → detail
    /api/admin/orders/<uuid>/quote/             → send a quote with bank details
    /api/admin/orders/<uuid>/send-bank-details/ → e-mail the stored bank details again
    """

    queryset = Order.objects.all()
    serializer_class = OrderAdminDetailSerializer
    http_method_names: ClassVar = ['get', 'post', 'head', 'options']

    def get_queryset(self) -> QuerySet[Order]:
        if self.action == 'list':
            return OrderService.search_orders(self.request.query_params)
        return Order.objects.prefetch_related('items', 'receipts', 'status_history__changed_by', 'quotes')

    def get_serializer_class(self) -> type:
        if self.action == 'list':
            return OrderListSerializer
        return OrderAdminDetailSerializer

    @action(detail=True, methods=['post'], url_path='quote')
    def quote(self, request: Request, pk: str | None = None) -> Response:
        serializer = QuoteInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        order = self.get_object()
        result = OrderService.send_quote(order, serializer.to_quote_data(), request.user)
        if result.is_err():
            return service_error_response(result.error)

        sent = result.unwrap()
        extra: dict[str, Any] = {'emailSent': sent.email_sent}
        if sent.warning:
            extra['warning'] = sent.warning
        return success_response(
            {'quote': QuoteSerializer(sent.quote).data, 'orderNumber': order.order_number},
            "Devis envoyé avec succès" if sent.email_sent else "Devis enregistré",
            **extra,
        )

    @action(detail=True, methods=['post'], url_path='send-bank-details')
    def send_bank_details(self, request: Request, pk: str | None = None) -> Response:
        order = self.get_object()
        result = OrderService.send_bank_details(order, request.user)
        if result.is_err():
            return service_error_response(result.error)
        return success_response(message="Informations bancaires envoyées avec succès")
