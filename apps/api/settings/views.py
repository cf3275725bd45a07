# ===============================================================================
# SITE SETTINGS API VIEWS ⚙️
# ===============================================================================

import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, throttle_classes
from rest_framework.permissions import AllowAny
from rest_framework.request import Request
from rest_framework.response import Response

from apps.common.utils import cents_to_decimal, decimal_to_cents
from apps.settings.services import SiteSettingsService

from ..core import CatalogThrottle, IsStaffUser, service_error_response, success_response
from .serializers import PublicSiteSettingsSerializer, ShippingCostQuerySerializer, SiteSettingsAdminSerializer

logger = logging.getLogger(__name__)


@api_view(['GET'])
@permission_classes([AllowAny])
@throttle_classes([CatalogThrottle])
def public_settings(request: Request) -> Response:
    return success_response(PublicSiteSettingsSerializer(SiteSettingsService.get_active_settings()).data)


@api_view(['GET'])
@permission_classes([AllowAny])
@throttle_classes([CatalogThrottle])
def shipping_cost(request: Request) -> Response:
    """
    🚚 Shipping quote

    GET /api/settings/shipping-cost/?country=France&region=Bretagne&subtotal=120
    """
    serializer = ShippingCostQuerySerializer(data=request.query_params)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    site = SiteSettingsService.get_active_settings()
    subtotal_cents = decimal_to_cents(data['subtotal'])
    cost_cents = site.calculate_shipping_cents(data['country'], data['region'] or None, subtotal_cents)

    return success_response({
        'country': data['country'],
        'region': data['region'],
        'shippingCost': cents_to_decimal(cost_cents),
        'isFree': cost_cents == 0,
        'freeShippingThreshold': site.free_shipping_threshold,
    })


@api_view(['GET', 'PUT', 'PATCH', 'POST'])
@permission_classes([IsStaffUser])
def admin_settings(request: Request) -> Response:
    """
    GET        /api/admin/settings/  → active settings
    PUT/PATCH  /api/admin/settings/  → update every field but id / is_active
    POST       /api/admin/settings/  → deactivate the current row and create a new one
    """
    current = SiteSettingsService.get_active_settings()

    if request.method == 'GET':
        return success_response(SiteSettingsAdminSerializer(current).data)

    replacing = request.method == 'POST'
    serializer = SiteSettingsAdminSerializer(
        None if replacing else current, data=request.data, partial=request.method == 'PATCH'
    )
    serializer.is_valid(raise_exception=True)

    if replacing:
        result = SiteSettingsService.replace_settings(serializer.to_model_values())
    else:
        result = SiteSettingsService.update_settings(serializer.to_model_values())
    if result.is_err():
        return service_error_response(result.error)

    logger.info(f"⚙️ [Settings API] {request.user} {'replaced' if replacing else 'updated'} site settings")
    return success_response(
        SiteSettingsAdminSerializer(result.unwrap()).data,
        "Paramètres créés avec succès" if replacing else "Paramètres mis à jour avec succès",
        status.HTTP_201_CREATED if replacing else status.HTTP_200_OK,
    )
