# ===============================================================================
# CATALOG API VIEWS 🪵
# ===============================================================================

import logging
from typing import Any, ClassVar

from django.conf import settings
from django.db.models import QuerySet
from rest_framework.decorators import api_view, permission_classes, throttle_classes
from rest_framework.permissions import AllowAny
from rest_framework.request import Request
from rest_framework.response import Response

from apps.products.models import Category, Product, Testimonial
from apps.products.services import (
    CategoryService,
    ProductAdminService,
    ProductCatalogService,
    ProductSearchFilters,
    TestimonialService,
)
from apps.settings.services import SiteSettingsService

from ..core import BaseAdminViewSet, CatalogThrottle, service_error_response, success_response
from .serializers import (
    CategoryAdminSerializer,
    CategorySerializer,
    ProductAdminSerializer,
    ProductDetailSerializer,
    ProductListSerializer,
    TestimonialSerializer,
)

logger = logging.getLogger(__name__)


def _parse_bool(value: str | None, default: bool | None = None) -> bool | None:
    if value is None or value == '':
        return default
    if value.lower() in ('true', '1', 'yes'):
        return True
    if value.lower() in ('false', '0', 'no'):
        return False
    return default


# ===============================================================================
# PUBLIC PRODUCT ENDPOINTS 🔍
# ===============================================================================

@api_view(['GET'])
@permission_classes([AllowAny])
@throttle_classes([CatalogThrottle])
def product_search(request: Request) -> Response:
    """
    🔍 Product search

    GET /api/products/search/?search=&category=&essence=&priceRange=50-100
        &inStock=true&badges=premium,offre&promotion=true&sort=price-asc&page=1&limit=12
    """
    filters = ProductSearchFilters.from_query_params(request.query_params)
    result = ProductCatalogService.search(filters)

    return success_response({
        'products': ProductListSerializer(result.products, many=True).data,
        'stats': result.stats,
        'filters': result.filters,
    })


@api_view(['GET'])
@permission_classes([AllowAny])
@throttle_classes([CatalogThrottle])
def featured_products(request: Request) -> Response:
    """
    ⭐ Home page selections

    GET /api/products/featured/?filter=featured|bestseller|trending|new|promotion|all&limit=8
    """
    filter_name = request.query_params.get('filter') or 'featured'
    result = ProductCatalogService.featured_products(filter_name, request.query_params.get('limit'))
    if result.is_err():
        return service_error_response(result.error)

    products = result.unwrap()
    return success_response(
        ProductListSerializer(products, many=True).data, filter=filter_name, count=len(products)
    )


@api_view(['GET'])
@permission_classes([AllowAny])
@throttle_classes([CatalogThrottle])
def product_detail(request: Request, slug: str) -> Response:
    """📦 Product page: product, similar products and SEO block"""
    site = SiteSettingsService.get_active_settings()
    result = ProductCatalogService.get_product_detail(slug, site.site_name, settings.SITE_URL)
    if result.is_err():
        return service_error_response(result.error)

    detail = result.unwrap()
    return success_response({
        'product': ProductDetailSerializer(detail.product).data,
        'similarProducts': ProductListSerializer(detail.similar_products, many=True).data,
        'seo': detail.seo,
    })


# ===============================================================================
# PUBLIC CATEGORY ENDPOINTS 🗂️
# ===============================================================================

@api_view(['GET'])
@permission_classes([AllowAny])
@throttle_classes([CatalogThrottle])
def category_list(request: Request) -> Response:
    """
    GET /api/categories/?active=true&featured=true

    ``active=all`` lists inactive categories too.
    """
    active_param = request.query_params.get('active')
    active = None if active_param == 'all' else _parse_bool(active_param, default=True)
    featured = _parse_bool(request.query_params.get('featured'))

    categories = CategoryService.list_categories(active=active, featured=featured)
    data = CategorySerializer(categories, many=True).data
    return success_response(data, count=len(data))


@api_view(['GET'])
@permission_classes([AllowAny])
@throttle_classes([CatalogThrottle])
def featured_categories(request: Request) -> Response:
    return success_response(CategorySerializer(CategoryService.featured_categories(), many=True).data)


@api_view(['GET'])
@permission_classes([AllowAny])
@throttle_classes([CatalogThrottle])
def category_detail(request: Request, slug: str) -> Response:
    """🗂️ Category page with statistics and featured products"""
    result = CategoryService.get_category_detail(slug)
    if result.is_err():
        return service_error_response(result.error)

    detail = result.unwrap()
    return success_response({
        'category': CategorySerializer(detail.category).data,
        'stats': detail.stats,
        'featuredProducts': ProductListSerializer(detail.featured_products, many=True).data,
    })


@api_view(['GET'])
@permission_classes([AllowAny])
@throttle_classes([CatalogThrottle])
def featured_testimonials(request: Request) -> Response:
    """💬 GET /api/testimonials/featured/?verified=true"""
    verified_only = bool(_parse_bool(request.query_params.get('verified'), default=False))
    testimonials = TestimonialService.featured_testimonials(verified_only=verified_only)
    return success_response(TestimonialSerializer(testimonials, many=True).data)


# ===============================================================================
# BACK-OFFICE VIEWSETS 🛠️
# ===============================================================================

class ProductAdminViewSet(BaseAdminViewSet):
    """
    /api/admin/products/

    List filters: search, category (id or slug), active, essence.
    """

    queryset = Product.objects.all()
    serializer_class = ProductAdminSerializer

    def get_queryset(self) -> QuerySet[Product]:
        return ProductAdminService.filter_products(self.request.query_params)


class CategoryAdminViewSet(BaseAdminViewSet):
    """/api/admin/categories/ - deletion is refused while products remain"""

    queryset = Category.objects.all()
    serializer_class = CategoryAdminSerializer

    def get_queryset(self) -> QuerySet[Category]:
        return CategoryService.with_product_count(Category.objects.all()).order_by('sort_order', 'name')

    def destroy(self, request: Request, *args: Any, **kwargs: Any) -> Response:
        category = self.get_object()
        result = CategoryService.delete_category(category)
        if result.is_err():
            logger.warning(f"⚠️ [Admin API] Refused deletion of category {category.slug}: {result.error}")
            return service_error_response(result.error)
        return success_response(message="Catégorie supprimée avec succès")


class TestimonialAdminViewSet(BaseAdminViewSet):
    """/api/admin/testimonials/"""

    queryset = Testimonial.objects.all()
    serializer_class = TestimonialSerializer
    ordering: ClassVar = ['sort_order', '-rating', '-created_at']

    def get_queryset(self) -> QuerySet[Testimonial]:
        return Testimonial.objects.order_by(*self.ordering)
