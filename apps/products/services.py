"""
Product catalog services for the firewood storefront
Search with filters and sorting, featured selections, category statistics
and the enriched product detail.
"""

from __future__ import annotations

import logging
import re
import uuid
from dataclasses import dataclass, field
from datetime import timedelta
from decimal import Decimal
from typing import Any, ClassVar

from django.db import transaction
from django.db.models import Avg, Count, F, Max, Min, Q, QuerySet
from django.db.models.deletion import ProtectedError
from django.utils import timezone

from apps.common.types import Err, Ok, Result, ServiceError
from apps.common.utils import PaginationStats, build_pagination, cents_to_decimal, clamp_pagination

from .models import NEW_PRODUCT_DAYS, Category, Product, Testimonial

logger = logging.getLogger(__name__)

# ===============================================================================
# CATALOG CONSTANTS
# ===============================================================================

SEARCH_DEFAULT_LIMIT = 12
SEARCH_MAX_LIMIT = 50
FEATURED_PRODUCTS_DEFAULT_LIMIT = 8
FEATURED_CATEGORIES_LIMIT = 4
CATEGORY_FEATURED_PRODUCTS_LIMIT = 8
SIMILAR_PRODUCTS_LIMIT = 4
FEATURED_TESTIMONIALS_LIMIT = 6
TESTIMONIAL_FALLBACK_MIN_RATING = 4
DELIVERY_ESTIMATE = "24-48h"

SORT_OPTIONS: dict[str, tuple[str, ...]] = {
    "name-asc": ("name",),
    "name-desc": ("-name",),
    "price-asc": ("price_cents", "name"),
    "price-desc": ("-price_cents", "name"),
    "rating-desc": ("-average_rating", "-review_count"),
    "sales-desc": ("-sales_count", "name"),
    "created-desc": ("-created_at",),
    "created-asc": ("created_at",),
}
DEFAULT_SORT = "name-asc"

FEATURED_FILTERS: dict[str, tuple[str, ...]] = {
    "featured": ("-featured", "-average_rating", "-sales_count"),
    "bestseller": ("-sales_count", "-average_rating"),
    "trending": ("-view_count", "-sales_count"),
    "new": ("-created_at",),
    "promotion": ("-compare_at_price_cents", "-average_rating"),
    "all": ("-featured", "-bestseller", "-trending", "-average_rating"),
}

PRICE_RANGE_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*-\s*(\d+(?:\.\d+)?|\+)\s*$")

# ===============================================================================
# PARAMETER OBJECTS
# ===============================================================================


@dataclass
class ProductSearchFilters:
    """Parsed query parameters of the public product search"""

    search: str = ""
    category: str = ""
    essence: str = ""
    price_range: str = ""
    in_stock: bool = False
    badges: list[str] = field(default_factory=list)
    promotion: bool = False
    sort: str = DEFAULT_SORT
    page: int = 1
    limit: int = SEARCH_DEFAULT_LIMIT

    @classmethod
    def from_query_params(cls, params: Any) -> ProductSearchFilters:
        page, limit = clamp_pagination(
            params.get("page"), params.get("limit"), SEARCH_DEFAULT_LIMIT, SEARCH_MAX_LIMIT
        )
        sort = params.get("sort") or DEFAULT_SORT
        badges = [b.strip() for b in (params.get("badges") or "").split(",") if b.strip()]
        return cls(
            search=(params.get("search") or "").strip(),
            category=(params.get("category") or "").strip(),
            essence=(params.get("essence") or "").strip(),
            price_range=(params.get("priceRange") or "").strip(),
            in_stock=params.get("inStock") == "true",
            badges=badges,
            promotion=params.get("promotion") == "true",
            sort=sort if sort in SORT_OPTIONS else DEFAULT_SORT,
            page=page,
            limit=limit,
        )

    def applied(self) -> dict[str, Any]:
        """Filters echoed back to the client"""
        return {
            "search": self.search,
            "category": self.category,
            "essence": self.essence,
            "priceRange": self.price_range,
            "inStock": self.in_stock,
            "badges": self.badges,
            "promotion": self.promotion,
            "sort": self.sort,
        }


@dataclass
class ProductSearchResult:
    products: list[Product]
    stats: PaginationStats
    filters: dict[str, Any]


@dataclass
class CategoryDetail:
    category: Category
    stats: dict[str, Any]
    featured_products: list[Product]


@dataclass
class ProductDetail:
    product: Product
    similar_products: list[Product]
    seo: dict[str, Any]


def parse_price_range(value: str) -> tuple[int, int | None] | None:
    """
    Parse "min-max" or "min-+" (euros) into cents bounds.
    Returns None when the value is malformed.
    """
    match = PRICE_RANGE_RE.match(value or "")
    if not match:
        return None
    low = int(Decimal(match.group(1)) * 100)
    high = None if match.group(2) == "+" else int(Decimal(match.group(2)) * 100)
    if high is not None and high < low:
        return None
    return low, high


# ===============================================================================
# PRODUCT CATALOG SERVICE
# ===============================================================================


class ProductCatalogService:
    """🛒 Public product catalog queries"""

    @staticmethod
    def base_queryset() -> QuerySet[Product]:
        return (
            Product.objects.filter(is_active=True)
            .select_related("category")
            .prefetch_related("images")
        )

    @staticmethod
    def build_search_queryset(filters: ProductSearchFilters) -> QuerySet[Product]:
        """Translate search filters into a queryset (no pagination)"""
        queryset = ProductCatalogService.base_queryset()

        if filters.search:
            queryset = queryset.filter(
                Q(name__icontains=filters.search)
                | Q(short_description__icontains=filters.search)
                | Q(description__icontains=filters.search)
            )

        if filters.category:
            queryset = queryset.filter(category__slug=filters.category)

        if filters.essence:
            queryset = queryset.filter(essence=filters.essence)

        price_bounds = parse_price_range(filters.price_range)
        if price_bounds is not None:
            low, high = price_bounds
            queryset = queryset.filter(price_cents__gte=low)
            if high is not None:
                queryset = queryset.filter(price_cents__lte=high)

        if filters.in_stock:
            queryset = queryset.filter(stock__gt=0)

        if filters.badges:
            # JSON containment lookups are not available on SQLite
            wanted = set(filters.badges)
            matching_ids = [
                product_id
                for product_id, badges in queryset.prefetch_related(None).values_list("id", "badges")
                if wanted.intersection(badges or [])
            ]
            queryset = queryset.filter(id__in=matching_ids)

        if filters.promotion:
            queryset = queryset.filter(compare_at_price_cents__isnull=False, compare_at_price_cents__gt=F("price_cents"))

        return queryset.order_by(*SORT_OPTIONS[filters.sort])

    @staticmethod
    def search(filters: ProductSearchFilters) -> ProductSearchResult:
        """🔍 Filtered, sorted and paginated product search"""
        queryset = ProductCatalogService.build_search_queryset(filters)
        total = queryset.count()
        offset = (filters.page - 1) * filters.limit
        products = list(queryset[offset:offset + filters.limit])

        logger.debug(f"🔍 [Catalog] Search {filters.applied()} -> {total} result(s)")
        return ProductSearchResult(
            products=products,
            stats=build_pagination(filters.page, filters.limit, total),
            filters=filters.applied(),
        )

    @staticmethod
    def featured_products(filter_name: str = "featured", limit: Any = None) -> Result[list[Product], ServiceError]:
        """⭐ Featured selections for the home page, only in-stock products"""
        if filter_name not in FEATURED_FILTERS:
            return Err(ServiceError("invalid_filter", f"Filtre inconnu: {filter_name}"))

        _page, size = clamp_pagination(1, limit, FEATURED_PRODUCTS_DEFAULT_LIMIT, SEARCH_MAX_LIMIT)
        queryset = ProductCatalogService.base_queryset().filter(stock__gt=0)

        if filter_name == "featured":
            queryset = queryset.filter(featured=True)
        elif filter_name == "bestseller":
            queryset = queryset.filter(bestseller=True)
        elif filter_name == "trending":
            queryset = queryset.filter(trending=True)
        elif filter_name == "new":
            queryset = queryset.filter(created_at__gte=timezone.now() - timedelta(days=NEW_PRODUCT_DAYS))
        elif filter_name == "promotion":
            queryset = queryset.filter(compare_at_price_cents__isnull=False, compare_at_price_cents__gt=F("price_cents"))
        else:
            queryset = queryset.filter(Q(featured=True) | Q(bestseller=True) | Q(trending=True))

        return Ok(list(queryset.order_by(*FEATURED_FILTERS[filter_name])[:size]))

    @staticmethod
    def similar_products(product: Product, limit: int = SIMILAR_PRODUCTS_LIMIT) -> list[Product]:
        """Same category or same essence, in stock, best rated first"""
        return list(
            ProductCatalogService.base_queryset()
            .filter(Q(category_id=product.category_id) | Q(essence=product.essence), stock__gt=0)
            .exclude(pk=product.pk)
            .order_by("-average_rating", "-sales_count")[:limit]
        )

    @staticmethod
    def build_seo(product: Product, site_name: str, site_url: str) -> dict[str, Any]:
        image = product.primary_image
        return {
            "title": product.seo_title or f"{product.name} | {site_name}",
            "description": product.seo_description or product.short_description[:160],
            "keywords": ", ".join(
                part for part in (product.name, product.get_essence_display(), product.category.name, "bois de chauffage")
                if part
            ),
            "canonical": f"{site_url.rstrip('/')}/produits/{product.slug}",
            "ogImage": image.url if image else None,
        }

    @staticmethod
    def get_product_detail(slug: str, site_name: str, site_url: str) -> Result[ProductDetail, ServiceError]:
        """
        📦 Product page data: bumps the view counter, loads similar products
        and builds the SEO block.
        """
        updated = Product.objects.filter(slug=slug, is_active=True).update(view_count=F("view_count") + 1)
        if not updated:
            return Err(ServiceError("not_found", "Produit non trouvé"))

        product = (
            Product.objects.select_related("category")
            .prefetch_related("images", "specifications")
            .get(slug=slug)
        )
        return Ok(
            ProductDetail(
                product=product,
                similar_products=ProductCatalogService.similar_products(product),
                seo=ProductCatalogService.build_seo(product, site_name, site_url),
            )
        )


# ===============================================================================
# CATEGORY SERVICE
# ===============================================================================


class CategoryService:
    """🗂️ Category listings, statistics and guarded deletion"""

    @staticmethod
    def with_product_count(queryset: QuerySet[Category]) -> QuerySet[Category]:
        return queryset.annotate(product_count=Count("products", filter=Q(products__is_active=True)))

    @staticmethod
    def list_categories(active: bool | None = True, featured: bool | None = None) -> QuerySet[Category]:
        queryset = Category.objects.all()
        if active is not None:
            queryset = queryset.filter(is_active=active)
        if featured is not None:
            queryset = queryset.filter(featured=featured)
        return CategoryService.with_product_count(queryset).order_by("sort_order", "name")

    @staticmethod
    def featured_categories(limit: int = FEATURED_CATEGORIES_LIMIT) -> list[Category]:
        """Featured categories, or the first active ones when none is featured"""
        active = CategoryService.with_product_count(Category.objects.filter(is_active=True))
        featured = list(active.filter(featured=True).order_by("sort_order", "-created_at")[:limit])
        if featured:
            return featured

        logger.info("🗂️ [Catalog] No featured category, falling back to active ones")
        return list(active.order_by("sort_order", "name")[:limit])

    @staticmethod
    def compute_stats(category: Category) -> dict[str, Any]:
        products = Product.objects.filter(category=category, is_active=True)
        aggregates = products.aggregate(
            total=Count("id"),
            in_stock=Count("id", filter=Q(stock__gt=0)),
            avg_price=Avg("price_cents"),
            min_price=Min("price_cents"),
            max_price=Max("price_cents"),
        )
        distribution = (
            products.values("essence").annotate(count=Count("id")).order_by("-count", "essence")
        )
        avg_price = aggregates["avg_price"]
        return {
            "totalProducts": aggregates["total"],
            "inStockProducts": aggregates["in_stock"],
            "averagePrice": cents_to_decimal(round(avg_price)) if avg_price is not None else None,
            "minPrice": cents_to_decimal(aggregates["min_price"]),
            "maxPrice": cents_to_decimal(aggregates["max_price"]),
            "essenceDistribution": [{"essence": row["essence"], "count": row["count"]} for row in distribution],
        }

    @staticmethod
    def get_category_detail(slug: str) -> Result[CategoryDetail, ServiceError]:
        try:
            category = CategoryService.with_product_count(Category.objects.filter(is_active=True)).get(slug=slug)
        except Category.DoesNotExist:
            return Err(ServiceError("not_found", "Catégorie non trouvée"))

        featured_products = list(
            ProductCatalogService.base_queryset()
            .filter(category=category, stock__gt=0)
            .order_by("-featured", "-average_rating", "-sales_count")[:CATEGORY_FEATURED_PRODUCTS_LIMIT]
        )
        return Ok(
            CategoryDetail(
                category=category,
                stats=CategoryService.compute_stats(category),
                featured_products=featured_products,
            )
        )

    @staticmethod
    @transaction.atomic
    def delete_category(category: Category) -> Result[None, ServiceError]:
        """🗑️ Delete a category only when no product references it"""
        product_count = category.products.count()
        if product_count:
            return Err(
                ServiceError(
                    "category_not_empty",
                    f"Impossible de supprimer cette catégorie car elle contient {product_count} produit(s)",
                )
            )
        try:
            category.delete()
        except ProtectedError:
            return Err(ServiceError("category_not_empty", "Cette catégorie contient encore des produits"))

        logger.info(f"🗑️ [Catalog] Deleted category {category.slug}")
        return Ok(None)


# ===============================================================================
# ADMIN PRODUCT QUERIES
# ===============================================================================


class ProductAdminService:
    """🛠️ Back-office product listing filters"""

    TRUE_VALUES: ClassVar[set[str]] = {"true", "1", "yes"}

    @staticmethod
    def filter_products(params: Any) -> QuerySet[Product]:
        queryset = Product.objects.select_related("category").prefetch_related("images", "specifications")

        search = (params.get("search") or "").strip()
        if search:
            queryset = queryset.filter(Q(name__icontains=search) | Q(short_description__icontains=search))

        category = params.get("category")
        if category:
            try:
                queryset = queryset.filter(category_id=uuid.UUID(str(category)))
            except ValueError:
                queryset = queryset.filter(category__slug=category)

        active = params.get("active")
        if active not in (None, ""):
            queryset = queryset.filter(is_active=active.lower() in ProductAdminService.TRUE_VALUES)

        essence = params.get("essence")
        if essence:
            queryset = queryset.filter(essence=essence)

        return queryset.order_by("-created_at")


# ===============================================================================
# TESTIMONIAL SERVICE
# ===============================================================================


class TestimonialService:
    """💬 Home page testimonials"""

    @staticmethod
    def featured_testimonials(limit: int = FEATURED_TESTIMONIALS_LIMIT, verified_only: bool = False) -> list[Testimonial]:
        queryset = Testimonial.objects.filter(featured=True, is_active=True)
        if verified_only:
            queryset = queryset.filter(verified=True)

        testimonials = list(queryset.order_by("sort_order", "-rating", "-created_at")[:limit])
        if testimonials:
            return testimonials

        return list(
            Testimonial.objects.filter(
                is_active=True, verified=True, rating__gte=TESTIMONIAL_FALLBACK_MIN_RATING
            ).order_by("sort_order", "-rating", "-created_at")[:limit]
        )
