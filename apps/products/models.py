"""
Product Catalog models for the firewood storefront
Categories, firewood products with their images and specifications, and
customer testimonials shown on the home page.
"""

from __future__ import annotations

import logging
import uuid
from datetime import timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, ClassVar

from django.core.exceptions import ValidationError
from django.core.validators import MaxLengthValidator, MaxValueValidator, MinValueValidator
from django.db import IntegrityError, models, transaction
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from apps.common.utils import cents_to_decimal, slugify_name
from apps.common.validators import validate_choice_list, validate_image_url, validate_slug_format

logger = logging.getLogger(__name__)

# Security constants
MAX_JSON_CONTENT_SIZE = 10000  # Maximum size for JSON content
MAX_JSON_DEPTH = 5  # Maximum JSON nesting depth

# Business constants
LOW_STOCK_THRESHOLD = 5
NEW_PRODUCT_DAYS = 30


# ===============================================================================
# SECURITY VALIDATION FUNCTIONS
# ===============================================================================


def validate_json_field(data: Any, field_name: str = "metadata") -> None:
    """🔒 Validate JSON metadata for size, depth and script payloads"""
    if data is None:
        return

    if len(str(data)) > MAX_JSON_CONTENT_SIZE:
        raise ValidationError(f"{field_name} too large")

    _check_json(data, field_name, 0)


def _check_json(data: Any, field_name: str, depth: int) -> None:
    if depth > MAX_JSON_DEPTH:
        raise ValidationError(f"{field_name} too deep")

    if isinstance(data, dict):
        for key, value in data.items():
            if isinstance(value, str) and any(p in value.lower() for p in ("<script", "javascript:")):
                raise ValidationError(f"Dangerous pattern in {field_name} for key '{key}'")
            _check_json(value, field_name, depth + 1)
    elif isinstance(data, list):
        for item in data:
            _check_json(item, field_name, depth + 1)


def unique_slug_for(model: type[models.Model], name: str, exclude_pk: Any = None) -> str:
    """Slug derived from ``name``, suffixed with -2, -3... until unused"""
    base = slugify_name(name) or "item"
    slug = base
    counter = 2
    queryset = model._default_manager.all()
    if exclude_pk is not None:
        queryset = queryset.exclude(pk=exclude_pk)
    while queryset.filter(slug=slug).exists():
        slug = f"{base}-{counter}"
        counter += 1
    return slug


SLUG_ATTEMPTS = 5


def save_with_generated_slug(instance: models.Model, save: Any, *args: Any, **kwargs: Any) -> None:
    """
    Save ``instance``, generating its slug from the name when empty.

    A concurrent insert can take the generated slug between the lookup and
    the INSERT; the slug is then generated again from the committed rows.
    """
    if instance.slug or not instance.name:
        save(*args, **kwargs)
        return

    model = type(instance)
    for attempt in range(1, SLUG_ATTEMPTS + 1):
        instance.slug = unique_slug_for(model, instance.name, exclude_pk=instance.pk)
        try:
            with transaction.atomic():
                save(*args, **kwargs)
            return
        except IntegrityError:
            taken = model._default_manager.exclude(pk=instance.pk).filter(slug=instance.slug).exists()
            if attempt == SLUG_ATTEMPTS or not taken:
                raise
            logger.warning(f"⚠️ [Products] Slug {instance.slug} taken concurrently, retrying ({attempt})")


# ===============================================================================
# CATEGORY
# ===============================================================================


class Category(models.Model):
    """
    Product family shown in the shop navigation (bûches, granulés, allume-feu...).
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    name = models.CharField(max_length=100, help_text=_("Display name"))
    slug = models.SlugField(
        unique=True, max_length=120, blank=True,
        validators=[validate_slug_format],
        help_text=_("URL identifier, generated from the name when empty"),
    )
    short_description = models.CharField(max_length=200, blank=True)
    description = models.TextField(blank=True, validators=[MaxLengthValidator(1000)])
    image = models.CharField(max_length=500, blank=True, validators=[validate_image_url])

    # Merchandising
    featured = models.BooleanField(default=False, help_text=_("Shown on the home page"))
    trending = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)
    sort_order = models.PositiveIntegerField(default=0, help_text=_("Display order (lower numbers first)"))

    # SEO
    seo_title = models.CharField(max_length=70, blank=True)
    seo_description = models.CharField(max_length=160, blank=True)

    metadata = models.JSONField(
        default=dict, blank=True, help_text=_("Display hints such as {color, icon}"),
        validators=[validate_json_field],
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "categories"
        verbose_name = _("Category")
        verbose_name_plural = _("Categories")
        ordering: ClassVar[tuple[str, ...]] = ("sort_order", "name")
        indexes: ClassVar[tuple[models.Index, ...]] = (
            models.Index(fields=["is_active", "featured"]),
            models.Index(fields=["sort_order"]),
        )

    def __str__(self) -> str:
        return self.name

    def save(self, *args: Any, **kwargs: Any) -> None:
        save_with_generated_slug(self, super().save, *args, **kwargs)

    @property
    def active_product_count(self) -> int:
        """Number of active products, prefer the ``product_count`` annotation in lists"""
        annotated = getattr(self, "product_count", None)
        if annotated is not None:
            return annotated
        return self.products.filter(is_active=True).count()


# ===============================================================================
# PRODUCT
# ===============================================================================


class Product(models.Model):
    """
    Firewood product sold by unit (stère, tonne, pack...).
    Prices are stored in cents to avoid float precision issues.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    # Basic Information
    name = models.CharField(max_length=150, help_text=_("Display name for customers"))
    slug = models.SlugField(
        unique=True, max_length=170, blank=True,
        validators=[validate_slug_format],
        help_text=_("URL identifier, generated from the name when empty"),
    )
    short_description = models.TextField(
        validators=[MaxLengthValidator(5300)], help_text=_("Brief description for listings")
    )
    description = models.TextField(blank=True, validators=[MaxLengthValidator(2000)])
    category = models.ForeignKey(Category, on_delete=models.PROTECT, related_name="products")

    ESSENCE_CHOICES: ClassVar[tuple[tuple[str, Any], ...]] = (
        ("chêne", _("Chêne")),
        ("hêtre", _("Hêtre")),
        ("charme", _("Charme")),
        ("mix", _("Mix feuillus")),
        ("granulés", _("Granulés")),
        ("compressé", _("Bois compressé")),
        ("allume-feu", _("Allume-feu")),
    )
    essence = models.CharField(max_length=20, choices=ESSENCE_CHOICES)

    # Pricing in cents
    price_cents = models.BigIntegerField(validators=[MinValueValidator(0)], help_text=_("Unit price in cents"))
    compare_at_price_cents = models.BigIntegerField(
        null=True, blank=True, validators=[MinValueValidator(0)],
        help_text=_("Previous price in cents, must be higher than the price"),
    )

    UNIT_CHOICES: ClassVar[tuple[tuple[str, Any], ...]] = (
        ("stère", _("Stère")),
        ("tonne", _("Tonne")),
        ("pack", _("Pack")),
        ("kg", _("Kilogramme")),
        ("sac", _("Sac")),
    )
    unit = models.CharField(max_length=10, choices=UNIT_CHOICES, default="stère")
    stock = models.PositiveIntegerField(default=0)

    BADGE_CHOICES: ClassVar[tuple[str, ...]] = (
        "premium", "bestseller", "nouveau", "populaire", "offre", "écologique", "innovation",
    )
    badges = models.JSONField(default=list, blank=True, help_text=_("Marketing badges (as JSON array)"))

    # Merchandising flags
    featured = models.BooleanField(default=False)
    bestseller = models.BooleanField(default=False)
    trending = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True, help_text=_("Whether product is available for purchase"))

    # Counters
    average_rating = models.DecimalField(
        max_digits=3, decimal_places=2, default=Decimal("0.00"),
        validators=[MinValueValidator(0), MaxValueValidator(5)],
    )
    review_count = models.PositiveIntegerField(default=0)
    sales_count = models.PositiveIntegerField(default=0)
    view_count = models.PositiveIntegerField(default=0)

    # SEO and metadata
    seo_title = models.CharField(max_length=70, blank=True)
    seo_description = models.CharField(max_length=160, blank=True)
    metadata = models.JSONField(default=dict, blank=True, validators=[validate_json_field])

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "products"
        verbose_name = _("Product")
        verbose_name_plural = _("Products")
        ordering: ClassVar[tuple[str, ...]] = ("name",)
        indexes: ClassVar[tuple[models.Index, ...]] = (
            models.Index(fields=["slug"]),
            models.Index(fields=["category", "is_active"]),
            models.Index(fields=["essence", "is_active"]),
            models.Index(fields=["price_cents"]),
            models.Index(fields=["-created_at"]),
        )

    def __str__(self) -> str:
        return self.name

    def save(self, *args: Any, **kwargs: Any) -> None:
        save_with_generated_slug(self, super().save, *args, **kwargs)

    def clean(self) -> None:
        """🔒 Validate pricing and badges"""
        super().clean()

        if (
            self.compare_at_price_cents is not None
            and self.price_cents is not None
            and self.compare_at_price_cents <= self.price_cents
        ):
            raise ValidationError(
                {"compare_at_price_cents": _("Le prix de comparaison doit être supérieur au prix de vente")}
            )

        validate_choice_list(self.badges, list(self.BADGE_CHOICES), "badges")

        logger.debug(
            "🔒 [Products] product_validation",
            extra={"event": "product_validation", "model": "Product", "slug": getattr(self, "slug", None)},
        )

    # ===============================================================================
    # PRICING PROPERTIES
    # ===============================================================================

    @property
    def price(self) -> Decimal:
        """Return price in euros (e.g., 89.90)"""
        return cents_to_decimal(self.price_cents)

    @property
    def compare_at_price(self) -> Decimal | None:
        return cents_to_decimal(self.compare_at_price_cents)

    @property
    def has_promotion(self) -> bool:
        return self.compare_at_price_cents is not None and self.compare_at_price_cents > self.price_cents

    @property
    def discount_percentage(self) -> int:
        """Rounded discount against the compare-at price, 0 without promotion"""
        if not self.has_promotion:
            return 0
        ratio = Decimal(self.compare_at_price_cents - self.price_cents) / Decimal(self.compare_at_price_cents)
        return int((ratio * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))

    @property
    def economy_per_unit(self) -> int:
        """Whole euros saved per unit compared to the previous price"""
        if not self.has_promotion:
            return 0
        saved = cents_to_decimal(self.compare_at_price_cents - self.price_cents)
        return int(saved.quantize(Decimal("1"), rounding=ROUND_HALF_UP))

    # ===============================================================================
    # STOCK & FRESHNESS PROPERTIES
    # ===============================================================================

    @property
    def in_stock(self) -> bool:
        return self.stock > 0

    @property
    def is_low_stock(self) -> bool:
        return 0 < self.stock <= LOW_STOCK_THRESHOLD

    @property
    def is_new(self) -> bool:
        if self.created_at is None:
            return True
        return self.created_at >= timezone.now() - timedelta(days=NEW_PRODUCT_DAYS)

    @property
    def carbon_footprint(self) -> str:
        return "Faible" if self.essence == "granulés" else "Très faible"

    @property
    def primary_image(self) -> ProductImage | None:
        images = list(self.images.all())
        for image in images:
            if image.is_primary:
                return image
        return images[0] if images else None


class ProductImage(models.Model):
    """Picture of a product, one of them flagged as primary"""

    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name="images")
    url = models.CharField(max_length=500, validators=[validate_image_url])
    alt = models.CharField(max_length=200, blank=True)
    is_primary = models.BooleanField(default=False)
    sort_order = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = "product_images"
        verbose_name = _("Product Image")
        verbose_name_plural = _("Product Images")
        ordering: ClassVar[tuple[str, ...]] = ("-is_primary", "sort_order", "id")

    def __str__(self) -> str:
        return f"{self.product.name} - {self.url}"


class ProductSpecification(models.Model):
    """Technical characteristic of a product (humidité: 18 %, longueur: 33 cm...)"""

    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name="specifications")
    name = models.CharField(max_length=100)
    value = models.CharField(max_length=200)
    unit = models.CharField(max_length=20, blank=True)
    sort_order = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = "product_specifications"
        verbose_name = _("Product Specification")
        verbose_name_plural = _("Product Specifications")
        ordering: ClassVar[tuple[str, ...]] = ("sort_order", "id")

    def __str__(self) -> str:
        return f"{self.name}: {self.value}{f' {self.unit}' if self.unit else ''}"


# ===============================================================================
# TESTIMONIALS
# ===============================================================================


class Testimonial(models.Model):
    """Customer review displayed on the storefront"""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    name = models.CharField(max_length=100)
    location = models.CharField(max_length=100, blank=True)
    avatar = models.CharField(max_length=500, blank=True)
    rating = models.PositiveSmallIntegerField(validators=[MinValueValidator(1), MaxValueValidator(5)])
    comment = models.TextField(validators=[MaxLengthValidator(1000)])
    short_comment = models.CharField(max_length=200, blank=True)
    product_purchased = models.CharField(max_length=150, blank=True)

    verified = models.BooleanField(default=False, help_text=_("Purchase confirmed by the shop"))
    featured = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)
    sort_order = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "testimonials"
        verbose_name = _("Testimonial")
        verbose_name_plural = _("Testimonials")
        ordering: ClassVar[tuple[str, ...]] = ("sort_order", "-rating", "-created_at")
        indexes: ClassVar[tuple[models.Index, ...]] = (
            models.Index(fields=["featured", "is_active"]),
        )

    def __str__(self) -> str:
        return f"{self.name} ({self.rating}/5)"
