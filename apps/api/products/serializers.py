# ===============================================================================
# CATALOG API SERIALIZERS 🪵
# ===============================================================================

from decimal import Decimal
from typing import Any, ClassVar

from django.db import transaction
from rest_framework import serializers

from apps.common.utils import decimal_to_cents
from apps.common.validators import validate_slug_format
from apps.products.models import Category, Product, ProductImage, ProductSpecification, Testimonial
from apps.products.services import DELIVERY_ESTIMATE

from ..core.responses import ConflictError


class ProductImageSerializer(serializers.ModelSerializer):
    class Meta:
        model = ProductImage
        fields: ClassVar = ['url', 'alt', 'is_primary', 'sort_order']


class ProductSpecificationSerializer(serializers.ModelSerializer):
    class Meta:
        model = ProductSpecification
        fields: ClassVar = ['name', 'value', 'unit', 'sort_order']


class CategoryBriefSerializer(serializers.ModelSerializer):
    """Category reference embedded in product payloads"""

    class Meta:
        model = Category
        fields: ClassVar = ['id', 'name', 'slug']


class CategorySerializer(serializers.ModelSerializer):
    """Public category with its active product count"""

    productCount = serializers.IntegerField(source='active_product_count', read_only=True)

    class Meta:
        model = Category
        fields: ClassVar = [
            'id', 'name', 'slug', 'short_description', 'description', 'image',
            'featured', 'trending', 'sort_order', 'seo_title', 'seo_description',
            'metadata', 'productCount',
        ]


# ===============================================================================
# PUBLIC PRODUCT SERIALIZERS
# ===============================================================================

class ProductListSerializer(serializers.ModelSerializer):
    """Product card used by search, featured selections and similar products"""

    category = CategoryBriefSerializer(read_only=True)
    price = serializers.DecimalField(max_digits=10, decimal_places=2, read_only=True)
    compare_at_price = serializers.DecimalField(max_digits=10, decimal_places=2, read_only=True, allow_null=True)
    discount_percentage = serializers.IntegerField(read_only=True)
    in_stock = serializers.BooleanField(read_only=True)
    primary_image = serializers.SerializerMethodField()

    class Meta:
        model = Product
        fields: ClassVar = [
            'id', 'name', 'slug', 'short_description', 'category', 'essence',
            'price', 'compare_at_price', 'discount_percentage', 'unit', 'stock', 'in_stock',
            'badges', 'featured', 'bestseller', 'trending',
            'average_rating', 'review_count', 'sales_count', 'primary_image',
        ]

    def get_primary_image(self, obj: Product) -> dict[str, Any] | None:
        image = obj.primary_image
        return ProductImageSerializer(image).data if image else None


class ProductDetailSerializer(ProductListSerializer):
    """Full product page payload with the enriched virtual fields"""

    images = ProductImageSerializer(many=True, read_only=True)
    specifications = ProductSpecificationSerializer(many=True, read_only=True)
    is_low_stock = serializers.BooleanField(read_only=True)
    is_new = serializers.BooleanField(read_only=True)
    economy_per_unit = serializers.IntegerField(read_only=True)
    carbon_footprint = serializers.CharField(read_only=True)
    delivery_estimate = serializers.SerializerMethodField()

    class Meta(ProductListSerializer.Meta):
        fields: ClassVar = [
            *ProductListSerializer.Meta.fields,
            'description', 'images', 'specifications', 'view_count',
            'is_low_stock', 'is_new', 'economy_per_unit', 'delivery_estimate', 'carbon_footprint',
            'seo_title', 'seo_description', 'metadata', 'created_at', 'updated_at',
        ]

    def get_delivery_estimate(self, obj: Product) -> str:
        return DELIVERY_ESTIMATE


class TestimonialSerializer(serializers.ModelSerializer):
    class Meta:
        model = Testimonial
        fields: ClassVar = [
            'id', 'name', 'location', 'avatar', 'rating', 'comment', 'short_comment',
            'product_purchased', 'verified', 'featured', 'is_active', 'sort_order', 'created_at',
        ]
        read_only_fields: ClassVar = ['id', 'created_at']


# ===============================================================================
# BACK-OFFICE SERIALIZERS
# ===============================================================================

def _check_slug_available(model: type, value: str, instance: Any, label: str) -> str:
    if not value:
        return value
    taken = model._default_manager.filter(slug=value)
    if instance is not None:
        taken = taken.exclude(pk=instance.pk)
    if taken.exists():
        raise ConflictError(f"{label} avec le slug '{value}' existe déjà")
    return value


class CategoryAdminSerializer(CategorySerializer):
    """Writable category; the slug is generated from the name when missing"""

    slug = serializers.CharField(
        max_length=120, required=False, allow_blank=True, validators=[validate_slug_format]
    )

    class Meta(CategorySerializer.Meta):
        fields: ClassVar = [*CategorySerializer.Meta.fields, 'is_active', 'created_at', 'updated_at']
        read_only_fields: ClassVar = ['id', 'created_at', 'updated_at']

    def validate_slug(self, value: str) -> str:
        return _check_slug_available(Category, value.strip().lower(), self.instance, "Une catégorie")


class ProductAdminSerializer(ProductDetailSerializer):
    """
    Writable product with nested images and specifications.

    Prices are exchanged in euros and stored in cents.
    """

    slug = serializers.CharField(
        max_length=170, required=False, allow_blank=True, validators=[validate_slug_format]
    )
    category = serializers.PrimaryKeyRelatedField(
        queryset=Category.objects.all(),
        error_messages={'does_not_exist': "Catégorie introuvable", 'incorrect_type': "Catégorie introuvable"},
    )
    price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal('0'))
    compare_at_price = serializers.DecimalField(
        max_digits=10, decimal_places=2, min_value=Decimal('0'), required=False, allow_null=True
    )
    badges = serializers.ListField(
        child=serializers.ChoiceField(choices=Product.BADGE_CHOICES), required=False
    )
    images = ProductImageSerializer(many=True, required=False)
    specifications = ProductSpecificationSerializer(many=True, required=False)

    class Meta(ProductDetailSerializer.Meta):
        fields: ClassVar = [*ProductDetailSerializer.Meta.fields, 'is_active']
        read_only_fields: ClassVar = ['id', 'sales_count', 'view_count', 'created_at', 'updated_at']

    def validate_slug(self, value: str) -> str:
        return _check_slug_available(Product, value.strip().lower(), self.instance, "Un produit")

    def validate(self, attrs: dict[str, Any]) -> dict[str, Any]:
        price = attrs.get('price', self.instance.price if self.instance else None)
        compare = attrs.get('compare_at_price', self.instance.compare_at_price if self.instance else None)
        if compare is not None and price is not None and compare <= price:
            raise serializers.ValidationError(
                {'compare_at_price': "Le prix de comparaison doit être supérieur au prix de vente"}
            )
        return attrs

    @staticmethod
    def _money_to_cents(validated_data: dict[str, Any]) -> None:
        if 'price' in validated_data:
            validated_data['price_cents'] = decimal_to_cents(validated_data.pop('price'))
        if 'compare_at_price' in validated_data:
            validated_data['compare_at_price_cents'] = decimal_to_cents(validated_data.pop('compare_at_price'))

    @staticmethod
    def _replace_children(product: Product, images: list[dict] | None, specifications: list[dict] | None) -> None:
        if images is not None:
            product.images.all().delete()
            ProductImage.objects.bulk_create(ProductImage(product=product, **image) for image in images)
        if specifications is not None:
            product.specifications.all().delete()
            ProductSpecification.objects.bulk_create(
                ProductSpecification(product=product, **spec) for spec in specifications
            )

    @transaction.atomic
    def create(self, validated_data: dict[str, Any]) -> Product:
        images = validated_data.pop('images', [])
        specifications = validated_data.pop('specifications', [])
        self._money_to_cents(validated_data)
        product = Product.objects.create(**validated_data)
        self._replace_children(product, images, specifications)
        return product

    @transaction.atomic
    def update(self, instance: Product, validated_data: dict[str, Any]) -> Product:
        images = validated_data.pop('images', None)
        specifications = validated_data.pop('specifications', None)
        self._money_to_cents(validated_data)
        for field, value in validated_data.items():
            setattr(instance, field, value)
        instance.save()
        self._replace_children(instance, images, specifications)
        return instance
