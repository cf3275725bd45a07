"""
Django admin configuration for products app.
Firewood catalog management interface.
"""

from typing import ClassVar

from django.contrib import admin

from .models import Category, Product, ProductImage, ProductSpecification, Testimonial


class ProductImageInline(admin.TabularInline):
    model = ProductImage
    extra = 0


class ProductSpecificationInline(admin.TabularInline):
    model = ProductSpecification
    extra = 0


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    """Admin interface for categories."""

    list_display: ClassVar[list[str]] = ('name', 'slug', 'is_active', 'featured', 'trending', 'sort_order')
    list_filter: ClassVar[list[str]] = ('is_active', 'featured', 'trending')
    search_fields: ClassVar[list[str]] = ('name', 'slug', 'short_description')
    prepopulated_fields: ClassVar[dict[str, tuple[str, ...]]] = {'slug': ('name',)}
    readonly_fields: ClassVar[list[str]] = ('created_at', 'updated_at')


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    """Admin interface for products."""

    list_display: ClassVar[list[str]] = (
        'name', 'category', 'essence', 'price_cents', 'stock', 'is_active', 'featured', 'created_at'
    )
    list_filter: ClassVar[list[str]] = ('is_active', 'category', 'essence', 'unit', 'featured', 'bestseller')
    search_fields: ClassVar[list[str]] = ('name', 'slug', 'short_description')
    prepopulated_fields: ClassVar[dict[str, tuple[str, ...]]] = {'slug': ('name',)}
    inlines: ClassVar[list] = [ProductImageInline, ProductSpecificationInline]

    fieldsets: ClassVar[tuple] = (
        ('Basic Information', {
            'fields': ('name', 'slug', 'category', 'essence', 'short_description', 'description')
        }),
        ('Pricing & Stock', {
            'fields': ('price_cents', 'compare_at_price_cents', 'unit', 'stock')
        }),
        ('Merchandising', {
            'fields': ('badges', 'featured', 'bestseller', 'trending', 'is_active')
        }),
        ('Statistics', {
            'fields': ('average_rating', 'review_count', 'sales_count', 'view_count'),
            'classes': ('collapse',)
        }),
        ('SEO & Metadata', {
            'fields': ('seo_title', 'seo_description', 'metadata'),
            'classes': ('collapse',)
        }),
    )

    readonly_fields: ClassVar[list[str]] = ('view_count', 'created_at', 'updated_at')


@admin.register(Testimonial)
class TestimonialAdmin(admin.ModelAdmin):
    """Admin interface for testimonials."""

    list_display: ClassVar[list[str]] = ('name', 'location', 'rating', 'verified', 'featured', 'is_active')
    list_filter: ClassVar[list[str]] = ('verified', 'featured', 'is_active', 'rating')
    search_fields: ClassVar[list[str]] = ('name', 'comment', 'product_purchased')
