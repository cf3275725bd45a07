"""
Catalog API URLs
Public catalog endpoints and back-office CRUD routers.
"""

from django.urls import include, path
from rest_framework.routers import SimpleRouter

from . import views

admin_router = SimpleRouter()
admin_router.register('products', views.ProductAdminViewSet, basename='admin-product')
admin_router.register('categories', views.CategoryAdminViewSet, basename='admin-category')
admin_router.register('testimonials', views.TestimonialAdminViewSet, basename='admin-testimonial')

urlpatterns = [
    # Products (search and featured before the slug catch-all)
    path('products/search/', views.product_search, name='product_search'),
    path('products/featured/', views.featured_products, name='featured_products'),
    path('products/<slug:slug>/', views.product_detail, name='product_detail'),

    # Categories
    path('categories/', views.category_list, name='category_list'),
    path('categories/featured/', views.featured_categories, name='featured_categories'),
    path('categories/<slug:slug>/', views.category_detail, name='category_detail'),

    # Testimonials
    path('testimonials/featured/', views.featured_testimonials, name='featured_testimonials'),
]

admin_urlpatterns = [
    path('', include(admin_router.urls)),
]
