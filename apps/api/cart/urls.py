"""
Cart API URLs
Session cart endpoints.
"""

from django.urls import path

from . import views

urlpatterns = [
    path('cart/', views.cart_detail, name='cart_detail'),
    path('cart/items/', views.add_cart_item, name='cart_add_item'),
    path('cart/items/<uuid:product_id>/', views.cart_item, name='cart_item'),
    path('cart/validate/', views.validate_cart, name='cart_validate'),
]
